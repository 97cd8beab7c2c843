"""
Enums for Millstock models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ReferenceType(models.TextChoices):
    """Direction of a stock ledger entry."""
    IN = 'IN', _('Inbound')
    OUT = 'OUT', _('Outbound')
    ADJ = 'ADJ', _('Adjustment')


class IssuePurpose(models.TextChoices):
    """
    Why goods leave the warehouse. Determines the GL debit account.

    ISSUE: consumed by a department (expense)
    PROD:  consumed by production
    LOAN:  lent out, expected back
    SCRAP: damaged or lost
    """
    ISSUE = 'ISSUE', _('Issue')
    PROD = 'PROD', _('Production')
    LOAN = 'LOAN', _('Loan')
    SCRAP = 'SCRAP', _('Scrap')


class IssueStatus(models.TextChoices):
    """
    Goods issue lifecycle.

    Non-loan issues terminate at APPROVED.
    Loans: APPROVED → PARTIAL_RETURN → RETURNED
    """
    APPROVED = 'APPROVED', _('Approved')
    PARTIAL_RETURN = 'PARTIAL_RETURN', _('Partially returned')
    RETURNED = 'RETURNED', _('Returned')


class ReceiptSource(models.TextChoices):
    """Origin of a goods receipt."""
    RETURN = 'RETURN', _('Return')
    NEW_ITEM = 'NEW_ITEM', _('New item')
    LOAN_RETURN = 'LOAN_RETURN', _('Loan return')


class GLStatus(models.TextChoices):
    """Outcome of the GL stage recorded on a movement document."""
    PENDING = 'PENDING', _('Pending')
    POSTED = 'POSTED', _('Posted')
    FAILED = 'FAILED', _('Failed')
    SKIPPED = 'SKIPPED', _('No accounting impact')


class JournalStatus(models.TextChoices):
    POSTED = 'POSTED', _('Posted')
    VOID = 'VOID', _('Void')


class SystemAccountKey(models.TextChoices):
    """Logical account keys resolved per company via SystemAccountMap."""
    INVENTORY_GENERAL = 'INVENTORY_GENERAL', _('Inventory')
    INVENTORY_ON_LOAN = 'INVENTORY_ON_LOAN', _('Inventory on loan')
    PRODUCTION_CONSUMPTION = 'PRODUCTION_CONSUMPTION', _('Production consumption')
    INVENTORY_ADJUSTMENT_LOSS = 'INVENTORY_ADJUSTMENT_LOSS', _('Inventory adjustment loss')
    MAINTENANCE_EXPENSE_DEFAULT = 'MAINTENANCE_EXPENSE_DEFAULT', _('Default maintenance expense')
