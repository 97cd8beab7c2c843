"""
General ledger models — accounts, system account map and journal entries.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from millstock.models.enums import JournalStatus, SystemAccountKey


class LedgerAccount(models.Model):
    """Chart-of-accounts entry, scoped to a company."""

    company_code = models.CharField(max_length=20, db_index=True)
    code = models.CharField(max_length=32, verbose_name=_('Code'))
    name = models.CharField(max_length=200, verbose_name=_('Name'))
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _('Ledger account')
        verbose_name_plural = _('Ledger accounts')
        ordering = ['company_code', 'code']
        constraints = [
            models.UniqueConstraint(fields=['company_code', 'code'], name='unique_account_code_per_company'),
        ]

    def __str__(self) -> str:
        return f"{self.code} {self.name}"


class SystemAccountMap(models.Model):
    """
    Resolves a logical key (INVENTORY_GENERAL, ...) to a concrete account.

    A missing row is a configuration error: callers get AccountNotConfigured.
    """

    company_code = models.CharField(max_length=20)
    key = models.CharField(max_length=40, choices=SystemAccountKey.choices)
    account = models.ForeignKey(LedgerAccount, on_delete=models.PROTECT, related_name='system_keys')

    class Meta:
        verbose_name = _('System account mapping')
        verbose_name_plural = _('System account mappings')
        constraints = [
            models.UniqueConstraint(fields=['company_code', 'key'], name='unique_system_account_key'),
        ]

    def __str__(self) -> str:
        return f"{self.company_code}:{self.key} → {self.account.code}"


class JournalEntry(models.Model):
    """
    Balanced double-entry record. Created by a movement document but
    logically independent of it: voiding one never voids the other.
    """

    company_code = models.CharField(max_length=20)
    entry_number = models.CharField(max_length=64, verbose_name=_('Entry number'))
    date = models.DateField(default=timezone.localdate, db_index=True)
    source_type = models.CharField(max_length=30)
    source_id = models.CharField(max_length=64)
    memo = models.CharField(max_length=255, blank=True, default='')
    status = models.CharField(
        max_length=10,
        choices=JournalStatus.choices,
        default=JournalStatus.POSTED,
        db_index=True,
    )
    posted_at = models.DateTimeField(null=True, blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)
    created_by = models.CharField(max_length=64)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Journal entry')
        verbose_name_plural = _('Journal entries')
        ordering = ['-date', '-pk']
        constraints = [
            models.UniqueConstraint(fields=['company_code', 'entry_number'], name='unique_entry_number_per_company'),
        ]
        indexes = [
            models.Index(fields=['source_type', 'source_id'], name='journal_entry_source_idx'),
        ]

    def totals(self) -> tuple[Decimal, Decimal]:
        """(total debit, total credit)."""
        agg = self.lines.aggregate(
            debit=Coalesce(Sum('debit'), Decimal('0')),
            credit=Coalesce(Sum('credit'), Decimal('0')),
        )
        return agg['debit'], agg['credit']

    def __str__(self) -> str:
        return self.entry_number


class JournalEntryLine(models.Model):
    entry = models.ForeignKey(JournalEntry, on_delete=models.CASCADE, related_name='lines')
    account = models.ForeignKey(LedgerAccount, on_delete=models.PROTECT, related_name='journal_lines')
    debit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0'))
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0'))
    cost_center = models.CharField(max_length=50, blank=True, default='')
    dept = models.CharField(max_length=100, blank=True, default='')
    item = models.ForeignKey('millstock.Item', on_delete=models.PROTECT, null=True, blank=True, related_name='+')
    warehouse = models.ForeignKey('millstock.Warehouse', on_delete=models.PROTECT, null=True, blank=True, related_name='+')
    description = models.CharField(max_length=255, blank=True, default='')

    class Meta:
        ordering = ['pk']

    def __str__(self) -> str:
        return f"{self.account_id} Dr {self.debit} Cr {self.credit}"
