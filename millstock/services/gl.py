"""
GL posting engine — balanced journal entries from inventory movements.

post_journal_entry() never raises for posting problems: it returns a
PostingResult so the workflows can record gl_status=FAILED and move on.
The line builders DO raise (AccountNotConfigured) so that an entry is
never built with a missing side.
"""

import logging
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.utils import timezone

from millstock import quantities
from millstock.conf import millstock_settings
from millstock.exceptions import AccountNotConfigured, MillstockError, UnbalancedEntry, ValidationError
from millstock.models.enums import IssuePurpose, JournalStatus, SystemAccountKey
from millstock.models.journal import JournalEntry, JournalEntryLine, LedgerAccount, SystemAccountMap
from millstock.services import numbering
from millstock.types import GLLine, PostingContext, PostingResult

logger = logging.getLogger('millstock')

SOURCE_GOODS_ISSUE = 'GoodsIssue'
SOURCE_GOODS_RECEIPT = 'GoodsReceipt'

# Debit side per purpose; credit is always INVENTORY_GENERAL
PURPOSE_DEBIT_KEYS = {
    IssuePurpose.ISSUE: SystemAccountKey.MAINTENANCE_EXPENSE_DEFAULT,
    IssuePurpose.PROD: SystemAccountKey.PRODUCTION_CONSUMPTION,
    IssuePurpose.LOAN: SystemAccountKey.INVENTORY_ON_LOAN,
    IssuePurpose.SCRAP: SystemAccountKey.INVENTORY_ADJUSTMENT_LOSS,
}

PURPOSE_DESCRIPTIONS = {
    IssuePurpose.ISSUE: 'Goods issued for use',
    IssuePurpose.PROD: 'Goods consumed by production',
    IssuePurpose.LOAN: 'Goods lent out',
    IssuePurpose.SCRAP: 'Goods scrapped (damaged/lost)',
}


class GLPosting:
    """Journal posting, account resolution and voiding."""

    def __init__(self, using: str = 'default'):
        self.using = using

    # ══════════════════════════════════════════════════════════════
    # POSTING
    # ══════════════════════════════════════════════════════════════

    def post_journal_entry(self, context: PostingContext, lines: list[GLLine]) -> PostingResult:
        """
        Persist a POSTED journal entry.

        Returns:
            PostingResult(success=True, journal_entry_id, entry_number), or
            PostingResult(success=False, error, code) when the lines are
            unbalanced/invalid or the database rejects the write.

        Concurrency:
            - Header, lines and number allocation share one savepoint, so a
              failure here leaves the caller's transaction usable.
        """
        try:
            entry = self._post(context, lines)
        except MillstockError as e:
            logger.error(
                "gl.post.rejected",
                extra={"source": f"{context.source_type}:{context.source_id}", "code": e.code},
            )
            return PostingResult(success=False, error=e.message, code=e.code, details=e.as_dict()['data'])
        except DatabaseError as e:
            logger.exception(
                "gl.post.error",
                extra={"source": f"{context.source_type}:{context.source_id}"},
            )
            return PostingResult(success=False, error=str(e), code='INTERNAL_ERROR')

        return PostingResult(
            success=True,
            journal_entry_id=entry.pk,
            entry_number=entry.entry_number,
        )

    def _post(self, context: PostingContext, lines: list[GLLine]) -> JournalEntry:
        if not lines:
            raise ValidationError('INVALID_INPUT', field='lines')

        amounts = [(quantities.money(line.debit), quantities.money(line.credit)) for line in lines]
        if any(debit < 0 or credit < 0 for debit, credit in amounts):
            raise ValidationError('INVALID_INPUT', field='amount', reason='negative')

        total_debit = sum((debit for debit, _ in amounts), Decimal('0'))
        total_credit = sum((credit for _, credit in amounts), Decimal('0'))
        if abs(total_debit - total_credit) > millstock_settings.gl_tolerance:
            raise UnbalancedEntry(
                message=f"Debit ({total_debit}) and credit ({total_credit}) must be equal",
                debit=total_debit,
                credit=total_credit,
            )

        account_ids = {line.account_id for line in lines}
        known = set(
            LedgerAccount.objects.using(self.using)
            .filter(pk__in=account_ids, is_active=True)
            .values_list('pk', flat=True)
        )
        if account_ids - known:
            raise AccountNotConfigured(
                message="Journal line references an unknown or inactive account",
                account_ids=sorted(account_ids - known, key=str),
            )

        with transaction.atomic(using=self.using):
            entry_number = numbering.journal_number(context.company_code, context.date, self.using)
            entry = JournalEntry.objects.using(self.using).create(
                company_code=context.company_code,
                entry_number=entry_number,
                date=context.date,
                source_type=context.source_type,
                source_id=str(context.source_id),
                memo=(context.memo or f"Auto-posted from {context.source_type} {context.source_number}")[:255],
                status=JournalStatus.POSTED,
                posted_at=timezone.now(),
                created_by=context.created_by,
            )
            JournalEntryLine.objects.using(self.using).bulk_create([
                JournalEntryLine(
                    entry=entry,
                    account_id=line.account_id,
                    debit=debit,
                    credit=credit,
                    cost_center=line.cost_center,
                    dept=line.dept,
                    item_id=line.item_id,
                    warehouse_id=line.warehouse_id,
                    description=line.description[:255],
                )
                for line, (debit, credit) in zip(lines, amounts)
            ])

        logger.info(
            "gl.post",
            extra={
                "entry_number": entry_number,
                "source": f"{context.source_type}:{context.source_id}",
                "total": str(total_debit),
            },
        )
        return entry

    # ══════════════════════════════════════════════════════════════
    # ACCOUNTS
    # ══════════════════════════════════════════════════════════════

    def get_system_account_id(self, company_code: str, key: str) -> int:
        """
        Resolve a logical account key for a company.

        Raises:
            AccountNotConfigured: If no (active) account is mapped to the key
        """
        mapping = (
            SystemAccountMap.objects.using(self.using)
            .select_related('account')
            .filter(company_code=company_code, key=key)
            .first()
        )
        if mapping is None or not mapping.account.is_active:
            raise AccountNotConfigured(
                message=f"Account {key} not configured for company {company_code}",
                key=str(key),
                company=company_code,
            )
        return mapping.account_id

    # ══════════════════════════════════════════════════════════════
    # LINE BUILDERS
    # ══════════════════════════════════════════════════════════════

    def build_goods_issue_gl_lines(self, company_code: str, purpose: str, total_value,
                                   expense_account_id: int | None = None,
                                   cost_center: str = '', dept: str = '',
                                   item_id: int | None = None,
                                   warehouse_id: int | None = None) -> list[GLLine]:
        """
        Dr <purpose account> / Cr INVENTORY_GENERAL for total_value.

        ISSUE debits expense_account_id when given, else
        MAINTENANCE_EXPENSE_DEFAULT.

        Raises:
            ValidationError('UNKNOWN_PURPOSE'): If purpose is not an IssuePurpose
            AccountNotConfigured: If either side cannot be resolved
        """
        if purpose not in PURPOSE_DEBIT_KEYS:
            raise ValidationError('UNKNOWN_PURPOSE', purpose=purpose)

        inventory_account_id = self.get_system_account_id(company_code, SystemAccountKey.INVENTORY_GENERAL)
        if purpose == IssuePurpose.ISSUE and expense_account_id is not None:
            debit_account_id = expense_account_id
        else:
            debit_account_id = self.get_system_account_id(company_code, PURPOSE_DEBIT_KEYS[purpose])

        value = quantities.money(total_value)
        description = PURPOSE_DESCRIPTIONS[purpose]
        common = dict(
            cost_center=cost_center,
            dept=dept,
            item_id=item_id,
            warehouse_id=warehouse_id,
            description=description,
        )
        return [
            GLLine(account_id=debit_account_id, debit=value, credit=Decimal('0'), **common),
            GLLine(account_id=inventory_account_id, debit=Decimal('0'), credit=value, **common),
        ]

    def build_loan_return_gl_lines(self, company_code: str, return_value, loss_value,
                                   warehouse_id: int | None = None) -> list[GLLine]:
        """
        Returned portion: Dr INVENTORY_GENERAL / Cr INVENTORY_ON_LOAN.
        Lost portion:     Dr INVENTORY_ADJUSTMENT_LOSS / Cr INVENTORY_ON_LOAN.

        Raises:
            AccountNotConfigured: If a needed account is missing (the loss
                account is only needed when loss_value > 0)
        """
        return_value = quantities.money(return_value)
        loss_value = quantities.money(loss_value)

        inventory_account_id = self.get_system_account_id(company_code, SystemAccountKey.INVENTORY_GENERAL)
        loan_account_id = self.get_system_account_id(company_code, SystemAccountKey.INVENTORY_ON_LOAN)
        loss_account_id = None
        if loss_value > 0:
            loss_account_id = self.get_system_account_id(company_code, SystemAccountKey.INVENTORY_ADJUSTMENT_LOSS)

        lines = []
        if return_value > 0:
            lines += [
                GLLine(account_id=inventory_account_id, debit=return_value,
                       warehouse_id=warehouse_id, description='Loaned goods returned'),
                GLLine(account_id=loan_account_id, credit=return_value,
                       warehouse_id=warehouse_id, description='Loaned goods returned'),
            ]
        if loss_value > 0:
            lines += [
                GLLine(account_id=loss_account_id, debit=loss_value,
                       warehouse_id=warehouse_id, description='Loaned goods not returned'),
                GLLine(account_id=loan_account_id, credit=loss_value,
                       warehouse_id=warehouse_id, description='Loaned goods not returned'),
            ]
        return lines

    # ══════════════════════════════════════════════════════════════
    # VOID
    # ══════════════════════════════════════════════════════════════

    def void_journal_entry_by_source(self, source_type: str, source_id) -> int:
        """
        Mark every POSTED entry of a source as VOID.

        No reversing entry is created. Returns the number of entries voided.
        """
        with transaction.atomic(using=self.using):
            entries = list(
                JournalEntry.objects.using(self.using)
                .select_for_update()
                .filter(source_type=source_type, source_id=str(source_id), status=JournalStatus.POSTED)
            )
            now = timezone.now()
            for entry in entries:
                entry.status = JournalStatus.VOID
                entry.voided_at = now
                entry.save(update_fields=['status', 'voided_at'])

        if entries:
            logger.info(
                "gl.void",
                extra={
                    "source": f"{source_type}:{source_id}",
                    "entries": [e.entry_number for e in entries],
                },
            )
        return len(entries)
