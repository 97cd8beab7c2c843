"""
Outbound workflow — goods issues (ISSUE / PROD / LOAN / SCRAP).
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from millstock import quantities
from millstock.adapters.catalog import get_catalog
from millstock.exceptions import InsufficientStock, ValidationError
from millstock.models.documents import GoodsIssue, GoodsIssueLine
from millstock.models.enums import GLStatus, IssuePurpose, IssueStatus, ReferenceType
from millstock.models.journal import LedgerAccount
from millstock.services import numbering
from millstock.services.balances import StockLedger
from millstock.services.common import CatalogResolver, ResolvedLine, run_gl_stage, shortfall_report
from millstock.services.gl import SOURCE_GOODS_ISSUE, GLPosting
from millstock.types import OutboundRequest, PostingContext

logger = logging.getLogger('millstock')


class OutboundWorkflow:
    """
    Issue goods out of a warehouse.

    Usage:
        workflow = OutboundWorkflow()
        issue = workflow.create_outbound(OutboundRequest(
            warehouse_id=wh.pk, purpose='PROD',
            lines=[OutboundLine(item_id=oil.pk, unit_id=ltr.pk, qty=Decimal('50'))],
        ), actor='u-1')
    """

    def __init__(self, using: str = 'default', catalog=None, ledger: StockLedger | None = None,
                 gl: GLPosting | None = None):
        self.using = using
        self.resolver = CatalogResolver(catalog or get_catalog(using))
        self.ledger = ledger or StockLedger(using)
        self.gl = gl or GLPosting(using)

    def create_outbound(self, request: OutboundRequest, actor: str) -> GoodsIssue:
        """
        Validate, deduct stock, record the issue, then post its journal.

        Stages:
            1. Validation: warehouse, items, units, bins, quantities
            2. Availability pre-check (no locks)
            3. Transaction: lock balances, re-check, number, header, lines,
               ledger entries. All or nothing.
            4. GL stage in a savepoint: failure sets gl_status=FAILED but
               keeps the movement.

        Raises:
            ValidationError: Bad input or unknown/inactive references
            InsufficientStock: With a per-line shortfall report
        """
        if request.purpose not in IssuePurpose.values:
            raise ValidationError('UNKNOWN_PURPOSE', purpose=request.purpose)
        if not request.lines:
            raise ValidationError('INVALID_INPUT', field='lines')

        warehouse = self.resolver.warehouse(request.warehouse_id)
        header_bin = self.resolver.bin(request.bin_id, warehouse)
        lines = [
            self.resolver.line(
                index, spec.item_id, spec.unit_id, spec.qty,
                self.resolver.bin(spec.bin_id, warehouse) if spec.bin_id is not None else header_bin,
                note=spec.note,
            )
            for index, spec in enumerate(request.lines)
        ]
        self._check_expense_account(request, warehouse)

        # Fail fast before taking any lock
        self._raise_if_short(lines, self._available(lines, warehouse, lock=False))

        day = request.date or timezone.localdate()
        with transaction.atomic(using=self.using):
            locked = self._available(lines, warehouse, lock=True)
            self._raise_if_short(lines, {key: balance.qty_on_hand for key, balance in locked.items()})

            issue = GoodsIssue.objects.using(self.using).create(
                doc_number=numbering.issue_number(warehouse.code, day, self.using),
                date=day,
                warehouse=warehouse,
                purpose=request.purpose,
                status=IssueStatus.APPROVED,
                target_dept=request.target_dept,
                picker_name=request.picker_name,
                note=request.note,
                expense_account_id=request.expense_account_id,
                cost_center=request.cost_center,
                loan_receiver=request.loan_receiver,
                expected_return_at=request.expected_return_at,
                loan_notes=request.loan_notes,
                gl_status=GLStatus.PENDING,
                created_by=actor,
            )

            total_value = Decimal('0')
            for line in lines:
                unit_cost = locked[line.location].avg_cost
                GoodsIssueLine.objects.using(self.using).create(
                    issue=issue,
                    item=line.item,
                    unit=line.unit,
                    bin=line.bin,
                    qty=line.qty,
                    qty_base=line.qty_base,
                    unit_cost=unit_cost,
                    note=line.note[:255],
                )
                self.ledger.apply_movement(
                    line.item, warehouse, line.bin, -line.qty_base, unit_cost,
                    reference_type=ReferenceType.OUT,
                    reference_id=issue.pk,
                    note=f"Goods issue {issue.doc_number}: {request.purpose}",
                    actor=actor,
                )
                total_value += line.qty_base * unit_cost

            logger.info(
                "outbound.created",
                extra={
                    "doc_number": issue.doc_number,
                    "purpose": request.purpose,
                    "lines": len(lines),
                    "total_value": str(quantities.money(total_value)),
                },
            )

            item_ids = {line.item.pk for line in lines}
            context = PostingContext(
                company_code=warehouse.company_code,
                date=day,
                source_type=SOURCE_GOODS_ISSUE,
                source_id=str(issue.pk),
                source_number=issue.doc_number,
                created_by=actor,
                memo=f"Goods issue {issue.doc_number} ({request.purpose})",
            )
            run_gl_stage(issue, self.gl, context, lambda: self.gl.build_goods_issue_gl_lines(
                warehouse.company_code,
                request.purpose,
                total_value,
                expense_account_id=request.expense_account_id,
                cost_center=request.cost_center,
                dept=request.target_dept,
                item_id=item_ids.pop() if len(item_ids) == 1 else None,
                warehouse_id=warehouse.pk,
            ))

        return issue

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    def _check_expense_account(self, request: OutboundRequest, warehouse) -> None:
        if request.expense_account_id is None:
            return
        exists = (
            LedgerAccount.objects.using(self.using)
            .filter(pk=request.expense_account_id, company_code=warehouse.company_code, is_active=True)
            .exists()
        )
        if not exists:
            raise ValidationError(
                'ENTITY_NOT_FOUND',
                message="Expense account not found",
                entity='ledger_account',
                id=request.expense_account_id,
            )

    def _available(self, lines: list[ResolvedLine], warehouse, lock: bool) -> dict:
        """
        Quantity per location (lock=False) or the locked balance rows
        (lock=True). Locks are taken in (item, bin) order so two issues
        touching the same locations cannot deadlock.
        """
        by_location = {}
        for line in lines:
            by_location.setdefault(line.location, line)

        found = {}
        for key in sorted(by_location):
            line = by_location[key]
            if lock:
                balance = self.ledger.lock_balance(line.item, warehouse, line.bin)
                if balance is not None:
                    found[key] = balance
            else:
                snapshot = self.ledger.get_balance(line.item, warehouse, line.bin)
                found[key] = snapshot.qty_on_hand if snapshot else quantities.ZERO
        return found

    def _raise_if_short(self, lines: list[ResolvedLine], available: dict) -> None:
        report = shortfall_report(lines, available)
        if report:
            raise InsufficientStock(
                message='; '.join(row['message'] for row in report),
                shortfalls=report,
            )
