"""
Inbound workflow — returns, new-item receipts and loan returns.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from millstock import quantities
from millstock.adapters.catalog import get_catalog
from millstock.exceptions import Conflict, MillstockError, NotFound, ValidationError
from millstock.models.documents import GoodsIssue, GoodsIssueLine, GoodsReceipt, GoodsReceiptLine
from millstock.models.enums import GLStatus, IssueStatus, ReceiptSource, ReferenceType
from millstock.services import numbering
from millstock.services.balances import StockLedger
from millstock.services.common import CatalogResolver, run_gl_stage
from millstock.services.gl import SOURCE_GOODS_RECEIPT, GLPosting
from millstock.types import InboundRequest, LoanReturnLine, NewItemInboundRequest, PostingContext

logger = logging.getLogger('millstock')


class InboundWorkflow:
    """Receive goods into a warehouse."""

    def __init__(self, using: str = 'default', catalog=None, ledger: StockLedger | None = None,
                 gl: GLPosting | None = None):
        self.using = using
        self.catalog = catalog or get_catalog(using)
        self.resolver = CatalogResolver(self.catalog)
        self.ledger = ledger or StockLedger(using)
        self.gl = gl or GLPosting(using)

    @property
    def issues(self):
        return GoodsIssue.objects.using(self.using)

    # ══════════════════════════════════════════════════════════════
    # RETURN
    # ══════════════════════════════════════════════════════════════

    def create_inbound(self, request: InboundRequest, actor: str) -> GoodsReceipt:
        """
        Goods returned to the warehouse.

        Stock comes back at zero cost, so avg_cost is unchanged and the
        receipt has no journal (gl_status=SKIPPED).

        When the receipt is linked to an issue, that issue's status is
        recomputed after the stock change. A failure there is logged only.

        Raises:
            ValidationError: Bad input, unknown references, a loan issue or a source type
                that has its own entry point
        """
        if request.source_type != ReceiptSource.RETURN:
            raise ValidationError(
                'INVALID_INPUT',
                message=f"Use the dedicated operation for {request.source_type} receipts",
                field='source_type',
            )
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
        source_issue = self._resolve_source_issue(request)

        day = request.date or timezone.localdate()
        with transaction.atomic(using=self.using):
            receipt = GoodsReceipt.objects.using(self.using).create(
                doc_number=numbering.receipt_number(warehouse.code, day, self.using),
                date=day,
                warehouse=warehouse,
                source_type=ReceiptSource.RETURN,
                source_ref=source_issue.doc_number if source_issue else request.source_ref,
                source_issue=source_issue,
                note=request.note,
                gl_status=GLStatus.SKIPPED,
                created_by=actor,
            )
            for line in lines:
                GoodsReceiptLine.objects.using(self.using).create(
                    receipt=receipt,
                    item=line.item,
                    unit=line.unit,
                    bin=line.bin,
                    qty=line.qty,
                    qty_base=line.qty_base,
                    unit_cost=quantities.ZERO,
                    note=line.note[:255],
                )
                self.ledger.apply_movement(
                    line.item, warehouse, line.bin, line.qty_base, quantities.ZERO,
                    reference_type=ReferenceType.IN,
                    reference_id=receipt.pk,
                    note=f"Return {receipt.doc_number}" + (f" ({receipt.source_ref})" if receipt.source_ref else ''),
                    actor=actor,
                )

        logger.info(
            "inbound.created",
            extra={
                "doc_number": receipt.doc_number,
                "source_type": receipt.source_type,
                "source_issue": source_issue.doc_number if source_issue else None,
                "lines": len(lines),
            },
        )

        if source_issue is not None:
            try:
                self._reconcile_return_status(source_issue.pk)
            except (MillstockError, DatabaseError):
                logger.warning(
                    "inbound.status_update_failed",
                    exc_info=True,
                    extra={"doc_number": receipt.doc_number, "issue": source_issue.doc_number},
                )

        return receipt

    def _resolve_source_issue(self, request: InboundRequest) -> GoodsIssue | None:
        if request.source_issue_id is not None:
            issue = self.issues.filter(pk=request.source_issue_id).first()
            if issue is None:
                raise ValidationError('ENTITY_NOT_FOUND', message="Goods issue not found",
                                      entity='goods_issue', id=request.source_issue_id)
        elif request.source_ref:
            issue = self.issues.filter(doc_number=request.source_ref).first()
            if issue is None:
                raise ValidationError('ENTITY_NOT_FOUND', message="Goods issue not found",
                                      entity='goods_issue', doc_number=request.source_ref)
        else:
            return None

        # Loans are settled by process_loan_return
        if issue.is_loan:
            raise ValidationError('INVALID_STATUS', message="Use the loan return for loan issues",
                                  doc_number=issue.doc_number, purpose=issue.purpose)
        return issue

    def _reconcile_return_status(self, issue_id) -> None:
        """
        Recompute an issue's status from every RETURN receipt linked to it.

        Quantities are compared per item in base units. A RETURNED issue
        stays RETURNED.
        """
        with transaction.atomic(using=self.using):
            issue = self.issues.select_for_update().get(pk=issue_id)
            if issue.status == IssueStatus.RETURNED:
                return

            issued = defaultdict(Decimal)
            for item_id, qty_base in issue.lines.values_list('item_id', 'qty_base'):
                issued[item_id] += qty_base

            returned = {
                row['item_id']: row['total']
                for row in (
                    GoodsReceiptLine.objects.using(self.using)
                    .filter(receipt__source_issue=issue, receipt__source_type=ReceiptSource.RETURN)
                    .values('item_id')
                    .annotate(total=Sum('qty_base'))
                )
            }

            if all(returned.get(item_id, 0) >= qty for item_id, qty in issued.items()):
                status = IssueStatus.RETURNED
            elif any(returned.get(item_id, 0) > 0 for item_id in issued):
                status = IssueStatus.PARTIAL_RETURN
            else:
                status = issue.status

            if status != issue.status:
                previous = issue.status
                issue.status = status
                issue.save(update_fields=['status', 'updated_at'])
                logger.info(
                    "issue.status",
                    extra={"doc_number": issue.doc_number, "from": previous, "to": status},
                )

    # ══════════════════════════════════════════════════════════════
    # NEW ITEM
    # ══════════════════════════════════════════════════════════════

    def create_new_item_inbound(self, request: NewItemInboundRequest, actor: str) -> GoodsReceipt:
        """
        Create an item and receive its first stock, costed, in one transaction.

        The receipt has no journal (gl_status=SKIPPED); the balance's avg_cost
        is the supplied unit cost.

        Raises:
            Conflict('DUPLICATE_SKU'): If the SKU exists, including when a
                concurrent request wins the unique index
            ValidationError: Bad input or unknown references
        """
        spec = request.new_item
        if not spec.sku or not spec.name:
            raise ValidationError('INVALID_INPUT', field='sku' if not spec.sku else 'name')
        qty = quantities.to_decimal(request.qty)
        if qty <= 0:
            raise ValidationError('INVALID_QUANTITY', qty=qty)
        unit_cost = quantities.to_decimal(request.unit_cost)
        if unit_cost < 0:
            raise ValidationError('INVALID_INPUT', field='unit_cost', reason='negative')

        warehouse = self.resolver.warehouse(request.warehouse_id)
        bin = self.resolver.bin(request.bin_id, warehouse)
        base_unit = self.resolver.unit(spec.base_unit_id)

        if self.catalog.find_item_by_sku(spec.sku) is not None:
            raise Conflict('DUPLICATE_SKU', sku=spec.sku)

        day = request.date or timezone.localdate()
        with transaction.atomic(using=self.using):
            try:
                with transaction.atomic(using=self.using):
                    item = self.catalog.create_item(
                        sku=spec.sku,
                        name=spec.name,
                        base_unit=base_unit,
                        description=spec.description,
                        min_stock=spec.min_stock,
                        max_stock=spec.max_stock,
                    )
            except IntegrityError as e:
                raise Conflict('DUPLICATE_SKU', sku=spec.sku) from e

            receipt = GoodsReceipt.objects.using(self.using).create(
                doc_number=numbering.receipt_number(warehouse.code, day, self.using),
                date=day,
                warehouse=warehouse,
                source_type=ReceiptSource.NEW_ITEM,
                note=request.note,
                gl_status=GLStatus.SKIPPED,
                created_by=actor,
            )
            GoodsReceiptLine.objects.using(self.using).create(
                receipt=receipt,
                item=item,
                unit=base_unit,
                bin=bin,
                qty=quantities.qty(qty),
                qty_base=quantities.qty(qty),
                unit_cost=quantities.cost(unit_cost),
            )
            self.ledger.apply_movement(
                item, warehouse, bin, qty, unit_cost,
                reference_type=ReferenceType.IN,
                reference_id=receipt.pk,
                note=f"New item {item.sku} {receipt.doc_number}",
                actor=actor,
            )

        logger.info(
            "inbound.new_item",
            extra={"doc_number": receipt.doc_number, "sku": spec.sku, "qty": str(qty)},
        )
        return receipt

    # ══════════════════════════════════════════════════════════════
    # LOAN RETURN
    # ══════════════════════════════════════════════════════════════

    def process_loan_return(self, loan_issue_id, lines: list[LoanReturnLine], actor: str,
                            date=None, note: str = '') -> GoodsReceipt:
        """
        Take back loaned goods at the cost they left with.

        Each line may return qty into stock and write off qty_lost. The loan
        is RETURNED once every line is settled (returned + lost >= loaned),
        otherwise PARTIAL_RETURN.

        GL:
            Dr INVENTORY_GENERAL / Cr INVENTORY_ON_LOAN   returned value
            Dr INVENTORY_ADJUSTMENT_LOSS / Cr INVENTORY_ON_LOAN   lost value

        Raises:
            NotFound: Unknown issue, or a line that is not on it
            ValidationError('INVALID_STATUS'): Not a loan, or already RETURNED
            ValidationError('OVER_RETURN'): Would settle more than was loaned
        """
        if not lines:
            raise ValidationError('INVALID_INPUT', field='lines')

        day = date or timezone.localdate()
        with transaction.atomic(using=self.using):
            issue = self.issues.select_for_update().select_related('warehouse').filter(pk=loan_issue_id).first()
            if issue is None:
                raise NotFound('NOT_FOUND', message="Goods issue not found", entity='goods_issue', id=loan_issue_id)
            if not issue.is_loan:
                raise ValidationError('INVALID_STATUS', message="Goods issue is not a loan",
                                      doc_number=issue.doc_number, purpose=issue.purpose)
            if issue.status == IssueStatus.RETURNED:
                raise ValidationError('INVALID_STATUS', message="Loan is already fully returned",
                                      doc_number=issue.doc_number, status=issue.status)

            loan_lines = {
                line.pk: line
                for line in (
                    GoodsIssueLine.objects.using(self.using)
                    .select_for_update()
                    .filter(issue=issue)
                    .select_related('item', 'unit', 'bin')
                )
            }
            settling = self._validate_loan_return(loan_lines, lines)

            warehouse = issue.warehouse
            receipt = GoodsReceipt.objects.using(self.using).create(
                doc_number=numbering.loan_return_number(warehouse.code, day, self.using),
                date=day,
                warehouse=warehouse,
                source_type=ReceiptSource.LOAN_RETURN,
                source_ref=issue.doc_number,
                source_issue=issue,
                note=note,
                gl_status=GLStatus.PENDING,
                created_by=actor,
            )

            return_value = Decimal('0')
            loss_value = Decimal('0')
            for line_id, (returned, lost, line_note) in settling.items():
                loan_line = loan_lines[line_id]
                if returned > 0:
                    qty_base = quantities.qty(loan_line.unit.to_base(returned))
                    GoodsReceiptLine.objects.using(self.using).create(
                        receipt=receipt,
                        item=loan_line.item,
                        unit=loan_line.unit,
                        bin=loan_line.bin,
                        qty=returned,
                        qty_base=qty_base,
                        unit_cost=loan_line.unit_cost,
                        loan_issue_line=loan_line,
                        note=line_note[:255],
                    )
                    self.ledger.apply_movement(
                        loan_line.item, warehouse, loan_line.bin, qty_base, loan_line.unit_cost,
                        reference_type=ReferenceType.IN,
                        reference_id=receipt.pk,
                        note=f"Loan return {receipt.doc_number} ({issue.doc_number})",
                        actor=actor,
                    )
                    return_value += qty_base * loan_line.unit_cost
                if lost > 0:
                    loss_value += quantities.qty(loan_line.unit.to_base(lost)) * loan_line.unit_cost

                loan_line.qty_returned += returned
                loan_line.qty_lost += lost
                loan_line.save(update_fields=['qty_returned', 'qty_lost'])

            previous = issue.status
            if all(line.is_settled for line in loan_lines.values()):
                issue.status = IssueStatus.RETURNED
            else:
                issue.status = IssueStatus.PARTIAL_RETURN
            issue.save(update_fields=['status', 'updated_at'])

            logger.info(
                "loan.returned",
                extra={
                    "doc_number": receipt.doc_number,
                    "issue": issue.doc_number,
                    "from": previous,
                    "to": issue.status,
                    "return_value": str(quantities.money(return_value)),
                    "loss_value": str(quantities.money(loss_value)),
                },
            )

            if quantities.money(return_value) == 0 and quantities.money(loss_value) == 0:
                receipt.gl_status = GLStatus.SKIPPED
                receipt.save(update_fields=['gl_status', 'updated_at'])
            else:
                context = PostingContext(
                    company_code=warehouse.company_code,
                    date=day,
                    source_type=SOURCE_GOODS_RECEIPT,
                    source_id=str(receipt.pk),
                    source_number=receipt.doc_number,
                    created_by=actor,
                    memo=f"Loan return {receipt.doc_number} for {issue.doc_number}",
                )
                run_gl_stage(receipt, self.gl, context, lambda: self.gl.build_loan_return_gl_lines(
                    warehouse.company_code, return_value, loss_value, warehouse_id=warehouse.pk,
                ))

        return receipt

    def _validate_loan_return(self, loan_lines: dict, lines: list[LoanReturnLine]) -> dict:
        """
        Check every requested line before anything is written.

        Returns {loan_line_id: (qty_returned, qty_lost, note)} with repeated
        lines for the same loan line summed.
        """
        settling = {}
        for index, spec in enumerate(lines):
            loan_line = loan_lines.get(spec.loan_issue_line_id)
            if loan_line is None:
                raise NotFound('NOT_FOUND', message="Loan line not found",
                               entity='goods_issue_line', id=spec.loan_issue_line_id)
            returned = quantities.qty(spec.qty)
            lost = quantities.qty(spec.qty_lost)
            if returned < 0 or lost < 0 or returned + lost <= 0:
                raise ValidationError('INVALID_QUANTITY', line=index, qty=returned, qty_lost=lost)

            prev_returned, prev_lost, prev_note = settling.get(loan_line.pk, (Decimal('0'), Decimal('0'), ''))
            settling[loan_line.pk] = (prev_returned + returned, prev_lost + lost, prev_note or spec.note)

        for line_id, (returned, lost, _) in settling.items():
            loan_line = loan_lines[line_id]
            if loan_line.qty_returned + loan_line.qty_lost + returned + lost > loan_line.qty:
                raise ValidationError(
                    'OVER_RETURN',
                    message=(
                        f"Cannot return {returned + lost} {loan_line.unit.code} of {loan_line.item.name}: "
                        f"{loan_line.qty_outstanding} outstanding"
                    ),
                    line_id=line_id,
                    loaned=loan_line.qty,
                    returned=loan_line.qty_returned,
                    lost=loan_line.qty_lost,
                    requested=returned + lost,
                )
        return settling
