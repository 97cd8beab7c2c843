"""
Read side of the movement documents.
"""

from datetime import date

from django.db.models import F, Q

from millstock.conf import millstock_settings
from millstock.exceptions import NotFound
from millstock.models.documents import GoodsIssue, GoodsReceipt
from millstock.models.enums import IssuePurpose, IssueStatus
from millstock.types import Page


class DocumentQueries:
    """Lookups and filtered listings of goods issues and receipts."""

    def __init__(self, using: str = 'default'):
        self.using = using

    @property
    def issues(self):
        return (
            GoodsIssue.objects.using(self.using)
            .select_related('warehouse', 'gl_entry', 'expense_account')
        )

    @property
    def receipts(self):
        return (
            GoodsReceipt.objects.using(self.using)
            .select_related('warehouse', 'gl_entry', 'source_issue')
        )

    # ══════════════════════════════════════════════════════════════
    # OUTBOUND
    # ══════════════════════════════════════════════════════════════

    def get_outbound(self, issue_id) -> GoodsIssue:
        """Issue with its lines prefetched. Raises NotFound."""
        issue = (
            self.issues
            .prefetch_related('lines__item', 'lines__unit', 'lines__bin')
            .filter(pk=issue_id)
            .first()
        )
        if issue is None:
            raise NotFound('NOT_FOUND', message="Goods issue not found", entity='goods_issue', id=issue_id)
        return issue

    def list_outbounds(self, warehouse=None, purpose: str | None = None, status: str | None = None,
                       date_from: date | None = None, date_to: date | None = None,
                       search: str = '', limit: int | None = None, offset: int = 0) -> Page:
        """
        Goods issues, newest first.

        search matches the document number, department, picker or borrower.
        """
        qs = self.issues
        if warehouse is not None:
            qs = qs.filter(warehouse=warehouse)
        if purpose:
            qs = qs.filter(purpose=purpose)
        if status:
            qs = qs.filter(status=status)
        qs = _date_range(qs, date_from, date_to)
        if search:
            qs = qs.filter(
                Q(doc_number__icontains=search)
                | Q(target_dept__icontains=search)
                | Q(picker_name__icontains=search)
                | Q(loan_receiver__icontains=search)
            )
        return _page(qs.order_by('-date', '-pk'), limit, offset)

    def active_loans(self, warehouse=None) -> list[GoodsIssue]:
        """Open loans, soonest expected return first (undated last)."""
        qs = self.issues.filter(
            purpose=IssuePurpose.LOAN,
            status__in=[IssueStatus.APPROVED, IssueStatus.PARTIAL_RETURN],
        )
        if warehouse is not None:
            qs = qs.filter(warehouse=warehouse)
        return list(
            qs.prefetch_related('lines__item', 'lines__unit')
            .order_by(F('expected_return_at').asc(nulls_last=True), 'pk')
        )

    # ══════════════════════════════════════════════════════════════
    # INBOUND
    # ══════════════════════════════════════════════════════════════

    def get_inbound(self, receipt_id) -> GoodsReceipt:
        """Receipt with its lines prefetched. Raises NotFound."""
        receipt = (
            self.receipts
            .prefetch_related('lines__item', 'lines__unit', 'lines__bin')
            .filter(pk=receipt_id)
            .first()
        )
        if receipt is None:
            raise NotFound('NOT_FOUND', message="Goods receipt not found", entity='goods_receipt', id=receipt_id)
        return receipt

    def list_inbounds(self, warehouse=None, source_type: str | None = None, source_issue=None,
                      date_from: date | None = None, date_to: date | None = None,
                      search: str = '', limit: int | None = None, offset: int = 0) -> Page:
        qs = self.receipts
        if warehouse is not None:
            qs = qs.filter(warehouse=warehouse)
        if source_type:
            qs = qs.filter(source_type=source_type)
        if source_issue is not None:
            qs = qs.filter(source_issue=source_issue)
        qs = _date_range(qs, date_from, date_to)
        if search:
            qs = qs.filter(Q(doc_number__icontains=search) | Q(source_ref__icontains=search))
        return _page(qs.order_by('-date', '-pk'), limit, offset)


def _date_range(qs, date_from, date_to):
    if date_from is not None:
        qs = qs.filter(date__gte=date_from)
    if date_to is not None:
        qs = qs.filter(date__lte=date_to)
    return qs


def _page(qs, limit, offset) -> Page:
    limit = min(limit or millstock_settings.LEDGER_PAGE_SIZE, millstock_settings.MAX_PAGE_SIZE)
    offset = max(offset, 0)
    return Page(items=list(qs[offset:offset + limit]), total=qs.count(), limit=limit, offset=offset)
