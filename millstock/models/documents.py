"""
Movement documents — goods issues (outbound) and goods receipts (inbound).
"""

from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from millstock.models.enums import GLStatus, IssuePurpose, IssueStatus, ReceiptSource


class GoodsIssue(models.Model):
    """
    Outbound document.

    LIFECYCLE (loans only):

        APPROVED ──return──► PARTIAL_RETURN ──return──► RETURNED
            │                                               ▲
            └───────────────── full return ─────────────────┘

    Non-loan purposes stay APPROVED. gl_status is independent of status:
    a FAILED posting never undoes the stock movement.
    """

    doc_number = models.CharField(max_length=64, unique=True, verbose_name=_('Document number'))
    date = models.DateField(default=timezone.localdate, db_index=True, verbose_name=_('Date'))
    warehouse = models.ForeignKey(
        'millstock.Warehouse',
        on_delete=models.PROTECT,
        related_name='issues',
        verbose_name=_('Warehouse'),
    )
    purpose = models.CharField(
        max_length=10,
        choices=IssuePurpose.choices,
        verbose_name=_('Purpose'),
    )
    status = models.CharField(
        max_length=20,
        choices=IssueStatus.choices,
        default=IssueStatus.APPROVED,
        db_index=True,
        verbose_name=_('Status'),
    )

    target_dept = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Department'))
    picker_name = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Picked by'))
    note = models.TextField(blank=True, default='')
    expense_account = models.ForeignKey(
        'millstock.LedgerAccount',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Expense account'),
        help_text=_('Overrides the default expense account for ISSUE'),
    )
    cost_center = models.CharField(max_length=50, blank=True, default='')

    # Loan fields
    loan_receiver = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Borrower'))
    expected_return_at = models.DateField(null=True, blank=True, verbose_name=_('Expected return'))
    loan_notes = models.TextField(blank=True, default='')

    # GL stage
    gl_status = models.CharField(
        max_length=10,
        choices=GLStatus.choices,
        default=GLStatus.PENDING,
        db_index=True,
        verbose_name=_('GL status'),
    )
    gl_entry = models.ForeignKey(
        'millstock.JournalEntry',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    gl_posted_at = models.DateTimeField(null=True, blank=True)
    gl_error = models.TextField(blank=True, default='')

    created_by = models.CharField(max_length=64)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Goods issue')
        verbose_name_plural = _('Goods issues')
        ordering = ['-date', '-pk']
        indexes = [
            models.Index(fields=['warehouse', 'date'], name='issue_wh_date_idx'),
            models.Index(fields=['purpose', 'status'], name='issue_purpose_status_idx'),
        ]

    @property
    def is_loan(self) -> bool:
        return self.purpose == IssuePurpose.LOAN

    @property
    def total_value(self) -> Decimal:
        return sum((line.value for line in self.lines.all()), Decimal('0'))

    def __str__(self) -> str:
        return self.doc_number


class GoodsIssueLine(models.Model):
    """One item on a goods issue. unit_cost is fixed at issue time."""

    issue = models.ForeignKey(GoodsIssue, on_delete=models.CASCADE, related_name='lines')
    item = models.ForeignKey('millstock.Item', on_delete=models.PROTECT, related_name='+')
    unit = models.ForeignKey('millstock.Unit', on_delete=models.PROTECT, related_name='+')
    bin = models.ForeignKey('millstock.Bin', on_delete=models.PROTECT, null=True, blank=True, related_name='+')

    qty = models.DecimalField(max_digits=18, decimal_places=3, verbose_name=_('Quantity'))
    qty_base = models.DecimalField(max_digits=18, decimal_places=3, verbose_name=_('Quantity (base unit)'))
    unit_cost = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal('0'),
        help_text=_('Per base unit, average cost at issue time'),
    )
    qty_returned = models.DecimalField(
        max_digits=18,
        decimal_places=3,
        default=Decimal('0'),
        help_text=_('Loan only, in line unit'),
    )
    qty_lost = models.DecimalField(
        max_digits=18,
        decimal_places=3,
        default=Decimal('0'),
        help_text=_('Loan only, written off as unrecoverable, in line unit'),
    )
    note = models.CharField(max_length=255, blank=True, default='')

    class Meta:
        ordering = ['pk']

    @property
    def value(self) -> Decimal:
        return self.qty_base * self.unit_cost

    @property
    def qty_outstanding(self) -> Decimal:
        return self.qty - self.qty_returned - self.qty_lost

    @property
    def is_settled(self) -> bool:
        return self.qty_returned + self.qty_lost >= self.qty

    def __str__(self) -> str:
        return f"{self.qty} x item {self.item_id}"


class GoodsReceipt(models.Model):
    """Inbound document."""

    doc_number = models.CharField(max_length=64, unique=True, verbose_name=_('Document number'))
    date = models.DateField(default=timezone.localdate, db_index=True, verbose_name=_('Date'))
    warehouse = models.ForeignKey(
        'millstock.Warehouse',
        on_delete=models.PROTECT,
        related_name='receipts',
        verbose_name=_('Warehouse'),
    )
    source_type = models.CharField(
        max_length=12,
        choices=ReceiptSource.choices,
        verbose_name=_('Source'),
    )
    source_ref = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Source reference'),
        help_text=_('Display only; matching uses source_issue'),
    )
    source_issue = models.ForeignKey(
        GoodsIssue,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='receipts',
        verbose_name=_('Returned against'),
    )
    note = models.TextField(blank=True, default='')

    gl_status = models.CharField(
        max_length=10,
        choices=GLStatus.choices,
        default=GLStatus.PENDING,
        db_index=True,
    )
    gl_entry = models.ForeignKey(
        'millstock.JournalEntry',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    gl_posted_at = models.DateTimeField(null=True, blank=True)
    gl_error = models.TextField(blank=True, default='')

    created_by = models.CharField(max_length=64)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Goods receipt')
        verbose_name_plural = _('Goods receipts')
        ordering = ['-date', '-pk']
        indexes = [
            models.Index(fields=['warehouse', 'date'], name='receipt_wh_date_idx'),
            models.Index(fields=['source_type', 'source_issue'], name='receipt_source_idx'),
        ]

    def __str__(self) -> str:
        return self.doc_number


class GoodsReceiptLine(models.Model):
    receipt = models.ForeignKey(GoodsReceipt, on_delete=models.CASCADE, related_name='lines')
    item = models.ForeignKey('millstock.Item', on_delete=models.PROTECT, related_name='+')
    unit = models.ForeignKey('millstock.Unit', on_delete=models.PROTECT, related_name='+')
    bin = models.ForeignKey('millstock.Bin', on_delete=models.PROTECT, null=True, blank=True, related_name='+')

    qty = models.DecimalField(max_digits=18, decimal_places=3)
    qty_base = models.DecimalField(max_digits=18, decimal_places=3)
    unit_cost = models.DecimalField(max_digits=18, decimal_places=4, default=Decimal('0'))
    loan_issue_line = models.ForeignKey(
        GoodsIssueLine,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='return_lines',
    )
    note = models.CharField(max_length=255, blank=True, default='')

    class Meta:
        ordering = ['pk']

    @property
    def value(self) -> Decimal:
        return self.qty_base * self.unit_cost

    def __str__(self) -> str:
        return f"{self.qty} x item {self.item_id}"
