"""
Typed requests and results exchanged with the workflows.

Quantities are in the line's unit unless the name says ``_base``.
"""

from dataclasses import dataclass, field
import datetime
from decimal import Decimal
from typing import Any

from millstock.models.enums import ReceiptSource


# ══════════════════════════════════════════════════════════════
# REQUESTS
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class OutboundLine:
    item_id: int
    unit_id: int
    qty: Decimal
    bin_id: int | None = None  # None = header bin
    note: str = ''


@dataclass(frozen=True)
class OutboundRequest:
    """Goods issue request. purpose is one of IssuePurpose."""

    warehouse_id: int
    purpose: str
    lines: list[OutboundLine]
    date: datetime.date | None = None
    bin_id: int | None = None
    target_dept: str = ''
    picker_name: str = ''
    note: str = ''
    expense_account_id: int | None = None
    cost_center: str = ''
    loan_receiver: str = ''
    expected_return_at: datetime.date | None = None
    loan_notes: str = ''


@dataclass(frozen=True)
class InboundLine:
    item_id: int
    qty: Decimal
    unit_id: int | None = None  # None = item's base unit
    bin_id: int | None = None
    note: str = ''


@dataclass(frozen=True)
class InboundRequest:
    """
    Receipt of goods coming back to the warehouse.

    source_issue_id links the receipt to the issue being returned against.
    source_ref (a document number) is accepted for callers that only know
    the printed number; it is resolved to the issue once, at receipt time.
    """

    warehouse_id: int
    lines: list[InboundLine]
    source_type: str = ReceiptSource.RETURN
    date: datetime.date | None = None
    bin_id: int | None = None
    source_issue_id: int | None = None
    source_ref: str = ''
    note: str = ''


@dataclass(frozen=True)
class NewItemSpec:
    sku: str
    name: str
    base_unit_id: int
    description: str = ''
    min_stock: Decimal = Decimal('0')
    max_stock: Decimal = Decimal('0')


@dataclass(frozen=True)
class NewItemInboundRequest:
    """Create an item and its opening stock (base unit) in one go."""

    warehouse_id: int
    new_item: NewItemSpec
    qty: Decimal
    unit_cost: Decimal
    date: datetime.date | None = None
    bin_id: int | None = None
    note: str = ''


@dataclass(frozen=True)
class LoanReturnLine:
    """
    qty comes back into stock; qty_lost is written off as unrecoverable.
    Both are in the loan line's unit.
    """

    loan_issue_line_id: int
    qty: Decimal
    qty_lost: Decimal = Decimal('0')
    note: str = ''


# ══════════════════════════════════════════════════════════════
# RESULTS
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class BalanceSnapshot:
    qty_on_hand: Decimal
    avg_cost: Decimal


@dataclass(frozen=True)
class BalanceRow:
    warehouse_id: int
    warehouse_code: str
    bin_id: int | None
    bin_code: str | None
    qty_on_hand: Decimal
    avg_cost: Decimal


@dataclass(frozen=True)
class Availability:
    available: bool
    current_qty: Decimal


@dataclass(frozen=True)
class Page:
    """A slice of an ordered query."""

    items: list[Any]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


@dataclass(frozen=True)
class Discrepancy:
    """A balance whose cached quantity differs from its ledger sum."""

    balance_id: int | None
    item_id: int
    warehouse_id: int
    bin_id: int | None
    cached: Decimal
    ledger: Decimal


# ══════════════════════════════════════════════════════════════
# GL
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GLLine:
    account_id: int
    debit: Decimal = Decimal('0')
    credit: Decimal = Decimal('0')
    cost_center: str = ''
    dept: str = ''
    item_id: int | None = None
    warehouse_id: int | None = None
    description: str = ''


@dataclass(frozen=True)
class PostingContext:
    company_code: str
    date: datetime.date
    source_type: str
    source_id: str
    source_number: str
    created_by: str
    memo: str | None = None


@dataclass(frozen=True)
class PostingResult:
    success: bool
    journal_entry_id: int | None = None
    entry_number: str | None = None
    error: str | None = None
    code: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
