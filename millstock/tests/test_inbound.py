"""
Tests for returns and new-item receipts.
"""

from decimal import Decimal

import pytest

from millstock.exceptions import Conflict, ValidationError
from millstock.models import (
    GLStatus,
    GoodsIssue,
    GoodsReceipt,
    IssuePurpose,
    IssueStatus,
    Item,
    JournalEntry,
    ReceiptSource,
    ReferenceType,
    StockLedgerEntry,
)
from millstock.types import (
    InboundLine,
    InboundRequest,
    LoanReturnLine,
    NewItemInboundRequest,
    NewItemSpec,
    OutboundLine,
    OutboundRequest,
)


pytestmark = pytest.mark.django_db


@pytest.fixture
def issued(mill, stocked, wh, ltr, accounts, actor):
    """30 L issued to maintenance out of 200 @ 1000."""
    return mill.create_outbound(OutboundRequest(
        warehouse_id=wh.pk,
        purpose=IssuePurpose.ISSUE,
        lines=[OutboundLine(item_id=stocked.pk, unit_id=ltr.pk, qty=Decimal('30'))],
        target_dept='Maintenance',
    ), actor)


@pytest.fixture
def lent(mill, stocked, wh, ltr, accounts, actor):
    """100 L of oil lent out of 200 @ 1000."""
    return mill.create_outbound(OutboundRequest(
        warehouse_id=wh.pk,
        purpose=IssuePurpose.LOAN,
        lines=[OutboundLine(item_id=stocked.pk, unit_id=ltr.pk, qty=Decimal('100'))],
        loan_receiver='Workshop',
    ), actor)


def _return(wh, item, qty, **kwargs):
    return InboundRequest(
        warehouse_id=wh.pk,
        lines=[InboundLine(item_id=item.pk, qty=Decimal(qty))],
        **kwargs,
    )


class TestCreateInbound:
    """Tests for InboundWorkflow.create_inbound()."""

    def test_return_at_zero_cost(self, mill, stocked, wh, actor):
        """A return adds stock without changing the average cost."""
        receipt = mill.create_inbound(_return(wh, stocked, '10'), actor)

        snapshot = mill.get_balance(stocked, wh)
        assert snapshot.qty_on_hand == Decimal('210')
        assert snapshot.avg_cost == Decimal('1000')
        assert receipt.source_type == ReceiptSource.RETURN
        assert receipt.gl_status == GLStatus.SKIPPED
        assert not JournalEntry.objects.exists()

    def test_ledger_entry(self, mill, stocked, wh, actor):
        """A return writes one IN entry at zero cost."""
        receipt = mill.create_inbound(_return(wh, stocked, '10'), actor)

        entry = StockLedgerEntry.objects.get(reference_type=ReferenceType.IN)
        assert entry.reference_id == str(receipt.pk)
        assert entry.qty_delta == Decimal('10')
        assert entry.unit_cost == Decimal('0')

    def test_document_number(self, mill, stocked, wh, actor, day):
        """Receipts are numbered IN/{warehouse}/{seq}/{MM}/{YYYY}."""
        receipt = mill.create_inbound(_return(wh, stocked, '1', date=day), actor)

        assert receipt.doc_number == 'IN/WH1/0001/10/2026'

    def test_unit_defaults_to_base(self, mill, stocked, wh, ltr, actor):
        """A line without a unit is in the item's base unit."""
        receipt = mill.create_inbound(_return(wh, stocked, '3'), actor)

        line = receipt.lines.get()
        assert line.unit_id == ltr.pk
        assert line.qty_base == Decimal('3')

    def test_unit_conversion(self, mill, stocked, wh, drum, actor):
        """One drum back is 200 L."""
        request = InboundRequest(
            warehouse_id=wh.pk,
            lines=[InboundLine(item_id=stocked.pk, unit_id=drum.pk, qty=Decimal('1'))],
        )

        mill.create_inbound(request, actor)

        assert mill.get_balance(stocked, wh).qty_on_hand == Decimal('400')

    def test_other_source_types_rejected(self, mill, stocked, wh, actor):
        """Loan returns and new items have their own operations."""
        with pytest.raises(ValidationError) as exc:
            mill.create_inbound(_return(wh, stocked, '1', source_type=ReceiptSource.LOAN_RETURN), actor)

        assert exc.value.data['field'] == 'source_type'

    def test_invalid_quantity(self, mill, stocked, wh, actor):
        """Negative quantities are rejected."""
        with pytest.raises(ValidationError) as exc:
            mill.create_inbound(_return(wh, stocked, '-1'), actor)

        assert exc.value.code == 'INVALID_QUANTITY'


class TestReturnAgainstIssue:
    """Returns linked to an issue recompute its status."""

    def test_partial_then_full(self, mill, issued, stocked, wh, actor):
        """10 of 30 is partial; the remaining 20 completes the return."""
        mill.create_inbound(_return(wh, stocked, '10', source_issue_id=issued.pk), actor)
        issued.refresh_from_db()
        assert issued.status == IssueStatus.PARTIAL_RETURN

        mill.create_inbound(_return(wh, stocked, '20', source_ref=issued.doc_number), actor)
        issued.refresh_from_db()
        assert issued.status == IssueStatus.RETURNED

    def test_reference_resolved_to_issue(self, mill, issued, stocked, wh, actor):
        """A document-number reference is stored as a link to the issue."""
        receipt = mill.create_inbound(_return(wh, stocked, '5', source_ref=issued.doc_number), actor)

        assert receipt.source_issue_id == issued.pk
        assert receipt.source_ref == issued.doc_number

    def test_unknown_reference(self, mill, stocked, wh, actor):
        """A reference to no issue is rejected before any write."""
        with pytest.raises(ValidationError) as exc:
            mill.create_inbound(_return(wh, stocked, '5', source_ref='OUT/WH1/9999/01/2020'), actor)

        assert exc.value.data['entity'] == 'goods_issue'
        assert not GoodsReceipt.objects.exists()
        assert mill.get_balance(stocked, wh).qty_on_hand == Decimal('200')

    def test_unrelated_return_leaves_status(self, mill, issued, stocked, wh, actor):
        """A receipt not linked to the issue does not touch it."""
        mill.create_inbound(_return(wh, stocked, '30'), actor)

        issued.refresh_from_db()
        assert issued.status == IssueStatus.APPROVED

    def test_loan_issue_rejected(self, mill, lent, stocked, wh, actor):
        """A plain return cannot be filed against a loan, by id or by number."""
        for link in ({'source_issue_id': lent.pk}, {'source_ref': lent.doc_number}):
            with pytest.raises(ValidationError) as exc:
                mill.create_inbound(_return(wh, stocked, '100', **link), actor)

            assert exc.value.code == 'INVALID_STATUS'

        assert not GoodsReceipt.objects.exists()
        assert mill.get_balance(stocked, wh).qty_on_hand == Decimal('100')
        lent.refresh_from_db()
        assert lent.status == IssueStatus.APPROVED
        assert lent.lines.get().qty_returned == Decimal('0')

    def test_settled_loan_stays_returned(self, mill, lent, stocked, wh, actor):
        """A loan settled by a loan return is not reopened by a plain return."""
        mill.process_loan_return(
            lent.pk, [LoanReturnLine(loan_issue_line_id=lent.lines.get().pk, qty=Decimal('100'))], actor,
        )

        with pytest.raises(ValidationError):
            mill.create_inbound(_return(wh, stocked, '5', source_issue_id=lent.pk), actor)

        lent.refresh_from_db()
        assert lent.status == IssueStatus.RETURNED
        assert mill.get_balance(stocked, wh).qty_on_hand == Decimal('200')

    def test_returned_status_never_downgraded(self, mill, issued):
        """Reconciling a RETURNED issue leaves it RETURNED."""
        GoodsIssue.objects.filter(pk=issued.pk).update(status=IssueStatus.RETURNED)

        mill.inbound._reconcile_return_status(issued.pk)

        issued.refresh_from_db()
        assert issued.status == IssueStatus.RETURNED


class TestCreateNewItemInbound:
    """Tests for InboundWorkflow.create_new_item_inbound()."""

    def _request(self, wh, unit, sku='GRS-01', qty='20', cost='500'):
        return NewItemInboundRequest(
            warehouse_id=wh.pk,
            new_item=NewItemSpec(sku=sku, name='Grease', base_unit_id=unit.pk),
            qty=Decimal(qty),
            unit_cost=Decimal(cost),
        )

    def test_new_item_with_stock(self, mill, wh, pcs, actor):
        """20 @ 500 creates the item, a 20 @ 500 balance and one IN entry."""
        receipt = mill.create_new_item_inbound(self._request(wh, pcs), actor)

        item = Item.objects.get(sku='GRS-01')
        snapshot = mill.get_balance(item, wh)
        assert snapshot.qty_on_hand == Decimal('20')
        assert snapshot.avg_cost == Decimal('500')
        assert StockLedgerEntry.objects.filter(item=item, reference_type=ReferenceType.IN).count() == 1
        assert receipt.source_type == ReceiptSource.NEW_ITEM
        assert receipt.gl_status == GLStatus.SKIPPED

    def test_duplicate_sku(self, mill, oil, wh, pcs, actor):
        """An existing SKU is a conflict."""
        with pytest.raises(Conflict) as exc:
            mill.create_new_item_inbound(self._request(wh, pcs, sku=oil.sku), actor)

        assert exc.value.code == 'DUPLICATE_SKU'
        assert exc.value.status_code == 409
        assert not GoodsReceipt.objects.exists()

    def test_duplicate_sku_race(self, mill, oil, wh, pcs, actor, monkeypatch):
        """Losing the unique-index race is reported as the same conflict."""
        monkeypatch.setattr(mill.catalog, 'find_item_by_sku', lambda sku: None)

        with pytest.raises(Conflict):
            mill.create_new_item_inbound(self._request(wh, pcs, sku=oil.sku), actor)

        assert Item.objects.filter(sku=oil.sku).count() == 1

    def test_invalid_quantity(self, mill, wh, pcs, actor):
        """Opening quantity must be positive."""
        with pytest.raises(ValidationError) as exc:
            mill.create_new_item_inbound(self._request(wh, pcs, qty='0'), actor)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert not Item.objects.filter(sku='GRS-01').exists()

    def test_unknown_base_unit(self, mill, wh, actor):
        """The base unit must exist."""
        request = NewItemInboundRequest(
            warehouse_id=wh.pk,
            new_item=NewItemSpec(sku='GRS-01', name='Grease', base_unit_id=424242),
            qty=Decimal('1'),
            unit_cost=Decimal('1'),
        )

        with pytest.raises(ValidationError) as exc:
            mill.create_new_item_inbound(request, actor)

        assert exc.value.data['entity'] == 'unit'
