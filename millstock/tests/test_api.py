"""
Tests for the result-returning API layer.
"""

from decimal import Decimal

import pytest

from millstock import api
from millstock.models import IssuePurpose
from millstock.service import Millstock
from millstock.types import NewItemInboundRequest, NewItemSpec, OutboundLine, OutboundRequest


pytestmark = pytest.mark.django_db


def _request(wh, item, unit, qty):
    return OutboundRequest(
        warehouse_id=wh.pk,
        purpose=IssuePurpose.PROD,
        lines=[OutboundLine(item_id=item.pk, unit_id=unit.pk, qty=Decimal(qty))],
    )


class TestResult:
    """Errors map to status codes; successes carry data."""

    def test_created(self, stocked, wh, ltr, accounts, actor):
        """A successful movement is a 201 carrying the document."""
        result = api.create_outbound(_request(wh, stocked, ltr, '5'), actor)

        assert result.success is True
        assert result.status_code == 201
        assert result.data.doc_number.startswith('OUT/WH1/')

    def test_insufficient_stock(self, stocked, wh, ltr, accounts, actor):
        """A shortfall is a 422 with the report in details."""
        result = api.create_outbound(_request(wh, stocked, ltr, '500'), actor)

        assert result.success is False
        assert result.status_code == 422
        assert result.code == 'INSUFFICIENT_STOCK'
        assert result.details['shortfalls'][0]['available'] == Decimal('200')

    def test_validation_error(self, stocked, wh, ltr, actor):
        """Bad input is a 400."""
        result = api.create_outbound(_request(wh, stocked, ltr, '0'), actor)

        assert result.status_code == 400
        assert result.code == 'INVALID_QUANTITY'

    def test_not_found(self):
        """Unknown documents are a 404."""
        result = api.get_outbound(424242)

        assert result.status_code == 404
        assert result.code == 'NOT_FOUND'

    def test_conflict(self, oil, wh, pcs, actor):
        """A duplicate SKU is a 409."""
        result = api.create_new_item_inbound(NewItemInboundRequest(
            warehouse_id=wh.pk,
            new_item=NewItemSpec(sku=oil.sku, name='Again', base_unit_id=pcs.pk),
            qty=Decimal('1'),
            unit_cost=Decimal('1'),
        ), actor)

        assert result.status_code == 409

    def test_unexpected_error_hidden(self, stocked, wh, ltr, actor, monkeypatch):
        """Unexpected exceptions become a generic 500."""
        def boom(self, request, actor):
            raise RuntimeError('database password is hunter2')

        monkeypatch.setattr(Millstock, 'create_outbound', boom)

        result = api.create_outbound(_request(wh, stocked, ltr, '1'), actor)

        assert result.status_code == 500
        assert result.error == 'Internal error'
        assert 'hunter2' not in str(result.as_dict())

    def test_as_dict_serializes_decimals(self, stocked, wh, ltr, accounts, actor):
        """Error details are JSON-friendly."""
        body = api.create_outbound(_request(wh, stocked, ltr, '500'), actor).as_dict()

        assert body['success'] is False
        assert body['details']['shortfalls'][0]['available'] == '200.000'

    def test_balance_query(self, stocked, wh):
        """Queries return 200 with their data."""
        result = api.get_balance(stocked, wh)

        assert result.status_code == 200
        assert result.data.qty_on_hand == Decimal('200')
