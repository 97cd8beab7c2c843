"""
Pytest fixtures for Millstock tests.
"""

from datetime import date
from decimal import Decimal

import pytest

from millstock.models import Bin, Item, LedgerAccount, SystemAccountKey, SystemAccountMap, Unit, Warehouse
from millstock.service import Millstock
from millstock.services.balances import StockLedger


COMPANY = 'PKS'

ACCOUNT_CODES = {
    SystemAccountKey.INVENTORY_GENERAL: '1401',
    SystemAccountKey.INVENTORY_ON_LOAN: '1402',
    SystemAccountKey.PRODUCTION_CONSUMPTION: '5101',
    SystemAccountKey.INVENTORY_ADJUSTMENT_LOSS: '5901',
    SystemAccountKey.MAINTENANCE_EXPENSE_DEFAULT: '6201',
}


@pytest.fixture
def actor():
    return 'u-1'


@pytest.fixture
def day():
    """A fixed posting date, so document numbers are predictable."""
    return date(2026, 10, 5)


@pytest.fixture
def ltr(db):
    return Unit.objects.create(code='LTR', name='Litre', conversion_to_base=Decimal('1'))


@pytest.fixture
def drum(db):
    """200-litre drum."""
    return Unit.objects.create(code='DRUM', name='Drum', conversion_to_base=Decimal('200'))


@pytest.fixture
def pcs(db):
    return Unit.objects.create(code='PCS', name='Pieces', conversion_to_base=Decimal('1'))


@pytest.fixture
def oil(db, ltr):
    """Lubricant tracked in litres."""
    return Item.objects.create(sku='OIL-01', name='Lubricant oil', base_unit=ltr)


@pytest.fixture
def bearing(db, pcs):
    return Item.objects.create(sku='BRG-6205', name='Bearing 6205', base_unit=pcs)


@pytest.fixture
def wh(db):
    return Warehouse.objects.create(code='WH1', name='Main warehouse', company_code=COMPANY)


@pytest.fixture
def other_wh(db):
    return Warehouse.objects.create(code='WH2', name='Workshop store', company_code=COMPANY)


@pytest.fixture
def bin_a(db, wh):
    return Bin.objects.create(warehouse=wh, code='A-01', name='Rack A')


@pytest.fixture
def foreign_bin(db, other_wh):
    """A bin that belongs to another warehouse."""
    return Bin.objects.create(warehouse=other_wh, code='Z-01')


@pytest.fixture
def accounts(db):
    """Every system account mapped for COMPANY. Returns {key: LedgerAccount}."""
    mapped = {}
    for key, code in ACCOUNT_CODES.items():
        account = LedgerAccount.objects.create(company_code=COMPANY, code=code, name=key.label)
        SystemAccountMap.objects.create(company_code=COMPANY, key=key, account=account)
        mapped[key] = account
    return mapped


@pytest.fixture
def ledger(db):
    return StockLedger()


@pytest.fixture
def mill(db):
    return Millstock()


@pytest.fixture
def stocked(ledger, oil, wh, actor):
    """200 L of oil at 1000 per litre, no bin."""
    ledger.add_opening_stock(oil, wh, None, Decimal('200'), Decimal('1000'), actor)
    return oil


@pytest.fixture
def stocked_bearing(ledger, bearing, wh, actor):
    """50 bearings at 200 each, no bin."""
    ledger.add_opening_stock(bearing, wh, None, Decimal('50'), Decimal('200'), actor)
    return bearing
