"""
Millstock Models.

- Unit, Item, Warehouse, Bin: catalog read by the engine
- StockBalance: quantity/cost cache per (item, warehouse, bin)
- StockLedgerEntry: immutable ledger of changes
- GoodsIssue / GoodsReceipt: movement documents
- LedgerAccount, SystemAccountMap, JournalEntry: GL postings
- DocumentSequence: number allocation
"""

from millstock.models.balance import StockBalance
from millstock.models.catalog import Bin, Item, Unit, Warehouse
from millstock.models.documents import GoodsIssue, GoodsIssueLine, GoodsReceipt, GoodsReceiptLine
from millstock.models.enums import (
    GLStatus,
    IssuePurpose,
    IssueStatus,
    JournalStatus,
    ReceiptSource,
    ReferenceType,
    SystemAccountKey,
)
from millstock.models.journal import JournalEntry, JournalEntryLine, LedgerAccount, SystemAccountMap
from millstock.models.ledger import StockLedgerEntry
from millstock.models.sequence import DocumentSequence

__all__ = [
    'ReferenceType',
    'IssuePurpose',
    'IssueStatus',
    'ReceiptSource',
    'GLStatus',
    'JournalStatus',
    'SystemAccountKey',
    'Unit',
    'Item',
    'Warehouse',
    'Bin',
    'StockBalance',
    'StockLedgerEntry',
    'GoodsIssue',
    'GoodsIssueLine',
    'GoodsReceipt',
    'GoodsReceiptLine',
    'LedgerAccount',
    'SystemAccountMap',
    'JournalEntry',
    'JournalEntryLine',
    'DocumentSequence',
]
