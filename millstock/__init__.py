"""
Millstock — warehouse stock movements with weighted-average costing and
automatic GL posting.

Usage:
    from millstock import Millstock, MillstockError

    mill = Millstock()
    issue = mill.create_outbound(request, actor='u-1')
    issue.gl_status  # POSTED / FAILED
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'Millstock':
        from millstock.service import Millstock
        return Millstock
    elif name == 'MillstockError':
        from millstock.exceptions import MillstockError
        return MillstockError
    elif name == 'StockBalance':
        from millstock.models.balance import StockBalance
        return StockBalance
    elif name == 'StockLedgerEntry':
        from millstock.models.ledger import StockLedgerEntry
        return StockLedgerEntry
    elif name == 'GoodsIssue':
        from millstock.models.documents import GoodsIssue
        return GoodsIssue
    elif name == 'GoodsReceipt':
        from millstock.models.documents import GoodsReceipt
        return GoodsReceipt
    elif name == 'JournalEntry':
        from millstock.models.journal import JournalEntry
        return JournalEntry
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'Millstock',
    'MillstockError',
    'StockBalance',
    'StockLedgerEntry',
    'GoodsIssue',
    'GoodsReceipt',
    'JournalEntry',
]

__version__ = '0.1.0'
