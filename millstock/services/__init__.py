"""
Millstock services.

    from millstock.services import StockLedger, OutboundWorkflow, InboundWorkflow, GLPosting, DocumentQueries
"""

from millstock.services.balances import StockLedger
from millstock.services.documents import DocumentQueries
from millstock.services.gl import GLPosting
from millstock.services.inbound import InboundWorkflow
from millstock.services.outbound import OutboundWorkflow

__all__ = [
    'StockLedger',
    'OutboundWorkflow',
    'InboundWorkflow',
    'GLPosting',
    'DocumentQueries',
]
