"""
Millstock Service — the single public interface for warehouse operations.

Usage:
    from millstock import Millstock

    mill = Millstock(using='default')
    issue = mill.create_outbound(OutboundRequest(...), actor='u-1')
    mill.get_balance(item, warehouse)  # BalanceSnapshot(qty_on_hand, avg_cost)

IMPORTANT: every state-changing method runs in an atomic transaction with
the touched balance rows locked. See each service's docstring.
"""

from millstock.adapters.catalog import get_catalog
from millstock.services.balances import StockLedger
from millstock.services.documents import DocumentQueries
from millstock.services.gl import GLPosting
from millstock.services.inbound import InboundWorkflow
from millstock.services.outbound import OutboundWorkflow


class Millstock:
    """
    Facade over the ledger, the workflows, the GL engine and document queries.

    All collaborators share one database alias and one catalog backend.
    """

    def __init__(self, using: str = 'default', catalog=None):
        self.using = using
        self.catalog = catalog or get_catalog(using)
        self.ledger = StockLedger(using)
        self.gl = GLPosting(using)
        self.outbound = OutboundWorkflow(using, catalog=self.catalog, ledger=self.ledger, gl=self.gl)
        self.inbound = InboundWorkflow(using, catalog=self.catalog, ledger=self.ledger, gl=self.gl)
        self.documents = DocumentQueries(using)

    # ══════════════════════════════════════════════════════════════
    # STOCK
    # ══════════════════════════════════════════════════════════════

    def get_balance(self, item, warehouse, bin=None):
        return self.ledger.get_balance(item, warehouse, bin)

    def list_balances(self, item):
        return self.ledger.list_balances(item)

    def list_ledger(self, item, **filters):
        return self.ledger.list_ledger(item, **filters)

    def validate_availability(self, item, warehouse, bin, required_qty_base):
        return self.ledger.validate_availability(item, warehouse, bin, required_qty_base)

    def adjust(self, item, warehouse, bin, new_qty, reason: str, actor: str):
        return self.ledger.adjust(item, warehouse, bin, new_qty, reason, actor)

    def add_opening_stock(self, item, warehouse, bin, qty, unit_cost, actor: str):
        return self.ledger.add_opening_stock(item, warehouse, bin, qty, unit_cost, actor)

    def replay(self, item=None, fix: bool = False):
        return self.ledger.replay(item=item, fix=fix)

    # ══════════════════════════════════════════════════════════════
    # MOVEMENTS
    # ══════════════════════════════════════════════════════════════

    def create_outbound(self, request, actor: str):
        return self.outbound.create_outbound(request, actor)

    def create_inbound(self, request, actor: str):
        return self.inbound.create_inbound(request, actor)

    def create_new_item_inbound(self, request, actor: str):
        return self.inbound.create_new_item_inbound(request, actor)

    def process_loan_return(self, loan_issue_id, lines, actor: str, date=None, note: str = ''):
        return self.inbound.process_loan_return(loan_issue_id, lines, actor, date=date, note=note)

    # ══════════════════════════════════════════════════════════════
    # DOCUMENTS
    # ══════════════════════════════════════════════════════════════

    def get_outbound(self, issue_id):
        return self.documents.get_outbound(issue_id)

    def list_outbounds(self, **filters):
        return self.documents.list_outbounds(**filters)

    def active_loans(self, warehouse=None):
        return self.documents.active_loans(warehouse)

    def get_inbound(self, receipt_id):
        return self.documents.get_inbound(receipt_id)

    def list_inbounds(self, **filters):
        return self.documents.list_inbounds(**filters)

    # ══════════════════════════════════════════════════════════════
    # GL
    # ══════════════════════════════════════════════════════════════

    def post_journal_entry(self, context, lines):
        return self.gl.post_journal_entry(context, lines)

    def void_journal_entry_by_source(self, source_type: str, source_id) -> int:
        return self.gl.void_journal_entry_by_source(source_type, source_id)
