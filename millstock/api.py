"""
Result-returning entry points for callers that want a response envelope
instead of exceptions (HTTP views, RPC handlers, scripts).

Usage:
    from millstock import api

    result = api.create_outbound(request, actor='u-1')
    if not result.success:
        return JsonResponse(result.as_dict(), status=result.status_code)

Every MillstockError becomes a failed Result with the error's status_code.
Anything else is logged with its traceback and reported as a bare 500.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from millstock.exceptions import MillstockError, jsonable
from millstock.service import Millstock

logger = logging.getLogger('millstock')


@dataclass
class Result:
    success: bool
    data: Any = None
    error: str | None = None
    code: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    status_code: int = 200

    def as_dict(self) -> dict[str, Any]:
        body = {'success': self.success}
        if self.success:
            body['data'] = self.data
        else:
            body.update(error=self.error, code=self.code, details=jsonable(self.details))
        return body


def _call(operation: str, fn: Callable[[], Any], status_code: int = 200) -> Result:
    try:
        data = fn()
    except MillstockError as e:
        return Result(
            success=False,
            error=e.message,
            code=e.code,
            details=e.data,
            status_code=e.status_code,
        )
    except Exception:
        logger.exception("api.error", extra={"operation": operation})
        return Result(success=False, error='Internal error', code='INTERNAL_ERROR', status_code=500)
    return Result(success=True, data=data, status_code=status_code)


def _mill(using: str) -> Millstock:
    return Millstock(using=using)


# ══════════════════════════════════════════════════════════════
# STOCK
# ══════════════════════════════════════════════════════════════


def get_balance(item, warehouse, bin=None, using: str = 'default') -> Result:
    return _call('get_balance', lambda: _mill(using).get_balance(item, warehouse, bin))


def list_balances(item, using: str = 'default') -> Result:
    return _call('list_balances', lambda: _mill(using).list_balances(item))


def list_ledger(item, using: str = 'default', **filters) -> Result:
    return _call('list_ledger', lambda: _mill(using).list_ledger(item, **filters))


def validate_availability(item, warehouse, bin, required_qty_base, using: str = 'default') -> Result:
    return _call(
        'validate_availability',
        lambda: _mill(using).validate_availability(item, warehouse, bin, required_qty_base),
    )


# ══════════════════════════════════════════════════════════════
# MOVEMENTS
# ══════════════════════════════════════════════════════════════


def create_outbound(request, actor: str, using: str = 'default') -> Result:
    return _call('create_outbound', lambda: _mill(using).create_outbound(request, actor), status_code=201)


def create_inbound(request, actor: str, using: str = 'default') -> Result:
    return _call('create_inbound', lambda: _mill(using).create_inbound(request, actor), status_code=201)


def create_new_item_inbound(request, actor: str, using: str = 'default') -> Result:
    return _call(
        'create_new_item_inbound',
        lambda: _mill(using).create_new_item_inbound(request, actor),
        status_code=201,
    )


def process_loan_return(loan_issue_id, lines, actor: str, date=None, note: str = '',
                        using: str = 'default') -> Result:
    return _call(
        'process_loan_return',
        lambda: _mill(using).process_loan_return(loan_issue_id, lines, actor, date=date, note=note),
        status_code=201,
    )


# ══════════════════════════════════════════════════════════════
# DOCUMENTS
# ══════════════════════════════════════════════════════════════


def get_outbound(issue_id, using: str = 'default') -> Result:
    return _call('get_outbound', lambda: _mill(using).get_outbound(issue_id))


def list_outbounds(using: str = 'default', **filters) -> Result:
    return _call('list_outbounds', lambda: _mill(using).list_outbounds(**filters))


def active_loans(warehouse=None, using: str = 'default') -> Result:
    return _call('active_loans', lambda: _mill(using).active_loans(warehouse))


def get_inbound(receipt_id, using: str = 'default') -> Result:
    return _call('get_inbound', lambda: _mill(using).get_inbound(receipt_id))


def list_inbounds(using: str = 'default', **filters) -> Result:
    return _call('list_inbounds', lambda: _mill(using).list_inbounds(**filters))


# ══════════════════════════════════════════════════════════════
# GL
# ══════════════════════════════════════════════════════════════


def post_journal_entry(context, lines, using: str = 'default') -> Result:
    """post_journal_entry reports failures itself; the envelope mirrors them."""
    try:
        posted = _mill(using).post_journal_entry(context, lines)
    except Exception:
        logger.exception("api.error", extra={"operation": 'post_journal_entry'})
        return Result(success=False, error='Internal error', code='INTERNAL_ERROR', status_code=500)
    if posted.success:
        return Result(success=True, data=posted, status_code=201)
    status_code = 400 if posted.code == 'INVALID_INPUT' else 500
    return Result(
        success=False,
        data=posted,
        error=posted.error,
        code=posted.code,
        details=posted.details,
        status_code=status_code,
    )


def void_journal_entry_by_source(source_type: str, source_id, using: str = 'default') -> Result:
    return _call(
        'void_journal_entry_by_source',
        lambda: _mill(using).void_journal_entry_by_source(source_type, source_id),
    )
