"""
Exceptions for Millstock.

Every error carries a structured code for programmatic handling, plus a
``status_code`` the API layer maps to an HTTP-like response.
"""

from decimal import Decimal
from typing import Any


class MillstockError(Exception):
    """
    Structured exception for warehouse and ledger operations.

    Usage:
        try:
            workflow.create_outbound(request, actor)
        except InsufficientStock as e:
            for line in e.shortfalls:
                print(line['item_id'], line['available'])

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    status_code = 500
    default_code = 'INTERNAL_ERROR'

    _default_messages = {
        'INTERNAL_ERROR': 'Internal error',
        'INVALID_INPUT': 'Invalid input',
        'INVALID_QUANTITY': 'Quantity must be positive',
        'INACTIVE_ENTITY': 'Referenced entity is inactive',
        'ENTITY_NOT_FOUND': 'Referenced entity does not exist',
        'BIN_MISMATCH': 'Bin does not belong to the warehouse',
        'UNKNOWN_PURPOSE': 'Unknown goods issue purpose',
        'INVALID_STATUS': 'Invalid status for this operation',
        'OVER_RETURN': 'Returned quantity exceeds loaned quantity',
        'INSUFFICIENT_STOCK': 'Insufficient stock',
        'DUPLICATE_SKU': 'SKU is already in use',
        'DUPLICATE_NUMBER': 'Document number collision',
        'UNBALANCED_ENTRY': 'Debit and credit must be equal',
        'ACCOUNT_NOT_CONFIGURED': 'Account not configured in system account map',
        'NOT_FOUND': 'Not found',
    }

    def __init__(self, code: str | None = None, message: str | None = None, **data: Any):
        self.code = code or self.default_code
        self.message = message or self._default_messages.get(self.code, self.code)
        self.data = data
        super().__init__(self.message)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': jsonable(self.data),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.message!r})"


class ValidationError(MillstockError):
    """Missing, invalid or inactive referenced entity; user-fixable."""

    status_code = 400
    default_code = 'INVALID_INPUT'


class NotFound(MillstockError):
    """Document or loan line lookup miss."""

    status_code = 404
    default_code = 'NOT_FOUND'


class Conflict(MillstockError):
    """Duplicate SKU, document number race or overlapping state."""

    status_code = 409
    default_code = 'DUPLICATE_SKU'


class InsufficientStock(MillstockError):
    """Availability check failed; carries a per-line shortfall report."""

    status_code = 422
    default_code = 'INSUFFICIENT_STOCK'

    @property
    def shortfalls(self) -> list[dict[str, Any]]:
        """Shortcut for data['shortfalls']."""
        return self.data.get('shortfalls', [])


class UnbalancedEntry(MillstockError):
    """Journal lines whose debits and credits differ beyond tolerance."""

    status_code = 500
    default_code = 'UNBALANCED_ENTRY'

    @property
    def debit(self) -> Decimal:
        return self.data.get('debit', Decimal('0'))

    @property
    def credit(self) -> Decimal:
        return self.data.get('credit', Decimal('0'))


class AccountNotConfigured(MillstockError):
    """A logical account key has no mapping for the company."""

    status_code = 500
    default_code = 'ACCOUNT_NOT_CONFIGURED'


def jsonable(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return value
