"""
Decimal helpers — rounding rules shared by the ledger and the GL.

Quantities: 3 places. Unit costs: 4 places. Journal amounts: 2 places.
Everything rounds half-up, the way the mill's accounting rounds.
"""

from decimal import ROUND_HALF_UP, Decimal

QTY_PLACES = Decimal('0.001')
COST_PLACES = Decimal('0.0001')
MONEY_PLACES = Decimal('0.01')

ZERO = Decimal('0')


def to_decimal(value) -> Decimal:
    """Coerce int/str/float/Decimal/None to Decimal (None → 0)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def qty(value) -> Decimal:
    return to_decimal(value).quantize(QTY_PLACES, rounding=ROUND_HALF_UP)


def cost(value) -> Decimal:
    return to_decimal(value).quantize(COST_PLACES, rounding=ROUND_HALF_UP)


def money(value) -> Decimal:
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def weighted_average(qty_before: Decimal, cost_before: Decimal,
                     qty_in: Decimal, cost_in: Decimal) -> Decimal:
    """
    Weighted-average unit cost after a costed receipt.

        new = (q0 * c0 + qi * ci) / (q0 + qi)

    An empty (or negative) prior balance contributes nothing: the result is ci.
    """
    if qty_before <= 0:
        return cost(cost_in)
    total_qty = qty_before + qty_in
    return cost((qty_before * cost_before + qty_in * cost_in) / total_qty)
