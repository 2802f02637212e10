"""Money / rounding helpers.

Centralized so the conversion service and the display layer use identical
rounding semantics: two fractional digits, half away from zero.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP, localcontext

TWO_PLACES = Decimal("0.01")


def to_decimal(value: float | int | str | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so binary float artefacts (0.1 + 0.2) do not leak into the result
    return Decimal(str(value))


def multiply(a: float | Decimal, b: float | Decimal) -> Decimal:
    """Exact product, however many digits the operands carry."""
    a, b = to_decimal(a), to_decimal(b)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(a.as_tuple().digits) + len(b.as_tuple().digits))
        return a * b


def round2(value: float | Decimal) -> Decimal:
    d = to_decimal(value)
    with localcontext() as ctx:
        # every integer digit plus two fractional ones must fit
        ctx.prec = max(ctx.prec, d.adjusted() + 3)
        return d.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format2(value: float | Decimal) -> str:
    """Render value rounded to exactly two fractional digits, never in exponent form."""
    return f"{round2(value):f}"
