"""Parse-and-validate step for the user-entered amount.

parse_amount never raises: it returns an AmountParse telling the caller
whether the text was usable and, if not, why.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

# Largest accepted magnitude is below 10 ** (MAX_AMOUNT_EXPONENT + 1)
MAX_AMOUNT_EXPONENT = 99


@dataclass(frozen=True)
class AmountParse:
    value: Optional[Decimal] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None


def parse_amount(text: Optional[str]) -> AmountParse:
    if text is None:
        return AmountParse(error="amount is required")
    cleaned = text.strip()
    if not cleaned:
        return AmountParse(error="amount is required")
    # Decimal accepts digit group underscores; a typed amount never should
    if "_" in cleaned:
        return AmountParse(error=f"'{text}' is not a number")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return AmountParse(error=f"'{text}' is not a number")
    if not value.is_finite():
        return AmountParse(error=f"'{text}' is not a finite number")
    if value and value.adjusted() > MAX_AMOUNT_EXPONENT:
        return AmountParse(error=f"'{text}' is too large")
    return AmountParse(value=value)


__all__ = ["AmountParse", "MAX_AMOUNT_EXPONENT", "parse_amount"]
