"""Amount conversion against a fetched rate table.

Responsibilities:
    - Look up the target rate in a table fetched for the source currency.
    - Apply rounding (format2) exactly once.
    - Return an immutable result object for clarity/testing.

A target missing from the table is a ConversionError rather than a
not-a-number result.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from fxconvert.core.errors import ConversionError
from fxconvert.services.money import format2, multiply


@dataclass(frozen=True)
class ConversionResult:
    amount: Decimal
    from_currency: str
    to_currency: str
    rate: float
    result: str


def convert_amount(
    amount: Decimal, from_currency: str, to_currency: str, rates: Mapping[str, float]
) -> ConversionResult:
    rate = rates.get(to_currency)
    if rate is None:
        raise ConversionError(
            f"No {to_currency} rate in the {from_currency} rate table."
        )
    return ConversionResult(
        amount=amount,
        from_currency=from_currency,
        to_currency=to_currency,
        rate=rate,
        result=format2(multiply(amount, rate)),
    )
