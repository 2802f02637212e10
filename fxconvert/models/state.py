"""Screen state for the converter and its pure transition functions.

ConversionState is immutable; every transition returns a new instance so the
controller can be exercised without any UI harness.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

from .constants import DEFAULT_BASE_CURRENCY


@dataclass(frozen=True)
class ConversionState:
    amount: str = ""
    currencies: Tuple[str, ...] = ()
    from_currency: Optional[str] = None
    to_currency: Optional[str] = None
    result: str = ""
    busy: bool = False


def with_currencies(
    state: ConversionState,
    codes: Iterable[str],
    default_from: str = DEFAULT_BASE_CURRENCY,
) -> ConversionState:
    """Install a freshly fetched currency list and reset the selection.

    `from` always becomes default_from; `to` becomes the first code that differs
    from it, or None when the list has no such code.
    """
    currencies = tuple(codes)
    to_currency = next((c for c in currencies if c != default_from), None)
    return replace(
        state,
        currencies=currencies,
        from_currency=default_from,
        to_currency=to_currency,
    )


def with_amount(state: ConversionState, amount: str) -> ConversionState:
    return replace(state, amount=amount)


def with_from_currency(state: ConversionState, code: Optional[str]) -> ConversionState:
    return replace(state, from_currency=code)


def with_to_currency(state: ConversionState, code: Optional[str]) -> ConversionState:
    return replace(state, to_currency=code)


def swapped(state: ConversionState) -> ConversionState:
    return replace(state, from_currency=state.to_currency, to_currency=state.from_currency)


def cleared(state: ConversionState) -> ConversionState:
    return replace(state, amount="", result="")


def with_result(state: ConversionState, result: str) -> ConversionState:
    return replace(state, result=result)


def with_conversion(
    state: ConversionState, result: str, codes: Iterable[str]
) -> ConversionState:
    # The rate table fetched for the conversion replaces the currency set wholesale;
    # the user's current selection is kept.
    return replace(state, result=result, currencies=tuple(codes))


def with_busy(state: ConversionState, busy: bool) -> ConversionState:
    return replace(state, busy=busy)


__all__ = [
    "ConversionState",
    "with_currencies",
    "with_amount",
    "with_from_currency",
    "with_to_currency",
    "swapped",
    "cleared",
    "with_result",
    "with_conversion",
    "with_busy",
]
