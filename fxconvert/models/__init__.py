"""Domain models for the currency converter screen."""

from .constants import DEFAULT_BASE_CURRENCY, LAST_RESULT_KEY  # re-export
from .state import ConversionState
from .conversion import (
    ConversionOut,
    ConvertIn,
    CurrenciesOut,
    StateOut,
    StatePatchIn,
)

__all__ = [
    "DEFAULT_BASE_CURRENCY",
    "LAST_RESULT_KEY",
    "ConversionState",
    "ConversionOut",
    "ConvertIn",
    "CurrenciesOut",
    "StateOut",
    "StatePatchIn",
]
