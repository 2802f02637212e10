from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .state import ConversionState


class _ScreenInput(BaseModel):
    """Fields the user can edit on the screen; omitted fields keep their current value."""

    model_config = ConfigDict(populate_by_name=True)

    amount: Optional[str] = Field(None, description="Amount to convert, e.g. '10' or '12.50'")
    from_currency: Optional[str] = Field(None, alias="from", description="Source currency code")
    to_currency: Optional[str] = Field(None, alias="to", description="Target currency code")

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_text(cls, v: Any) -> Any:
        # JSON clients may send a number; validation of the text happens in the controller
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("from_currency", "to_currency")
    @classmethod
    def normalize_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().upper()
        if not v:
            raise ValueError("currency code cannot be blank")
        return v


class ConvertIn(_ScreenInput):
    pass


class StatePatchIn(_ScreenInput):
    pass


class StateOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: str
    currencies: List[str]
    from_currency: Optional[str] = Field(None, alias="from")
    to_currency: Optional[str] = Field(None, alias="to")
    result: str
    busy: bool

    @classmethod
    def from_state(cls, state: ConversionState) -> "StateOut":
        return cls(
            amount=state.amount,
            currencies=list(state.currencies),
            from_currency=state.from_currency,
            to_currency=state.to_currency,
            result=state.result,
            busy=state.busy,
        )


class CurrenciesOut(BaseModel):
    currencies: List[str]


class ConversionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: str
    from_currency: str = Field(..., alias="from")
    to_currency: str = Field(..., alias="to")
    rate: float = Field(..., gt=0)
    result: str
