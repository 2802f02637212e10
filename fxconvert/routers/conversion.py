from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request

from fxconvert.models.conversion import (
    ConversionOut,
    ConvertIn,
    CurrenciesOut,
    StateOut,
    StatePatchIn,
)
from fxconvert.services.controller import ConversionController

"""Conversion router: JSON surface over the converter screen.

Endpoints:
    - GET   /state               -> current screen state
    - PATCH /state               -> edit amount / from / to
    - GET   /currencies          -> available currency codes
    - POST  /currencies/refresh  -> refetch the currency list
    - POST  /convert             -> convert (body fields default to state)
    - POST  /swap, POST /clear   -> screen actions

Domain errors propagate as ConverterError and are rendered by the handlers in
core.errors.
"""

router = APIRouter(tags=["conversion"])


def get_controller(request: Request) -> ConversionController:
    return request.app.state.controller


@router.get("/state", response_model=StateOut, summary="Current converter state")
async def get_state(ctl: ConversionController = Depends(get_controller)):
    return StateOut.from_state(ctl.state)


@router.patch("/state", response_model=StateOut, summary="Edit converter inputs")
async def patch_state(
    payload: StatePatchIn, ctl: ConversionController = Depends(get_controller)
):
    if payload.from_currency is not None:
        ctl.select_from(payload.from_currency)
    if payload.to_currency is not None:
        ctl.select_to(payload.to_currency)
    if payload.amount is not None:
        ctl.set_amount(payload.amount)
    return StateOut.from_state(ctl.state)


@router.get("/currencies", response_model=CurrenciesOut, summary="Available currencies")
async def list_currencies(ctl: ConversionController = Depends(get_controller)):
    return CurrenciesOut(currencies=list(ctl.state.currencies))


@router.post(
    "/currencies/refresh", response_model=StateOut, summary="Refetch the currency list"
)
async def refresh_currencies(ctl: ConversionController = Depends(get_controller)):
    state = await ctl.refresh_currencies()
    return StateOut.from_state(state)


@router.post("/convert", response_model=ConversionOut, summary="Convert an amount")
async def convert(
    payload: Optional[ConvertIn] = Body(None),
    ctl: ConversionController = Depends(get_controller),
):
    payload = payload or ConvertIn()
    result = await ctl.convert(
        amount=payload.amount,
        from_currency=payload.from_currency,
        to_currency=payload.to_currency,
    )
    return ConversionOut(
        amount=f"{result.amount:f}",
        from_currency=result.from_currency,
        to_currency=result.to_currency,
        rate=result.rate,
        result=result.result,
    )


@router.post("/swap", response_model=StateOut, summary="Swap source and target")
async def swap(ctl: ConversionController = Depends(get_controller)):
    return StateOut.from_state(ctl.swap())


@router.post("/clear", response_model=StateOut, summary="Clear amount and result")
async def clear(ctl: ConversionController = Depends(get_controller)):
    return StateOut.from_state(ctl.clear())
