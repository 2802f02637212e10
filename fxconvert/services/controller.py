"""Conversion controller: the behaviour behind the converter screen.

Mediates between user-triggered events and the two collaborators (a
RateSource and a KeyValueStore) while owning the screen's ConversionState.

Error policy:
    - ValidationError / BusyError are raised before any network call.
    - A failed rate fetch during convert() is raised as ConversionError; the
      displayed result and the persisted value are left untouched.
    - StorageError never escapes: restore and persist failures are logged and
      the user flow continues. Losing the persisted last result is accepted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from fxconvert.core.errors import (
    BusyError,
    ConversionError,
    RateFetchError,
    StorageError,
    ValidationError,
)
from fxconvert.models.constants import (
    DEFAULT_BASE_CURRENCY,
    LAST_RESULT_KEY,
    MSG_BUSY,
    MSG_CONVERT_FAILED,
    MSG_FETCH_CURRENCIES_FAILED,
    MSG_INVALID_AMOUNT,
)
from fxconvert.models.state import (
    ConversionState,
    cleared,
    swapped,
    with_amount,
    with_busy,
    with_conversion,
    with_currencies,
    with_from_currency,
    with_result,
    with_to_currency,
)
from fxconvert.services.amount import parse_amount
from fxconvert.services.notices import NoticeBoard
from fxconvert.services.rates.base import RateSource
from fxconvert.services.rates.conversion import ConversionResult, convert_amount
from fxconvert.services.storage import KeyValueStore

logger = logging.getLogger("fxconvert.controller")


class ConversionController:
    def __init__(
        self,
        rate_source: RateSource,
        store: KeyValueStore,
        *,
        notices: Optional[NoticeBoard] = None,
        default_base: str = DEFAULT_BASE_CURRENCY,
        result_key: str = LAST_RESULT_KEY,
    ):
        self._rates = rate_source
        self._store = store
        self.notices = notices or NoticeBoard()
        self._default_base = default_base
        self._result_key = result_key
        self._state = ConversionState()

    @property
    def state(self) -> ConversionState:
        return self._state

    # Startup ---------------------------------------------------
    async def initialize(self) -> ConversionState:
        await asyncio.gather(self._initial_currencies(), self.restore_last_result())
        return self._state

    async def _initial_currencies(self) -> None:
        try:
            await self.refresh_currencies()
        except RateFetchError:
            logger.exception("error fetching currencies")
            self.notices.post("Error", MSG_FETCH_CURRENCIES_FAILED)

    async def load_currency_list(self) -> List[str]:
        """Fetch the rate table for the default base and return its currency codes."""
        if self._state.busy:
            raise BusyError(MSG_BUSY)
        self._state = with_busy(self._state, True)
        try:
            rates = await self._rates.fetch_rates(self._default_base)
        finally:
            self._state = with_busy(self._state, False)
        return list(rates)

    async def refresh_currencies(self) -> ConversionState:
        codes = await self.load_currency_list()
        self._state = with_currencies(self._state, codes, default_from=self._default_base)
        logger.info("loaded %d currencies", len(codes))
        return self._state

    async def restore_last_result(self) -> Optional[str]:
        try:
            value = await self._store.get_item(self._result_key)
        except StorageError:
            logger.warning("error retrieving last conversion amount", exc_info=True)
            return None
        if value:
            self._state = with_result(self._state, value)
        return value

    # User input ------------------------------------------------
    def set_amount(self, amount: str) -> ConversionState:
        self._state = with_amount(self._state, amount)
        return self._state

    def select_from(self, code: str) -> ConversionState:
        self._require_known(code)
        self._state = with_from_currency(self._state, code)
        return self._state

    def select_to(self, code: str) -> ConversionState:
        self._require_known(code)
        self._state = with_to_currency(self._state, code)
        return self._state

    def _require_known(self, code: Optional[str]) -> None:
        if code is None:
            raise ValidationError("Please select both currencies.", title="Invalid Currency")
        if code not in self._state.currencies:
            raise ValidationError(
                f"{code} is not one of the available currencies.",
                title="Invalid Currency",
            )

    # Actions ---------------------------------------------------
    async def convert(
        self,
        amount: Optional[str] = None,
        from_currency: Optional[str] = None,
        to_currency: Optional[str] = None,
    ) -> ConversionResult:
        """Convert using the given inputs, falling back to the current screen state.

        The typed amount is kept on the screen even when it is rejected; a
        currency is only selected once it is known to be in the current set.
        """
        if self._state.busy:
            raise BusyError(MSG_BUSY)
        if amount is not None:
            self._state = with_amount(self._state, amount)
        source = self._state.from_currency if from_currency is None else from_currency
        target = self._state.to_currency if to_currency is None else to_currency

        parsed = parse_amount(self._state.amount)
        if not parsed.ok:
            logger.info("rejected amount: %s", parsed.error)
            raise ValidationError(MSG_INVALID_AMOUNT)
        self._require_known(source)
        self._require_known(target)
        self._state = with_to_currency(with_from_currency(self._state, source), target)

        pair = {"from_currency": source, "to_currency": target}
        self._state = with_busy(self._state, True)
        try:
            try:
                rates = await self._rates.fetch_rates(source)
            except RateFetchError as e:
                logger.error("error converting currency: %s", e, extra=pair)
                raise ConversionError(MSG_CONVERT_FAILED) from e
            try:
                result = convert_amount(parsed.value, source, target, rates)
            except ConversionError as e:
                logger.error("error converting currency: %s", e, extra=pair)
                raise
            self._state = with_conversion(self._state, result.result, rates.keys())
            logger.info(
                "converted %s %s -> %s %s", result.amount, source, result.result, target, extra=pair
            )
            # still busy, so writes land in conversion order
            await self.persist_last_result(result.result)
        finally:
            self._state = with_busy(self._state, False)
        return result

    def swap(self) -> ConversionState:
        self._state = swapped(self._state)
        return self._state

    def clear(self) -> ConversionState:
        if self._state.busy:
            raise BusyError(MSG_BUSY)
        self._state = cleared(self._state)
        return self._state

    async def persist_last_result(self, value: str) -> bool:
        try:
            await self._store.set_item(self._result_key, value)
        except StorageError:
            logger.warning("error saving last conversion amount", exc_info=True)
            return False
        return True

    async def aclose(self) -> None:
        await self._rates.aclose()


__all__ = ["ConversionController"]
