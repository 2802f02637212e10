from typing import Dict, List, Optional

import pytest

from fxconvert.core.errors import RateFetchError, StorageError
from fxconvert.services.controller import ConversionController
from fxconvert.services.rates.base import RateSource
from fxconvert.services.storage import InMemoryKeyValueStore, KeyValueStore

USD_TABLE = {"USD": 1.0, "EUR": 0.9, "JPY": 150.0}
EUR_TABLE = {"EUR": 1.0, "USD": 1.1, "JPY": 160.0}


class FakeRateSource(RateSource):
    """Serves fixed tables per base and records every requested base."""

    name = "fake"

    def __init__(self, tables: Optional[Dict[str, Dict[str, float]]] = None):
        self.tables = tables if tables is not None else {"USD": USD_TABLE, "EUR": EUR_TABLE}
        self.calls: List[str] = []
        self.fail = False
        self.closed = False

    async def fetch_rates(self, base: str) -> Dict[str, float]:
        self.calls.append(base)
        if self.fail or base not in self.tables:
            raise RateFetchError(f"no rates for {base}")
        return dict(self.tables[base])

    async def aclose(self) -> None:
        self.closed = True


class FailingStore(KeyValueStore):
    """Every read and write raises StorageError."""

    def __init__(self):
        self.attempts = 0

    async def get_item(self, key: str) -> Optional[str]:
        self.attempts += 1
        raise StorageError("disk unavailable")

    async def set_item(self, key: str, value: str) -> None:
        self.attempts += 1
        raise StorageError("disk unavailable")


@pytest.fixture
def rate_source() -> FakeRateSource:
    return FakeRateSource()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def controller(rate_source, store) -> ConversionController:
    return ConversionController(rate_source, store)
