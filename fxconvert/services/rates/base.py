from __future__ import annotations

"""Rate source abstraction.

A RateSource returns the full rate table for one base currency: a mapping of
currency code -> units of that currency per 1 unit of base.
"""
from abc import ABC, abstractmethod
from typing import Dict


class RateSource(ABC):
    name: str = "abstract"

    @abstractmethod
    async def fetch_rates(self, base: str) -> Dict[str, float]:
        """Return the rate table for `base`; raise RateFetchError on any failure."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release network resources held by the source, if any."""

