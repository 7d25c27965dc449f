"""Dependency-injection interfaces for price data sources.

This module defines the contracts every market-data collaborator must
satisfy.  The volatility resolver and the ticket builder accept a
``PriceHistorySource`` / ``LivePriceSource`` at construction time rather than
importing a vendor client directly.  This enables:

* **Unit testing**: inject a :class:`StaticPriceFeed` that returns fixed
  prices without any network access.
* **Vendor swaps**: a CoinGecko, exchange-websocket or cached source can
  be plugged in without touching pricing code.

Design choices
--------------
* The sources are abstract base classes rather than ``typing.Protocol`` so a
  misconfigured collaborator fails at construction (``isinstance`` guard)
  instead of deep inside a pricing call.
* Failure is signalled with :class:`DataUnavailableError`, never by returning
  ``0`` or ``None``.  Callers decide the fallback (baseline volatility,
  rejected leg); sources never guess.
* Timeouts, retries and staleness checks belong to the concrete source.

Run tests with::

    pytest tests/test_feed_interface.py -v
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

if TYPE_CHECKING:
    from rangebet.core.asset_config import AssetConfig


class DataUnavailableError(RuntimeError):
    """A price or price-history fetch failed or returned nothing usable."""


# ---------------------------------------------------------------------------
# Data transfer objects
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class PricePoint:
    """One daily close.

    Attributes:
        timestamp: Close time of the sample.
        close: Closing price in quote currency (USD).
    """

    timestamp: datetime
    close: float


# ---------------------------------------------------------------------------
# Abstract sources
# ---------------------------------------------------------------------------


class PriceHistorySource(ABC):
    """Supplies a time-ordered close series for an asset."""

    @abstractmethod
    def get_history(self, asset: AssetConfig, lookback_days: int) -> List[PricePoint]:
        """Return closes covering *lookback_days*, oldest first.

        Raises:
            DataUnavailableError: On fetch failure or an empty series.
        """


class LivePriceSource(ABC):
    """Supplies the current price for an asset."""

    @abstractmethod
    def get_price(self, asset: AssetConfig) -> float:
        """Return the current price (> 0).

        Raises:
            DataUnavailableError: On fetch failure or a non-positive price.
        """


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class StaticPriceFeed(PriceHistorySource, LivePriceSource):
    """In-memory source backed by caller-supplied prices and histories.

    Keys are asset ids.  Histories are returned truncated to the most recent
    ``lookback_days + 1`` closes (N days of returns need N + 1 closes).
    """

    def __init__(
        self,
        prices: Optional[Dict[str, float]] = None,
        histories: Optional[Dict[str, Iterable[PricePoint]]] = None,
    ):
        self._prices: Dict[str, float] = dict(prices or {})
        self._histories: Dict[str, List[PricePoint]] = {
            k: sorted(v, key=lambda p: p.timestamp) for k, v in (histories or {}).items()
        }

    def set_price(self, asset_id: str, price: float) -> None:
        self._prices[asset_id] = price

    def set_history(self, asset_id: str, points: Iterable[PricePoint]) -> None:
        self._histories[asset_id] = sorted(points, key=lambda p: p.timestamp)

    def get_price(self, asset: AssetConfig) -> float:
        price = self._prices.get(asset.asset_id)
        if price is None or not math.isfinite(price) or price <= 0:
            raise DataUnavailableError(f"No live price for {asset.asset_id}")
        return price

    def get_history(self, asset: AssetConfig, lookback_days: int) -> List[PricePoint]:
        points = self._histories.get(asset.asset_id)
        if not points:
            raise DataUnavailableError(f"No price history for {asset.asset_id}")
        return list(points[-(lookback_days + 1):])
