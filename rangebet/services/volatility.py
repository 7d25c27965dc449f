"""
Daily volatility estimation from historical closes.

Turns a 90-day daily close series into one daily volatility figure:

    1. Log returns between consecutive closes.
    2. Population standard deviation of those returns (divisor = N returns).
    3. Tail adjustment: +1/90 per day with an absolute move of 10% or more,
       capped at +25%.

The tail adjustment always divides by the fixed 90-day window, even when
the source returned fewer closes.  A short series is therefore
under-adjusted relative to a full one; this matches the quoted board and
is kept as-is.

When the history is missing, too short or numerically unusable the
resolver falls back to the asset's static baseline volatility.  A NaN or
zero volatility never reaches the probability model.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from rangebet.core.asset_config import AssetConfig
from rangebet.core.feed_interface import DataUnavailableError, PriceHistorySource
from rangebet.core.pricing_config import DEFAULT_CONSTANTS, PricingConstants

logger = logging.getLogger(__name__)


class VolatilityEstimationError(ValueError):
    """The close series cannot produce a finite volatility."""


@dataclass(frozen=True)
class VolatilityEstimate:
    """Volatility figure for one asset at one point in time."""

    asset_id: str
    daily_volatility: float
    is_fallback: bool
    sample_count: int = 0
    outlier_count: int = 0
    tail_factor: float = 1.0


@dataclass(frozen=True)
class _Breakdown:
    daily_volatility: float
    outlier_count: int
    tail_factor: float


def _estimate(prices: Sequence[float], constants: PricingConstants) -> _Breakdown:
    if len(prices) < 2:
        raise VolatilityEstimationError(
            f"Need at least 2 closes to estimate volatility, got {len(prices)}"
        )

    closes = np.asarray(prices, dtype=float)
    if not np.all(np.isfinite(closes)) or np.any(closes <= 0):
        raise VolatilityEstimationError("Close series contains non-positive or non-finite prices")

    returns = np.log(closes[1:] / closes[:-1])
    # Population variance (ddof=0).
    variance = float(np.mean((returns - returns.mean()) ** 2))

    moves = np.abs(np.diff(closes) / closes[:-1])
    outlier_count = int(np.count_nonzero(moves >= constants.outlier_move_threshold))
    tail_factor = 1.0 + min(outlier_count / constants.tail_window_days, constants.tail_factor_cap)

    daily_vol = math.sqrt(variance) * tail_factor
    if not math.isfinite(daily_vol) or daily_vol < 0:
        raise VolatilityEstimationError(f"Non-finite volatility {daily_vol!r}")

    return _Breakdown(daily_vol, outlier_count, tail_factor)


def estimate_daily_volatility(
    prices: Sequence[float],
    constants: PricingConstants = DEFAULT_CONSTANTS,
) -> float:
    """
    Estimate daily volatility from closes ordered oldest first.

    Args:
        prices: At least two positive closing prices.
        constants: Outlier threshold, tail cap and window.

    Returns:
        Non-negative daily volatility.  A perfectly flat series returns 0.0.

    Raises:
        VolatilityEstimationError: Fewer than 2 closes, a non-positive or
            non-finite close, or a non-finite result.
    """
    return _estimate(prices, constants).daily_volatility


def _baseline(asset: AssetConfig, reason: str) -> VolatilityEstimate:
    logger.warning(
        "Volatility fallback for %s (%s): using baseline %.4f",
        asset.asset_id, reason, asset.baseline_volatility,
    )
    return VolatilityEstimate(
        asset_id=asset.asset_id,
        daily_volatility=asset.baseline_volatility,
        is_fallback=True,
    )


def resolve_volatility(
    asset: AssetConfig,
    history_source: Optional[PriceHistorySource] = None,
    constants: PricingConstants = DEFAULT_CONSTANTS,
) -> VolatilityEstimate:
    """
    Fetch history for *asset* and estimate volatility, with baseline fallback.

    Falls back to ``asset.baseline_volatility`` when no source is given, the
    source raises :class:`DataUnavailableError`, the estimator fails, or the
    estimate is exactly zero (a flat series would price every range as
    degenerate).

    Returns:
        :class:`VolatilityEstimate` with ``is_fallback`` set accordingly.
    """
    if history_source is None:
        return _baseline(asset, "no history source")

    try:
        history = history_source.get_history(asset, constants.history_lookback_days)
    except DataUnavailableError as exc:
        return _baseline(asset, f"history unavailable: {exc}")

    return volatility_from_closes(asset, [p.close for p in history], constants)


def volatility_from_closes(
    asset: AssetConfig,
    closes: Sequence[float],
    constants: PricingConstants = DEFAULT_CONSTANTS,
) -> VolatilityEstimate:
    """Estimate from an already-fetched close series, with baseline fallback."""
    try:
        breakdown = _estimate(closes, constants)
    except VolatilityEstimationError as exc:
        return _baseline(asset, str(exc))

    if breakdown.daily_volatility <= 0.0:
        return _baseline(asset, "flat price series")

    logger.debug(
        "Volatility %s: %.5f from %d closes (%d outlier days, tail x%.3f)",
        asset.asset_id, breakdown.daily_volatility, len(closes),
        breakdown.outlier_count, breakdown.tail_factor,
    )
    return VolatilityEstimate(
        asset_id=asset.asset_id,
        daily_volatility=breakdown.daily_volatility,
        is_fallback=False,
        sample_count=len(closes),
        outlier_count=breakdown.outlier_count,
        tail_factor=breakdown.tail_factor,
    )
