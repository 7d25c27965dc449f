"""
Range-width admission control for new legs.

Every leg must pass :func:`validate_range` before it is materialised.  The
check is purely relative: the width of the requested range divided by the
current price must sit inside the configured band for the
(asset, timeframe) pair, inclusive at both ends.  A pair with no band is
rejected outright.

Also hosts the display helpers shown next to the range inputs (width as a
percentage and the Hard / Medium / Easy difficulty label).
"""

import logging
import math
from dataclasses import dataclass
from typing import Literal, Optional

from rangebet.core.asset_config import RangeWidthBand, range_band

logger = logging.getLogger(__name__)

RejectionReason = Literal[
    "ok", "below_min", "above_max", "unconfigured", "price_unavailable", "invalid_bounds",
]

# Difficulty label thresholds (relative width, inclusive upper edges)
HARD_MAX_WIDTH = 0.02
MEDIUM_MAX_WIDTH = 0.05


@dataclass(frozen=True)
class RangeValidation:
    """Outcome of a range-width check."""

    accepted: bool
    reason: RejectionReason
    asset_id: str
    timeframe: str
    width: Optional[float] = None
    band: Optional[RangeWidthBand] = None
    message: str = ""

    @property
    def allowed_percent(self) -> Optional[tuple]:
        """Legal interval as ``(min %, max %)``, or ``None`` if unconfigured."""
        return self.band.as_percent() if self.band else None


class RangeOutOfBoundsError(ValueError):
    """Raised when a range fails validation.  Carries the full result."""

    def __init__(self, validation: RangeValidation):
        super().__init__(validation.message)
        self.validation = validation


def _finite(*values: float) -> bool:
    try:
        return all(math.isfinite(v) for v in values)
    except TypeError:
        return False


def _band_text(band: RangeWidthBand) -> str:
    lo, hi = band.as_percent()
    return f"Must be between {lo:.1f}% and {hi:.1f}% of price."


def validate_range(
    asset_id: str,
    timeframe: str,
    lower: float,
    upper: float,
    current_price: float,
) -> RangeValidation:
    """
    Check a requested [lower, upper] range against the configured band.

    Args:
        asset_id: Asset ticker (``"BTC"``).
        timeframe: Timeframe label (``"24-hour"``).
        lower: One bound of the range.  Order of the bounds does not matter.
        upper: The other bound.
        current_price: Live price used to normalise the width.  ``0`` or a
            non-finite value (or ``None``) means the price is unavailable.

    Returns:
        :class:`RangeValidation`.  Unset or non-numeric bounds are rejected
        as ``invalid_bounds`` rather than raising; see
        :func:`require_valid_range` for the raising variant.
    """
    band = range_band(asset_id, timeframe)
    label = f"{asset_id} at {timeframe}"

    def _reject(reason: RejectionReason, message: str, width: Optional[float] = None):
        logger.info("Range rejected for %s: %s", label, message)
        return RangeValidation(False, reason, asset_id, timeframe, width, band, message)

    if band is None:
        return _reject(
            "unconfigured",
            f"Ranges are not offered for {label}.",
        )

    if not _finite(current_price) or current_price <= 0:
        return _reject(
            "price_unavailable",
            f"Live price for {asset_id} is unavailable; cannot size the range.",
        )

    if not _finite(lower, upper) or lower <= 0 or upper <= 0:
        return _reject("invalid_bounds", "Range bounds must be positive prices.")

    if lower == upper:
        return _reject("invalid_bounds", "Upper and lower bounds must differ.")

    width = abs(upper - lower) / current_price
    pct = width * 100.0

    if width < band.min_width:
        return _reject(
            "below_min",
            f"Invalid range width for {label}: {pct:.1f}% is below the minimum. "
            + _band_text(band),
            width,
        )
    if width > band.max_width:
        return _reject(
            "above_max",
            f"Invalid range width for {label}: {pct:.1f}% is above the maximum. "
            + _band_text(band),
            width,
        )

    return RangeValidation(True, "ok", asset_id, timeframe, width, band, "")


def require_valid_range(
    asset_id: str,
    timeframe: str,
    lower: float,
    upper: float,
    current_price: float,
) -> RangeValidation:
    """Like :func:`validate_range` but raises :class:`RangeOutOfBoundsError`."""
    result = validate_range(asset_id, timeframe, lower, upper, current_price)
    if not result.accepted:
        raise RangeOutOfBoundsError(result)
    return result


def range_width_percent(lower: float, upper: float, current_price: float) -> Optional[float]:
    """
    Width of the range as a percentage of price, rounded to 2 dp.

    Returns ``None`` while the inputs are incomplete: a bound unset (0),
    ``upper <= lower``, or no live price.
    """
    if not lower or not upper or upper <= lower or not current_price:
        return None
    return round(abs(upper - lower) / current_price * 100.0, 2)


def range_difficulty(width: float) -> str:
    """Label a relative width as ``"Hard"``, ``"Medium"`` or ``"Easy"``."""
    if width <= HARD_MAX_WIDTH:
        return "Hard"
    if width <= MEDIUM_MAX_WIDTH:
        return "Medium"
    return "Easy"
