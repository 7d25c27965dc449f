"""
Range probability model.

Estimates the probability that an asset's price at expiry lands inside
[lower, upper], given the current price and a daily volatility:

    tail_risk = 1 + sqrt(|U - L| / P)
    std_dev   = P · v · sqrt(hours / 24) · tier_mult · tail_risk
    p         = CDF((max - P) / std_dev) - CDF((min - P) / std_dev)

CDF is the tanh surrogate from :mod:`rangebet.core.odds_math`.  The result
is capped at 25%: no single leg is ever quoted as better than a 1-in-4 shot.

The tail-risk factor widens the distribution as the range widens.  It is a
fat-tail heuristic, so the model is not a calibrated option price; it is
deterministic and bounded, and that is what the odds depend on.

Degenerate inputs (no price, zero spread, unknown timeframe, NaN anywhere)
price the leg at exactly 0.0 so the parlay aggregator voids the ticket.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from rangebet.core.asset_config import tier_multiplier, timeframe_hours
from rangebet.core.odds_math import decimal_odds_from_probability, surrogate_normal_cdf
from rangebet.core.pricing_config import DEFAULT_CONSTANTS, PricingConstants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegQuote:
    """Per-leg output: win probability and house-edged decimal odds."""

    probability: float
    decimal_odds: float


def _finite(*values: float) -> bool:
    try:
        return all(math.isfinite(v) for v in values)
    except TypeError:
        return False


def expiry_std_dev(
    price: float,
    lower: float,
    upper: float,
    volatility: float,
    hours: float,
    tier: Optional[str],
) -> float:
    """Standard deviation of the expiry price, in price units."""
    tail_risk = 1.0 + math.sqrt(abs(upper - lower) / price)
    return price * volatility * math.sqrt(hours / 24.0) * tier_multiplier(tier) * tail_risk


def range_probability(
    price: float,
    lower: float,
    upper: float,
    volatility: float,
    timeframe: str,
    tier: Optional[str],
    constants: PricingConstants = DEFAULT_CONSTANTS,
) -> float:
    """
    Probability that the price at expiry lands within the range.

    Args:
        price: Current (snapshot) price.
        lower: One bound of the range; bound order does not matter.
        upper: The other bound.
        volatility: Daily volatility as a fraction (0.02 = 2%).
        timeframe: Timeframe label, e.g. ``"24-hour"``.
        tier: Market-cap tier; unknown tiers use multiplier 1.0.
        constants: Supplies the per-leg probability cap.

    Returns:
        Probability in ``[0, max_leg_probability]``.  Never NaN, never raises.
    """
    hours = timeframe_hours(timeframe)
    if hours is None:
        logger.warning("Unknown timeframe %r: leg priced at 0", timeframe)
        return 0.0

    if not _finite(price, lower, upper, volatility) or price <= 0:
        return 0.0

    std_dev = expiry_std_dev(price, lower, upper, volatility, hours, tier)
    if not math.isfinite(std_dev) or std_dev <= 0.0:
        return 0.0

    z_low = (min(lower, upper) - price) / std_dev
    z_high = (max(lower, upper) - price) / std_dev
    probability = surrogate_normal_cdf(z_high) - surrogate_normal_cdf(z_low)

    if not math.isfinite(probability) or probability <= 0.0:
        return 0.0

    capped = min(probability, constants.max_leg_probability)
    logger.debug(
        "Range [%.6g, %.6g] @ %.6g %s: sd=%.6g z=(%.4f, %.4f) p=%.6f (capped %.6f)",
        min(lower, upper), max(lower, upper), price, timeframe,
        std_dev, z_low, z_high, probability, capped,
    )
    return capped


def quote_range(
    price: float,
    lower: float,
    upper: float,
    volatility: float,
    timeframe: str,
    tier: Optional[str],
    constants: PricingConstants = DEFAULT_CONSTANTS,
) -> LegQuote:
    """Probability plus single-leg decimal odds (house edge applied)."""
    p = range_probability(price, lower, upper, volatility, timeframe, tier, constants)
    return LegQuote(
        probability=p,
        decimal_odds=decimal_odds_from_probability(p, constants.house_edge_factor),
    )
