"""
Multi-leg range parlay pricing.

Combines independently priced range legs into a single parlay quote.
Every leg is priced from the price/volatility snapshot captured when it was
admitted, never from a later live price, so an accepted leg keeps its
economics for the life of the ticket.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence, Tuple, Union

from rangebet.core.asset_config import MarketCapTier
from rangebet.core.odds_math import (
    decimal_odds_from_probability,
    decimal_to_american,
    total_payout,
)
from rangebet.core.pricing_config import DEFAULT_CONSTANTS, PricingConstants
from rangebet.services.probability import range_probability

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Leg:
    """A single range bet with the market snapshot it was accepted at."""

    asset_id: str
    timeframe: str
    lower_bound: float
    upper_bound: float
    snapshot_price: float
    snapshot_volatility: float
    market_cap_tier: MarketCapTier
    leg_id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def midpoint(self) -> float:
        return (self.lower_bound + self.upper_bound) / 2.0

    @property
    def direction(self) -> str:
        """``"up"`` when the range sits above the snapshot price, else ``"down"``."""
        return "up" if self.midpoint > self.snapshot_price else "down"

    def probability(self, constants: PricingConstants = DEFAULT_CONSTANTS) -> float:
        """Win probability from this leg's own snapshot."""
        return range_probability(
            self.snapshot_price,
            self.lower_bound,
            self.upper_bound,
            self.snapshot_volatility,
            self.timeframe,
            self.market_cap_tier,
            constants,
        )

    def describe(self) -> str:
        lo, hi = sorted((self.lower_bound, self.upper_bound))
        arrow = "↑" if self.direction == "up" else "↓"
        return f"{self.asset_id} | {self.timeframe} | ${lo:,.2f} - ${hi:,.2f} {arrow}"


@dataclass(frozen=True)
class ParlayQuote:
    """Combined pricing for an ordered set of legs."""

    leg_probabilities: Tuple[float, ...]
    raw_probability: float
    parlay_probability: float
    parlay_odds: float
    total_payout: float
    bet_amount: float

    @property
    def num_legs(self) -> int:
        return len(self.leg_probabilities)

    @property
    def is_void(self) -> bool:
        return self.parlay_probability == 0.0


@dataclass(frozen=True)
class ParlayTicket:
    """A placed parlay.  Immutable once created."""

    legs: Tuple[Leg, ...]
    bet_amount: float
    quote: ParlayQuote
    placed_at: datetime = field(default_factory=_utcnow)
    ticket_id: str = field(default_factory=_new_id)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def combine_leg_probabilities(
    leg_probabilities: Iterable[float],
    bet_amount: float,
    constants: PricingConstants = DEFAULT_CONSTANTS,
) -> ParlayQuote:
    """
    Aggregate per-leg probabilities into a parlay quote.

    Steps:
        1. Product of leg probabilities (independence).  Any leg at 0 or NaN
           voids the parlay immediately.
        2. Divide by the correlation discount (0.83).
        3. Multiply by the size bonus (1.05) at 4+ legs.
        4. Odds = (1 / p) · house edge; 0 for a void parlay.
        5. Payout = bet_amount · odds.

    The combined probability is *not* re-capped at the per-leg ceiling.

    Args:
        leg_probabilities: Per-leg probabilities in ticket order.
        bet_amount: Stake.  Non-positive stakes quote a zero payout.
        constants: Discount, bonus and house-edge constants.

    Returns:
        :class:`ParlayQuote`; zero legs yields an all-zero quote.
    """
    probs = tuple(leg_probabilities)

    raw = 1.0 if probs else 0.0
    for p in probs:
        if p is None or math.isnan(p) or p <= 0.0:
            raw = 0.0
            break
        raw *= p

    bonus = (
        constants.parlay_bonus_multiplier
        if len(probs) >= constants.parlay_bonus_min_legs
        else 1.0
    )
    parlay_prob = (raw / constants.correlation_discount) * bonus

    if parlay_prob > constants.max_leg_probability:
        logger.warning(
            "Parlay probability %.4f exceeds per-leg cap %.2f (%d legs); not capped",
            parlay_prob, constants.max_leg_probability, len(probs),
        )

    odds = decimal_odds_from_probability(parlay_prob, constants.house_edge_factor)
    return ParlayQuote(
        leg_probabilities=tuple(0.0 if p is None or math.isnan(p) else p for p in probs),
        raw_probability=raw,
        parlay_probability=parlay_prob,
        parlay_odds=odds,
        total_payout=total_payout(bet_amount, odds),
        bet_amount=bet_amount,
    )


def quote_parlay(
    legs: Sequence[Leg],
    bet_amount: float,
    constants: PricingConstants = DEFAULT_CONSTANTS,
) -> ParlayQuote:
    """
    Price each leg from its snapshot (in order) and aggregate.

    Args:
        legs: Ticket legs.  Order is preserved in the quote.
        bet_amount: Stake.
        constants: Pricing constants.

    Returns:
        :class:`ParlayQuote`.
    """
    leg_probs = []
    for leg in legs:
        p = leg.probability(constants)
        logger.debug("Leg %s priced at %.6f", leg.describe(), p)
        leg_probs.append(p)

    quote = combine_leg_probabilities(leg_probs, bet_amount, constants)
    logger.debug(
        "Parlay of %d legs: p=%.6f odds=%.2fx payout=%.2f",
        quote.num_legs, quote.parlay_probability, quote.parlay_odds, quote.total_payout,
    )
    return quote


def format_parlay_ticket(parlay: Union[ParlayTicket, ParlayQuote], legs: Optional[Sequence[Leg]] = None) -> str:
    """
    Format a parlay for human-readable display.

    Args:
        parlay: A placed :class:`ParlayTicket` or a bare :class:`ParlayQuote`.
        legs: Legs to list when *parlay* is a bare quote.

    Returns:
        Formatted string for display
    """
    if isinstance(parlay, ParlayTicket):
        quote, legs = parlay.quote, parlay.legs
    else:
        quote = parlay
    legs = legs or ()

    if quote.parlay_odds > 1.0:
        american = f"{decimal_to_american(quote.parlay_odds):+d}"
    else:
        american = "n/a"

    lines = []
    lines.append(f"🎫 {quote.num_legs}-Leg Range Parlay @ {quote.parlay_odds:.2f}x ({american})")
    for leg in legs:
        lines.append(f"   {leg.describe()}")
    lines.append(f"   Win Probability: {quote.parlay_probability:.2%}")
    lines.append(f"   Bet: ${quote.bet_amount:,.2f} | Total Payout: ${quote.total_payout:,.2f}")

    return "\n".join(lines)
