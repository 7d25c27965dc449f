"""
Parlay ticket construction and placed-ticket history.

:class:`TicketBuilder` owns the pending legs of one user's ticket and the
append-only history of placed tickets.  It is the only place legs are
created, and every leg passes range validation first.  When a leg is added
the builder captures the live price and the resolved volatility into the
leg itself; all later quotes reuse that snapshot.
"""

import logging
import math
from typing import List, Optional, Tuple

from rangebet.core.asset_config import get_asset
from rangebet.core.feed_interface import (
    DataUnavailableError,
    LivePriceSource,
    PriceHistorySource,
    StaticPriceFeed,
)
from rangebet.core.pricing_config import DEFAULT_CONSTANTS, PricingConstants
from rangebet.services.parlay_engine import Leg, ParlayQuote, ParlayTicket, quote_parlay
from rangebet.services.range_validator import require_valid_range
from rangebet.services.volatility import resolve_volatility

logger = logging.getLogger(__name__)


class TicketBuilder:
    """
    Builds a parlay ticket leg by leg and records placed tickets.

    Not thread-safe; one builder per user session.
    """

    def __init__(
        self,
        price_source: LivePriceSource,
        history_source: Optional[PriceHistorySource] = None,
        constants: PricingConstants = DEFAULT_CONSTANTS,
    ):
        if not isinstance(price_source, LivePriceSource):
            raise TypeError(
                f"price_source must be a LivePriceSource, got {type(price_source).__name__}"
            )
        if history_source is not None and not isinstance(history_source, PriceHistorySource):
            raise TypeError(
                f"history_source must be a PriceHistorySource, got {type(history_source).__name__}"
            )
        self.price_source = price_source
        self.history_source = history_source
        self.constants = constants

        self._legs: List[Leg] = []
        self._history: List[ParlayTicket] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def legs(self) -> Tuple[Leg, ...]:
        return tuple(self._legs)

    @property
    def history(self) -> Tuple[ParlayTicket, ...]:
        """Placed tickets, newest first."""
        return tuple(self._history)

    # ------------------------------------------------------------------
    # Leg management
    # ------------------------------------------------------------------

    def add_leg(self, asset_id: str, timeframe: str, lower: float, upper: float) -> Leg:
        """
        Validate a range and append it to the ticket as a new leg.

        Raises:
            UnknownAssetError: Asset id not registered.
            RangeOutOfBoundsError: Live price unavailable, or the range fails
                the width check.  No leg is created.
        """
        asset = get_asset(asset_id)

        try:
            price = self.price_source.get_price(asset)
        except DataUnavailableError as exc:
            logger.warning("Live price unavailable for %s: %s", asset_id, exc)
            price = 0.0

        require_valid_range(asset_id, timeframe, lower, upper, price)

        vol = resolve_volatility(asset, self.history_source, self.constants)

        leg = Leg(
            asset_id=asset_id,
            timeframe=timeframe,
            lower_bound=float(lower),
            upper_bound=float(upper),
            snapshot_price=price,
            snapshot_volatility=vol.daily_volatility,
            market_cap_tier=asset.market_cap_tier,
        )
        self._legs.append(leg)
        logger.info(
            "Added leg %s (vol %.4f%s, p=%.4f)",
            leg.describe(), vol.daily_volatility,
            " baseline" if vol.is_fallback else "",
            leg.probability(self.constants),
        )
        return leg

    def remove_leg(self, leg_id: str) -> Leg:
        """
        Remove a pending leg by id.

        Raises:
            KeyError: No pending leg with that id.
        """
        for i, leg in enumerate(self._legs):
            if leg.leg_id == leg_id:
                return self._legs.pop(i)
        raise KeyError(leg_id)

    def clear(self) -> None:
        self._legs.clear()

    # ------------------------------------------------------------------
    # Pricing and placement
    # ------------------------------------------------------------------

    def quote(self, bet_amount: float) -> ParlayQuote:
        """Quote the pending legs from their snapshots."""
        return quote_parlay(self._legs, bet_amount, self.constants)

    def place_bet(self, bet_amount: float) -> ParlayTicket:
        """
        Finalise the pending legs into a ticket and clear the builder.

        Raises:
            ValueError: No legs, or a non-positive / non-finite bet amount.
        """
        if not self._legs:
            raise ValueError("Cannot place a parlay with no legs")
        if not math.isfinite(bet_amount) or bet_amount <= 0:
            raise ValueError(f"Bet amount must be positive, got {bet_amount!r}")

        ticket = ParlayTicket(
            legs=tuple(self._legs),
            bet_amount=bet_amount,
            quote=self.quote(bet_amount),
        )
        self._history.insert(0, ticket)
        self._legs.clear()

        logger.info(
            "Placed ticket %s: %d legs, $%.2f @ %.2fx (p=%.6f)",
            ticket.ticket_id, ticket.quote.num_legs, bet_amount,
            ticket.quote.parlay_odds, ticket.quote.parlay_probability,
        )
        return ticket


# ---------------------------------------------------------------------------
# Singletons
# ---------------------------------------------------------------------------

_price_feed: Optional[StaticPriceFeed] = None
_ticket_builder: Optional[TicketBuilder] = None


def get_price_feed() -> StaticPriceFeed:
    """Process-wide price store; prices and closes are pushed in by the API."""
    global _price_feed
    if _price_feed is None:
        _price_feed = StaticPriceFeed()
    return _price_feed


def get_ticket_builder() -> TicketBuilder:
    global _ticket_builder
    if _ticket_builder is None:
        feed = get_price_feed()
        _ticket_builder = TicketBuilder(
            price_source=feed,
            history_source=feed,
            constants=PricingConstants.from_env(),
        )
    return _ticket_builder
