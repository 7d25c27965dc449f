"""
Tests for parlay_engine.py

Run with: pytest tests/test_parlay_engine.py -v
"""

import math

import pytest

from rangebet.core.pricing_config import PricingConstants
from rangebet.services.parlay_engine import (
    Leg,
    ParlayQuote,
    ParlayTicket,
    combine_leg_probabilities,
    format_parlay_ticket,
    quote_parlay,
)


def _make_leg(lower=49_000.0, upper=51_000.0, price=50_000.0, vol=0.02,
              asset_id="BTC", timeframe="24-hour", tier="Mega"):
    return Leg(
        asset_id=asset_id,
        timeframe=timeframe,
        lower_bound=lower,
        upper_bound=upper,
        snapshot_price=price,
        snapshot_volatility=vol,
        market_cap_tier=tier,
    )


class TestCombineLegProbabilities:
    """Test the aggregation formula."""

    def test_single_leg(self):
        quote = combine_leg_probabilities([0.2], bet_amount=100.0)
        assert quote.parlay_probability == pytest.approx(0.2 / 0.83)
        assert quote.raw_probability == pytest.approx(0.2)

    def test_single_leg_odds_and_payout(self):
        quote = combine_leg_probabilities([0.2], bet_amount=100.0)
        expected_odds = (1 / (0.2 / 0.83)) * 0.93
        assert quote.parlay_odds == pytest.approx(expected_odds)
        assert quote.total_payout == pytest.approx(100.0 * expected_odds)

    def test_three_legs_no_bonus(self):
        quote = combine_leg_probabilities([0.2, 0.2, 0.2], bet_amount=10.0)
        assert quote.parlay_probability == pytest.approx(0.008 / 0.83)

    def test_four_legs_get_bonus(self):
        quote = combine_leg_probabilities([0.2] * 4, bet_amount=10.0)
        assert quote.raw_probability == pytest.approx(0.0016)
        assert quote.parlay_probability == pytest.approx((0.0016 / 0.83) * 1.05)
        assert quote.parlay_probability == pytest.approx(0.002024, abs=1e-6)

    def test_zero_leg_voids_parlay(self):
        quote = combine_leg_probabilities([0.2, 0.0], bet_amount=100.0)
        assert quote.parlay_probability == 0.0
        assert quote.parlay_odds == 0.0
        assert quote.total_payout == 0.0
        assert quote.is_void

    def test_nan_leg_voids_parlay(self):
        quote = combine_leg_probabilities([0.2, math.nan, 0.2], bet_amount=100.0)
        assert quote.parlay_probability == 0.0
        assert quote.leg_probabilities == (0.2, 0.0, 0.2)

    def test_no_legs(self):
        quote = combine_leg_probabilities([], bet_amount=100.0)
        assert quote.num_legs == 0
        assert quote.parlay_probability == 0.0
        assert quote.parlay_odds == 0.0
        assert quote.total_payout == 0.0

    def test_aggregate_not_capped(self):
        """0.25 / 0.83 exceeds the per-leg cap and is reported as-is."""
        quote = combine_leg_probabilities([0.25], bet_amount=1.0)
        assert quote.parlay_probability == pytest.approx(0.25 / 0.83)
        assert quote.parlay_probability > 0.25

    def test_order_preserved(self):
        quote = combine_leg_probabilities([0.1, 0.2, 0.15], bet_amount=1.0)
        assert quote.leg_probabilities == (0.1, 0.2, 0.15)

    def test_commutative(self):
        a = combine_leg_probabilities([0.1, 0.2, 0.15], bet_amount=1.0)
        b = combine_leg_probabilities([0.15, 0.1, 0.2], bet_amount=1.0)
        assert a.parlay_probability == pytest.approx(b.parlay_probability)

    def test_custom_constants(self):
        constants = PricingConstants(correlation_discount=1.0, parlay_bonus_min_legs=2,
                                     parlay_bonus_multiplier=2.0, house_edge_factor=1.0)
        quote = combine_leg_probabilities([0.5, 0.5], bet_amount=1.0, constants=constants)
        assert quote.parlay_probability == pytest.approx(0.5)
        assert quote.parlay_odds == pytest.approx(2.0)


class TestLeg:
    """Test snapshot legs."""

    def test_probability_from_snapshot(self):
        assert _make_leg().probability() == 0.25

    def test_direction(self):
        assert _make_leg(50_500, 51_500).direction == "up"
        assert _make_leg(48_500, 49_500).direction == "down"
        assert _make_leg(49_000, 51_000).direction == "down"   # midpoint == price

    def test_immutable(self):
        leg = _make_leg()
        with pytest.raises(AttributeError):
            leg.snapshot_price = 60_000.0

    def test_unique_ids(self):
        assert _make_leg().leg_id != _make_leg().leg_id

    def test_describe(self):
        text = _make_leg(51_000, 49_000).describe()
        assert text.startswith("BTC | 24-hour | $49,000.00 - $51,000.00")


class TestQuoteParlay:
    """Test pricing legs from their snapshots."""

    def test_uses_each_legs_snapshot(self):
        narrow = _make_leg(49_950, 50_050)
        wide = _make_leg(49_000, 51_000)
        quote = quote_parlay([narrow, wide], bet_amount=50.0)
        assert quote.leg_probabilities == (narrow.probability(), wide.probability())
        expected = (narrow.probability() * wide.probability()) / 0.83
        assert quote.parlay_probability == pytest.approx(expected)

    def test_dead_snapshot_voids_ticket(self):
        unavailable = _make_leg(price=0.0)
        quote = quote_parlay([_make_leg(), unavailable], bet_amount=50.0)
        assert quote.parlay_probability == 0.0
        assert quote.total_payout == 0.0

    def test_empty(self):
        assert quote_parlay([], bet_amount=50.0).parlay_probability == 0.0

    def test_four_leg_bonus(self):
        legs = [_make_leg() for _ in range(4)]
        quote = quote_parlay(legs, bet_amount=100.0)
        assert quote.parlay_probability == pytest.approx((0.25 ** 4 / 0.83) * 1.05)


class TestFormatParlayTicket:

    def test_format_quote(self):
        legs = [_make_leg(), _make_leg()]
        quote = quote_parlay(legs, bet_amount=100.0)
        text = format_parlay_ticket(quote, legs)
        assert "2-Leg Range Parlay" in text
        assert "Win Probability" in text
        assert "BTC | 24-hour" in text

    def test_format_ticket(self):
        legs = (_make_leg(),)
        quote = quote_parlay(legs, bet_amount=100.0)
        ticket = ParlayTicket(legs=legs, bet_amount=100.0, quote=quote)
        text = format_parlay_ticket(ticket)
        assert "1-Leg Range Parlay" in text
        assert "$100.00" in text

    def test_format_void(self):
        quote = ParlayQuote((0.0,), 0.0, 0.0, 0.0, 0.0, 10.0)
        assert "n/a" in format_parlay_ticket(quote)
