"""
Tests for range-width admission control
Run with: pytest tests/test_range_validator.py -v
"""

import pytest

from rangebet.services.range_validator import (
    RangeOutOfBoundsError,
    range_difficulty,
    range_width_percent,
    require_valid_range,
    validate_range,
)

PRICE = 50_000.0


class TestValidateRange:
    """BTC 24-hour band is 1% - 12% of price."""

    def test_accepts_inside_band(self):
        result = validate_range("BTC", "24-hour", 49_000, 51_000, PRICE)
        assert result.accepted
        assert result.reason == "ok"
        assert result.width == pytest.approx(0.04)
        assert result.message == ""

    def test_accepts_exact_minimum(self):
        result = validate_range("BTC", "24-hour", 49_750, 50_250, PRICE)
        assert result.width == 0.01
        assert result.accepted

    def test_accepts_exact_maximum(self):
        result = validate_range("BTC", "24-hour", 47_000, 53_000, PRICE)
        assert result.width == 0.12
        assert result.accepted

    def test_rejects_below_minimum(self):
        result = validate_range("BTC", "24-hour", 49_800, 50_200, PRICE)
        assert not result.accepted
        assert result.reason == "below_min"
        assert "below the minimum" in result.message
        assert "1.0%" in result.message and "12.0%" in result.message

    def test_rejects_above_maximum(self):
        result = validate_range("BTC", "24-hour", 46_000, 54_000, PRICE)
        assert not result.accepted
        assert result.reason == "above_max"
        assert "above the maximum" in result.message
        assert result.allowed_percent == pytest.approx((1.0, 12.0))

    def test_bound_order_irrelevant(self):
        forward = validate_range("BTC", "24-hour", 49_000, 51_000, PRICE)
        reverse = validate_range("BTC", "24-hour", 51_000, 49_000, PRICE)
        assert forward.accepted and reverse.accepted
        assert forward.width == reverse.width

    def test_band_depends_on_asset_and_timeframe(self):
        # 8% is legal for DOGE 1-hour (1.5% - 10%) but not for BTC 1-hour (0.5% - 5%)
        assert validate_range("DOGE", "1-hour", 0.096, 0.104, 0.1).accepted
        assert not validate_range("BTC", "1-hour", 48_000, 52_000, PRICE).accepted

    @pytest.mark.parametrize("asset_id,timeframe", [
        ("BTC", "4-hour"),
        ("BTC", "48-hour"),
        ("ETH", "3-day"),
        ("SOL", "14-day"),
        ("XRP", "24-hour"),
        ("BTC", "2-hour"),
    ])
    def test_unconfigured_pair_always_rejected(self, asset_id, timeframe):
        result = validate_range(asset_id, timeframe, 49_000, 51_000, PRICE)
        assert not result.accepted
        assert result.reason == "unconfigured"
        assert result.allowed_percent is None

    def test_price_unavailable(self):
        result = validate_range("BTC", "24-hour", 49_000, 51_000, 0.0)
        assert not result.accepted
        assert result.reason == "price_unavailable"

    def test_equal_bounds_rejected(self):
        result = validate_range("BTC", "24-hour", 50_000, 50_000, PRICE)
        assert result.reason == "invalid_bounds"

    def test_non_positive_bounds_rejected(self):
        result = validate_range("BTC", "24-hour", -1_000, 1_000, PRICE)
        assert result.reason == "invalid_bounds"

    @pytest.mark.parametrize("lower,upper", [
        (None, 51_000), (49_000, None), (None, None), ("49000", 51_000),
    ])
    def test_unset_bounds_rejected_without_raising(self, lower, upper):
        result = validate_range("BTC", "24-hour", lower, upper, PRICE)
        assert not result.accepted
        assert result.reason == "invalid_bounds"

    def test_missing_price_rejected_without_raising(self):
        result = validate_range("BTC", "24-hour", 49_000, 51_000, None)
        assert result.reason == "price_unavailable"


class TestRejectionMessage:

    def test_below_minimum_wording(self):
        result = validate_range("BTC", "24-hour", 49_875, 50_125, PRICE)
        assert result.message == (
            "Invalid range width for BTC at 24-hour: 0.5% is below the minimum. "
            "Must be between 1.0% and 12.0% of price."
        )

    def test_above_maximum_wording(self):
        result = validate_range("BTC", "24-hour", 45_000, 55_000, PRICE)
        assert result.message == (
            "Invalid range width for BTC at 24-hour: 20.0% is above the maximum. "
            "Must be between 1.0% and 12.0% of price."
        )


class TestRequireValidRange:

    def test_returns_result_when_valid(self):
        assert require_valid_range("BTC", "24-hour", 49_000, 51_000, PRICE).accepted

    def test_raises_with_structured_result(self):
        with pytest.raises(RangeOutOfBoundsError) as exc_info:
            require_valid_range("BTC", "24-hour", 49_900, 50_100, PRICE)
        assert exc_info.value.validation.reason == "below_min"
        assert "Must be between 1.0% and 12.0% of price." in str(exc_info.value)


class TestDisplayHelpers:

    def test_width_percent(self):
        assert range_width_percent(49_000, 51_000, PRICE) == 4.0

    def test_width_percent_incomplete_inputs(self):
        assert range_width_percent(0, 51_000, PRICE) is None
        assert range_width_percent(51_000, 49_000, PRICE) is None
        assert range_width_percent(49_000, 51_000, 0) is None

    @pytest.mark.parametrize("width,label", [
        (0.01, "Hard"), (0.02, "Hard"), (0.03, "Medium"), (0.05, "Medium"), (0.08, "Easy"),
    ])
    def test_difficulty(self, width, label):
        assert range_difficulty(width) == label
