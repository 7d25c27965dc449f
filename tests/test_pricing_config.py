"""
Tests for pricing constants and environment overrides
Run with: pytest tests/test_pricing_config.py -v
"""

import pytest

from rangebet.core.pricing_config import DEFAULT_CONSTANTS, PricingConstants

_ENV_VARS = [
    "CORRELATION_DISCOUNT", "PARLAY_BONUS_MIN_LEGS", "PARLAY_BONUS_MULTIPLIER",
    "HOUSE_EDGE_FACTOR", "OUTLIER_MOVE_THRESHOLD", "TAIL_FACTOR_CAP",
    "TAIL_WINDOW_DAYS", "MAX_LEG_PROBABILITY", "HISTORY_LOOKBACK_DAYS",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv first so teardown also removes anything load_dotenv writes
    for name in _ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path / ".env"


class TestDefaults:

    def test_house_constants(self):
        c = PricingConstants.default()
        assert c.correlation_discount == 0.83
        assert c.parlay_bonus_min_legs == 4
        assert c.parlay_bonus_multiplier == 1.05
        assert c.house_edge_factor == 0.93
        assert c.outlier_move_threshold == 0.10
        assert c.tail_factor_cap == 0.25
        assert c.tail_window_days == 90
        assert c.max_leg_probability == 0.25
        assert c.history_lookback_days == 90

    def test_module_default(self):
        assert DEFAULT_CONSTANTS == PricingConstants()

    def test_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_CONSTANTS.house_edge_factor = 1.0

    def test_rejects_non_positive(self):
        with pytest.raises(ValueError):
            PricingConstants(correlation_discount=0.0)

    def test_rejects_leg_cap_above_one(self):
        with pytest.raises(ValueError):
            PricingConstants(max_leg_probability=1.5)


class TestFromEnv:
    """Test env / .env overrides."""

    def test_no_overrides(self, clean_env):
        assert PricingConstants.from_env(str(clean_env)) == PricingConstants()

    def test_env_override(self, clean_env, monkeypatch):
        monkeypatch.setenv("CORRELATION_DISCOUNT", "0.9")
        monkeypatch.setenv("PARLAY_BONUS_MIN_LEGS", "3")
        c = PricingConstants.from_env(str(clean_env))
        assert c.correlation_discount == 0.9
        assert c.parlay_bonus_min_legs == 3
        assert isinstance(c.parlay_bonus_min_legs, int)

    def test_dotenv_file(self, clean_env):
        clean_env.write_text("HOUSE_EDGE_FACTOR=0.9\n")
        c = PricingConstants.from_env(str(clean_env))
        assert c.house_edge_factor == 0.9

    def test_environment_wins_over_dotenv(self, clean_env, monkeypatch):
        clean_env.write_text("HOUSE_EDGE_FACTOR=0.9\n")
        monkeypatch.setenv("HOUSE_EDGE_FACTOR", "0.95")
        c = PricingConstants.from_env(str(clean_env))
        assert c.house_edge_factor == 0.95

    def test_blank_value_ignored(self, clean_env, monkeypatch):
        monkeypatch.setenv("TAIL_FACTOR_CAP", "  ")
        assert PricingConstants.from_env(str(clean_env)).tail_factor_cap == 0.25

    def test_invalid_number(self, clean_env, monkeypatch):
        monkeypatch.setenv("HOUSE_EDGE_FACTOR", "lots")
        with pytest.raises(ValueError, match="HOUSE_EDGE_FACTOR"):
            PricingConstants.from_env(str(clean_env))

    def test_invalid_int(self, clean_env, monkeypatch):
        monkeypatch.setenv("TAIL_WINDOW_DAYS", "90.5")
        with pytest.raises(ValueError):
            PricingConstants.from_env(str(clean_env))

    def test_negative_override(self, clean_env, monkeypatch):
        monkeypatch.setenv("MAX_LEG_PROBABILITY", "-0.1")
        with pytest.raises(ValueError):
            PricingConstants.from_env(str(clean_env))
