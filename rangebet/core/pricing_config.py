"""Tunable pricing constants.

Every house constant the pricing pipeline uses lives on
:class:`PricingConstants`.  Pure functions take a ``constants`` argument
defaulting to :data:`DEFAULT_CONSTANTS`, so tests and library callers get the
literal production values without touching the environment.

Deployments override individual values through environment variables (or a
``.env`` file) via :meth:`PricingConstants.from_env`::

    CORRELATION_DISCOUNT=0.83
    PARLAY_BONUS_MIN_LEGS=4
    PARLAY_BONUS_MULTIPLIER=1.05
    HOUSE_EDGE_FACTOR=0.93
    OUTLIER_MOVE_THRESHOLD=0.10
    TAIL_FACTOR_CAP=0.25
    TAIL_WINDOW_DAYS=90
    MAX_LEG_PROBABILITY=0.25
    HISTORY_LOOKBACK_DAYS=90

None of these figures is calibrated against market data.  They are house
rules, and changing any of them reprices every open quote.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields

from dotenv import load_dotenv


@dataclass(frozen=True)
class PricingConstants:
    """Immutable bundle of pricing constants.

    Attributes:
        correlation_discount: Divisor applied to the independent-leg product.
            Legs are treated as positively correlated, so dividing by 0.83
            *raises* the reported parlay probability.
        parlay_bonus_min_legs: Leg count at which the size bonus kicks in.
        parlay_bonus_multiplier: Multiplier applied at or above that count.
        house_edge_factor: Fraction of fair odds paid out (0.93 = 7% edge).
        outlier_move_threshold: Absolute daily move counted as a tail day.
        tail_factor_cap: Ceiling on the volatility tail adjustment (+25%).
        tail_window_days: Fixed normaliser for the outlier count.  Applied
            even when fewer samples were fetched.
        max_leg_probability: Ceiling on any single leg's win probability.
        history_lookback_days: Price-history window requested from the
            history source.
    """

    correlation_discount: float = 0.83
    parlay_bonus_min_legs: int = 4
    parlay_bonus_multiplier: float = 1.05
    house_edge_factor: float = 0.93
    outlier_move_threshold: float = 0.10
    tail_factor_cap: float = 0.25
    tail_window_days: int = 90
    max_leg_probability: float = 0.25
    history_lookback_days: int = 90

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not value > 0:
                raise ValueError(f"{f.name} must be positive, got {value!r}")
        if self.max_leg_probability > 1.0:
            raise ValueError(
                f"max_leg_probability must be <= 1.0, got {self.max_leg_probability!r}"
            )

    @classmethod
    def default(cls) -> PricingConstants:
        return cls()

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> PricingConstants:
        """Build constants from the environment, falling back to defaults.

        Variable names are the upper-cased field names.  A ``.env`` file is
        loaded first (existing environment variables win).

        Raises:
            ValueError: If an override is not a number or fails validation.
        """
        load_dotenv(dotenv_path)
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            cast = int if f.type in (int, "int") else float
            try:
                overrides[f.name] = cast(raw)
            except ValueError:
                raise ValueError(
                    f"{f.name.upper()}={raw!r} is not a valid {cast.__name__}"
                ) from None
        return cls(**overrides)


DEFAULT_CONSTANTS = PricingConstants()
