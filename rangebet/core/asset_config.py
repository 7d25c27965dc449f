"""Asset-level configuration: all asset- and timeframe-specific constants.

This module is the **registry** for every constant that differs between
assets or timeframes.  Nowhere else in the codebase should baseline
volatilities, range-width bands, or tier multipliers be hard-coded.

Architecture
------------
:class:`AssetConfig` is a frozen dataclass carrying the reference data for
one tradable asset.  Named constructors (:meth:`AssetConfig.bitcoin`,
:meth:`AssetConfig.ethereum`, ...) return pre-populated instances and
:data:`ASSETS` is the read-only registry keyed by asset id.  To add an asset:

1. Add a ``@classmethod`` constructor here.
2. Register it in :data:`ASSETS`.
3. Add its row to :data:`RANGE_WIDTHS`.  An asset with no bands can be
   quoted but never admitted as a leg.

Typical usage::

    from rangebet.core.asset_config import get_asset, range_band

    btc = get_asset("BTC")
    band = range_band("BTC", "24-hour")     # RangeWidthBand(0.01, 0.12)
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Literal, Mapping, Optional


# ---------------------------------------------------------------------------
# Market-cap tiers
# ---------------------------------------------------------------------------

MarketCapTier = Literal["Mega", "Large", "Mid", "Small", "Micro"]

#: Risk multiplier applied to the expiry-price spread per market-cap tier.
#: Larger caps move less per unit of quoted volatility.
TIER_MULTIPLIERS: Final[Mapping[str, float]] = MappingProxyType({
    "Mega": 0.8,
    "Large": 0.9,
    "Mid": 1.0,
    "Small": 1.1,
    "Micro": 1.2,
})

#: Multiplier used for a tier missing from :data:`TIER_MULTIPLIERS`.
DEFAULT_TIER_MULTIPLIER: Final[float] = 1.0


def tier_multiplier(tier: Optional[str]) -> float:
    """Return the risk multiplier for *tier* (1.0 when unknown)."""
    if tier is None:
        return DEFAULT_TIER_MULTIPLIER
    return TIER_MULTIPLIERS.get(tier, DEFAULT_TIER_MULTIPLIER)


# ---------------------------------------------------------------------------
# Timeframes
# ---------------------------------------------------------------------------

#: Timeframe label → duration in hours.
TIMEFRAME_HOURS: Final[Mapping[str, int]] = MappingProxyType({
    "1-hour": 1,
    "4-hour": 4,
    "24-hour": 24,
    "48-hour": 48,
    "3-day": 72,
    "7-day": 168,
    "14-day": 336,
    "30-day": 720,
})


def timeframe_hours(label: str) -> Optional[int]:
    """Return the duration of *label* in hours, or ``None`` if unknown."""
    return TIMEFRAME_HOURS.get(label)


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------


class UnknownAssetError(KeyError):
    """Raised when an asset id is not in the registry."""


@dataclass(frozen=True)
class AssetConfig:
    """Immutable reference data for a single asset.

    Attributes:
        asset_id: Ticker used in API routes and leg records (``"BTC"``).
        name: Human-readable name for logging and display.
        source_key: Identifier passed to the external price source
            (CoinGecko-style coin id, e.g. ``"bitcoin"``).
        baseline_volatility: Static daily volatility used whenever the
            live estimate from price history is unavailable.
        market_cap_tier: Coarse size bucket; selects the risk multiplier
            in :data:`TIER_MULTIPLIERS`.
    """

    asset_id: str
    name: str
    source_key: str
    baseline_volatility: float
    market_cap_tier: MarketCapTier

    # ------------------------------------------------------------------ #
    #  Named constructors                                                  #
    # ------------------------------------------------------------------ #

    @classmethod
    def bitcoin(cls) -> AssetConfig:
        return cls("BTC", "Bitcoin", "bitcoin", 0.02, "Mega")

    @classmethod
    def ethereum(cls) -> AssetConfig:
        return cls("ETH", "Ethereum", "ethereum", 0.025, "Large")

    @classmethod
    def solana(cls) -> AssetConfig:
        return cls("SOL", "Solana", "solana", 0.035, "Mid")

    @classmethod
    def chainlink(cls) -> AssetConfig:
        return cls("LINK", "Chainlink", "chainlink", 0.04, "Small")

    @classmethod
    def dogecoin(cls) -> AssetConfig:
        return cls("DOGE", "Dogecoin", "dogecoin", 0.06, "Micro")

    # ------------------------------------------------------------------ #
    #  Convenience accessors                                               #
    # ------------------------------------------------------------------ #

    @property
    def risk_multiplier(self) -> float:
        """Tier multiplier for this asset."""
        return tier_multiplier(self.market_cap_tier)

    def __repr__(self) -> str:
        return (
            f"AssetConfig(asset_id={self.asset_id!r}, "
            f"tier={self.market_cap_tier}, "
            f"baseline_vol={self.baseline_volatility})"
        )


#: Registry of supported assets, keyed by asset id.
ASSETS: Final[Mapping[str, AssetConfig]] = MappingProxyType({
    cfg.asset_id: cfg
    for cfg in (
        AssetConfig.bitcoin(),
        AssetConfig.ethereum(),
        AssetConfig.solana(),
        AssetConfig.chainlink(),
        AssetConfig.dogecoin(),
    )
})


def get_asset(asset_id: str) -> AssetConfig:
    """Look up an asset by id.

    Raises:
        UnknownAssetError: If *asset_id* is not registered.
    """
    try:
        return ASSETS[asset_id]
    except KeyError:
        raise UnknownAssetError(asset_id) from None


# ---------------------------------------------------------------------------
# Range-width bands
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RangeWidthBand:
    """Allowed relative width of a target range, as fractions of price.

    Both ends are inclusive.  Construction enforces ``0 < min < max``.
    """

    min_width: float
    max_width: float

    def __post_init__(self) -> None:
        if not 0.0 < self.min_width < self.max_width:
            raise ValueError(
                f"RangeWidthBand requires 0 < min < max, got "
                f"min={self.min_width!r} max={self.max_width!r}"
            )

    def contains(self, width: float) -> bool:
        return self.min_width <= width <= self.max_width

    def as_percent(self) -> tuple[float, float]:
        """``(min, max)`` expressed as percentages of price."""
        return self.min_width * 100.0, self.max_width * 100.0


def _bands(table: dict[str, tuple[float, float]]) -> Mapping[str, RangeWidthBand]:
    return MappingProxyType({tf: RangeWidthBand(lo, hi) for tf, (lo, hi) in table.items()})


#: (asset id, timeframe) → allowed width band.  Only 1-hour, 24-hour,
#: 7-day and 30-day are configured; every other timeframe is rejected.
RANGE_WIDTHS: Final[Mapping[str, Mapping[str, RangeWidthBand]]] = MappingProxyType({
    "BTC": _bands({
        "1-hour": (0.005, 0.05),
        "24-hour": (0.01, 0.12),
        "7-day": (0.015, 0.18),
        "30-day": (0.025, 0.25),
    }),
    "ETH": _bands({
        "1-hour": (0.0075, 0.06),
        "24-hour": (0.015, 0.15),
        "7-day": (0.025, 0.22),
        "30-day": (0.035, 0.30),
    }),
    "SOL": _bands({
        "1-hour": (0.01, 0.07),
        "24-hour": (0.02, 0.17),
        "7-day": (0.03, 0.25),
        "30-day": (0.04, 0.35),
    }),
    "LINK": _bands({
        "1-hour": (0.01, 0.08),
        "24-hour": (0.02, 0.18),
        "7-day": (0.03, 0.26),
        "30-day": (0.04, 0.36),
    }),
    "DOGE": _bands({
        "1-hour": (0.015, 0.10),
        "24-hour": (0.025, 0.20),
        "7-day": (0.035, 0.30),
        "30-day": (0.05, 0.40),
    }),
})


def range_band(asset_id: str, timeframe: str) -> Optional[RangeWidthBand]:
    """Return the configured band, or ``None`` for an unconfigured pair."""
    return RANGE_WIDTHS.get(asset_id, {}).get(timeframe)
