"""
Pydantic request/response schemas for the range parlay API.

Using explicit schemas instead of raw dicts rejects malformed numbers at
the edge and generates accurate OpenAPI docs.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from rangebet.core.asset_config import TIMEFRAME_HOURS


def _known_timeframe(v: str) -> str:
    if v not in TIMEFRAME_HOURS:
        raise ValueError(
            f"Unknown timeframe {v!r}. Expected one of: {', '.join(TIMEFRAME_HOURS)}"
        )
    return v


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

class RangeBandResponse(BaseModel):
    timeframe: str
    min_pct: float
    max_pct: float


class AssetResponse(BaseModel):
    asset_id: str
    name: str
    source_key: str
    baseline_volatility: float
    market_cap_tier: str
    range_bands: List[RangeBandResponse]


class TimeframeResponse(BaseModel):
    label: str
    hours: int


# ---------------------------------------------------------------------------
# Range validation
# ---------------------------------------------------------------------------

class RangeValidateRequest(BaseModel):
    """Payload for POST /api/ranges/validate."""

    asset_id: str = Field(..., min_length=1, max_length=16, description='e.g. "BTC"')
    timeframe: str = Field(..., description='e.g. "24-hour"')
    lower_bound: float = Field(..., gt=0)
    upper_bound: float = Field(..., gt=0)
    current_price: float = Field(..., ge=0, description="0 = live price unavailable")

    model_config = {
        "json_schema_extra": {
            "example": {
                "asset_id": "BTC",
                "timeframe": "24-hour",
                "lower_bound": 49000,
                "upper_bound": 51000,
                "current_price": 50000,
            }
        }
    }


class RangeValidateResponse(BaseModel):
    accepted: bool
    reason: str
    width_pct: Optional[float] = None
    allowed_min_pct: Optional[float] = None
    allowed_max_pct: Optional[float] = None
    difficulty: Optional[str] = None
    message: str = ""


# ---------------------------------------------------------------------------
# Leg and parlay quotes
# ---------------------------------------------------------------------------

class LegSnapshot(BaseModel):
    """
    A leg with the market snapshot captured when it was accepted.

    Quotes are always computed from ``snapshot_price`` and
    ``snapshot_volatility``; the API never substitutes a newer price.
    """

    asset_id: str = Field(..., min_length=1, max_length=16)
    timeframe: str
    lower_bound: float = Field(..., gt=0)
    upper_bound: float = Field(..., gt=0)
    snapshot_price: float = Field(..., ge=0, description="0 = price unavailable")
    snapshot_volatility: Optional[float] = Field(
        None, ge=0, description="Daily volatility; omitted = asset baseline"
    )

    @field_validator("timeframe")
    @classmethod
    def validate_timeframe(cls, v: str) -> str:
        return _known_timeframe(v)


class LegQuoteResponse(BaseModel):
    asset_id: str
    timeframe: str
    probability: float
    decimal_odds: float
    direction: str
    volatility_used: float


class ParlayQuoteRequest(BaseModel):
    """Payload for POST /api/parlays/quote."""

    legs: List[LegSnapshot] = Field(..., max_length=20)
    bet_amount: float = Field(..., gt=0)

    model_config = {
        "json_schema_extra": {
            "example": {
                "bet_amount": 100,
                "legs": [
                    {
                        "asset_id": "BTC",
                        "timeframe": "24-hour",
                        "lower_bound": 49000,
                        "upper_bound": 51000,
                        "snapshot_price": 50000,
                        "snapshot_volatility": 0.02,
                    }
                ],
            }
        }
    }


class ParlayQuoteResponse(BaseModel):
    num_legs: int
    legs: List[LegQuoteResponse]
    parlay_probability: float
    parlay_odds: float
    parlay_american_odds: Optional[int] = None
    bet_amount: float
    total_payout: float


# ---------------------------------------------------------------------------
# Volatility
# ---------------------------------------------------------------------------

class VolatilityRequest(BaseModel):
    """Payload for POST /api/volatility/estimate.  Closes oldest first."""

    asset_id: str = Field(..., min_length=1, max_length=16)
    closes: List[float] = Field(default_factory=list, max_length=2000)


class VolatilityResponse(BaseModel):
    asset_id: str
    daily_volatility: float
    is_fallback: bool
    sample_count: int
    outlier_count: int
    tail_factor: float


# ---------------------------------------------------------------------------
# Price feed
# ---------------------------------------------------------------------------

class PriceUpdateRequest(BaseModel):
    """Payload for PUT /api/prices/{asset_id}."""

    price: float = Field(..., gt=0)
    closes: Optional[List[float]] = Field(
        None, max_length=2000, description="Daily closes, oldest first; replaces stored history"
    )


class PriceUpdateResponse(BaseModel):
    asset_id: str
    price: float
    history_points: int


# ---------------------------------------------------------------------------
# Ticket builder
# ---------------------------------------------------------------------------

class AddLegRequest(BaseModel):
    """Payload for POST /api/ticket/legs.  The live price is read server-side."""

    asset_id: str = Field(..., min_length=1, max_length=16)
    timeframe: str
    lower_bound: float = Field(..., gt=0)
    upper_bound: float = Field(..., gt=0)

    @field_validator("timeframe")
    @classmethod
    def validate_timeframe(cls, v: str) -> str:
        return _known_timeframe(v)


class LegResponse(BaseModel):
    leg_id: str
    asset_id: str
    timeframe: str
    lower_bound: float
    upper_bound: float
    snapshot_price: float
    snapshot_volatility: float
    market_cap_tier: str
    direction: str
    probability: float
    description: str
    created_at: datetime


class PlaceBetRequest(BaseModel):
    bet_amount: float = Field(..., gt=0)


class TicketResponse(BaseModel):
    ticket_id: str
    placed_at: datetime
    bet_amount: float
    legs: List[LegResponse]
    quote: ParlayQuoteResponse
    summary: str
