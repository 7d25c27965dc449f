"""
FastAPI application for the range parlay pricing engine.

Two surfaces share the pricing core:

* Stateless quotes: reference data, range validation, leg and parlay
  quotes computed from snapshot values posted by the caller, and volatility
  estimation over a posted series.
* The ticket builder: live prices (and optional daily closes) are pushed to
  ``/api/prices``; legs are admitted against that price, snapshotted, quoted
  and placed.  Placed tickets are kept in memory, newest first.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from rangebet import __version__
from rangebet.core.asset_config import (
    ASSETS,
    RANGE_WIDTHS,
    TIMEFRAME_HOURS,
    UnknownAssetError,
    get_asset,
)
from rangebet.core.feed_interface import PricePoint, StaticPriceFeed
from rangebet.core.odds_math import decimal_odds_from_probability, decimal_to_american
from rangebet.core.pricing_config import PricingConstants
from rangebet.schemas import (
    AddLegRequest,
    AssetResponse,
    LegQuoteResponse,
    LegResponse,
    LegSnapshot,
    ParlayQuoteRequest,
    ParlayQuoteResponse,
    PlaceBetRequest,
    PriceUpdateRequest,
    PriceUpdateResponse,
    RangeBandResponse,
    RangeValidateRequest,
    RangeValidateResponse,
    TicketResponse,
    TimeframeResponse,
    VolatilityRequest,
    VolatilityResponse,
)
from rangebet.services.parlay_engine import (
    Leg,
    ParlayQuote,
    ParlayTicket,
    format_parlay_ticket,
    quote_parlay,
)
from rangebet.services.probability import quote_range
from rangebet.services.range_validator import (
    RangeOutOfBoundsError,
    RangeValidation,
    range_difficulty,
    validate_range,
)
from rangebet.services.ticket_builder import TicketBuilder, get_price_feed, get_ticket_builder
from rangebet.services.volatility import volatility_from_closes
# Logging setup
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

CONSTANTS = PricingConstants.from_env()

app = FastAPI(
    title="Range Parlay Engine",
    description="Range-betting probability and parlay odds engine",
    version=__version__,
)

# CORS (adjust origins for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _asset_or_404(asset_id: str):
    try:
        return get_asset(asset_id)
    except UnknownAssetError:
        raise HTTPException(status_code=404, detail=f"Unknown asset {asset_id!r}")


def _range_violation(result: RangeValidation, leg_index: Optional[int] = None) -> HTTPException:
    """422 carrying the structured width violation."""
    lo_pct, hi_pct = result.allowed_percent or (None, None)
    detail = {
        "reason": result.reason,
        "message": result.message,
        "allowed_min_pct": lo_pct,
        "allowed_max_pct": hi_pct,
    }
    if leg_index is not None:
        detail["leg_index"] = leg_index
    return HTTPException(status_code=422, detail=detail)


def _snapshot_leg(snap: LegSnapshot, leg_index: Optional[int] = None) -> Leg:
    """Build a leg from a posted snapshot after the range-width check."""
    asset = _asset_or_404(snap.asset_id)
    result = validate_range(
        asset.asset_id, snap.timeframe, snap.lower_bound, snap.upper_bound, snap.snapshot_price,
    )
    if not result.accepted:
        raise _range_violation(result, leg_index)

    vol = snap.snapshot_volatility
    if vol is None:
        vol = asset.baseline_volatility
    return Leg(
        asset_id=asset.asset_id,
        timeframe=snap.timeframe,
        lower_bound=snap.lower_bound,
        upper_bound=snap.upper_bound,
        snapshot_price=snap.snapshot_price,
        snapshot_volatility=vol,
        market_cap_tier=asset.market_cap_tier,
    )


def _parlay_response(
    legs: Sequence[Leg], quote: ParlayQuote, constants: PricingConstants,
) -> ParlayQuoteResponse:
    american = None
    if quote.parlay_odds > 1.0:
        american = decimal_to_american(quote.parlay_odds)

    leg_quotes = [
        LegQuoteResponse(
            asset_id=leg.asset_id,
            timeframe=leg.timeframe,
            probability=p,
            decimal_odds=decimal_odds_from_probability(p, constants.house_edge_factor),
            direction=leg.direction,
            volatility_used=leg.snapshot_volatility,
        )
        for leg, p in zip(legs, quote.leg_probabilities)
    ]
    return ParlayQuoteResponse(
        num_legs=quote.num_legs,
        legs=leg_quotes,
        parlay_probability=quote.parlay_probability,
        parlay_odds=quote.parlay_odds,
        parlay_american_odds=american,
        bet_amount=quote.bet_amount,
        total_payout=quote.total_payout,
    )


def _leg_response(leg: Leg, constants: PricingConstants) -> LegResponse:
    return LegResponse(
        leg_id=leg.leg_id,
        asset_id=leg.asset_id,
        timeframe=leg.timeframe,
        lower_bound=leg.lower_bound,
        upper_bound=leg.upper_bound,
        snapshot_price=leg.snapshot_price,
        snapshot_volatility=leg.snapshot_volatility,
        market_cap_tier=leg.market_cap_tier,
        direction=leg.direction,
        probability=leg.probability(constants),
        description=leg.describe(),
        created_at=leg.created_at,
    )


def _ticket_response(ticket: ParlayTicket, constants: PricingConstants) -> TicketResponse:
    return TicketResponse(
        ticket_id=ticket.ticket_id,
        placed_at=ticket.placed_at,
        bet_amount=ticket.bet_amount,
        legs=[_leg_response(leg, constants) for leg in ticket.legs],
        quote=_parlay_response(ticket.legs, ticket.quote, constants),
        summary=format_parlay_ticket(ticket),
    )


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
def root():
    """Health check"""
    return {
        "app": "Range Parlay Engine",
        "version": __version__,
        "status": "operational",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/api/assets", response_model=List[AssetResponse])
def list_assets():
    """Asset table with the configured range-width bands as percentages."""
    out = []
    for asset in ASSETS.values():
        bands = []
        for tf, band in RANGE_WIDTHS.get(asset.asset_id, {}).items():
            lo, hi = band.as_percent()
            bands.append(RangeBandResponse(timeframe=tf, min_pct=round(lo, 4), max_pct=round(hi, 4)))
        out.append(AssetResponse(
            asset_id=asset.asset_id,
            name=asset.name,
            source_key=asset.source_key,
            baseline_volatility=asset.baseline_volatility,
            market_cap_tier=asset.market_cap_tier,
            range_bands=bands,
        ))
    return out


@app.get("/api/timeframes", response_model=List[TimeframeResponse])
def list_timeframes():
    return [TimeframeResponse(label=k, hours=v) for k, v in TIMEFRAME_HOURS.items()]


# ============================================================================
# PRICING ENDPOINTS
# ============================================================================

@app.post("/api/ranges/validate", response_model=RangeValidateResponse)
def validate_range_endpoint(req: RangeValidateRequest):
    """Width check for a prospective leg.  Rejections return 200 with reason."""
    _asset_or_404(req.asset_id)
    result = validate_range(
        req.asset_id, req.timeframe, req.lower_bound, req.upper_bound, req.current_price,
    )
    lo_pct, hi_pct = result.allowed_percent or (None, None)
    return RangeValidateResponse(
        accepted=result.accepted,
        reason=result.reason,
        width_pct=round(result.width * 100.0, 4) if result.width is not None else None,
        allowed_min_pct=lo_pct,
        allowed_max_pct=hi_pct,
        difficulty=range_difficulty(result.width) if result.width is not None else None,
        message=result.message,
    )


@app.post("/api/legs/quote", response_model=LegQuoteResponse)
def quote_leg(snap: LegSnapshot):
    """
    Single-leg probability and odds from the posted snapshot.

    The leg must pass the range-width check first; a rejection returns 422
    with the structured violation.
    """
    leg = _snapshot_leg(snap)
    q = quote_range(
        leg.snapshot_price, leg.lower_bound, leg.upper_bound,
        leg.snapshot_volatility, leg.timeframe, leg.market_cap_tier, CONSTANTS,
    )
    return LegQuoteResponse(
        asset_id=leg.asset_id,
        timeframe=leg.timeframe,
        probability=q.probability,
        decimal_odds=q.decimal_odds,
        direction=leg.direction,
        volatility_used=leg.snapshot_volatility,
    )


@app.post("/api/parlays/quote", response_model=ParlayQuoteResponse)
def quote_parlay_endpoint(req: ParlayQuoteRequest):
    """
    Parlay quote for snapshot legs.

    Each leg must pass the range-width check against its own snapshot price;
    the first rejection returns 422 with the structured violation.
    """
    legs = [_snapshot_leg(snap, i) for i, snap in enumerate(req.legs)]
    quote = quote_parlay(legs, req.bet_amount, CONSTANTS)

    logger.info(
        "Parlay quote: %d legs, p=%.6f, odds=%.2fx, payout=%.2f",
        quote.num_legs, quote.parlay_probability, quote.parlay_odds, quote.total_payout,
    )
    return _parlay_response(legs, quote, CONSTANTS)


@app.post("/api/volatility/estimate", response_model=VolatilityResponse)
def estimate_volatility(req: VolatilityRequest):
    """Daily volatility from posted closes; falls back to the asset baseline."""
    asset = _asset_or_404(req.asset_id)
    est = volatility_from_closes(asset, req.closes, CONSTANTS)
    return VolatilityResponse(
        asset_id=est.asset_id,
        daily_volatility=est.daily_volatility,
        is_fallback=est.is_fallback,
        sample_count=est.sample_count,
        outlier_count=est.outlier_count,
        tail_factor=est.tail_factor,
    )


# ============================================================================
# PRICE FEED
# ============================================================================

@app.put("/api/prices/{asset_id}", response_model=PriceUpdateResponse)
def update_price(
    asset_id: str,
    req: PriceUpdateRequest,
    feed: StaticPriceFeed = Depends(get_price_feed),
):
    """Record the live price (and optionally daily closes) used to admit legs."""
    asset = _asset_or_404(asset_id)
    feed.set_price(asset.asset_id, req.price)

    history_points = 0
    if req.closes:
        now = datetime.now(timezone.utc)
        n = len(req.closes)
        feed.set_history(asset.asset_id, [
            PricePoint(now - timedelta(days=n - 1 - i), close)
            for i, close in enumerate(req.closes)
        ])
        history_points = n

    logger.info("Price update %s: %.6f (%d closes)", asset.asset_id, req.price, history_points)
    return PriceUpdateResponse(asset_id=asset.asset_id, price=req.price, history_points=history_points)


# ============================================================================
# TICKET BUILDER
# ============================================================================

@app.get("/api/ticket/legs", response_model=List[LegResponse])
def list_ticket_legs(builder: TicketBuilder = Depends(get_ticket_builder)):
    return [_leg_response(leg, builder.constants) for leg in builder.legs]


@app.post("/api/ticket/legs", response_model=LegResponse, status_code=201)
def add_ticket_leg(req: AddLegRequest, builder: TicketBuilder = Depends(get_ticket_builder)):
    """Admit a leg at the current live price and snapshot it."""
    try:
        leg = builder.add_leg(req.asset_id, req.timeframe, req.lower_bound, req.upper_bound)
    except UnknownAssetError:
        raise HTTPException(status_code=404, detail=f"Unknown asset {req.asset_id!r}")
    except RangeOutOfBoundsError as e:
        raise _range_violation(e.validation)
    return _leg_response(leg, builder.constants)


@app.delete("/api/ticket/legs/{leg_id}", response_model=LegResponse)
def remove_ticket_leg(leg_id: str, builder: TicketBuilder = Depends(get_ticket_builder)):
    try:
        leg = builder.remove_leg(leg_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"No pending leg {leg_id!r}")
    return _leg_response(leg, builder.constants)


@app.delete("/api/ticket/legs")
def clear_ticket(builder: TicketBuilder = Depends(get_ticket_builder)):
    removed = len(builder.legs)
    builder.clear()
    return {"removed": removed}


@app.get("/api/ticket/quote", response_model=ParlayQuoteResponse)
def quote_ticket(
    bet_amount: float = Query(..., gt=0),
    builder: TicketBuilder = Depends(get_ticket_builder),
):
    """Quote the pending legs from their snapshots."""
    quote = builder.quote(bet_amount)
    return _parlay_response(builder.legs, quote, builder.constants)


@app.post("/api/ticket/place", response_model=TicketResponse, status_code=201)
def place_ticket(req: PlaceBetRequest, builder: TicketBuilder = Depends(get_ticket_builder)):
    try:
        ticket = builder.place_bet(req.bet_amount)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _ticket_response(ticket, builder.constants)


@app.get("/api/ticket/history", response_model=List[TicketResponse])
def ticket_history(builder: TicketBuilder = Depends(get_ticket_builder)):
    """Placed tickets, newest first."""
    return [_ticket_response(t, builder.constants) for t in builder.history]
