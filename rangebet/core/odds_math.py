"""Fundamental odds mathematics: the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

The three pillars exposed are:

1. **Surrogate CDF**: a closed-form ``tanh`` stand-in for the standard
   normal CDF used by the range probability model.
2. **Quoted odds**: fair decimal odds with the fixed house edge removed.
3. **Payout**: stake × quoted odds, plus American odds for display.

Design decisions
----------------
* The CDF surrogate ``0.5 · (1 + tanh(sqrt(π/8) · z))`` is deliberately
  *not* the Gaussian CDF.  It is smooth, strictly increasing and bounded in
  ``(0, 1)``, which is all the range model needs.  Quoted probabilities and
  odds are informally calibrated against this exact curve; swapping in
  ``scipy.stats.norm.cdf`` changes every price on the board (the surrogate
  is flatter than the true CDF, roughly 0.06 below it at ``z = 1``).
* Decimal odds are quoted net of the house edge: ``(1 / p) · 0.93``.  A
  probability of zero quotes odds of zero rather than infinity, so callers
  can multiply through without special-casing dead tickets.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from typing import Final

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Slope of the tanh surrogate.
_TANH_SLOPE: Final[float] = math.sqrt(math.pi / 8.0)

#: Fraction of fair odds returned to the bettor.  0.93 = 7% house edge.
DEFAULT_HOUSE_EDGE: Final[float] = 0.93


# ---------------------------------------------------------------------------
# Surrogate normal CDF
# ---------------------------------------------------------------------------


def surrogate_normal_cdf(z: float) -> float:
    """Fast closed-form approximation of the standard normal CDF.

    Args:
        z: Standardised distance from the mean.  ``±inf`` is accepted and
            saturates to ``1.0`` / ``0.0``.

    Returns:
        Value in ``[0, 1]``; strictly inside ``(0, 1)`` for moderate ``z``.
        Floating-point tanh saturates to exactly 0 or 1 beyond ``|z| ≈ 30``.
        ``NaN`` in gives ``NaN`` out; callers normalise it.

    Examples::

        surrogate_normal_cdf(0.0)    → 0.5000
        surrogate_normal_cdf(1.0)    → 0.7779   (true Φ(1) = 0.8413)
        surrogate_normal_cdf(-1.0)   → 0.2221
    """
    if math.isnan(z):
        return math.nan
    return 0.5 * (1.0 + math.tanh(_TANH_SLOPE * z))


# ---------------------------------------------------------------------------
# Odds and payout
# ---------------------------------------------------------------------------


def decimal_odds_from_probability(
    probability: float,
    house_edge: float = DEFAULT_HOUSE_EDGE,
) -> float:
    """Quote decimal odds for a win probability, net of the house edge.

    Args:
        probability: Win probability of the leg or parlay.
        house_edge: Fraction of fair odds paid out.  Default 0.93.

    Returns:
        ``(1 / probability) · house_edge``, or ``0.0`` when the probability
        is zero, negative or not finite (a dead ticket pays nothing).

    Examples::

        decimal_odds_from_probability(0.25)  → 3.72
        decimal_odds_from_probability(0.0)   → 0.0
    """
    if not math.isfinite(probability) or probability <= 0.0:
        return 0.0
    return (1.0 / probability) * house_edge


def total_payout(bet_amount: float, decimal_odds: float) -> float:
    """Total return for a stake at the quoted decimal odds.

    Non-positive or non-finite inputs return ``0.0``.
    """
    if not math.isfinite(bet_amount) or not math.isfinite(decimal_odds):
        return 0.0
    if bet_amount <= 0.0 or decimal_odds <= 0.0:
        return 0.0
    return bet_amount * decimal_odds


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to the nearest American integer.

    Use the result for display and logging, not for further arithmetic.

    Args:
        decimal_odds: Decimal odds.  Values strictly above 1.0 are
            representable.

    Returns:
        American odds integer.  Values ≥ 2.0 are returned as positive
        (underdog); values < 2.0 are returned as negative (favourite).

    Raises:
        ValueError: If ``decimal_odds <= 1.0``.  House-edged odds for a
            probability above 0.93 land here; there is no American price
            for a bet that returns less than the stake.
    """
    if not decimal_odds > 1.0:
        raise ValueError(
            f"Decimal odds {decimal_odds!r} must be > 1.0 to have an American equivalent."
        )
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100)
    return round(-100.0 / (decimal_odds - 1.0))
