"""Core mathematics and configuration for the range parlay pricing engine.

This package contains pure building blocks:

- ``odds_math``     : surrogate normal CDF, house-edged odds, payout
- ``asset_config``  : asset table, timeframes, range-width bands, tiers
- ``pricing_config``: tunable pricing constants with env overrides
- ``feed_interface``: ABCs and DTOs for price and price-history sources

Nothing in this package imports from ``rangebet.services``.
All modules are side-effect-free and unit-testable in isolation.
"""
