"""
stress.py - Rate path simulation for liquidation stress runs

Generates geometric Brownian motion paths for a WEI-scaled conversion rate
and lays them out on a date grid, ready for
TimeSeriesRateConverter.add_rate_path(). Paired with ClaimKeeper this drives
collateral entries through falling and rising markets.

Rates stay integers (WEI-scaled) and never drop below 1.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

import numpy as np


def simulate_rate_path(
    initial_rate: int,
    periods: int,
    volatility: float,
    drift: float = 0.0,
    dt: float = 1.0 / 365.0,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Simulate a GBM path of a WEI-scaled rate.

    Args:
        initial_rate: Starting rate (WEI-scaled, positive)
        periods: Number of steps after the initial point
        volatility: Annualized volatility (e.g., 0.8 for 80%)
        drift: Annualized drift
        dt: Step length in years
        seed: Seed for numpy's default generator (reproducible paths)

    Returns:
        Array of periods + 1 rates, starting with initial_rate

    Raises:
        ValueError: On non-positive rate, negative periods or volatility
    """
    if initial_rate <= 0:
        raise ValueError(f"initial_rate must be positive, got {initial_rate}")
    if periods < 0:
        raise ValueError(f"periods cannot be negative, got {periods}")
    if volatility < 0 or not np.isfinite(volatility):
        raise ValueError(f"volatility must be a finite non-negative number, got {volatility}")

    rng = np.random.default_rng(seed)
    shocks = rng.standard_normal(periods)
    log_steps = (drift - 0.5 * volatility * volatility) * dt + volatility * np.sqrt(dt) * shocks
    factors = np.exp(np.concatenate(([0.0], np.cumsum(log_steps))))
    rates = np.floor(float(initial_rate) * factors)
    return np.maximum(rates, 1.0)


def rate_schedule(
    start: datetime,
    step: timedelta,
    rates: Sequence[float],
) -> List[Tuple[datetime, int]]:
    """Pair each rate with start + i * step, converting to int."""
    return [(start + i * step, int(rate)) for i, rate in enumerate(rates)]


def shocked_path(initial_rate: int, shocks: Sequence[float]) -> np.ndarray:
    """
    Deterministic path from fractional moves, e.g. [-0.1, -0.2, 0.05].

    Each shock applies to the previous rate.
    """
    if initial_rate <= 0:
        raise ValueError(f"initial_rate must be positive, got {initial_rate}")
    factors = np.cumprod(1.0 + np.asarray(shocks, dtype=float))
    if np.any(factors <= 0):
        raise ValueError("shocks cannot wipe out the rate")
    rates = np.floor(float(initial_rate) * np.concatenate(([1.0], factors)))
    return np.maximum(rates, 1.0)
