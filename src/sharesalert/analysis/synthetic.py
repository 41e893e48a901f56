"""Synthetic daily price history for demo charts and indicators.

The generated series is random on every call. It stands in for a historical
data feed and must not be used for anything correctness-sensitive.
"""

from datetime import date, timedelta

import numpy as np

from sharesalert.data.models import PricePoint

MAX_DAILY_MOVE = 0.025
MIN_PRICE = 0.01
VOLUME_RANGE = (10_000, 110_000)


def generate_synthetic_series(
    current_price: float,
    days: int = 30,
    *,
    rng: np.random.Generator | None = None,
    today: date | None = None,
) -> list[PricePoint]:
    """Generate ``days + 1`` daily price points ending today.

    Starting from ``current_price`` the walk steps backward one day at a time,
    moving the running price by at most 2.5% per step (never below 0.01).
    Points are returned oldest first, prices rounded to 2 decimals, each with a
    volume drawn uniformly from 10,000 to 110,000.

    Args:
        current_price: Latest quoted price the walk starts from
        days: Number of days of history before today
        rng: Random generator, seed it for reproducible output
        today: Date of the last point (defaults to today)

    Returns:
        Chronologically ordered list of PricePoint
    """
    rng = rng or np.random.default_rng()
    today = today or date.today()
    days = max(days, 0)

    moves = rng.uniform(-MAX_DAILY_MOVE, MAX_DAILY_MOVE, size=days + 1)
    volumes = rng.integers(*VOLUME_RANGE, size=days + 1)

    walk: list[float] = []
    price = max(float(current_price), MIN_PRICE)
    for move in moves:
        price = max(MIN_PRICE, price + move * price)
        walk.append(round(price, 2))
    walk.reverse()

    return [
        PricePoint(
            date=today - timedelta(days=days - offset),
            price=max(walk[offset], MIN_PRICE),
            volume=int(volumes[offset]),
        )
        for offset in range(days + 1)
    ]
