"""
Technical indicator calculations.

This module provides the pure indicator functions (RSI, SMA, EMA, volume ratio)
and the IndicatorCalculator that bundles them for a quoted stock.

Every function is total: short or empty input maps to a documented default
instead of raising, so indicator display never breaks the dashboard.
"""

import math
from collections.abc import Sequence
from typing import NamedTuple, SupportsFloat

import pandas as pd
from cachetools import LRUCache

from sharesalert.analysis.synthetic import generate_synthetic_series
from sharesalert.config import IndicatorConfig
from sharesalert.data.models import PricePoint, TechnicalIndicators
from sharesalert.utils.logging import get_logger

logger = get_logger(__name__, component="IndicatorCalculator")

NEUTRAL_RSI = 50.0


class VolumeIndicators(NamedTuple):
    """Average volume and the current-to-average ratio."""

    volume_avg: float
    volume_ratio: float


def _to_series(values: Sequence[SupportsFloat]) -> pd.Series:
    return pd.Series([float(v) for v in values], dtype="float64")


def _last_or_zero(series: pd.Series) -> float:
    return float(series.iloc[-1]) if len(series) else 0.0


def calculate_rsi(prices: Sequence[SupportsFloat], period: int = 14) -> float:
    """
    Calculate the Relative Strength Index over the first ``period`` changes.

    Gains and losses are summed over transitions 1..period of the series (a
    single fixed window, not a rolling Wilder average) and then averaged.

    Args:
        prices: Prices in chronological order
        period: Number of price changes in the window

    Returns:
        RSI in [0, 100]; 50 when fewer than ``period + 1`` prices exist,
        100 when the window has no losses
    """
    series = _to_series(prices)
    if period < 1 or len(series) < period + 1:
        return NEUTRAL_RSI

    changes = series.iloc[: period + 1].diff().iloc[1:]
    avg_gain = float(changes.clip(lower=0).sum()) / period
    avg_loss = float(-changes.clip(upper=0).sum()) / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def calculate_sma(prices: Sequence[SupportsFloat], period: int) -> float:
    """
    Calculate the Simple Moving Average of the last ``period`` prices.

    Returns the most recent price (0 for an empty series) when fewer than
    ``period`` prices exist.
    """
    series = _to_series(prices)
    if period < 1 or len(series) < period:
        return _last_or_zero(series)
    return float(series.iloc[-period:].mean())


def calculate_ema(prices: Sequence[SupportsFloat], period: int) -> float:
    """
    Calculate the Exponential Moving Average.

    The seed is the mean of the first ``period`` prices; smoothing with
    multiplier ``2 / (period + 1)`` then runs forward over the remaining prices.
    Returns the most recent price (0 for an empty series) when fewer than
    ``period`` prices exist.
    """
    series = _to_series(prices)
    if period < 1 or len(series) < period:
        return _last_or_zero(series)

    seed = series.iloc[:period].mean()
    seeded = pd.concat([pd.Series([seed]), series.iloc[period:]], ignore_index=True)
    ema = seeded.ewm(alpha=2 / (period + 1), adjust=False).mean()
    return float(ema.iloc[-1])


def calculate_volume_indicators(
    volumes: Sequence[SupportsFloat], current_volume: float
) -> VolumeIndicators:
    """
    Calculate the average volume and the current-to-average volume ratio.

    Args:
        volumes: Historical volumes
        current_volume: Latest traded volume

    Returns:
        VolumeIndicators(volume_avg, volume_ratio). An empty history gives
        (current_volume, 1.0). A zero average gives an infinite ratio
        (or NaN when the current volume is also zero).
    """
    series = _to_series(volumes)
    if series.empty:
        return VolumeIndicators(float(current_volume), 1.0)

    volume_avg = float(series.mean())
    if volume_avg == 0:
        return VolumeIndicators(volume_avg, math.inf if current_volume else math.nan)
    return VolumeIndicators(volume_avg, current_volume / volume_avg)


class IndicatorCalculator:
    """
    Calculate the dashboard indicator bundle for a quoted stock.

    Without a supplied history the calculator generates one synthetic series per
    computation. Results are memoized per (symbol, price, volume) so repeated
    renders of the same quote show the same values.

    Example:
        >>> calculator = IndicatorCalculator()
        >>> indicators = calculator.calculate(1.95, 250_000, "MTNGH")
        >>> print(indicators.rsi, indicators.volume_level)
    """

    def __init__(self, config: IndicatorConfig | None = None) -> None:
        """Initialize the IndicatorCalculator.

        Args:
            config: Indicator periods, synthetic history length and memo size
        """
        self.config = config or IndicatorConfig()
        self._memo: LRUCache[tuple[str, float, float], TechnicalIndicators] = LRUCache(
            maxsize=self.config.memo_size
        )
        self._logger = logger

    def calculate(
        self,
        current_price: float,
        current_volume: float,
        symbol: str,
        history: Sequence[PricePoint] | None = None,
    ) -> TechnicalIndicators:
        """
        Calculate RSI, SMA, EMA and volume ratio for a quote.

        Args:
            current_price: Latest quoted price
            current_volume: Latest traded volume
            symbol: Stock symbol, used as part of the memo key
            history: Chronological price history; synthetic when omitted

        Returns:
            TechnicalIndicators for the quote
        """
        if history is not None:
            return self._compute(current_price, current_volume, symbol, history)

        key = (symbol, float(current_price), float(current_volume))
        cached = self._memo.get(key)
        if cached is not None:
            return cached

        series = generate_synthetic_series(current_price, self.config.synthetic_days)
        indicators = self._compute(current_price, current_volume, symbol, series)
        self._memo[key] = indicators
        return indicators

    def _compute(
        self,
        current_price: float,
        current_volume: float,
        symbol: str,
        history: Sequence[PricePoint],
    ) -> TechnicalIndicators:
        prices = [point.price for point in history]
        volumes = [point.volume or 0 for point in history]

        if len(prices) < self.config.rsi_period + 1:
            self._logger.info(
                "limited_data_for_indicators",
                symbol=symbol,
                data_points=len(prices),
            )

        volume_avg, volume_ratio = calculate_volume_indicators(volumes, current_volume)
        indicators = TechnicalIndicators(
            rsi=calculate_rsi(prices, self.config.rsi_period),
            sma_20=calculate_sma(prices, self.config.sma_period),
            ema_12=calculate_ema(prices, self.config.ema_period),
            volume_avg=volume_avg,
            volume_ratio=volume_ratio,
            symbol=symbol,
            price=float(current_price),
        )

        self._logger.debug(
            "indicators_calculated",
            symbol=symbol,
            rsi=indicators.rsi,
            sma_20=indicators.sma_20,
            ema_12=indicators.ema_12,
            volume_ratio=indicators.volume_ratio,
        )
        return indicators

    def reset(self) -> None:
        """Forget memoized indicator bundles."""
        self._memo.clear()
