"""
Technical analysis module for sharesalert.

This module provides the indicator math (RSI, SMA, EMA, volume ratio) and the
synthetic history generator used when no real price feed is available.
"""

from sharesalert.analysis.indicators import (
    IndicatorCalculator,
    VolumeIndicators,
    calculate_ema,
    calculate_rsi,
    calculate_sma,
    calculate_volume_indicators,
)
from sharesalert.analysis.synthetic import generate_synthetic_series

__all__ = [
    "IndicatorCalculator",
    "VolumeIndicators",
    "calculate_ema",
    "calculate_rsi",
    "calculate_sma",
    "calculate_volume_indicators",
    "generate_synthetic_series",
]
