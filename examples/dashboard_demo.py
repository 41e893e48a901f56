"""Demo script for the cached data-access layer and indicator bundle.

This demonstrates:
1. Loading the stock list through the response cache
2. Computing RSI, SMA-20, EMA-12 and volume ratio for each stock
3. Creating an alert and watching the alert-list cache get invalidated

Without SHARESALERT_API__BASE_URL the demo runs against the in-memory mock API.

Run with: python examples/dashboard_demo.py
"""

import asyncio
import os
import sys

from sharesalert.config import Config
from sharesalert.core.service import StockDataService
from sharesalert.data.api import AlertApi, MockAlertApi
from sharesalert.data.cache import ResponseCache
from sharesalert.data.models import AlertType, CreateAlertRequest
from sharesalert.data.providers.http import HttpAlertApi
from sharesalert.utils.logging import setup_logging


def build_api(config: Config) -> AlertApi:
    if os.getenv("SHARESALERT_API__BASE_URL"):
        return HttpAlertApi(config.api)
    return MockAlertApi()


async def show_indicators(service: StockDataService) -> None:
    """Print the indicator bundle for every listed stock."""
    print(f"\n{'Symbol':<8} {'Price':>8} {'RSI':>6} {'SMA20':>8} {'EMA12':>8} {'Vol x':>6}")
    print("-" * 52)

    for stock in await service.get_all_stocks():
        indicators = await service.indicators_for(stock.symbol)
        print(
            f"{stock.symbol:<8} {stock.current_price:>8.2f} {indicators.rsi:>6.1f} "
            f"{indicators.sma_20:>8.2f} {indicators.ema_12:>8.2f} "
            f"{indicators.volume_ratio:>5.1f}x  {indicators.rsi_signal.value}"
        )


async def main() -> None:
    config = Config()
    setup_logging(level=config.logging.level, format_type=config.logging.format)

    service = StockDataService(build_api(config), ResponseCache(config.cache))

    print("=" * 60)
    print("Demo 1: Stock list and indicators")
    print("=" * 60)
    await show_indicators(service)

    print("\n" + "=" * 60)
    print("Demo 2: Alert mutations invalidate cached alert lists")
    print("=" * 60)
    before = await service.get_all_alerts()
    print(f"Alerts before: {len(before)}")
    await service.create_alert(
        CreateAlertRequest(
            stock_symbol="MTNGH",
            stock_name="MTN Ghana",
            alert_type=AlertType.PRICE_ABOVE.value,
            threshold_price=2.10,
        )
    )
    after = await service.get_all_alerts()
    print(f"Alerts after:  {len(after)}")

    print("\nCache stats:")
    for name, value in service.cache.get_stats().items():
        print(f"  {name}: {value}")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n\nDemo interrupted by user")
        sys.exit(0)
