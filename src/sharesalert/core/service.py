"""Cached data access for the dashboard.

This module provides the StockDataService that sits between the UI layer and
the alert API: reads are served from the ResponseCache when fresh, misses are
fetched once and stored with a per-resource TTL, and alert mutations invalidate
every cached alert list before returning.
"""

from sharesalert.analysis.indicators import IndicatorCalculator
from sharesalert.config import CacheConfig
from sharesalert.data import keys
from sharesalert.data.api import AlertApi
from sharesalert.data.cache import ResponseCache
from sharesalert.data.models import (
    Alert,
    CreateAlertRequest,
    Stock,
    StockDetails,
    TechnicalIndicators,
    UpdateAlertRequest,
)
from sharesalert.utils.logging import get_logger

logger = get_logger(__name__, component="StockDataService")


class StockDataService:
    """Serve stocks, alerts and indicators through a response cache.

    The cache is injected so each service (and each test) can own an
    independent instance.

    Example:
        >>> service = StockDataService(HttpAlertApi(), ResponseCache())
        >>> stocks = await service.get_all_stocks()
        >>> indicators = await service.indicators_for("MTNGH")
    """

    def __init__(
        self,
        api: AlertApi,
        cache: ResponseCache,
        calculator: IndicatorCalculator | None = None,
        cache_config: CacheConfig | None = None,
    ) -> None:
        """Initialize the StockDataService.

        Args:
            api: Alert API used on cache misses and for mutations
            cache: Response cache shared by all reads of this service
            calculator: Indicator calculator (a default one is created if omitted)
            cache_config: TTLs per resource (defaults to the cache's own config)
        """
        self.api = api
        self.cache = cache
        self.calculator = calculator or IndicatorCalculator()
        self.ttl = cache_config or cache.config

    async def get_all_stocks(self) -> list[Stock]:
        return await self.cache.get_or_fetch(
            keys.STOCKS_ALL, self.api.get_all_stocks, self.ttl.stock_list_ttl
        )

    async def get_stock(self, symbol: str) -> Stock:
        return await self.cache.get_or_fetch(
            keys.stock_key(symbol),
            lambda: self.api.get_stock(symbol),
            self.ttl.stock_ttl,
        )

    async def get_stock_details(self, symbol: str) -> StockDetails:
        return await self.cache.get_or_fetch(
            keys.stock_details_key(symbol),
            lambda: self.api.get_stock_details(symbol),
            self.ttl.stock_details_ttl,
        )

    async def get_all_alerts(
        self, user_id: str | None = None, status: str | None = None
    ) -> list[Alert]:
        return await self.cache.get_or_fetch(
            keys.alerts_key(status, user_id),
            lambda: self.api.get_all_alerts(user_id=user_id, status=status),
            self.ttl.alert_list_ttl,
        )

    async def get_alert(self, alert_id: str) -> Alert:
        """Fetch a single alert. Not cached."""
        return await self.api.get_alert(alert_id)

    async def create_alert(self, request: CreateAlertRequest) -> Alert:
        alert = await self.api.create_alert(request)
        self.clear_alerts_cache()
        return alert

    async def update_alert(self, alert_id: str, updates: UpdateAlertRequest) -> Alert:
        alert = await self.api.update_alert(alert_id, updates)
        self.clear_alerts_cache()
        return alert

    async def delete_alert(self, alert_id: str) -> None:
        await self.api.delete_alert(alert_id)
        self.clear_alerts_cache()

    async def indicators_for(self, symbol: str) -> TechnicalIndicators:
        """Compute the indicator bundle for a symbol's current quote."""
        stock = await self.get_stock(symbol)
        return self.calculator.calculate(stock.current_price, stock.volume, stock.symbol)

    def clear_cache(self) -> None:
        """Drop every cached response."""
        self.cache.clear()

    def clear_stock_cache(self) -> None:
        """Drop the cached stock list."""
        self.cache.delete(keys.STOCKS_ALL)

    def clear_alerts_cache(self) -> None:
        """Drop every cached alert list, whatever its filters."""
        removed = self.cache.invalidate_prefix(keys.ALERTS_PREFIX)
        logger.debug("alerts_cache_invalidated", removed=removed)
