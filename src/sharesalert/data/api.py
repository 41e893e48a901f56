"""Abstract alert API interface and an in-memory implementation."""

import itertools
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime, timezone

from .models import (
    Alert,
    AlertStatus,
    Company,
    CreateAlertRequest,
    Stock,
    StockDetails,
    UpdateAlertRequest,
)


class ApiError(RuntimeError):
    """Raised when the alert API answers with a non-success status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AlertApi(ABC):
    """Abstract base class for the remote alert API.

    Implementations fetch stocks and manage alerts on the backend service.
    """

    @abstractmethod
    async def get_all_stocks(self) -> list[Stock]:
        """Get quotes for every listed stock.

        Raises:
            ApiError: If the API request fails
        """

    @abstractmethod
    async def get_stock(self, symbol: str) -> Stock:
        """Get the current quote for a symbol.

        Raises:
            ValueError: If symbol is empty
            ApiError: If the symbol is unknown or the request fails
        """

    @abstractmethod
    async def get_stock_details(self, symbol: str) -> StockDetails:
        """Get fundamentals and the company profile for a symbol.

        Raises:
            ValueError: If symbol is empty
            ApiError: If the symbol is unknown or the request fails
        """

    @abstractmethod
    async def get_all_alerts(
        self, user_id: str | None = None, status: str | None = None
    ) -> list[Alert]:
        """List alerts, optionally filtered by user and status.

        Raises:
            ApiError: If the API request fails
        """

    @abstractmethod
    async def create_alert(self, request: CreateAlertRequest) -> Alert:
        """Create an alert and return it as stored by the backend."""

    @abstractmethod
    async def get_alert(self, alert_id: str) -> Alert:
        """Get a single alert by id."""

    @abstractmethod
    async def update_alert(self, alert_id: str, updates: UpdateAlertRequest) -> Alert:
        """Apply a partial update to an alert."""

    @abstractmethod
    async def delete_alert(self, alert_id: str) -> None:
        """Delete an alert."""

    @abstractmethod
    async def health_check(self) -> dict[str, str]:
        """Return the backend health payload (status and timestamp)."""


class MockAlertApi(AlertApi):
    """In-memory alert API for testing.

    Serves a fixed set of stocks and keeps alerts in a dict.
    ``calls`` counts invocations per method name.
    """

    def __init__(self, stocks: list[Stock] | None = None) -> None:
        """Initialize mock API with sample stocks."""
        now = datetime.now(timezone.utc)
        if stocks is None:
            stocks = [
                Stock("MTNGH", "MTN Ghana", 1.95, 1.90, 0.05, 2.63, 250000, now),
                Stock("GCB", "GCB Bank", 5.20, 5.25, -0.05, -0.95, 80000, now),
                Stock("SCB", "Standard Chartered Bank Ghana", 20.0, 20.0, 0.0, 0.0, 12000, now),
            ]
        self._stocks = {stock.symbol: stock for stock in stocks}
        self._alerts: dict[str, Alert] = {}
        self._ids = itertools.count(1)
        self.calls: Counter[str] = Counter()

    def _find_stock(self, symbol: str) -> Stock:
        if not symbol:
            raise ValueError("Symbol is required")
        try:
            return self._stocks[symbol.upper()]
        except KeyError:
            raise ApiError(f"Failed to fetch stock {symbol}", status=404) from None

    def _find_alert(self, alert_id: str) -> Alert:
        try:
            return self._alerts[alert_id]
        except KeyError:
            raise ApiError(f"Failed to fetch alert {alert_id}", status=404) from None

    async def get_all_stocks(self) -> list[Stock]:
        self.calls["get_all_stocks"] += 1
        return list(self._stocks.values())

    async def get_stock(self, symbol: str) -> Stock:
        self.calls["get_stock"] += 1
        return self._find_stock(symbol)

    async def get_stock_details(self, symbol: str) -> StockDetails:
        self.calls["get_stock_details"] += 1
        stock = self._find_stock(symbol)
        return StockDetails(
            symbol=stock.symbol,
            name=stock.name,
            current_price=stock.current_price,
            previous_close=stock.previous_close,
            change=stock.change,
            change_percent=stock.change_percent,
            volume=stock.volume,
            last_updated=stock.last_updated,
            market_cap=stock.market_cap,
            sector=stock.sector or "Financials",
            industry=stock.industry or "Banking",
            shares=1_000_000,
            dps=0.1,
            eps=0.5,
            company=Company(name=stock.name, sector=stock.sector or "Financials"),
        )

    async def get_all_alerts(
        self, user_id: str | None = None, status: str | None = None
    ) -> list[Alert]:
        self.calls["get_all_alerts"] += 1
        return [
            alert
            for alert in self._alerts.values()
            if (user_id is None or alert.user_id == user_id)
            and (status is None or alert.status == status)
        ]

    async def create_alert(self, request: CreateAlertRequest) -> Alert:
        self.calls["create_alert"] += 1
        now = datetime.now(timezone.utc)
        stock = self._stocks.get(request.stock_symbol.upper())
        alert = Alert(
            id=str(next(self._ids)),
            user_id="demo-user",
            stock_symbol=request.stock_symbol,
            stock_name=request.stock_name,
            alert_type=request.alert_type,
            status=AlertStatus.ACTIVE.value,
            threshold_price=request.threshold_price,
            current_price=stock.current_price if stock else None,
            created_at=now,
            updated_at=now,
        )
        self._alerts[alert.id] = alert
        return alert

    async def get_alert(self, alert_id: str) -> Alert:
        self.calls["get_alert"] += 1
        return self._find_alert(alert_id)

    async def update_alert(self, alert_id: str, updates: UpdateAlertRequest) -> Alert:
        self.calls["update_alert"] += 1
        alert = self._find_alert(alert_id)
        if updates.stock_symbol is not None:
            alert.stock_symbol = updates.stock_symbol
        if updates.stock_name is not None:
            alert.stock_name = updates.stock_name
        if updates.alert_type is not None:
            alert.alert_type = updates.alert_type
        if updates.threshold_price is not None:
            alert.threshold_price = updates.threshold_price
        if updates.status is not None:
            alert.status = updates.status
        alert.updated_at = datetime.now(timezone.utc)
        return alert

    async def delete_alert(self, alert_id: str) -> None:
        self.calls["delete_alert"] += 1
        self._find_alert(alert_id)
        del self._alerts[alert_id]

    async def health_check(self) -> dict[str, str]:
        self.calls["health_check"] += 1
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
