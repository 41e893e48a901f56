"""Data models for quotes, alerts, and technical indicators."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


def _parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by the alert API."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _optional_float(value: Any) -> float | None:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class PricePoint:
    """Single day of price history."""

    date: date
    price: float
    volume: int | None = None


class RsiSignal(str, Enum):
    """RSI classification used by the dashboard."""

    OVERBOUGHT = "overbought"
    OVERSOLD = "oversold"
    NEUTRAL = "neutral"


class VolumeLevel(str, Enum):
    """Volume ratio classification used by the dashboard."""

    HIGH = "high"
    ELEVATED = "elevated"
    NORMAL = "normal"


@dataclass
class TechnicalIndicators:
    """Indicator bundle derived from a price/volume history and the latest quote."""

    rsi: float
    sma_20: float
    ema_12: float
    volume_avg: float
    volume_ratio: float
    symbol: str | None = None
    price: float | None = None

    def is_overbought(self, threshold: float = 70.0) -> bool:
        """Check if RSI indicates overbought condition."""
        return self.rsi > threshold

    def is_oversold(self, threshold: float = 30.0) -> bool:
        """Check if RSI indicates oversold condition."""
        return self.rsi < threshold

    def is_price_above_sma(self) -> bool:
        """Check if the quoted price trades above the 20-day SMA."""
        return self.price is not None and self.price > self.sma_20

    @property
    def rsi_signal(self) -> RsiSignal:
        if self.is_overbought():
            return RsiSignal.OVERBOUGHT
        if self.is_oversold():
            return RsiSignal.OVERSOLD
        return RsiSignal.NEUTRAL

    @property
    def volume_level(self) -> VolumeLevel:
        if self.volume_ratio > 1.5:
            return VolumeLevel.HIGH
        if self.volume_ratio > 1.2:
            return VolumeLevel.ELEVATED
        return VolumeLevel.NORMAL


@dataclass
class Stock:
    """Current quote for a listed stock."""

    symbol: str
    name: str
    current_price: float
    previous_close: float
    change: float
    change_percent: float
    volume: int
    last_updated: datetime | None = None
    market_cap: float | None = None
    sector: str | None = None
    industry: str | None = None

    @property
    def is_up(self) -> bool:
        return self.change > 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Stock":
        """Build a Stock from the API's camelCase JSON."""
        return cls(
            symbol=data["symbol"],
            name=data.get("name", ""),
            current_price=float(data.get("currentPrice", 0)),
            previous_close=float(data.get("previousClose", 0)),
            change=float(data.get("change", 0)),
            change_percent=float(data.get("changePercent", 0)),
            volume=int(data.get("volume", 0)),
            last_updated=_parse_datetime(data.get("lastUpdated")),
            market_cap=_optional_float(data.get("marketCap")),
            sector=data.get("sector"),
            industry=data.get("industry"),
        )


@dataclass
class Company:
    """Company profile attached to stock details."""

    name: str
    sector: str = ""
    industry: str = ""
    address: str = ""
    email: str = ""
    telephone: str = ""
    website: str = ""
    facsimile: str | None = None
    directors: list[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Company":
        return cls(
            name=data.get("name", ""),
            sector=data.get("sector", ""),
            industry=data.get("industry", ""),
            address=data.get("address", ""),
            email=data.get("email", ""),
            telephone=data.get("telephone", ""),
            website=data.get("website", ""),
            facsimile=data.get("facsimile"),
            directors=list(data.get("directors") or []),
        )


@dataclass
class StockDetails(Stock):
    """Stock quote enriched with fundamentals and the company profile."""

    shares: int = 0
    dps: float | None = None
    eps: float | None = None
    company: Company | None = None

    @property
    def dividend_yield(self) -> float | None:
        """Dividend yield in percent, when a dividend per share is known."""
        if self.dps is None or self.current_price <= 0:
            return None
        return self.dps / self.current_price * 100

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "StockDetails":
        stock = Stock.from_api(data)
        company = data.get("company")
        return cls(
            symbol=stock.symbol,
            name=stock.name,
            current_price=stock.current_price,
            previous_close=stock.previous_close,
            change=stock.change,
            change_percent=stock.change_percent,
            volume=stock.volume,
            last_updated=stock.last_updated,
            market_cap=stock.market_cap,
            sector=stock.sector,
            industry=stock.industry,
            shares=int(data.get("shares", 0)),
            dps=_optional_float(data.get("dps")),
            eps=_optional_float(data.get("eps")),
            company=Company.from_api(company) if company else None,
        )


class AlertType(str, Enum):
    """Condition an alert watches for."""

    PRICE_ABOVE = "price_above"
    PRICE_BELOW = "price_below"
    PRICE_CHANGE = "price_change"
    VOLUME_SPIKE = "volume_spike"
    DIVIDEND_YIELD = "dividend_yield"
    DIVIDEND_ANNOUNCEMENT = "dividend_announcement"


class AlertStatus(str, Enum):
    """Lifecycle state of an alert."""

    ACTIVE = "active"
    TRIGGERED = "triggered"
    INACTIVE = "inactive"


@dataclass
class Alert:
    """User alert on a stock."""

    id: str
    user_id: str
    stock_symbol: str
    stock_name: str
    alert_type: str
    status: str
    threshold_price: float | None = None
    current_price: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == AlertStatus.ACTIVE.value

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Alert":
        return cls(
            id=str(data["id"]),
            user_id=str(data.get("userId", "")),
            stock_symbol=data.get("stockSymbol", ""),
            stock_name=data.get("stockName", ""),
            alert_type=data.get("alertType", ""),
            status=data.get("status", AlertStatus.ACTIVE.value),
            threshold_price=_optional_float(data.get("thresholdPrice")),
            current_price=_optional_float(data.get("currentPrice")),
            created_at=_parse_datetime(data.get("createdAt")),
            updated_at=_parse_datetime(data.get("updatedAt")),
        )


@dataclass
class CreateAlertRequest:
    """Payload for creating an alert."""

    stock_symbol: str
    stock_name: str
    alert_type: str
    threshold_price: float | None = None

    def to_api(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "stockSymbol": self.stock_symbol,
            "stockName": self.stock_name,
            "alertType": self.alert_type,
        }
        if self.threshold_price is not None:
            body["thresholdPrice"] = self.threshold_price
        return body


@dataclass
class UpdateAlertRequest:
    """Partial update for an alert. Only fields that are set are sent."""

    stock_symbol: str | None = None
    stock_name: str | None = None
    alert_type: str | None = None
    threshold_price: float | None = None
    status: str | None = None

    def to_api(self) -> dict[str, Any]:
        fields = {
            "stockSymbol": self.stock_symbol,
            "stockName": self.stock_name,
            "alertType": self.alert_type,
            "thresholdPrice": self.threshold_price,
            "status": self.status,
        }
        return {key: value for key, value in fields.items() if value is not None}
