"""Data layer: API models, the alert API interface, and the response cache."""

from .api import AlertApi, ApiError, MockAlertApi
from .cache import CacheEntry, ResponseCache
from .models import (
    Alert,
    AlertStatus,
    AlertType,
    Company,
    CreateAlertRequest,
    PricePoint,
    RsiSignal,
    Stock,
    StockDetails,
    TechnicalIndicators,
    UpdateAlertRequest,
    VolumeLevel,
)
from .providers import HttpAlertApi

__all__ = [
    "Alert",
    "AlertApi",
    "AlertStatus",
    "AlertType",
    "ApiError",
    "CacheEntry",
    "Company",
    "CreateAlertRequest",
    "HttpAlertApi",
    "MockAlertApi",
    "PricePoint",
    "ResponseCache",
    "RsiSignal",
    "Stock",
    "StockDetails",
    "TechnicalIndicators",
    "UpdateAlertRequest",
    "VolumeLevel",
]
