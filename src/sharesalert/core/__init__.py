"""Core data-access services."""

from sharesalert.core.service import StockDataService

__all__ = ["StockDataService"]
