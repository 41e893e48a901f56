"""Stock alert monitoring core: technical indicators and a TTL response cache."""

__version__ = "0.1.0"
