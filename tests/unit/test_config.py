"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError
from sharesalert.config import ApiConfig, CacheConfig, Config


class TestConfig:
    """Tests for Config and nested settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.chdir(tmp_path)
        config = Config()

        assert config.cache.enabled is True
        assert config.cache.max_size is None
        assert config.cache.stock_list_ttl == 2
        assert config.cache.stock_ttl == 1
        assert config.cache.stock_details_ttl == 5
        assert config.cache.alert_list_ttl == 1
        assert config.api.base_url == "http://localhost:8080/api/v1"
        assert config.indicators.rsi_period == 14
        assert config.indicators.sma_period == 20
        assert config.indicators.ema_period == 12
        assert config.indicators.synthetic_days == 30

    def test_nested_environment_overrides(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SHARESALERT_CACHE__MAX_SIZE", "500")
        monkeypatch.setenv("SHARESALERT_CACHE__ENABLED", "false")
        monkeypatch.setenv("SHARESALERT_API__BASE_URL", "https://alerts.example.com/api/v1/")
        monkeypatch.setenv("SHARESALERT_LOGGING__FORMAT", "json")

        config = Config()

        assert config.cache.max_size == 500
        assert config.cache.enabled is False
        assert config.api.base_url == "https://alerts.example.com/api/v1"
        assert config.logging.format == "json"

    def test_ttl_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            CacheConfig(stock_ttl=0)

    def test_max_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            CacheConfig(max_size=0)

    def test_base_url_trailing_slash_stripped(self) -> None:
        assert ApiConfig(base_url="http://x/api/").base_url == "http://x/api"
