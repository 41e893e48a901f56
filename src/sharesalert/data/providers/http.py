"""HTTP implementation of the alert API."""

from typing import Any

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ...config import ApiConfig
from ...utils.logging import get_logger
from ..api import AlertApi, ApiError
from ..models import Alert, CreateAlertRequest, Stock, StockDetails, UpdateAlertRequest

logger = get_logger(__name__)


def _is_transient(error: BaseException) -> bool:
    """Retry connection problems and server-side failures, never 4xx."""
    if isinstance(error, ApiError):
        return error.status is None or error.status >= 500
    return isinstance(error, (aiohttp.ClientError, TimeoutError))


def _require_symbol(symbol: str) -> str:
    if not symbol or not symbol.strip():
        raise ValueError("Symbol is required")
    return symbol.strip().upper()


class HttpAlertApi(AlertApi):
    """Alert API client over HTTP using aiohttp.

    Reads are retried with exponential backoff; mutations are sent once.
    Pass ``session`` to share a ClientSession, otherwise one is opened per request.
    """

    def __init__(
        self,
        config: ApiConfig | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize HTTP alert API client.

        Args:
            config: API configuration with base URL, timeout and retry count
            session: Optional shared aiohttp session
        """
        self.config = config or ApiConfig()
        self.base_url = self.config.base_url
        self._session = session

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and decode the JSON response.

        Raises:
            ApiError: If the API responds with a non-2xx status
        """
        url = f"{self.base_url}{path}"
        logger.debug("alert_api_request", method=method, url=url, params=params)

        if self._session is not None:
            return await self._send(self._session, method, url, params, body)

        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            return await self._send(session, method, url, params, body)

    async def _send(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        params: dict[str, str] | None,
        body: dict[str, Any] | None,
    ) -> Any:
        async with session.request(method, url, params=params, json=body) as response:
            if response.status == 204:
                return None
            if not 200 <= response.status < 300:
                logger.warning(
                    "alert_api_error",
                    method=method,
                    url=url,
                    status=response.status,
                )
                raise ApiError(
                    f"{method} {url} failed: {response.status} {response.reason}",
                    status=response.status,
                )
            if method == "DELETE":
                return None
            return await response.json()

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.config.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        ):
            with attempt:
                return await self._request("GET", path, params=params)

    async def get_all_stocks(self) -> list[Stock]:
        data = await self._get("/stocks")
        stocks = [Stock.from_api(item) for item in data or []]
        logger.info("stocks_fetched", count=len(stocks))
        return stocks

    async def get_stock(self, symbol: str) -> Stock:
        symbol = _require_symbol(symbol)
        return Stock.from_api(await self._get(f"/stocks/{symbol}"))

    async def get_stock_details(self, symbol: str) -> StockDetails:
        symbol = _require_symbol(symbol)
        return StockDetails.from_api(await self._get(f"/stocks/{symbol}/details"))

    async def get_all_alerts(
        self, user_id: str | None = None, status: str | None = None
    ) -> list[Alert]:
        params: dict[str, str] = {}
        if user_id:
            params["userId"] = user_id
        if status:
            params["status"] = status
        data = await self._get("/alerts", params=params or None)
        alerts = [Alert.from_api(item) for item in data or []]
        logger.info("alerts_fetched", count=len(alerts), user_id=user_id, status=status)
        return alerts

    async def create_alert(self, request: CreateAlertRequest) -> Alert:
        data = await self._request("POST", "/alerts", body=request.to_api())
        alert = Alert.from_api(data)
        logger.info("alert_created", alert_id=alert.id, symbol=alert.stock_symbol)
        return alert

    async def get_alert(self, alert_id: str) -> Alert:
        return Alert.from_api(await self._get(f"/alerts/{alert_id}"))

    async def update_alert(self, alert_id: str, updates: UpdateAlertRequest) -> Alert:
        data = await self._request("PUT", f"/alerts/{alert_id}", body=updates.to_api())
        logger.info("alert_updated", alert_id=alert_id)
        return Alert.from_api(data)

    async def delete_alert(self, alert_id: str) -> None:
        await self._request("DELETE", f"/alerts/{alert_id}")
        logger.info("alert_deleted", alert_id=alert_id)

    async def health_check(self) -> dict[str, str]:
        data: dict[str, str] = await self._get("/health")
        return data
