"""Optomate OData client for patient invoices and receipts."""

from typing import Any

import httpx
import structlog

from pos_reconcile.config import get_settings
from pos_reconcile.trading_day import TradingDayWindow

logger = structlog.get_logger(__name__)


class OptomateAPIError(Exception):
    """Base exception for Optomate API errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


def build_branch_filter(branch_code: str, date_field: str, window: TradingDayWindow) -> str:
    """OData filter selecting one branch's records inside a trading-day window."""
    return (
        f"BRANCH_IDENTIFIER eq '{branch_code}' and "
        f"{date_field} ge {window.start_filter} and "
        f"{date_field} le {window.end_filter}"
    )


class OptomateClient:
    """Async client for the Optomate API using HTTP Basic auth."""

    def __init__(
        self,
        base_url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.optomate_api_base).rstrip("/")
        self._username = username or settings.optomate_username
        self._password = password or settings.optomate_password.get_secret_value()
        self._timeout = timeout or settings.http_timeout

        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=httpx.BasicAuth(self._username, self._password),
                headers={"Accept": "application/json"},
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "OptomateClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _get_collection(self, path: str, params: dict[str, str]) -> list[dict[str, Any]]:
        """GET an OData collection and return its ``value`` array."""
        client = await self._get_client()
        try:
            response = await client.get(path, params=params)
        except httpx.RequestError as e:
            logger.error("optomate_request_failed", path=path, error=str(e))
            raise OptomateAPIError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except ValueError:
                error_detail = {"raw": response.text[:500] if response.text else "empty response"}
            logger.error(
                "optomate_api_error",
                path=path,
                status_code=response.status_code,
                details=error_detail,
            )
            raise OptomateAPIError(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                details=error_detail,
            )

        data = response.json() if response.content else {}
        if not isinstance(data, dict):
            raise OptomateAPIError(f"Invalid {path} response format")
        value = data.get("value")
        return value if isinstance(value, list) else []

    async def fetch_invoices(
        self, branch_code: str, window: TradingDayWindow
    ) -> list[dict[str, Any]]:
        """Fetch PatientInvoices (with ITEMS) for a branch and trading day."""
        invoices = await self._get_collection(
            "/PatientInvoices",
            params={
                "$expand": "ITEMS",
                "$filter": build_branch_filter(branch_code, "SALE_DATE", window),
            },
        )
        logger.debug("invoices_fetched", branch=branch_code, count=len(invoices))
        return invoices

    async def fetch_receipts(
        self, branch_code: str, window: TradingDayWindow
    ) -> list[dict[str, Any]]:
        """Fetch PatientReceipts (with RECEIPT_ITEMS) for a branch and trading day."""
        receipts = await self._get_collection(
            "/PatientReceipts",
            params={
                "$expand": "RECEIPT_ITEMS",
                "$filter": build_branch_filter(branch_code, "RECEIPT_DATE", window),
            },
        )
        logger.debug("receipts_fetched", branch=branch_code, count=len(receipts))
        return receipts
