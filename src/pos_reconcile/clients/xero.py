"""Xero accounting API client for posting manual journals."""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any, cast

import httpx
import structlog
from pydantic import SecretStr

from pos_reconcile.config import get_settings
from pos_reconcile.core.journal import ManualJournal

logger = structlog.get_logger(__name__)

# Likely causes logged alongside an error response.
_STATUS_HINTS: dict[int, str] = {
    401: (
        "Access token invalid or expired, tenant id wrong, refresh token revoked, "
        "or the app lacks the accounting.transactions scope"
    ),
    403: "The Xero app is not permitted to create manual journals; check its scopes",
    404: "Check the API URL and the tenant id",
}


def _secret(value: SecretStr | None) -> str | None:
    return value.get_secret_value() if value is not None else None


class XeroAPIError(Exception):
    """Base exception for Xero API errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AuthenticationError(XeroAPIError):
    """Authentication failed."""

    pass


class XeroClient:
    """Async Xero client authenticating with an OAuth2 refresh token."""

    def __init__(
        self,
        api_url: str | None = None,
        token_url: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        tenant_id: str | None = None,
        refresh_token: str | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        self.api_url = (api_url or settings.xero_api_url).rstrip("/")
        self.token_url = token_url or settings.xero_token_url
        self._timeout = timeout or settings.http_timeout

        client_secret = client_secret or _secret(settings.xero_client_secret)
        refresh_token = refresh_token or _secret(settings.xero_refresh_token)
        client_id = client_id or settings.xero_client_id
        tenant_id = tenant_id or settings.xero_tenant_id
        missing = [
            name
            for name, value in (
                ("XERO_CLIENT_ID", client_id),
                ("XERO_CLIENT_SECRET", client_secret),
                ("XERO_TENANT_ID", tenant_id),
                ("XERO_REFRESH_TOKEN", refresh_token),
            )
            if not value
        ]
        if missing:
            raise XeroAPIError(f"Xero credentials not configured: {', '.join(missing)}")

        self._client_id = cast(str, client_id)
        self._client_secret = cast(str, client_secret)
        self.tenant_id = cast(str, tenant_id)
        self._refresh_token = cast(str, refresh_token)

        self._access_token: str | None = None
        self._token_expires_at: datetime | None = None

        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "XeroClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def refresh_token(self) -> str:
        """Current refresh token (Xero rotates it on every refresh)."""
        return self._refresh_token

    # === Authentication ===

    async def refresh_access_token(self) -> str:
        """Exchange the refresh token for a new access token."""
        client = await self._get_client()
        try:
            response = await client.post(
                self.token_url,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": self._refresh_token,
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.RequestError as e:
            raise XeroAPIError(f"Token request failed: {e}") from e

        if response.status_code in (400, 401):
            details = self._error_details(response)
            logger.error(
                "token_refresh_failed",
                status_code=response.status_code,
                details=details,
                hint="Refresh token expired or client credentials wrong; issue a new token",
            )
            raise AuthenticationError(
                "Token refresh rejected",
                status_code=response.status_code,
                details=details,
            )
        if response.status_code >= 400:
            raise XeroAPIError(
                f"Token endpoint error: {response.status_code}",
                status_code=response.status_code,
                details=self._error_details(response),
            )

        data = cast(dict[str, Any], response.json())
        access_token = data.get("access_token")
        if not access_token:
            raise XeroAPIError("Token response did not include an access token")

        new_refresh = data.get("refresh_token")
        if new_refresh and new_refresh != self._refresh_token:
            self._refresh_token = new_refresh
            # Held in memory only; the configured token is now spent
            logger.warning(
                "refresh_token_superseded",
                hint="Update XERO_REFRESH_TOKEN before the next run",
            )

        expires_in = int(data.get("expires_in", 1800))
        self._access_token = access_token
        # Refresh a minute early
        self._token_expires_at = datetime.now(UTC) + timedelta(seconds=max(expires_in - 60, 0))
        logger.debug("access_token_refreshed", expires_in=expires_in)
        return access_token

    async def _ensure_authenticated(self) -> None:
        """Ensure we have a valid access token."""
        async with self._lock:
            if (
                not self._access_token
                or self._token_expires_at is None
                or datetime.now(UTC) >= self._token_expires_at
            ):
                await self.refresh_access_token()

    def _get_headers(self) -> dict[str, str]:
        """Get request headers with auth token and tenant."""
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Xero-tenant-id": self.tenant_id,
        }
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    @staticmethod
    def _error_details(response: httpx.Response) -> Any:
        try:
            return response.json() if response.content else {}
        except ValueError:
            return {"raw": response.text[:500] if response.text else "empty response"}

    # === Generic Request Method ===

    async def _request(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Make an authenticated API request."""
        await self._ensure_authenticated()
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=path,
                json=json,
                headers=self._get_headers(),
            )
        except httpx.RequestError as e:
            raise XeroAPIError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            details = self._error_details(response)
            logger.error(
                "xero_api_error",
                method=method,
                path=path,
                status_code=response.status_code,
                details=details,
                hint=_STATUS_HINTS.get(response.status_code),
            )
            error_cls = AuthenticationError if response.status_code == 401 else XeroAPIError
            raise error_cls(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                details=details,
            )

        data = response.json() if response.content else {}
        if not isinstance(data, dict):
            raise XeroAPIError(f"Invalid {path} response format")
        return data

    # === Endpoints ===

    async def get_organisation(self) -> dict[str, Any]:
        """Fetch the connected organisation (used as a connection test)."""
        return await self._request("GET", "/Organisation")

    async def create_manual_journal(self, journal: ManualJournal) -> dict[str, Any]:
        """Post a manual journal and return Xero's response body."""
        await self.get_organisation()
        result = await self._request(
            "POST",
            "/ManualJournals",
            json={"ManualJournals": [journal.to_payload()]},
        )
        logger.info(
            "manual_journal_created",
            date=journal.date.isoformat(),
            line_count=len(journal.lines),
        )
        return result
