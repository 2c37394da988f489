"""Async Azure Resource Manager client for tenant and subscription discovery."""
from typing import Any, Optional, Protocol

import httpx

from toolkit_auth.config import get_logger, settings
from toolkit_auth.models.environment import AzureEnvironment
from toolkit_auth.models.errors import ServiceError
from toolkit_auth.models.schemas import Subscription

logger = get_logger(__name__)

API_VERSION = "2020-01-01"


class TokenSource(Protocol):
    """Anything that can issue a bearer token for an environment."""

    environment: AzureEnvironment

    async def get_token(self, scopes: Optional[list[str]] = None) -> str:
        ...


class ResourceManagerClient:
    """Lists tenants and subscriptions visible to a credential."""

    def __init__(
        self,
        token_source: TokenSource,
        timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client."""
        self._token_source = token_source
        self._base_url = token_source.environment.resource_manager_endpoint.rstrip("/")
        self._timeout = timeout or settings.auth.request_timeout
        self._transport = transport

    async def _get_auth_headers(self) -> dict[str, str]:
        """Get authorization headers with an ARM token."""
        token = await self._token_source.get_token(
            [self._token_source.environment.management_scope]
        )
        return {"Authorization": f"Bearer {token}"}

    async def _get_all(self, path: str) -> list[dict[str, Any]]:
        """
        GET a list endpoint and follow ``nextLink`` paging.

        Raises:
            ServiceError: If any request fails.
        """
        items: list[dict[str, Any]] = []
        url: Optional[str] = f"{self._base_url}{path}"
        params: Optional[dict[str, str]] = {"api-version": API_VERSION}
        headers = await self._get_auth_headers()

        async with httpx.AsyncClient(
            timeout=self._timeout,
            headers={"User-Agent": "toolkit-auth/1.0"},
            transport=self._transport,
        ) as client:
            while url:
                try:
                    logger.debug(f"GET {url}")
                    response = await client.get(url, params=params, headers=headers)
                    response.raise_for_status()
                    payload = response.json()
                except httpx.TimeoutException as e:
                    logger.error(f"Request timeout: {e}")
                    raise ServiceError(f"Request to {path} timed out") from e
                except httpx.HTTPStatusError as e:
                    logger.error(f"HTTP error {e.response.status_code}: {e}")
                    raise ServiceError(
                        f"Service error: {e.response.status_code}",
                        {
                            "status_code": e.response.status_code,
                            "path": path,
                        },
                    ) from e
                except (httpx.HTTPError, ValueError) as e:
                    logger.error(f"Request failed: {e}")
                    raise ServiceError(f"Request failed: {e}") from e

                items.extend(payload.get("value", []))
                url = payload.get("nextLink")
                # nextLink already carries the query string
                params = None
        return items

    async def list_tenant_ids(self) -> list[str]:
        """Tenants the signed-in identity belongs to."""
        tenants = await self._get_all("/tenants")
        return [t["tenantId"] for t in tenants if t.get("tenantId")]

    async def list_subscriptions(self) -> list[Subscription]:
        """Subscriptions visible with the current token."""
        raw = await self._get_all("/subscriptions")
        return [
            Subscription(
                id=s["subscriptionId"],
                name=s.get("displayName", ""),
                tenant_id=s.get("tenantId", ""),
            )
            for s in raw
            if s.get("subscriptionId")
        ]
