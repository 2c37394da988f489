"""Token-issuing managers built by sign-in strategies."""
import asyncio
import base64
import json
import time
from typing import Any, Optional

import msal
from azure.core.credentials import AccessToken, TokenCredential
from azure.core.exceptions import ClientAuthenticationError

from toolkit_auth.config import get_logger
from toolkit_auth.models.environment import AzureEnvironment
from toolkit_auth.models.errors import AuthenticationFailureError

logger = get_logger(__name__)


def decode_token_claims(token: str) -> dict[str, Any]:
    """
    Decode the payload of a JWT access token without verifying it.

    Returns:
        The claims, or an empty dict when the token is not a JWT.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return {}
    payload = parts[1]
    payload += "=" * (-len(payload) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload))
    except (ValueError, TypeError):
        return {}
    return claims if isinstance(claims, dict) else {}


def email_from_claims(claims: dict[str, Any]) -> Optional[str]:
    """Sign-in name from token claims: upn, then unique_name, preferred_username, email."""
    for key in ("upn", "unique_name", "preferred_username", "email"):
        value = claims.get(key)
        if value and isinstance(value, str):
            return value
    return None


class TokenCredentialManager:
    """
    Issues tokens for one signed-in account.

    Wraps an azure-identity ``TokenCredential`` together with the cloud it
    was created for and the client id presented to Entra ID.
    """

    def __init__(
        self,
        environment: AzureEnvironment,
        client_id: Optional[str],
        credential: TokenCredential,
    ) -> None:
        self.environment = environment
        self.client_id = client_id
        self.credential = credential

    async def get_token(self, scopes: Optional[list[str]] = None) -> str:
        """
        Get an access token.

        Args:
            scopes: Optional list of scopes. Defaults to the cloud's Resource Manager scope.

        Returns:
            Access token string.

        Raises:
            AuthenticationFailureError: If token acquisition fails.
        """
        target_scopes = scopes or [self.environment.management_scope]
        try:
            logger.debug(f"Acquiring token for scopes: {target_scopes}")
            # azure-identity handles token caching internally
            token = await asyncio.to_thread(self.credential.get_token, *target_scopes)
            return token.token
        except Exception as e:
            logger.debug(f"Failed to acquire token: {e}")
            raise AuthenticationFailureError(
                f"Azure token acquisition failed: {e}",
                {"scopes": target_scopes},
            ) from e

    async def get_token_claims(self, scopes: Optional[list[str]] = None) -> dict[str, Any]:
        """Claims of a freshly issued access token."""
        return decode_token_claims(await self.get_token(scopes))

    def close(self) -> None:
        """Release the underlying credential."""
        close = getattr(self.credential, "close", None)
        if callable(close):
            close()


class RefreshTokenCredential:
    """``TokenCredential`` that redeems a stored refresh token through msal."""

    def __init__(
        self,
        environment: AzureEnvironment,
        client_id: str,
        refresh_token: str,
        tenant_id: Optional[str] = None,
    ) -> None:
        self._client_id = client_id
        self._refresh_token = refresh_token
        self._authority = f"{environment.authority_host.rstrip('/')}/{tenant_id or 'organizations'}"
        self._app: Optional[msal.PublicClientApplication] = None

    def _get_app(self) -> msal.PublicClientApplication:
        if self._app is None:
            self._app = msal.PublicClientApplication(self._client_id, authority=self._authority)
        return self._app

    def get_token(self, *scopes: str, **kwargs: Any) -> AccessToken:
        result = self._get_app().acquire_token_by_refresh_token(
            self._refresh_token, scopes=list(scopes)
        )
        if "access_token" not in result:
            raise ClientAuthenticationError(
                message=result.get("error_description") or result.get("error") or "refresh failed"
            )
        # Refresh tokens rotate; keep the newest one
        self._refresh_token = result.get("refresh_token", self._refresh_token)
        return AccessToken(result["access_token"], int(time.time()) + int(result.get("expires_in", 0)))

    def close(self) -> None:
        self._app = None
