"""Sign-in from sessions already present in a shared msal token cache."""
import asyncio
from typing import Optional

from toolkit_auth.auth.account import Account
from toolkit_auth.auth.credential_manager import RefreshTokenCredential, TokenCredentialManager
from toolkit_auth.clients.token_cache import (
    DEFAULT_SHARED_CACHE_NAME,
    CachedSessionProvider,
    MsalCachedSessionProvider,
)
from toolkit_auth.config import Settings, get_logger
from toolkit_auth.models.environment import AZURE, AzureEnvironment
from toolkit_auth.models.schemas import AccountEntity, AuthType, CachedSession

logger = get_logger(__name__)

VISUAL_STUDIO_CLIENT_ID = "872cd9fa-d31f-45e0-9eab-6e460a02d1f1"


def select_cached_session(
    sessions: list[CachedSession],
    username: Optional[str] = None,
    environment: Optional[AzureEnvironment] = None,
) -> Optional[CachedSession]:
    """
    Pick the cached session to sign in with.

    Sessions are filtered by username (case-insensitive) and, when given, by
    cloud. Among the rest the global cloud wins; otherwise the first match
    in cache order is used.
    """
    candidates = [
        s
        for s in sessions
        if (not username or s.username.lower() == username.lower())
        and (environment is None or s.environment is environment)
    ]
    if not candidates:
        return None
    return next((s for s in candidates if s.environment is AZURE), candidates[0])


class SharedTokenCacheAccount(Account):
    """
    Account restored from a previously issued session in a shared token cache.

    Used to bring back device-code and browser sign-ins across runs: the
    session was written with persistence enabled and is looked up again by
    client id and username.
    """

    def __init__(
        self,
        client_id: str,
        auth_type: AuthType,
        username: Optional[str] = None,
        tenant_id: Optional[str] = None,
        environment: Optional[AzureEnvironment] = None,
        cache_name: Optional[str] = None,
        session_provider: Optional[CachedSessionProvider] = None,
        app_settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(app_settings)
        self._client_id = client_id
        self._auth_type = auth_type
        self._username = username
        self._tenant_id = tenant_id
        self._requested_environment = environment
        self._cache_name = cache_name or self._settings.auth.token_cache_name
        self._session_provider = session_provider or MsalCachedSessionProvider(
            cache_name=self._cache_name
        )
        self._session: Optional[CachedSession] = None

    @classmethod
    def from_entity(
        cls,
        entity: AccountEntity,
        session_provider: Optional[CachedSessionProvider] = None,
        app_settings: Optional[Settings] = None,
    ) -> "SharedTokenCacheAccount":
        """Scope a cache lookup to a persisted account's user, tenant and client id."""
        entity.validate_for_use()
        account = cls(
            client_id=entity.client_id or "",
            auth_type=entity.type,
            username=entity.email,
            tenant_id=entity.tenant_ids[0],
            environment=entity.environment,
            session_provider=session_provider,
            app_settings=app_settings,
        )
        account.entity.selected_subscription_ids = list(entity.selected_subscription_ids)
        return account

    @property
    def auth_type(self) -> AuthType:
        return self._auth_type

    @property
    def client_id(self) -> Optional[str]:
        return self._client_id

    async def probe(self) -> bool:
        sessions = await asyncio.to_thread(self._session_provider.cached_sessions, self._client_id)
        self._session = select_cached_session(
            sessions, self._username, self._requested_environment
        )
        if self._session is None or not self._session.refresh_token:
            logger.debug(
                f"No cached session for client {self._client_id} "
                f"and user '{self._username or '*'}'"
            )
            return False
        self.entity.email = self._session.username
        return True

    async def build_credential_manager(self) -> TokenCredentialManager:
        environment = self._session.environment
        tenant_id = self._tenant_id or self._session.tenant_id or None
        # Redeem under the client id the session was issued to
        credential = RefreshTokenCredential(
            environment, self._client_id, self._session.refresh_token, tenant_id
        )
        manager = TokenCredentialManager(environment, self.client_id, credential)
        await self.populate_from_manager(manager, tenant_id=tenant_id)
        return manager


class VisualStudioAccount(SharedTokenCacheAccount):
    """Session signed in through Visual Studio, found in the default msal cache."""

    def __init__(
        self,
        environment: Optional[AzureEnvironment] = None,
        session_provider: Optional[CachedSessionProvider] = None,
        app_settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(
            client_id=VISUAL_STUDIO_CLIENT_ID,
            auth_type=AuthType.VISUAL_STUDIO,
            environment=environment,
            cache_name=DEFAULT_SHARED_CACHE_NAME,
            session_provider=session_provider,
            app_settings=app_settings,
        )
