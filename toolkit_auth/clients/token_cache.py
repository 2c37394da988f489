"""Shared token cache enumeration through msal's public cache API."""
from pathlib import Path
from typing import Optional, Protocol

import msal

from toolkit_auth.config import get_logger, settings
from toolkit_auth.models.environment import AzureEnvironment
from toolkit_auth.models.schemas import CachedSession

logger = get_logger(__name__)

DEFAULT_SHARED_CACHE_NAME = "msal.cache"


class CachedSessionProvider(Protocol):
    """Lists signed-in sessions recorded in a token cache for a client id."""

    def cached_sessions(self, client_id: str) -> list[CachedSession]:
        ...


class MsalCachedSessionProvider:
    """
    Reads an unencrypted msal token cache file.

    A session is an account entry that has a refresh token issued to the
    requested client id on a cloud we know. Entries from unknown authorities
    are skipped.
    """

    def __init__(self, cache_path: Optional[Path] = None, cache_name: Optional[str] = None) -> None:
        if cache_path is None:
            cache_path = Path(settings.auth.shared_cache_dir) / (
                cache_name or DEFAULT_SHARED_CACHE_NAME
            )
        self._cache_path = cache_path

    @property
    def cache_path(self) -> Path:
        return self._cache_path

    def _load_cache(self) -> Optional[msal.SerializableTokenCache]:
        if not self._cache_path.exists():
            logger.debug(f"Token cache not found: {self._cache_path}")
            return None
        try:
            content = self._cache_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.debug(f"Cannot read token cache {self._cache_path}: {e}")
            return None
        cache = msal.SerializableTokenCache()
        try:
            cache.deserialize(content)
        except ValueError as e:
            # Encrypted caches (DPAPI, keychain) are not readable as plain JSON
            logger.debug(f"Token cache {self._cache_path} is not plain JSON: {e}")
            return None
        return cache

    def cached_sessions(self, client_id: str) -> list[CachedSession]:
        cache = self._load_cache()
        if cache is None:
            return []

        accounts = {
            account.get("home_account_id"): account
            for account in cache.search(msal.TokenCache.CredentialType.ACCOUNT)
        }
        sessions: list[CachedSession] = []
        seen: set[tuple[str, str]] = set()
        for token in cache.search(msal.TokenCache.CredentialType.REFRESH_TOKEN):
            if str(token.get("client_id", "")).lower() != client_id.lower():
                continue
            account = accounts.get(token.get("home_account_id"))
            environment = AzureEnvironment.from_authority_host(token.get("environment", ""))
            if account is None or environment is None:
                continue
            key = (token.get("home_account_id", ""), environment.name)
            if key in seen:
                continue
            seen.add(key)
            sessions.append(
                CachedSession(
                    client_id=client_id,
                    username=account.get("username", ""),
                    environment=environment,
                    home_account_id=token.get("home_account_id", ""),
                    tenant_id=account.get("realm", ""),
                    refresh_token=token.get("secret", ""),
                )
            )
        logger.debug(f"Found {len(sessions)} cached sessions for client {client_id}")
        return sessions
