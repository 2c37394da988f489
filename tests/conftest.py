"""Pytest configuration and fixtures."""
from typing import Callable, Optional
from unittest.mock import MagicMock

import pytest

from toolkit_auth.auth.account import Account
from toolkit_auth.auth.credential_manager import TokenCredentialManager
from toolkit_auth.config import AuthSettings, AzureSettings, Settings
from toolkit_auth.models.environment import AZURE, AzureEnvironment
from toolkit_auth.models.schemas import AuthType, CachedSession, Subscription


class FakeAccount(Account):
    """Account whose probe and build outcomes are scripted."""

    def __init__(
        self,
        auth_type: AuthType = AuthType.AZURE_CLI,
        available: bool = True,
        probe_error: Optional[Exception] = None,
        build_error: Optional[Exception] = None,
        environment: AzureEnvironment = AZURE,
        email: Optional[str] = "user@contoso.com",
        tenant_ids: tuple[str, ...] = ("tenant-1",),
        app_settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(app_settings)
        self._auth_type = auth_type
        self._available_result = available
        self._probe_error = probe_error
        self._build_error = build_error
        self._environment = environment
        self._email = email
        self._tenant_ids = list(tenant_ids)
        self.credential = MagicMock()
        self.probe_calls = 0
        self.build_calls = 0

    @property
    def auth_type(self) -> AuthType:
        return self._auth_type

    @property
    def client_id(self) -> Optional[str]:
        return "fake-client"

    async def probe(self) -> bool:
        self.probe_calls += 1
        if self._probe_error is not None:
            raise self._probe_error
        return self._available_result

    async def build_credential_manager(self) -> TokenCredentialManager:
        self.build_calls += 1
        if self._build_error is not None:
            raise self._build_error
        self.entity.email = self._email
        self.entity.tenant_ids = self._tenant_ids
        self.entity.subscriptions = [
            Subscription(id="sub-1", name="Dev", tenant_id=self._tenant_ids[0], selected=True)
        ]
        self.entity.selected_subscription_ids = ["sub-1"]
        return TokenCredentialManager(self._environment, self.client_id, self.credential)


class FakeSessionProvider:
    """In-memory shared token cache."""

    def __init__(self, sessions: list[CachedSession]) -> None:
        self.sessions = sessions
        self.requested: list[str] = []

    def cached_sessions(self, client_id: str) -> list[CachedSession]:
        self.requested.append(client_id)
        return [s for s in self.sessions if s.client_id == client_id]


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings isolated from the machine running the tests."""
    return Settings(
        azure=AzureSettings(environment="AzureCloud"),
        auth=AuthSettings(
            log_level="DEBUG",
            az_command="az",
            az_min_version="2.11.0",
            az_timeout=5,
            token_cache_name="test-toolkit.cache",
            shared_cache_dir=str(tmp_path / "identity-service"),
            vscode_settings_path=str(tmp_path / "vscode" / "settings.json"),
            request_timeout=5,
        ),
    )


@pytest.fixture
def make_account(test_settings) -> Callable[..., FakeAccount]:
    """Factory for scripted accounts."""

    def _make(**kwargs) -> FakeAccount:
        kwargs.setdefault("app_settings", test_settings)
        return FakeAccount(**kwargs)

    return _make


@pytest.fixture
def session_provider_factory() -> Callable[[list[CachedSession]], FakeSessionProvider]:
    """Factory for in-memory shared token caches."""
    return FakeSessionProvider


@pytest.fixture
def mock_credential() -> MagicMock:
    """azure-identity style credential issuing a fixed token."""
    credential = MagicMock()
    credential.get_token.return_value = MagicMock(token="test-token")
    return credential
