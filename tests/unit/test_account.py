"""Unit tests for the account lifecycle."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from toolkit_auth.auth.account import AccountState, SimpleAccount
from toolkit_auth.auth.credential_manager import TokenCredentialManager
from toolkit_auth.models.environment import AZURE, AZURE_CHINA
from toolkit_auth.models.errors import (
    AuthenticationFailureError,
    InvalidConfigurationError,
    NotSignedInError,
    RestorePreconditionError,
    ServiceError,
    StrategyUnavailableError,
)
from toolkit_auth.models.schemas import AccountEntity, AuthType, Subscription


@pytest.mark.asyncio
async def test_login_success_transitions_to_logged_in(make_account) -> None:
    """Test a successful login populates the entity and keeps the manager."""
    account = make_account(environment=AZURE_CHINA)
    assert account.state is AccountState.CREATED

    result = await account.login()

    assert result is account
    assert account.state is AccountState.LOGGED_IN
    assert account.is_available
    assert account.environment is AZURE_CHINA
    assert account.entity.type is AuthType.AZURE_CLI
    assert account.entity.client_id == "fake-client"
    assert account.entity.email == "user@contoso.com"
    assert account.credential_manager is not None


@pytest.mark.asyncio
async def test_login_unavailable_raises_strategy_unavailable(make_account) -> None:
    """Test a false probe fails without building a manager."""
    account = make_account(available=False)

    with pytest.raises(StrategyUnavailableError):
        await account.login()

    assert account.state is AccountState.FAILED
    assert not account.is_available
    assert account.build_calls == 0
    assert account.credential_manager is None


@pytest.mark.asyncio
async def test_login_wraps_unexpected_errors(make_account) -> None:
    """Test build exceptions surface as authentication failures."""
    account = make_account(build_error=RuntimeError("token endpoint down"))

    with pytest.raises(AuthenticationFailureError) as exc_info:
        await account.login()

    assert "token endpoint down" in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert account.state is AccountState.FAILED


@pytest.mark.asyncio
async def test_login_passes_auth_errors_through(make_account) -> None:
    """Test strategy-specific auth errors are not rewrapped."""
    error = InvalidConfigurationError("bad config")
    account = make_account(probe_error=error)

    with pytest.raises(InvalidConfigurationError) as exc_info:
        await account.login()

    assert exc_info.value is error


@pytest.mark.asyncio
async def test_login_twice_does_not_check_again(make_account) -> None:
    """Test a signed-in account is returned as-is."""
    account = make_account()
    await account.login()
    await account.login()

    assert account.probe_calls == 1
    assert account.build_calls == 1


@pytest.mark.asyncio
async def test_logout_is_idempotent(make_account) -> None:
    """Test logout releases the credential once and can be repeated."""
    account = make_account()
    await account.login()

    account.logout()
    account.logout()

    assert account.credential_manager is None
    account.credential.close.assert_called_once()


@pytest.mark.asyncio
async def test_get_token_requires_login(make_account) -> None:
    """Test token requests before login fail."""
    with pytest.raises(NotSignedInError):
        await make_account().get_token()


@pytest.mark.asyncio
async def test_get_token_uses_manager(make_account) -> None:
    """Test tokens come from the account's credential."""
    account = make_account()
    account.credential.get_token.return_value = MagicMock(token="issued")
    await account.login()

    assert await account.get_token(["scope/.default"]) == "issued"
    account.credential.get_token.assert_called_once_with("scope/.default")


@pytest.mark.asyncio
async def test_check_available_never_raises(make_account) -> None:
    """Test probing alone records availability and swallows probe errors."""
    broken = make_account(probe_error=RuntimeError("oops"))
    working = make_account()

    assert await broken.check_available() is False
    assert broken.state is AccountState.PROBED_UNAVAILABLE
    assert await working.check_available() is True
    assert working.state is AccountState.PROBED_AVAILABLE


@pytest.mark.asyncio
async def test_simple_account_wraps_existing_credential(mock_credential) -> None:
    """Test the pre-validated account trusts its entity and credential."""
    entity = AccountEntity(
        environment=AZURE,
        type=AuthType.DEVICE_CODE,
        client_id="client",
        email="me@contoso.com",
        tenant_ids=["tenant-1"],
    )

    account = await SimpleAccount(entity, mock_credential).login()

    assert account.auth_type is AuthType.DEVICE_CODE
    assert account.environment is AZURE
    assert account.entity.email == "me@contoso.com"
    assert await account.get_token() == "test-token"


def test_simple_account_validates_entity(mock_credential) -> None:
    """Test incomplete entities are rejected up front."""
    with pytest.raises(RestorePreconditionError):
        SimpleAccount(AccountEntity(environment=AZURE, type=AuthType.OAUTH2), mock_credential)


@pytest.mark.asyncio
async def test_populate_from_manager(make_account, mock_credential) -> None:
    """Test identity comes from token claims and subscriptions from Resource Manager."""
    account = make_account()
    account.entity.selected_subscription_ids = ["SUB-2"]
    manager = TokenCredentialManager(AZURE, "client", mock_credential)
    manager.get_token_claims = AsyncMock(return_value={"upn": "me@contoso.com", "tid": "home"})

    with patch("toolkit_auth.auth.account.ResourceManagerClient") as mock_client_cls:
        mock_client_cls.return_value.list_subscriptions = AsyncMock(
            return_value=[
                Subscription(id="sub-1", tenant_id="tenant-a"),
                Subscription(id="sub-2", tenant_id="tenant-b"),
                Subscription(id="SUB-1", tenant_id="tenant-a"),
            ]
        )
        mock_client_cls.return_value.list_tenant_ids = AsyncMock()
        await account.populate_from_manager(manager)

    assert account.entity.email == "me@contoso.com"
    assert [s.id for s in account.entity.subscriptions] == ["sub-1", "sub-2"]
    assert account.entity.selected_subscription_ids == ["sub-2"]
    assert account.entity.tenant_ids == ["tenant-a", "tenant-b"]
    mock_client_cls.return_value.list_tenant_ids.assert_not_awaited()


@pytest.mark.asyncio
async def test_populate_from_manager_without_subscriptions(make_account, mock_credential) -> None:
    """Test the home tenant is used when neither subscriptions nor tenants can be listed."""
    account = make_account()
    manager = TokenCredentialManager(AZURE, "client", mock_credential)
    manager.get_token_claims = AsyncMock(return_value={"tid": "home-tenant"})

    with patch("toolkit_auth.auth.account.ResourceManagerClient") as mock_client_cls:
        mock_client_cls.return_value.list_subscriptions = AsyncMock(
            side_effect=ServiceError("Service error: 403")
        )
        mock_client_cls.return_value.list_tenant_ids = AsyncMock(
            side_effect=ServiceError("Service error: 403")
        )
        await account.populate_from_manager(manager)

    assert account.entity.subscriptions == []
    assert account.entity.tenant_ids == ["home-tenant"]


@pytest.mark.asyncio
async def test_populate_from_manager_lists_tenants(make_account, mock_credential) -> None:
    """Test tenants come from Resource Manager when there are no subscriptions."""
    account = make_account()
    manager = TokenCredentialManager(AZURE, "client", mock_credential)
    manager.get_token_claims = AsyncMock(return_value={"tid": "home-tenant"})

    with patch("toolkit_auth.auth.account.ResourceManagerClient") as mock_client_cls:
        mock_client_cls.return_value.list_subscriptions = AsyncMock(return_value=[])
        mock_client_cls.return_value.list_tenant_ids = AsyncMock(return_value=["t1", "t2"])
        await account.populate_from_manager(manager, tenant_id="hint")

    assert account.entity.subscriptions == []
    assert account.entity.selected_subscription_ids == []
    assert account.entity.tenant_ids == ["t1", "t2"]
