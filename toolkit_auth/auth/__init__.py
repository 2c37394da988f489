"""Auth module initialization."""
from toolkit_auth.auth.account import Account, AccountState, SimpleAccount
from toolkit_auth.auth.azure_cli import AzureCliAccount
from toolkit_auth.auth.chain import StrategyChain
from toolkit_auth.auth.credential_manager import RefreshTokenCredential, TokenCredentialManager
from toolkit_auth.auth.identity import DeviceCodeAccount, ManagedIdentityAccount, OAuthAccount
from toolkit_auth.auth.service_principal import ServicePrincipalAccount
from toolkit_auth.auth.session import AzureAccount
from toolkit_auth.auth.shared_cache import (
    SharedTokenCacheAccount,
    VisualStudioAccount,
    select_cached_session,
)
from toolkit_auth.auth.vscode import VisualStudioCodeAccount

__all__ = [
    "Account",
    "AccountState",
    "SimpleAccount",
    "AzureCliAccount",
    "StrategyChain",
    "RefreshTokenCredential",
    "TokenCredentialManager",
    "DeviceCodeAccount",
    "ManagedIdentityAccount",
    "OAuthAccount",
    "ServicePrincipalAccount",
    "AzureAccount",
    "SharedTokenCacheAccount",
    "VisualStudioAccount",
    "select_cached_session",
    "VisualStudioCodeAccount",
]
