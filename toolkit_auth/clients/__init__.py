"""Clients module initialization."""
from toolkit_auth.clients.azure_cli import AzureCliClient
from toolkit_auth.clients.resource_manager import ResourceManagerClient
from toolkit_auth.clients.token_cache import CachedSessionProvider, MsalCachedSessionProvider
from toolkit_auth.clients.vscode_settings import (
    KeyringSecretStore,
    SecretStore,
    VSCodeSettingsReader,
)

__all__ = [
    "AzureCliClient",
    "ResourceManagerClient",
    "CachedSessionProvider",
    "MsalCachedSessionProvider",
    "KeyringSecretStore",
    "SecretStore",
    "VSCodeSettingsReader",
]
