"""Resolve the current Azure identity for command-line and build tooling."""
from toolkit_auth.auth import Account, AzureAccount, StrategyChain
from toolkit_auth.models import AccountEntity, AuthConfiguration, AuthType, AzureEnvironment

__version__ = "1.0.0"

__all__ = [
    "Account",
    "AzureAccount",
    "StrategyChain",
    "AccountEntity",
    "AuthConfiguration",
    "AuthType",
    "AzureEnvironment",
]
