"""Models module initialization."""
from toolkit_auth.models.environment import (
    AZURE,
    AZURE_CHINA,
    AZURE_GERMANY,
    AZURE_US_GOVERNMENT,
    AzureEnvironment,
    known_environments,
)
from toolkit_auth.models.errors import (
    AuthenticationFailureError,
    AuthError,
    CommandError,
    EnvironmentConflictError,
    InvalidConfigurationError,
    NoStrategyAvailableError,
    NotSignedInError,
    RestorePreconditionError,
    ServiceError,
    SessionMismatchError,
    StrategyUnavailableError,
    UnsupportedAuthTypeError,
    UnsupportedRestoreTypeError,
)
from toolkit_auth.models.schemas import (
    AccountEntity,
    AuthConfiguration,
    AuthType,
    AzureCliSubscription,
    CachedSession,
    Subscription,
    dedupe_subscriptions,
    select_default_subscription,
)

__all__ = [
    "AZURE",
    "AZURE_CHINA",
    "AZURE_GERMANY",
    "AZURE_US_GOVERNMENT",
    "AzureEnvironment",
    "known_environments",
    "AuthError",
    "AuthenticationFailureError",
    "CommandError",
    "EnvironmentConflictError",
    "InvalidConfigurationError",
    "NoStrategyAvailableError",
    "NotSignedInError",
    "RestorePreconditionError",
    "ServiceError",
    "SessionMismatchError",
    "StrategyUnavailableError",
    "UnsupportedAuthTypeError",
    "UnsupportedRestoreTypeError",
    "AccountEntity",
    "AuthConfiguration",
    "AuthType",
    "AzureCliSubscription",
    "CachedSession",
    "Subscription",
    "dedupe_subscriptions",
    "select_default_subscription",
]
