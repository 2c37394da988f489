"""Data models for accounts, subscriptions and auth configuration."""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from toolkit_auth.models.environment import AzureEnvironment
from toolkit_auth.models.errors import RestorePreconditionError, UnsupportedAuthTypeError


class AuthType(str, Enum):
    """Supported sign-in strategies."""

    AUTO = "auto"
    SERVICE_PRINCIPAL = "service_principal"
    MANAGED_IDENTITY = "managed_identity"
    AZURE_CLI = "azure_cli"
    VSCODE = "vscode"
    VISUAL_STUDIO = "visual_studio"
    OAUTH2 = "oauth2"
    DEVICE_CODE = "device_code"

    @classmethod
    def parse(cls, value: Any) -> "AuthType":
        """Parse ``Azure-CLI``, ``azure_cli`` and similar spellings. Empty means AUTO."""
        if isinstance(value, AuthType):
            return value
        if value is None or not str(value).strip():
            return cls.AUTO
        key = str(value).strip().lower().replace("-", "_")
        for member in cls:
            if member.value == key:
                return member
        raise UnsupportedAuthTypeError(
            f"Unsupported auth type '{value}', supported values are: "
            f"{', '.join(member.value for member in cls)}.",
            {"auth_type": str(value)},
        )


def _to_environment(value: Any) -> Optional[AzureEnvironment]:
    if value is None or isinstance(value, AzureEnvironment):
        return value
    if isinstance(value, str):
        return AzureEnvironment.from_name(value)
    raise ValueError(f"Cannot interpret {value!r} as an Azure environment")


# ============================================================================
# Account snapshot
# ============================================================================


class Subscription(BaseModel):
    """Azure subscription visible to an account."""

    id: str = Field(..., description="Subscription identifier")
    name: str = Field(default="", description="Display name")
    tenant_id: str = Field(default="", description="Owning tenant")
    selected: bool = Field(default=False, description="Selected for use")


class AccountEntity(BaseModel):
    """
    Persisted identity snapshot.

    Populated by the owning account while it signs in; treated as a value
    afterwards and safe to store between runs.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    environment: Optional[AzureEnvironment] = None
    type: Optional[AuthType] = None
    client_id: Optional[str] = None
    email: Optional[str] = None
    tenant_ids: list[str] = Field(default_factory=list)
    subscriptions: list[Subscription] = Field(default_factory=list)
    selected_subscription_ids: list[str] = Field(default_factory=list)

    @field_validator("environment", mode="before")
    @classmethod
    def _parse_environment(cls, value: Any) -> Optional[AzureEnvironment]:
        return _to_environment(value)

    @field_serializer("environment")
    def _serialize_environment(self, environment: Optional[AzureEnvironment]) -> Optional[str]:
        return environment.name if environment else None

    def validate_for_use(self) -> None:
        """
        Check the environment/type/tenant invariant.

        Raises:
            RestorePreconditionError: If a required field is missing.
        """
        if self.environment is None:
            raise RestorePreconditionError("Azure environment for account entity is required.")
        if self.type is None:
            raise RestorePreconditionError("Auth type for account entity is required.")
        if not self.tenant_ids:
            raise RestorePreconditionError("At least one tenant id is required.")


# ============================================================================
# Auth configuration
# ============================================================================


class AuthConfiguration(BaseModel):
    """Caller's sign-in request."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: AuthType = Field(default=AuthType.AUTO, description="Strategy, or AUTO")
    environment: Optional[AzureEnvironment] = Field(
        default=None, description="Explicitly requested cloud"
    )
    tenant: Optional[str] = Field(default=None, description="Service principal tenant")
    client: Optional[str] = Field(
        default=None, description="Service principal or user-assigned identity client id"
    )
    key: Optional[str] = Field(default=None, description="Service principal secret")
    certificate: Optional[str] = Field(default=None, description="PEM/PFX certificate path")
    certificate_password: Optional[str] = Field(default=None)

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> AuthType:
        return AuthType.parse(value)

    @field_validator("environment", mode="before")
    @classmethod
    def _parse_environment(cls, value: Any) -> Optional[AzureEnvironment]:
        return _to_environment(value)

    def is_service_principal_empty(self) -> bool:
        """True when no service principal field is set."""
        return not any([self.tenant, self.client, self.key, self.certificate])

    def is_service_principal_complete(self) -> bool:
        """True when tenant, client and a secret or certificate are all set."""
        return bool(self.tenant and self.client and (self.key or self.certificate))

    @classmethod
    def from_settings(cls, azure_settings: Any, **overrides: Any) -> "AuthConfiguration":
        """Build a configuration from ``AzureSettings``; explicit overrides win when not None."""
        values: dict[str, Any] = {
            "tenant": azure_settings.tenant_id or None,
            "client": azure_settings.client_id or None,
            "key": azure_settings.client_secret,
            "certificate": azure_settings.certificate_path,
            "certificate_password": azure_settings.certificate_password,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


# ============================================================================
# External listings
# ============================================================================


class AzureCliUser(BaseModel):
    """User block of an ``az account list`` entry."""

    name: str = ""
    type: str = ""


class AzureCliSubscription(BaseModel):
    """One entry of ``az account list --output json``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    tenant_id: str = Field(default="", alias="tenantId")
    is_default: bool = Field(default=False, alias="isDefault")
    state: str = ""
    environment_name: str = Field(default="AzureCloud", alias="environmentName")
    user: AzureCliUser = Field(default_factory=AzureCliUser)

    @property
    def email(self) -> str:
        return self.user.name

    @property
    def environment(self) -> Optional[AzureEnvironment]:
        return AzureEnvironment.from_name(self.environment_name)

    def to_subscription(self) -> Subscription:
        return Subscription(
            id=self.id,
            name=self.name,
            tenant_id=self.tenant_id,
            selected=self.is_default,
        )


class CachedSession(BaseModel):
    """A signed-in account found in a shared token cache."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    client_id: str
    username: str
    environment: AzureEnvironment
    home_account_id: str = ""
    tenant_id: str = ""
    refresh_token: str = Field(default="", repr=False, exclude=True)


def dedupe_subscriptions(subscriptions: list[Any]) -> list[Any]:
    """Drop repeated subscriptions, comparing ids case-insensitively. First occurrence wins."""
    seen: set[str] = set()
    result = []
    for subscription in subscriptions:
        key = subscription.id.lower()
        if key not in seen:
            seen.add(key)
            result.append(subscription)
    return result


def select_default_subscription(subscriptions: list[AzureCliSubscription]) -> AzureCliSubscription:
    """The entry flagged as default, else the first one listed."""
    return next((s for s in subscriptions if s.is_default), subscriptions[0])
