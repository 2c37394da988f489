"""Account abstraction shared by every sign-in strategy."""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, final

from azure.core.credentials import TokenCredential

from toolkit_auth.auth.credential_manager import TokenCredentialManager, email_from_claims
from toolkit_auth.clients.resource_manager import ResourceManagerClient
from toolkit_auth.config import Settings, get_logger, settings
from toolkit_auth.models.environment import AZURE, AzureEnvironment
from toolkit_auth.models.errors import (
    AuthenticationFailureError,
    AuthError,
    NotSignedInError,
    ServiceError,
    StrategyUnavailableError,
)
from toolkit_auth.models.schemas import AccountEntity, AuthType, dedupe_subscriptions

logger = get_logger(__name__)


class AccountState(str, Enum):
    """Lifecycle of a sign-in attempt."""

    CREATED = "created"
    PROBED_AVAILABLE = "probed_available"
    PROBED_UNAVAILABLE = "probed_unavailable"
    MANAGER_READY = "manager_ready"
    LOGGED_IN = "logged_in"
    FAILED = "failed"


class Account(ABC):
    """
    One sign-in strategy bound to the identity it discovers.

    Subclasses implement ``probe`` (are the prerequisites here?) and
    ``build_credential_manager`` (create the token issuer and fill in the
    entity). ``login`` runs the two in order and is not meant to be
    overridden.
    """

    def __init__(self, app_settings: Optional[Settings] = None) -> None:
        self._settings = app_settings or settings
        self.entity = AccountEntity()
        self.enable_persistence = False
        self._state = AccountState.CREATED
        self._available = False
        self._credential_manager: Optional[TokenCredentialManager] = None

    @property
    @abstractmethod
    def auth_type(self) -> AuthType:
        """Which strategy this is."""
        ...

    @property
    @abstractmethod
    def client_id(self) -> Optional[str]:
        """Application id presented to Entra ID."""
        ...

    @abstractmethod
    async def probe(self) -> bool:
        """
        Check whether this strategy can work here.

        Returns False when the strategy does not apply; raises only for
        misconfiguration of the strategy itself.
        """
        ...

    @abstractmethod
    async def build_credential_manager(self) -> TokenCredentialManager:
        """Create the token issuer. Only called after ``probe`` returned True."""
        ...

    @property
    def state(self) -> AccountState:
        return self._state

    @property
    def is_available(self) -> bool:
        """True once the probe has succeeded."""
        return self._available

    @property
    def environment(self) -> Optional[AzureEnvironment]:
        return self.entity.environment

    @property
    def credential_manager(self) -> Optional[TokenCredentialManager]:
        return self._credential_manager

    @property
    def default_environment(self) -> AzureEnvironment:
        """The process-wide configured cloud."""
        return AzureEnvironment.from_name(self._settings.azure.environment) or AZURE

    @final
    async def login(self) -> "Account":
        """
        Probe, build the credential manager and mark the account signed in.

        Returns:
            This account, with its entity populated.

        Raises:
            StrategyUnavailableError: If the probe returned False.
            AuthenticationFailureError: If the probe or the build raised.
        """
        if self._state is AccountState.LOGGED_IN:
            return self

        self.entity.type = self.auth_type
        self.entity.client_id = self.client_id
        try:
            available = await self.probe()
            self._available = bool(available)
            if not self._available:
                self._state = AccountState.PROBED_UNAVAILABLE
                logger.debug(f"Auth type '{self.auth_type.value}' is not available")
                raise StrategyUnavailableError(self.auth_type.value)

            self._state = AccountState.PROBED_AVAILABLE
            manager = await self.build_credential_manager()
            self._credential_manager = manager
            self.entity.environment = manager.environment
            self._state = AccountState.MANAGER_READY
        except AuthError:
            self._state = AccountState.FAILED
            raise
        except Exception as e:
            self._state = AccountState.FAILED
            raise AuthenticationFailureError(
                f"Cannot sign in with auth type '{self.auth_type.value}': {e}",
                {"auth_type": self.auth_type.value},
            ) from e

        self._state = AccountState.LOGGED_IN
        logger.debug(
            f"Signed in with '{self.auth_type.value}' as '{self.entity.email}' "
            f"on {self.entity.environment}"
        )
        return self

    async def check_available(self) -> bool:
        """Run only the probe, recording the outcome. Never raises."""
        try:
            self._available = bool(await self.probe())
        except Exception as e:
            logger.debug(f"Probe of '{self.auth_type.value}' failed: {e}")
            self._available = False
        self._state = (
            AccountState.PROBED_AVAILABLE if self._available else AccountState.PROBED_UNAVAILABLE
        )
        return self._available

    def logout(self) -> None:
        """Release the credential manager. Safe to call repeatedly."""
        if self._credential_manager is not None:
            manager = self._credential_manager
            self._credential_manager = None
            manager.close()

    async def get_token(self, scopes: Optional[list[str]] = None) -> str:
        """Issue an access token with the signed-in credential."""
        if self._credential_manager is None:
            raise NotSignedInError()
        return await self._credential_manager.get_token(scopes)

    async def populate_from_manager(
        self,
        manager: TokenCredentialManager,
        tenant_id: Optional[str] = None,
    ) -> None:
        """
        Fill email, tenants and subscriptions from a working credential.

        Email comes from the token claims, tenants and subscriptions from
        Azure Resource Manager. Without any listed tenant the ``tenant_id``
        hint or the token's home tenant is used. Subscriptions already listed in
        ``selected_subscription_ids`` stay selected; with no prior selection
        every subscription is selected.
        """
        claims = await manager.get_token_claims()
        self.entity.email = self.entity.email or email_from_claims(claims)

        client = ResourceManagerClient(manager)
        try:
            subscriptions = dedupe_subscriptions(await client.list_subscriptions())
        except ServiceError as e:
            logger.warning(f"Cannot list subscriptions for '{self.auth_type.value}': {e}")
            subscriptions = []

        selected = {s.lower() for s in self.entity.selected_subscription_ids}
        for subscription in subscriptions:
            subscription.selected = not selected or subscription.id.lower() in selected
        self.entity.subscriptions = subscriptions
        self.entity.selected_subscription_ids = [s.id for s in subscriptions if s.selected]

        tenant_ids = list(dict.fromkeys(s.tenant_id for s in subscriptions if s.tenant_id))
        if not tenant_ids:
            try:
                tenant_ids = await client.list_tenant_ids()
            except ServiceError as e:
                logger.warning(f"Cannot list tenants for '{self.auth_type.value}': {e}")
        if not tenant_ids:
            home_tenant = tenant_id or claims.get("tid")
            tenant_ids = [home_tenant] if home_tenant else []
        self.entity.tenant_ids = tenant_ids

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(auth_type={self.auth_type.value!r}, "
            f"state={self._state.value!r}, email={self.entity.email!r})"
        )


class SimpleAccount(Account):
    """Account around a credential obtained elsewhere, trusted as-is."""

    def __init__(
        self,
        entity: AccountEntity,
        credential: TokenCredential,
        app_settings: Optional[Settings] = None,
    ) -> None:
        entity.validate_for_use()
        super().__init__(app_settings)
        self.entity = entity.model_copy(deep=True)
        self._credential = credential

    @property
    def auth_type(self) -> AuthType:
        return self.entity.type

    @property
    def client_id(self) -> Optional[str]:
        return self.entity.client_id

    async def probe(self) -> bool:
        return True

    async def build_credential_manager(self) -> TokenCredentialManager:
        return TokenCredentialManager(self.entity.environment, self.client_id, self._credential)
