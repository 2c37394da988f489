"""The signed-in Azure account of the running application."""
from typing import Callable, Optional, Union

from toolkit_auth.auth.account import Account
from toolkit_auth.auth.azure_cli import AzureCliAccount
from toolkit_auth.auth.chain import StrategyChain
from toolkit_auth.auth.identity import DeviceCodeAccount, ManagedIdentityAccount, OAuthAccount
from toolkit_auth.auth.service_principal import ServicePrincipalAccount
from toolkit_auth.auth.shared_cache import SharedTokenCacheAccount, VisualStudioAccount
from toolkit_auth.auth.vscode import VisualStudioCodeAccount
from toolkit_auth.clients.token_cache import CachedSessionProvider
from toolkit_auth.config import Settings, get_logger, settings
from toolkit_auth.logging import LogContextManager, with_context
from toolkit_auth.models.environment import AzureEnvironment
from toolkit_auth.models.errors import (
    EnvironmentConflictError,
    NotSignedInError,
    SessionMismatchError,
    UnsupportedAuthTypeError,
    UnsupportedRestoreTypeError,
)
from toolkit_auth.models.schemas import AccountEntity, AuthConfiguration, AuthType

logger = get_logger(__name__)

AccountFactory = Callable[[AuthConfiguration], Account]

# AUTO mode order after the service principal
AUTO_ORDER = (
    AuthType.MANAGED_IDENTITY,
    AuthType.AZURE_CLI,
    AuthType.VSCODE,
    AuthType.OAUTH2,
    AuthType.DEVICE_CODE,
)

RESTORE_FROM_CACHE = (AuthType.DEVICE_CODE, AuthType.OAUTH2)
RESTORE_LIVE = (AuthType.VSCODE, AuthType.AZURE_CLI)


class AzureAccount:
    """
    Owns the current account of the application.

    Create one instance at start-up and pass it where sign-in state is
    needed. The current account is replaced by each completed login and
    cleared by ``logout``; callers serialise access.

    Usage:
        azure_account = AzureAccount()
        account = await azure_account.login(AuthType.AUTO)
        token = await account.get_token()
    """

    def __init__(
        self,
        app_settings: Optional[Settings] = None,
        factories: Optional[dict[AuthType, AccountFactory]] = None,
        session_provider: Optional[CachedSessionProvider] = None,
    ) -> None:
        """
        Args:
            app_settings: Settings; defaults to the process settings.
            factories: Overrides of the account constructors per auth type.
            session_provider: Shared token cache lookup used by ``restore_login``.
        """
        self._settings = app_settings or settings
        self._factories = self._default_factories()
        self._factories.update(factories or {})
        self._session_provider = session_provider
        self._account: Optional[Account] = None

    def _default_factories(self) -> dict[AuthType, AccountFactory]:
        app_settings = self._settings
        return {
            AuthType.AZURE_CLI: lambda auth: AzureCliAccount(app_settings=app_settings),
            AuthType.VSCODE: lambda auth: VisualStudioCodeAccount(app_settings=app_settings),
            AuthType.VISUAL_STUDIO: lambda auth: VisualStudioAccount(
                environment=auth.environment, app_settings=app_settings
            ),
            AuthType.OAUTH2: lambda auth: OAuthAccount(
                environment=auth.environment, app_settings=app_settings
            ),
            AuthType.DEVICE_CODE: lambda auth: DeviceCodeAccount(
                environment=auth.environment, app_settings=app_settings
            ),
            AuthType.MANAGED_IDENTITY: lambda auth: ManagedIdentityAccount(
                client_id=auth.client if auth.type is AuthType.MANAGED_IDENTITY else None,
                environment=auth.environment,
                app_settings=app_settings,
            ),
            # Needs the full configuration rather than a bare constructor
            AuthType.SERVICE_PRINCIPAL: lambda auth: ServicePrincipalAccount(
                auth, app_settings=app_settings
            ),
        }

    # ========================================================================
    # Current account
    # ========================================================================

    @property
    def is_logged_in(self) -> bool:
        return self._account is not None

    def account(self) -> Account:
        """
        The current account.

        Raises:
            NotSignedInError: If nobody is signed in.
        """
        if self._account is None:
            raise NotSignedInError()
        return self._account

    def _set_account(self, account: Account) -> None:
        previous = self._account
        self._account = account
        if previous is not None and previous is not account:
            previous.logout()
        logger.info(
            f"Signed in as '{account.entity.email}' with '{account.auth_type.value}'",
            extra=with_context(
                auth_type=account.auth_type.value,
                environment=str(account.environment),
            ),
        )

    def logout(self) -> None:
        """Forget the current account and release it. No-op when signed out."""
        if self._account is not None:
            account = self._account
            self._account = None
            account.logout()

    # ========================================================================
    # Discovery
    # ========================================================================

    def create_account(self, auth_type: AuthType, auth: Optional[AuthConfiguration] = None) -> Account:
        """
        Construct the account for one strategy without signing in.

        Raises:
            UnsupportedAuthTypeError: For AUTO or an unknown type.
        """
        auth = auth or AuthConfiguration(type=auth_type)
        if auth_type is AuthType.AUTO:
            raise UnsupportedAuthTypeError("Auth type 'auto' is illegal for login.")
        factory = self._factories.get(auth_type)
        if factory is None:
            raise UnsupportedAuthTypeError(
                f"Unsupported auth type '{auth_type.value}', supported values are: "
                f"{', '.join(t.value for t in self._factories)}.",
                {"auth_type": auth_type.value},
            )
        return factory(auth)

    async def accounts(self) -> list[Account]:
        """Every strategy except service principal, probed, in discovery order."""
        result = []
        for auth_type in self._factories:
            if auth_type is AuthType.SERVICE_PRINCIPAL:
                continue
            account = self.create_account(auth_type)
            await account.check_available()
            result.append(account)
        return result

    # ========================================================================
    # Login
    # ========================================================================

    def _producer(self, auth_type: AuthType, auth: AuthConfiguration, persist_token: bool):
        async def produce() -> Account:
            account = self.create_account(auth_type, auth)
            account.enable_persistence = persist_token
            return await account.login()

        return produce

    def build_auto_chain(self, auth: AuthConfiguration, persist_token: bool = False) -> StrategyChain:
        """Service principal when configured, then managed identity, CLI, VS Code, browser, device code."""
        chain = StrategyChain()
        if not auth.is_service_principal_empty():
            chain.add(
                self._producer(AuthType.SERVICE_PRINCIPAL, auth, persist_token),
                AuthType.SERVICE_PRINCIPAL.value,
            )
        for auth_type in AUTO_ORDER:
            chain.add(self._producer(auth_type, auth, persist_token), auth_type.value)
        return chain

    def build_explicit_chain(
        self, auth: AuthConfiguration, persist_token: bool = False
    ) -> StrategyChain:
        """A single strategy, reported by name when it fails."""
        chain = StrategyChain(f"Cannot get credentials from auth type '{auth.type.value}'.")
        chain.add(self._producer(auth.type, auth, persist_token), auth.type.value)
        return chain

    async def login(
        self,
        auth: Union[AuthConfiguration, AuthType, str, None] = None,
        persist_token: bool = False,
    ) -> Account:
        """
        Sign in and make the result the current account.

        Args:
            auth: Configuration, or just an auth type; AUTO when omitted.
            persist_token: Keep browser/device-code sessions in the shared token cache.

        Returns:
            The signed-in account.

        Raises:
            NoStrategyAvailableError: If no strategy could sign in.
            EnvironmentConflictError: If the account's cloud differs from the requested one.
        """
        if not isinstance(auth, AuthConfiguration):
            auth = AuthConfiguration(type=AuthType.parse(auth))
        if auth.type is not AuthType.AUTO and auth.type not in self._factories:
            raise UnsupportedAuthTypeError(f"Unsupported auth type '{auth.type.value}'.")

        with LogContextManager(logger, "Sign-in", auth_type=auth.type.value):
            if auth.type is AuthType.AUTO:
                chain = self.build_auto_chain(auth, persist_token)
            else:
                chain = self.build_explicit_chain(auth, persist_token)
            account = await chain.run()
            try:
                self.check_environment(account, auth.environment)
            except EnvironmentConflictError:
                account.logout()
                raise
        self._set_account(account)
        return account

    async def login_account(self, account: Account, persist_token: bool = False) -> Account:
        """Sign in with an account built by the caller, e.g. a ``SimpleAccount``."""
        account.enable_persistence = persist_token
        await account.login()
        self._set_account(account)
        return account

    # ========================================================================
    # Restore
    # ========================================================================

    async def restore_login(self, entity: AccountEntity) -> Account:
        """
        Sign in again as a previously persisted account.

        Browser and device-code accounts come back from the shared token cache;
        CLI and VS Code accounts sign in live and must still be the same user
        on the same cloud.

        Raises:
            RestorePreconditionError: If the entity lacks environment, type or tenants.
            UnsupportedRestoreTypeError: If the auth type cannot be restored.
            SessionMismatchError: If the user or cloud changed since the snapshot.
        """
        entity.validate_for_use()

        if entity.type in RESTORE_FROM_CACHE:
            target: Account = SharedTokenCacheAccount.from_entity(
                entity, session_provider=self._session_provider, app_settings=self._settings
            )
        elif entity.type in RESTORE_LIVE:
            target = self.create_account(entity.type)
        else:
            raise UnsupportedRestoreTypeError(
                f"Cannot restore login for auth type '{entity.type.value}'.",
                {"auth_type": entity.type.value},
            )

        with LogContextManager(logger, "Restore sign-in", auth_type=entity.type.value):
            account = await target.login()
            try:
                self._verify_restored(account, entity)
            except SessionMismatchError:
                account.logout()
                raise
        self._set_account(account)
        return account

    @staticmethod
    def _verify_restored(account: Account, entity: AccountEntity) -> None:
        if account.environment is not entity.environment:
            raise SessionMismatchError(
                f"You have changed the azure cloud from '{entity.environment}' to "
                f"'{account.environment}' for auth type '{entity.type.value}' "
                "since last time you signed in.",
                entity.environment,
                account.environment,
            )
        if (account.entity.email or "").lower() != (entity.email or "").lower():
            raise SessionMismatchError(
                f"You have changed the account from '{entity.email}' to "
                f"'{account.entity.email}' since last time you signed in.",
                entity.email,
                account.entity.email,
            )

    # ========================================================================
    # Environment consistency
    # ========================================================================

    @staticmethod
    def check_environment(account: Account, expected: Optional[AzureEnvironment]) -> None:
        """
        Fail when an available account signed in to a cloud other than the requested one.

        Raises:
            EnvironmentConflictError: With a remedy specific to the account's strategy.
        """
        if (
            expected is None
            or account.environment is None
            or account.environment is expected
            or not account.is_available
        ):
            return

        real_env = account.environment.name
        expected_env = expected.name
        if account.auth_type is AuthType.AZURE_CLI:
            message = (
                f"The azure cloud from azure cli '{real_env}' doesn't match with your auth "
                f"configuration '{expected_env}', you can change it by executing "
                f"'az cloud set --name={expected_env}' command to change the cloud in azure cli."
            )
        elif account.auth_type is AuthType.VSCODE:
            message = (
                f"The azure cloud from vscode '{real_env}' doesn't match with your auth "
                f"configuration '{expected_env}', you can change it by pressing F1 in VSCode "
                "and find \">azure: sign in to Azure Cloud\" command to change azure cloud in vscode."
            )
        else:
            message = (
                f"The azure cloud from {account.auth_type.value} '{real_env}' doesn't match with "
                f"your auth configuration '{expected_env}', please switch to other auth method "
                f"for '{expected_env}' environment."
            )
        raise EnvironmentConflictError(message, real_env, expected_env)
