"""Sign-in through the Azure CLI's current session."""
from typing import Optional

from azure.identity import AzureCliCredential

from toolkit_auth.auth.account import Account
from toolkit_auth.auth.credential_manager import TokenCredentialManager
from toolkit_auth.clients.azure_cli import AzureCliClient
from toolkit_auth.config import Settings, get_logger
from toolkit_auth.models.errors import AuthenticationFailureError, CommandError
from toolkit_auth.models.schemas import (
    AuthType,
    dedupe_subscriptions,
    select_default_subscription,
)

logger = get_logger(__name__)

# Client id the Azure CLI signs in with
AZURE_CLI_CLIENT_ID = "04b07795-8ddb-461a-bbee-02f9e1bf7b46"


class AzureCliAccount(Account):
    """Reuses ``az login``; subscriptions and tenants come from ``az account list``."""

    def __init__(
        self,
        cli: Optional[AzureCliClient] = None,
        app_settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(app_settings)
        self._cli = cli or AzureCliClient(
            command=self._settings.auth.az_command,
            timeout=self._settings.auth.az_timeout,
            min_version=self._settings.auth.az_min_version,
        )

    @property
    def auth_type(self) -> AuthType:
        return AuthType.AZURE_CLI

    @property
    def client_id(self) -> Optional[str]:
        return AZURE_CLI_CLIENT_ID

    async def probe(self) -> bool:
        try:
            await self._cli.ensure_minimum_version()
            token = await self._cli.get_access_token()
        except CommandError as e:
            logger.debug(f"Azure CLI is not usable: {e}")
            return False
        return bool(token.get("accessToken"))

    async def build_credential_manager(self) -> TokenCredentialManager:
        subscriptions = await self._cli.list_subscriptions()
        if not subscriptions:
            raise AuthenticationFailureError("Cannot find any subscriptions in current account.")

        default_subscription = select_default_subscription(subscriptions)
        self.entity.email = default_subscription.email

        subscriptions = [s for s in subscriptions if s.email == self.entity.email]

        # use the tenants that have one or more subscriptions
        self.entity.tenant_ids = list(dict.fromkeys(s.tenant_id for s in subscriptions))
        self.entity.subscriptions = [
            s.to_subscription() for s in dedupe_subscriptions(subscriptions)
        ]
        self.entity.selected_subscription_ids = list(
            dict.fromkeys(s.id for s in subscriptions if s.is_default)
        )

        environment = default_subscription.environment or self.default_environment
        credential = AzureCliCredential(process_timeout=self._settings.auth.az_timeout)
        return TokenCredentialManager(environment, self.client_id, credential)
