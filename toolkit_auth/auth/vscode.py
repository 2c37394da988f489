"""Sign-in with the session stored by VS Code's Azure Account extension."""
import asyncio
from typing import Optional

from toolkit_auth.auth.account import Account
from toolkit_auth.auth.credential_manager import RefreshTokenCredential, TokenCredentialManager
from toolkit_auth.clients.vscode_settings import VSCODE_SERVICE_NAME, VSCodeSettingsReader
from toolkit_auth.config import Settings, get_logger
from toolkit_auth.models.environment import AzureEnvironment
from toolkit_auth.models.schemas import AuthType

logger = get_logger(__name__)

VSCODE_CLIENT_ID = "aebc6443-996d-45c2-90f0-388ff96faa56"


class VisualStudioCodeAccount(Account):
    def __init__(
        self,
        reader: Optional[VSCodeSettingsReader] = None,
        app_settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(app_settings)
        self._reader = reader or VSCodeSettingsReader(
            settings_path=self._settings.auth.resolve_vscode_settings_path()
        )
        self._refresh_token: Optional[str] = None
        self._cloud_name: Optional[str] = None

    @property
    def auth_type(self) -> AuthType:
        return AuthType.VSCODE

    @property
    def client_id(self) -> Optional[str]:
        return VSCODE_CLIENT_ID

    async def probe(self) -> bool:
        user_settings = await asyncio.to_thread(self._reader.get_user_settings)
        self._cloud_name = user_settings.get("cloud")
        self._refresh_token = await asyncio.to_thread(
            self._reader.get_credentials, VSCODE_SERVICE_NAME, self._cloud_name
        )
        logger.debug(f"VS Code cloud setting: {self._cloud_name or 'default'}")
        if "filter" in user_settings:
            self.entity.selected_subscription_ids = [
                s.strip() for s in user_settings["filter"].split(",") if s.strip()
            ]
        return bool(self._refresh_token and self._refresh_token.strip())

    async def build_credential_manager(self) -> TokenCredentialManager:
        environment = AzureEnvironment.from_name(self._cloud_name) or self.default_environment
        credential = RefreshTokenCredential(environment, VSCODE_CLIENT_ID, self._refresh_token)
        manager = TokenCredentialManager(environment, self.client_id, credential)
        await self.populate_from_manager(manager)
        return manager
