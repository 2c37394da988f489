"""Strategies whose tokens are issued by azure-identity credentials."""
import os
import webbrowser
from abc import abstractmethod
from datetime import datetime
from typing import Callable, Optional

import httpx
from azure.core.credentials import TokenCredential
from azure.identity import (
    DeviceCodeCredential,
    InteractiveBrowserCredential,
    ManagedIdentityCredential,
    TokenCachePersistenceOptions,
)

from toolkit_auth.auth.account import Account
from toolkit_auth.auth.credential_manager import TokenCredentialManager
from toolkit_auth.config import Settings, get_logger
from toolkit_auth.models.environment import AzureEnvironment
from toolkit_auth.models.schemas import AuthType

logger = get_logger(__name__)

# Public client registered for the Azure toolkits
TOOLKIT_CLIENT_ID = "777acee8-5286-4d6e-8b05-f7c851d8ed0e"

DeviceCodePrompt = Callable[[str, str, datetime], None]

MANAGED_IDENTITY_ENV_VARS = ("IDENTITY_ENDPOINT", "MSI_ENDPOINT")


class IdentityBackendAccount(Account):
    """
    Base for managed identity, browser and device code sign-in.

    The credential is built and a first token is requested, which is where
    azure-identity reports whether sign-in actually works. ``probe`` only
    checks the local prerequisites; device code has none.
    """

    def __init__(
        self,
        environment: Optional[AzureEnvironment] = None,
        app_settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(app_settings)
        self._requested_environment = environment

    @abstractmethod
    def create_credential(self, environment: AzureEnvironment) -> TokenCredential:
        ...

    async def probe(self) -> bool:
        return True

    async def build_credential_manager(self) -> TokenCredentialManager:
        environment = self._requested_environment or self.default_environment
        credential = self.create_credential(environment)
        manager = TokenCredentialManager(environment, self.client_id, credential)
        await self.populate_from_manager(manager)
        return manager

    def _persistence_options(self) -> Optional[TokenCachePersistenceOptions]:
        if not self.enable_persistence:
            return None
        return TokenCachePersistenceOptions(
            name=self._settings.auth.token_cache_name, allow_unencrypted_storage=True
        )


class ManagedIdentityAccount(IdentityBackendAccount):
    """System- or user-assigned managed identity of the host."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        environment: Optional[AzureEnvironment] = None,
        app_settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(environment, app_settings)
        self._client_id = client_id
        self._transport = transport

    @property
    def auth_type(self) -> AuthType:
        return AuthType.MANAGED_IDENTITY

    @property
    def client_id(self) -> Optional[str]:
        return self._client_id

    async def probe(self) -> bool:
        # App Service, Functions, Arc and Cloud Shell advertise their endpoint
        for variable in MANAGED_IDENTITY_ENV_VARS:
            if os.environ.get(variable):
                logger.debug(f"Managed identity endpoint found in {variable}")
                return True
        return await self._imds_reachable()

    async def _imds_reachable(self) -> bool:
        """True if the instance metadata service answers at all."""
        # IMDS rejects requests without the Metadata header with 400, which still proves it is there
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.auth.imds_timeout, transport=self._transport
            ) as client:
                await client.get(self._settings.auth.imds_endpoint)
        except httpx.HTTPError as e:
            logger.debug(f"Instance metadata service is not reachable: {e}")
            return False
        return True

    def create_credential(self, environment: AzureEnvironment) -> TokenCredential:
        logger.debug(f"Using ManagedIdentityCredential (client id: {self._client_id or 'system'})")
        if self._client_id:
            return ManagedIdentityCredential(client_id=self._client_id)
        return ManagedIdentityCredential()


class OAuthAccount(IdentityBackendAccount):
    """Interactive sign-in in the system browser."""

    async def probe(self) -> bool:
        try:
            webbrowser.get()
        except webbrowser.Error:
            logger.debug("No web browser available for interactive sign-in")
            return False
        return True

    @property
    def auth_type(self) -> AuthType:
        return AuthType.OAUTH2

    @property
    def client_id(self) -> Optional[str]:
        return TOOLKIT_CLIENT_ID

    def create_credential(self, environment: AzureEnvironment) -> TokenCredential:
        kwargs = {}
        options = self._persistence_options()
        if options is not None:
            kwargs["cache_persistence_options"] = options
        return InteractiveBrowserCredential(
            client_id=TOOLKIT_CLIENT_ID,
            authority=environment.authority_host,
            **kwargs,
        )


def _log_device_code(verification_uri: str, user_code: str, expires_on: datetime) -> None:
    logger.warning(
        f"To sign in, use a web browser to open the page {verification_uri} "
        f"and enter the code {user_code} to authenticate."
    )


class DeviceCodeAccount(IdentityBackendAccount):
    """Sign-in by entering a code on another device."""

    def __init__(
        self,
        environment: Optional[AzureEnvironment] = None,
        prompt_callback: Optional[DeviceCodePrompt] = None,
        app_settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(environment, app_settings)
        self._prompt_callback = prompt_callback or _log_device_code

    @property
    def auth_type(self) -> AuthType:
        return AuthType.DEVICE_CODE

    @property
    def client_id(self) -> Optional[str]:
        return TOOLKIT_CLIENT_ID

    def create_credential(self, environment: AzureEnvironment) -> TokenCredential:
        kwargs = {}
        options = self._persistence_options()
        if options is not None:
            kwargs["cache_persistence_options"] = options
        return DeviceCodeCredential(
            client_id=TOOLKIT_CLIENT_ID,
            authority=environment.authority_host,
            prompt_callback=self._prompt_callback,
            **kwargs,
        )
