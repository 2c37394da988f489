"""Sign-in with a service principal secret or certificate."""
from typing import Optional

from azure.identity import CertificateCredential, ClientSecretCredential

from toolkit_auth.auth.account import Account
from toolkit_auth.auth.credential_manager import TokenCredentialManager
from toolkit_auth.config import Settings, get_logger
from toolkit_auth.models.errors import InvalidConfigurationError
from toolkit_auth.models.schemas import AuthConfiguration, AuthType

logger = get_logger(__name__)


class ServicePrincipalAccount(Account):
    """Service principal described by an ``AuthConfiguration``."""

    def __init__(self, auth: AuthConfiguration, app_settings: Optional[Settings] = None) -> None:
        super().__init__(app_settings)
        self._auth = auth

    @property
    def auth_type(self) -> AuthType:
        return AuthType.SERVICE_PRINCIPAL

    @property
    def client_id(self) -> Optional[str]:
        return self._auth.client

    async def probe(self) -> bool:
        if self._auth.is_service_principal_empty():
            logger.debug("Service principal configuration is empty")
            return False
        if not self._auth.is_service_principal_complete():
            missing = [
                name
                for name, value in (("tenant", self._auth.tenant), ("client", self._auth.client))
                if not value
            ]
            if not (self._auth.key or self._auth.certificate):
                missing.append("key or certificate")
            raise InvalidConfigurationError(
                f"Incomplete service principal configuration, missing: {', '.join(missing)}.",
                {"missing": missing},
            )
        if self._auth.key and self._auth.certificate:
            raise InvalidConfigurationError(
                "Service principal configuration must use either a key or a certificate, not both."
            )
        return True

    async def build_credential_manager(self) -> TokenCredentialManager:
        environment = self._auth.environment or self.default_environment
        authority = self._settings.azure.authority_host or environment.authority_host

        if self._auth.key:
            logger.info("Using ClientSecretCredential (Service Principal) for Azure auth")
            credential = ClientSecretCredential(
                tenant_id=self._auth.tenant,
                client_id=self._auth.client,
                client_secret=self._auth.key,
                authority=authority,
            )
        else:
            logger.info("Using CertificateCredential (Service Principal) for Azure auth")
            credential = CertificateCredential(
                tenant_id=self._auth.tenant,
                client_id=self._auth.client,
                certificate_path=self._auth.certificate,
                password=self._auth.certificate_password,
                authority=authority,
            )

        manager = TokenCredentialManager(environment, self.client_id, credential)
        await self.populate_from_manager(manager, tenant_id=self._auth.tenant)
        return manager
