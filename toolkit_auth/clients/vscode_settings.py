"""Read-only access to VS Code's Azure sign-in state."""
import json
from pathlib import Path
from typing import Optional, Protocol

import keyring
from keyring.errors import KeyringError

from toolkit_auth.config import get_logger, settings

logger = get_logger(__name__)

VSCODE_SERVICE_NAME = "VS Code Azure"
DEFAULT_CLOUD_NAME = "AzureCloud"


class SecretStore(Protocol):
    """Credential vault lookup by service label and account name."""

    def get_secret(self, service: str, account: str) -> Optional[str]:
        ...


class KeyringSecretStore:
    """Secret store backed by the operating system keyring."""

    def get_secret(self, service: str, account: str) -> Optional[str]:
        try:
            return keyring.get_password(service, account)
        except KeyringError as e:
            logger.debug(f"Keyring lookup for '{service}/{account}' failed: {e}")
            return None


class VSCodeSettingsReader:
    """
    Reads the Azure extension settings from VS Code's ``settings.json``.

    Recognised keys are exposed under short names:

    - ``cloud``: value of ``azure.cloud``
    - ``filter``: subscription ids from ``azure.resourceFilter``, comma-separated
    """

    def __init__(
        self,
        settings_path: Optional[Path] = None,
        secret_store: Optional[SecretStore] = None,
    ) -> None:
        self._settings_path = settings_path or settings.auth.resolve_vscode_settings_path()
        self._secret_store = secret_store or KeyringSecretStore()

    def _load(self) -> dict:
        if not self._settings_path.exists():
            return {}
        try:
            data = json.loads(self._settings_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.debug(f"Cannot read VS Code settings {self._settings_path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get_user_settings(self) -> dict[str, str]:
        """Azure-related user settings keyed by ``cloud`` and ``filter``."""
        raw = self._load()
        result: dict[str, str] = {}

        cloud = raw.get("azure.cloud")
        if isinstance(cloud, str) and cloud.strip():
            result["cloud"] = cloud.strip()

        # Entries look like "<tenant id>/<subscription id>"
        resource_filter = raw.get("azure.resourceFilter")
        if isinstance(resource_filter, list) and resource_filter:
            ids = [str(item).split("/")[-1] for item in resource_filter if str(item).strip()]
            result["filter"] = ",".join(ids)
        elif isinstance(resource_filter, str) and resource_filter.strip():
            result["filter"] = resource_filter.strip()
        return result

    def get_credentials(self, service: str, cloud_name: Optional[str]) -> Optional[str]:
        """Stored session secret for the given cloud (defaults to the public cloud)."""
        return self._secret_store.get_secret(service, cloud_name or DEFAULT_CLOUD_NAME)
