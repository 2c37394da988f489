"""Toolkit auth configuration management."""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class AzureSettings(BaseSettings):
    """Azure cloud and service principal settings."""

    environment: str = "AzureCloud"
    tenant_id: str = ""
    client_id: str = ""
    client_secret: Optional[str] = None
    certificate_path: Optional[str] = None
    certificate_password: Optional[str] = None
    authority_host: Optional[str] = None  # Overrides the cloud's authority

    class Config:
        env_prefix = "AZURE_"
        case_sensitive = False


class AuthSettings(BaseSettings):
    """Sign-in resolution settings."""

    log_level: str = "INFO"

    # Azure CLI
    az_command: str = "az"
    az_min_version: str = "2.11.0"
    az_timeout: int = 30

    # Token caches
    token_cache_name: str = "azure-toolkit.cache"
    shared_cache_dir: str = str(Path.home() / ".IdentityService")

    # VS Code user settings, detected per platform when empty
    vscode_settings_path: str = ""

    # Azure Resource Manager calls
    request_timeout: int = 30

    # Managed identity endpoint detection
    imds_endpoint: str = "http://169.254.169.254/metadata/identity/oauth2/token"
    imds_timeout: float = 1.0

    class Config:
        env_prefix = "TOOLKIT_AUTH_"
        case_sensitive = False

    def resolve_vscode_settings_path(self) -> Path:
        """Location of the VS Code user settings file."""
        if self.vscode_settings_path:
            return Path(self.vscode_settings_path)
        if sys.platform == "win32":
            return Path(os.environ.get("APPDATA", "")) / "Code" / "User" / "settings.json"
        if sys.platform == "darwin":
            return (
                Path.home() / "Library" / "Application Support" / "Code" / "User" / "settings.json"
            )
        return Path.home() / ".config" / "Code" / "User" / "settings.json"


class Settings(BaseSettings):
    """Root settings combining all subsettings."""

    azure: AzureSettings = AzureSettings()
    auth: AuthSettings = AuthSettings()

    class Config:
        case_sensitive = False


# Global settings instance
settings = Settings()


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(settings.auth.log_level)
    return logger
