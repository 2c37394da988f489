"""Azure cloud environments."""
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse


@dataclass(frozen=True, eq=False)
class AzureEnvironment:
    """
    A named Azure cloud.

    Instances are interned: every lookup for the same cloud returns the same
    object, so environments compare by identity.
    """

    name: str
    authority_host: str = ""
    resource_manager_endpoint: str = ""
    authority_aliases: tuple[str, ...] = field(default_factory=tuple)
    custom: bool = False

    @property
    def management_scope(self) -> str:
        """Default scope for Azure Resource Manager tokens."""
        return f"{self.resource_manager_endpoint.rstrip('/')}/.default"

    @property
    def authority_hostname(self) -> str:
        """Authority host without scheme, as recorded by token caches."""
        return urlparse(self.authority_host).netloc or self.authority_host

    def matches_authority(self, host: str) -> bool:
        """Check whether a token-cache environment host belongs to this cloud."""
        host = (urlparse(host).netloc or host).lower()
        return host == self.authority_hostname.lower() or host in self.authority_aliases

    def __copy__(self) -> "AzureEnvironment":
        return self

    def __deepcopy__(self, memo: dict) -> "AzureEnvironment":
        return self

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"AzureEnvironment({self.name!r})"

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["AzureEnvironment"]:
        """
        Resolve a cloud name as used by the Azure CLI, VS Code, or auth configuration.

        Unknown names produce a custom environment; the same name always yields
        the same instance.

        Args:
            name: Cloud name, e.g. ``AzureCloud``, ``azure_china`` or ``AzureUSGovernment``.

        Returns:
            The matching environment, or None for an empty name.
        """
        if name is None or not name.strip():
            return None
        key = _normalize(name)
        if key in _ALIASES:
            return _ALIASES[key]
        if key not in _CUSTOM:
            _CUSTOM[key] = cls(name=name.strip(), custom=True)
        return _CUSTOM[key]

    @classmethod
    def from_authority_host(cls, host: str) -> Optional["AzureEnvironment"]:
        """Map a token-cache authority host to a known cloud."""
        for environment in known_environments():
            if environment.matches_authority(host):
                return environment
        return None


def _normalize(name: str) -> str:
    return name.strip().lower().replace("-", "").replace("_", "").replace(" ", "")


AZURE = AzureEnvironment(
    name="AzureCloud",
    authority_host="https://login.microsoftonline.com",
    resource_manager_endpoint="https://management.azure.com/",
    authority_aliases=("login.windows.net", "login.microsoft.com", "sts.windows.net"),
)
AZURE_CHINA = AzureEnvironment(
    name="AzureChinaCloud",
    authority_host="https://login.chinacloudapi.cn",
    resource_manager_endpoint="https://management.chinacloudapi.cn/",
    authority_aliases=("login.partner.microsoftonline.cn",),
)
AZURE_US_GOVERNMENT = AzureEnvironment(
    name="AzureUSGovernment",
    authority_host="https://login.microsoftonline.us",
    resource_manager_endpoint="https://management.usgovcloudapi.net/",
    authority_aliases=("login.usgovcloudapi.net",),
)
AZURE_GERMANY = AzureEnvironment(
    name="AzureGermanCloud",
    authority_host="https://login.microsoftonline.de",
    resource_manager_endpoint="https://management.microsoftazure.de/",
)

_ALIASES: dict[str, AzureEnvironment] = {
    "azurecloud": AZURE,
    "azure": AZURE,
    "global": AZURE,
    "azurechinacloud": AZURE_CHINA,
    "azurechina": AZURE_CHINA,
    "china": AZURE_CHINA,
    "azureusgovernment": AZURE_US_GOVERNMENT,
    "azureusgovernmentcloud": AZURE_US_GOVERNMENT,
    "azureusgov": AZURE_US_GOVERNMENT,
    "usgovernment": AZURE_US_GOVERNMENT,
    "azuregermancloud": AZURE_GERMANY,
    "azuregermany": AZURE_GERMANY,
    "germany": AZURE_GERMANY,
}

_CUSTOM: dict[str, AzureEnvironment] = {}


def known_environments() -> list[AzureEnvironment]:
    """The fixed set of public and sovereign clouds."""
    return [AZURE, AZURE_CHINA, AZURE_US_GOVERNMENT, AZURE_GERMANY]
