"""Unit tests for Azure cloud environments."""
import copy

from toolkit_auth.models.environment import (
    AZURE,
    AZURE_CHINA,
    AZURE_GERMANY,
    AZURE_US_GOVERNMENT,
    AzureEnvironment,
    known_environments,
)
from toolkit_auth.models.schemas import AccountEntity, AuthType


def test_from_name_resolves_cli_cloud_names() -> None:
    """Test Azure CLI cloud names map to the known clouds."""
    assert AzureEnvironment.from_name("AzureCloud") is AZURE
    assert AzureEnvironment.from_name("AzureChinaCloud") is AZURE_CHINA
    assert AzureEnvironment.from_name("AzureUSGovernment") is AZURE_US_GOVERNMENT
    assert AzureEnvironment.from_name("AzureGermanCloud") is AZURE_GERMANY


def test_from_name_accepts_aliases() -> None:
    """Test configuration spellings are accepted case-insensitively."""
    assert AzureEnvironment.from_name("azure") is AZURE
    assert AzureEnvironment.from_name("AZURE_CHINA") is AZURE_CHINA
    assert AzureEnvironment.from_name("azure-us-government") is AZURE_US_GOVERNMENT


def test_from_name_empty_returns_none() -> None:
    """Test blank names do not resolve."""
    assert AzureEnvironment.from_name(None) is None
    assert AzureEnvironment.from_name("  ") is None


def test_custom_environment_is_interned() -> None:
    """Test unknown names produce one custom environment per name."""
    first = AzureEnvironment.from_name("ContosoStack")
    second = AzureEnvironment.from_name("contosostack")

    assert first is second
    assert first.custom is True
    assert first not in known_environments()


def test_from_authority_host() -> None:
    """Test token cache hosts and aliases map back to clouds."""
    assert AzureEnvironment.from_authority_host("login.microsoftonline.com") is AZURE
    assert AzureEnvironment.from_authority_host("login.windows.net") is AZURE
    assert AzureEnvironment.from_authority_host("https://login.chinacloudapi.cn") is AZURE_CHINA
    assert AzureEnvironment.from_authority_host("login.example.org") is None


def test_environment_identity_survives_copy_and_json() -> None:
    """Test environments stay the same object through copies and persistence."""
    entity = AccountEntity(environment=AZURE_CHINA, type=AuthType.AZURE_CLI, tenant_ids=["t"])

    assert copy.deepcopy(AZURE_CHINA) is AZURE_CHINA
    assert entity.model_copy(deep=True).environment is AZURE_CHINA

    restored = AccountEntity.model_validate_json(entity.model_dump_json())
    assert restored.environment is AZURE_CHINA


def test_management_scope() -> None:
    """Test the default token scope derives from the Resource Manager endpoint."""
    assert AZURE.management_scope == "https://management.azure.com/.default"
    assert AZURE_CHINA.management_scope == "https://management.chinacloudapi.cn/.default"
