"""Unit tests for token credential managers."""
import base64
import json
from unittest.mock import MagicMock, patch

import pytest
from azure.core.exceptions import ClientAuthenticationError

from toolkit_auth.auth.credential_manager import (
    RefreshTokenCredential,
    TokenCredentialManager,
    decode_token_claims,
    email_from_claims,
)
from toolkit_auth.models.environment import AZURE, AZURE_CHINA
from toolkit_auth.models.errors import AuthenticationFailureError


def _jwt(claims: dict) -> str:
    payload = base64.urlsafe_b64encode(json.dumps(claims).encode()).decode().rstrip("=")
    return f"eyJhbGciOiJub25lIn0.{payload}.signature"


def test_decode_token_claims() -> None:
    """Test the payload of an unpadded JWT is decoded."""
    claims = decode_token_claims(_jwt({"upn": "me@contoso.com", "tid": "tenant-1"}))
    assert claims == {"upn": "me@contoso.com", "tid": "tenant-1"}


@pytest.mark.parametrize("token", ["opaque-token", "a.!!!.c", "a..c"])
def test_decode_non_jwt_is_empty(token) -> None:
    """Test tokens that are not JWTs decode to no claims."""
    assert decode_token_claims(token) == {}


@pytest.mark.parametrize(
    "claims, expected",
    [
        ({"upn": "upn@x.com", "unique_name": "un@x.com"}, "upn@x.com"),
        ({"unique_name": "un@x.com", "email": "e@x.com"}, "un@x.com"),
        ({"preferred_username": "pu@x.com"}, "pu@x.com"),
        ({"email": "e@x.com"}, "e@x.com"),
        ({"oid": "object-id"}, None),
    ],
)
def test_email_from_claims(claims, expected) -> None:
    """Test the sign-in name claim precedence."""
    assert email_from_claims(claims) == expected


@pytest.mark.asyncio
async def test_get_token_defaults_to_management_scope(mock_credential) -> None:
    """Test the cloud's Resource Manager scope is used when none is given."""
    manager = TokenCredentialManager(AZURE_CHINA, "client", mock_credential)

    assert await manager.get_token() == "test-token"
    mock_credential.get_token.assert_called_once_with(AZURE_CHINA.management_scope)


@pytest.mark.asyncio
async def test_get_token_wraps_errors(mock_credential) -> None:
    """Test credential failures become authentication failures."""
    mock_credential.get_token.side_effect = ClientAuthenticationError("expired")
    manager = TokenCredentialManager(AZURE, "client", mock_credential)

    with pytest.raises(AuthenticationFailureError) as exc_info:
        await manager.get_token(["scope/.default"])

    assert exc_info.value.details == {"scopes": ["scope/.default"]}


@pytest.mark.asyncio
async def test_get_token_claims(mock_credential) -> None:
    """Test claims are read from the issued token."""
    mock_credential.get_token.return_value = MagicMock(token=_jwt({"tid": "tenant-1"}))
    manager = TokenCredentialManager(AZURE, "client", mock_credential)

    assert await manager.get_token_claims() == {"tid": "tenant-1"}


def test_close_is_optional() -> None:
    """Test credentials without close are accepted."""
    credential = object()
    TokenCredentialManager(AZURE, "client", credential).close()


class TestRefreshTokenCredential:
    """Tests for redeeming stored refresh tokens."""

    def test_get_token_rotates_refresh_token(self) -> None:
        """Test the newest refresh token is used for the next request."""
        with patch("toolkit_auth.auth.credential_manager.msal.PublicClientApplication") as mock_app_cls:
            app = mock_app_cls.return_value
            app.acquire_token_by_refresh_token.side_effect = [
                {"access_token": "at-1", "refresh_token": "rt-2", "expires_in": 3600},
                {"access_token": "at-2", "expires_in": 3600},
            ]
            credential = RefreshTokenCredential(AZURE, "client", "rt-1", tenant_id="tenant-1")

            assert credential.get_token("scope/.default").token == "at-1"
            assert credential.get_token("scope/.default").token == "at-2"

        mock_app_cls.assert_called_once_with(
            "client", authority="https://login.microsoftonline.com/tenant-1"
        )
        refresh_tokens = [c.args[0] for c in app.acquire_token_by_refresh_token.call_args_list]
        assert refresh_tokens == ["rt-1", "rt-2"]

    def test_get_token_failure(self) -> None:
        """Test an msal error result raises an authentication error."""
        with patch("toolkit_auth.auth.credential_manager.msal.PublicClientApplication") as mock_app_cls:
            mock_app_cls.return_value.acquire_token_by_refresh_token.return_value = {
                "error": "invalid_grant",
                "error_description": "AADSTS70008: The refresh token has expired",
            }
            credential = RefreshTokenCredential(AZURE_CHINA, "client", "rt-1")

            with pytest.raises(ClientAuthenticationError, match="AADSTS70008"):
                credential.get_token("scope/.default")

        assert mock_app_cls.call_args.kwargs["authority"] == (
            "https://login.chinacloudapi.cn/organizations"
        )
