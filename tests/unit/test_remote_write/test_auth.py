"""
Unit tests for remote-write authentication schemes.
"""

import asyncio
import time
from unittest.mock import Mock, patch

import httpx
import pytest
from azure.core.exceptions import ClientAuthenticationError
from botocore.exceptions import ProfileNotFound

from profile_exporter.models.config import (
    AzureADConfig,
    BasicAuthConfig,
    RemoteWriteConfig,
    SigV4Config,
)
from profile_exporter.remote_write.auth import (
    AZURE_SCOPES,
    AuthorizationHeaderAuth,
    AzureADAuth,
    SigV4Auth,
    build_auth,
)
from profile_exporter.validation import DeliveryError, ValidationError

URL = "https://aps-workspaces.us-east-1.amazonaws.com/workspaces/ws-1/api/v1/remote_write"


async def _send(auth: httpx.Auth, content: bytes = b"payload") -> httpx.Request:
    """Send one request through `auth` and return what reached the endpoint."""
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(204)

    async with httpx.AsyncClient(auth=auth, transport=httpx.MockTransport(handler)) as client:
        await client.post(URL, content=content, headers={"Content-Type": "application/x-protobuf"})
    return seen[0]


def _azure_credential(token: str = "azure-token", expires_in: float = 3600):
    credential = Mock()
    credential.get_token.return_value = Mock(token=token, expires_on=int(time.time() + expires_in))
    return credential


async def _ticks_while(coro) -> int:
    """Await `coro` next to a 10ms ticker and return how often the ticker ran."""
    ticks = 0

    async def ticker():
        nonlocal ticks
        while True:
            await asyncio.sleep(0.01)
            ticks += 1

    task = asyncio.create_task(ticker())
    try:
        await coro
    finally:
        task.cancel()
    return ticks


@pytest.mark.unit
class TestBuildAuth:
    """Test cases for selecting the configured authentication scheme."""

    def test_no_auth(self):
        assert build_auth(RemoteWriteConfig(url=URL)) is None

    def test_bearer_token(self):
        auth = build_auth(RemoteWriteConfig(url=URL, bearer_token="tok"))

        assert isinstance(auth, AuthorizationHeaderAuth)

    def test_basic_auth(self):
        config = RemoteWriteConfig(url=URL, basic_auth=BasicAuthConfig("user", "pass"))

        assert isinstance(build_auth(config), httpx.BasicAuth)

    def test_sigv4(self):
        config = RemoteWriteConfig(
            url=URL,
            sigv4=SigV4Config(region="us-east-1", access_key="AKID", secret_key="secret"),
        )

        auth = build_auth(config)

        assert isinstance(auth, SigV4Auth)
        assert auth.region == "us-east-1"
        assert auth.service == "aps"

    def test_azuread(self):
        config = RemoteWriteConfig(url=URL, azuread=AzureADConfig(sdk_tenant_id=None))

        with patch("profile_exporter.remote_write.auth.DefaultAzureCredential") as credential_class:
            auth = build_auth(config)

        assert isinstance(auth, AzureADAuth)
        credential_class.assert_called_once()


@pytest.mark.unit
class TestAuthorizationHeaderAuth:
    @pytest.mark.asyncio
    async def test_sets_bearer_header(self):
        request = await _send(AuthorizationHeaderAuth("tok"))

        assert request.headers["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_custom_type_from_config(self):
        auth = build_auth(RemoteWriteConfig(url=URL, bearer_token="creds", authorization_type="Custom"))

        request = await _send(auth)

        assert request.headers["Authorization"] == "Custom creds"


@pytest.mark.unit
class TestSigV4Auth:
    """Test cases for AWS SigV4 request signing."""

    @pytest.mark.asyncio
    async def test_signs_request_with_static_credentials(self):
        auth = SigV4Auth(SigV4Config(region="us-east-1", access_key="AKID", secret_key="secret"))

        request = await _send(auth)

        authorization = request.headers["Authorization"]
        assert authorization.startswith("AWS4-HMAC-SHA256 Credential=AKID/")
        assert "/us-east-1/aps/aws4_request" in authorization
        assert "X-Amz-Date" in request.headers
        assert request.content == b"payload"

    def test_missing_region_raises_validation_error(self):
        session = Mock()
        session.get_config_variable.return_value = None

        with pytest.raises(ValidationError) as exc_info:
            SigV4Auth(SigV4Config(access_key="AKID", secret_key="secret"), session=session)

        assert "region" in str(exc_info.value)

    def test_missing_credentials_raise_validation_error(self):
        session = Mock()
        session.get_credentials.return_value = None

        with pytest.raises(ValidationError):
            SigV4Auth(SigV4Config(region="eu-west-1"), session=session)

    def test_unknown_profile_raises_validation_error(self):
        session = Mock()
        session.get_credentials.side_effect = ProfileNotFound(profile="does-not-exist")

        with pytest.raises(ValidationError) as exc_info:
            SigV4Auth(SigV4Config(region="eu-west-1", profile="does-not-exist"), session=session)

        assert exc_info.value.field_name == "remote_write.sigv4"
        assert "does-not-exist" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_signing_does_not_block_event_loop(self):
        auth = SigV4Auth(SigV4Config(region="us-east-1", access_key="AKID", secret_key="secret"))
        auth._signer = Mock()
        auth._signer.add_auth.side_effect = lambda aws_request: time.sleep(0.3)

        ticks = await _ticks_while(_send(auth))

        auth._signer.add_auth.assert_called_once()
        assert ticks >= 10


@pytest.mark.unit
class TestAzureADAuth:
    """Test cases for Azure AD token acquisition."""

    @pytest.mark.asyncio
    async def test_token_is_cached(self):
        credential = _azure_credential()
        auth = AzureADAuth(AzureADConfig(managed_identity_client_id="id"), credential=credential)

        first = await _send(auth)
        second = await _send(auth)

        assert first.headers["Authorization"] == "Bearer azure-token"
        assert second.headers["Authorization"] == "Bearer azure-token"
        credential.get_token.assert_called_once_with(AZURE_SCOPES["AzurePublic"])

    @pytest.mark.asyncio
    async def test_token_is_refreshed_before_expiry(self):
        credential = _azure_credential(expires_in=60)
        auth = AzureADAuth(AzureADConfig(managed_identity_client_id="id"), credential=credential)

        await _send(auth)
        await _send(auth)

        assert credential.get_token.call_count == 2

    def test_scope_follows_cloud(self):
        auth = AzureADAuth(
            AzureADConfig(cloud="AzureChina", managed_identity_client_id="id"),
            credential=_azure_credential(),
        )

        assert auth.scope == "https://monitor.azure.cn//.default"

    @pytest.mark.asyncio
    async def test_sdk_tenant_is_passed(self):
        credential = _azure_credential()
        auth = AzureADAuth(AzureADConfig(sdk_tenant_id="tenant"), credential=credential)

        await _send(auth)

        credential.get_token.assert_called_once_with(AZURE_SCOPES["AzurePublic"], tenant_id="tenant")

    @pytest.mark.asyncio
    async def test_token_acquisition_does_not_block_event_loop(self):
        credential = Mock()

        def slow_get_token(scope):
            time.sleep(0.3)
            return Mock(token="slow-token", expires_on=int(time.time() + 3600))

        credential.get_token.side_effect = slow_get_token
        auth = AzureADAuth(AzureADConfig(managed_identity_client_id="id"), credential=credential)
        requests = []

        async def send():
            requests.append(await _send(auth))

        ticks = await _ticks_while(send())

        assert requests[0].headers["Authorization"] == "Bearer slow-token"
        assert ticks >= 10

    @pytest.mark.asyncio
    async def test_token_error_raises_delivery_error(self):
        credential = Mock()
        credential.get_token.side_effect = ClientAuthenticationError(message="invalid client secret")
        auth = AzureADAuth(AzureADConfig(managed_identity_client_id="id"), credential=credential)

        with pytest.raises(DeliveryError) as exc_info:
            await _send(auth)

        assert "invalid client secret" in str(exc_info.value)

    def test_credential_setup_error_raises_validation_error(self):
        with patch.object(AzureADAuth, "_make_credential", side_effect=ValueError("invalid tenant_id")):
            with pytest.raises(ValidationError) as exc_info:
                AzureADAuth(AzureADConfig(oauth_client_id="id", oauth_tenant_id="bad tenant"))

        assert exc_info.value.field_name == "remote_write.azuread"
