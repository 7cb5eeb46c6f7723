"""
Authentication schemes for remote-write requests.

Each scheme is an httpx.Auth that adds credential headers to an outgoing
request. build_auth() picks the single scheme configured for remote write:

- authorization header (bearer token, or a custom type, from a literal or a file)
- HTTP basic auth
- AWS SigV4 request signing
- Azure AD token acquisition

SigV4 signing and Azure AD token acquisition may block on network calls
(STS, the instance metadata service, the AAD token endpoint). Their async
flows run that work in a worker thread so that other collection loops keep
running while a token is fetched.
"""

import asyncio
import logging
import threading
import time
from typing import AsyncGenerator, Generator, Optional

import httpx
from azure.core.exceptions import AzureError
from azure.identity import (
    AzureAuthorityHosts,
    ClientSecretCredential,
    DefaultAzureCredential,
    ManagedIdentityCredential,
)
from botocore.auth import SigV4Auth as BotocoreSigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials, RefreshableCredentials
from botocore.exceptions import BotoCoreError, ClientError
from botocore.session import Session as BotocoreSession

from ..models.config import AzureADConfig, RemoteWriteConfig, SigV4Config
from ..validation import DeliveryError, ValidationError

logger = logging.getLogger(__name__)

AZURE_SCOPES = {
    "AzurePublic": "https://monitor.azure.com//.default",
    "AzureChina": "https://monitor.azure.cn//.default",
    "AzureGovernment": "https://monitor.azure.us//.default",
}

AZURE_AUTHORITIES = {
    "AzurePublic": AzureAuthorityHosts.AZURE_PUBLIC_CLOUD,
    "AzureChina": AzureAuthorityHosts.AZURE_CHINA,
    "AzureGovernment": AzureAuthorityHosts.AZURE_GOVERNMENT,
}

# Tokens are refreshed this many seconds before they expire.
TOKEN_REFRESH_MARGIN = 300

ASSUME_ROLE_SESSION_NAME = "profile-exporter"

_SIGV4_HEADERS = ("Authorization", "X-Amz-Date", "X-Amz-Security-Token")


class AuthorizationHeaderAuth(httpx.Auth):
    """Send a static `Authorization: <type> <credentials>` header with every request."""

    def __init__(self, credentials: str, auth_type: str = "Bearer"):
        self._header = f"{auth_type} {credentials}"

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = self._header
        yield request


class SigV4Auth(httpx.Auth):
    """
    Sign every request with AWS Signature Version 4.

    Credentials come from the static access/secret key pair when configured,
    otherwise from the botocore credential chain (optionally for a named
    profile). When role_arn is set, the role is assumed through STS and the
    temporary credentials are refreshed before they expire.
    """

    requires_request_body = True

    def __init__(self, config: SigV4Config, session: Optional[BotocoreSession] = None):
        """
        Raises:
            ValidationError: If no region or credentials can be resolved,
                the profile does not exist or the role cannot be assumed
        """
        try:
            self._setup(config, session or BotocoreSession(profile=config.profile))
        except (BotoCoreError, ClientError) as e:
            raise ValidationError(
                f"failed to set up remote_write.sigv4: {e}",
                field_name="remote_write.sigv4"
            ) from e

    def _setup(self, config: SigV4Config, session: BotocoreSession) -> None:
        region = config.region or session.get_config_variable("region")
        if not region:
            raise ValidationError(
                "remote_write.sigv4.region must be set when no default AWS region is configured",
                field_name="remote_write.sigv4.region"
            )

        if config.access_key is not None:
            credentials = Credentials(config.access_key, config.secret_key)
        else:
            credentials = session.get_credentials()
            if credentials is None:
                raise ValidationError(
                    "no AWS credentials found for remote_write.sigv4",
                    field_name="remote_write.sigv4"
                )

        if config.role_arn:
            credentials = self._assume_role(session, credentials, region, config.role_arn)

        self.region = region
        self.service = config.service
        self._signer = BotocoreSigV4Auth(credentials, config.service, region)

    @staticmethod
    def _assume_role(session, credentials, region: str, role_arn: str) -> RefreshableCredentials:
        frozen = credentials.get_frozen_credentials()
        sts = session.create_client(
            "sts",
            region_name=region,
            aws_access_key_id=frozen.access_key,
            aws_secret_access_key=frozen.secret_key,
            aws_session_token=frozen.token,
        )

        def fetch_credentials() -> dict:
            response = sts.assume_role(RoleArn=role_arn, RoleSessionName=ASSUME_ROLE_SESSION_NAME)
            assumed = response["Credentials"]
            logger.debug(f"Assumed role {role_arn} until {assumed['Expiration']}")
            return {
                "access_key": assumed["AccessKeyId"],
                "secret_key": assumed["SecretAccessKey"],
                "token": assumed["SessionToken"],
                "expiry_time": assumed["Expiration"].isoformat(),
            }

        return RefreshableCredentials.create_from_metadata(
            metadata=fetch_credentials(),
            refresh_using=fetch_credentials,
            method="sts-assume-role",
        )

    def _sign(self, request: httpx.Request) -> None:
        headers = {
            name: value for name, value in request.headers.items()
            if name.lower() not in ("connection", "user-agent", "accept-encoding")
        }
        aws_request = AWSRequest(
            method=request.method,
            url=str(request.url),
            data=request.content,
            headers=headers,
        )
        # add_auth may refresh assumed-role credentials through STS.
        try:
            self._signer.add_auth(aws_request)
        except (BotoCoreError, ClientError) as e:
            raise DeliveryError(None, message=f"failed to sign request with SigV4: {e}") from e

        for name in _SIGV4_HEADERS:
            if name in aws_request.headers:
                request.headers[name] = aws_request.headers[name]

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        self._sign(request)
        yield request

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        await request.aread()
        await asyncio.to_thread(self._sign, request)
        yield request


class AzureADAuth(httpx.Auth):
    """
    Attach an Azure AD access token for the Azure Monitor ingestion scope.

    Tokens are cached and refreshed shortly before expiry.
    """

    def __init__(self, config: AzureADConfig, credential=None):
        """
        Raises:
            ValidationError: If the credential cannot be constructed
        """
        self.scope = AZURE_SCOPES[config.cloud]
        self._tenant_id = config.sdk_tenant_id
        try:
            self._credential = credential or self._make_credential(config)
        except (ValueError, AzureError) as e:
            raise ValidationError(
                f"failed to set up remote_write.azuread: {e}",
                field_name="remote_write.azuread"
            ) from e
        self._token: Optional[str] = None
        self._expires_on = 0
        self._lock = threading.Lock()

    @staticmethod
    def _make_credential(config: AzureADConfig):
        authority = AZURE_AUTHORITIES[config.cloud]
        if config.managed_identity_client_id:
            return ManagedIdentityCredential(client_id=config.managed_identity_client_id)
        if config.oauth_client_id:
            return ClientSecretCredential(
                tenant_id=config.oauth_tenant_id,
                client_id=config.oauth_client_id,
                client_secret=config.oauth_client_secret,
                authority=authority,
            )
        allowed_tenants = [config.sdk_tenant_id] if config.sdk_tenant_id else []
        return DefaultAzureCredential(authority=authority, additionally_allowed_tenants=allowed_tenants)

    def _current_token(self) -> str:
        with self._lock:
            if self._token is None or time.time() >= self._expires_on - TOKEN_REFRESH_MARGIN:
                try:
                    if self._tenant_id:
                        access_token = self._credential.get_token(self.scope, tenant_id=self._tenant_id)
                    else:
                        access_token = self._credential.get_token(self.scope)
                except AzureError as e:
                    raise DeliveryError(None, message=f"failed to acquire Azure AD token: {e}") from e
                self._token = access_token.token
                self._expires_on = access_token.expires_on
                logger.debug(f"Acquired Azure AD token for {self.scope}, expires at {self._expires_on}")
            return self._token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._current_token()}"
        yield request

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await asyncio.to_thread(self._current_token)
        request.headers["Authorization"] = f"Bearer {token}"
        yield request


def build_auth(config: RemoteWriteConfig) -> Optional[httpx.Auth]:
    """
    Build the authentication scheme configured for remote write.

    Returns:
        The configured httpx.Auth, or None when requests are unauthenticated

    Raises:
        ValidationError: If SigV4 or Azure AD credentials cannot be set up
    """
    if config.bearer_token is not None:
        logger.info(f"Remote write authentication: {config.authorization_type} authorization header")
        return AuthorizationHeaderAuth(config.bearer_token, config.authorization_type)
    if config.basic_auth is not None:
        logger.info("Remote write authentication: basic auth")
        return httpx.BasicAuth(config.basic_auth.username, config.basic_auth.password)
    if config.sigv4 is not None:
        logger.info("Remote write authentication: AWS SigV4")
        return SigV4Auth(config.sigv4)
    if config.azuread is not None:
        logger.info(f"Remote write authentication: Azure AD ({config.azuread.cloud})")
        return AzureADAuth(config.azuread)
    return None
