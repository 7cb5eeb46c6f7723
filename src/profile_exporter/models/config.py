"""
Configuration data models.

This module contains the configuration structures for the remote-write
endpoint, the Parca query backend and the list of exported queries.
All of them are populated once at startup from the TOML configuration file.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


DEFAULT_REMOTE_TIMEOUT = 30.0


@dataclass(frozen=True)
class FunctionMatcher:
    """A substring selecting which function names produce samples."""

    contains: str


@dataclass(frozen=True)
class QueryConfig:
    """
    One exported profiling query, loaded from a `[[queries]]` table.

    Each instance drives its own collection loop.
    """

    # Name exported as the `query_name` label.
    name: str
    # Parca query expression, e.g. 'parca_agent:samples:count:cpu:nanoseconds:delta{}'.
    query: str
    # Evaluation window and polling period, in seconds.
    duration: float
    # Ordered substring matchers applied to every function name.
    matchers: Tuple[FunctionMatcher, ...] = ()


@dataclass(frozen=True)
class BasicAuthConfig:
    username: str
    password: str = ""


@dataclass(frozen=True)
class TLSConfig:
    ca_file: Optional[str] = None
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    insecure_skip_verify: bool = False


@dataclass(frozen=True)
class SigV4Config:
    """AWS Signature Version 4 request signing, from `[remote_write.sigv4]`."""

    region: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    profile: Optional[str] = None
    role_arn: Optional[str] = None
    service: str = "aps"


@dataclass(frozen=True)
class AzureADConfig:
    """
    Azure AD token acquisition, from `[remote_write.azuread]`.

    Exactly one of the managed identity, OAuth client or SDK settings is set.
    """

    cloud: str = "AzurePublic"
    managed_identity_client_id: Optional[str] = None
    oauth_client_id: Optional[str] = None
    oauth_client_secret: Optional[str] = None
    oauth_tenant_id: Optional[str] = None
    sdk_tenant_id: Optional[str] = None


@dataclass(frozen=True)
class RemoteWriteConfig:
    """
    Configuration of the Prometheus remote-write endpoint.

    At most one of bearer_token, basic_auth, sigv4 and azuread is set.
    bearer_token holds the credentials of the Authorization header, sent
    with authorization_type as scheme; it is filled from bearer_token,
    bearer_token_file or the `authorization` table during validation.
    """

    url: str
    remote_timeout: float = DEFAULT_REMOTE_TIMEOUT
    headers: Dict[str, str] = field(default_factory=dict)
    bearer_token: Optional[str] = None
    authorization_type: str = "Bearer"
    basic_auth: Optional[BasicAuthConfig] = None
    tls_config: TLSConfig = field(default_factory=TLSConfig)
    proxy_url: Optional[str] = None
    sigv4: Optional[SigV4Config] = None
    azuread: Optional[AzureADConfig] = None


@dataclass(frozen=True)
class ParcaConfig:
    """Connection settings for the Parca query service."""

    address: str
    bearer_token: Optional[str] = None
    insecure: bool = False
    insecure_skip_verify: bool = False


@dataclass(frozen=True)
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    remote_write: RemoteWriteConfig
    parca: ParcaConfig
    queries: List[QueryConfig]
