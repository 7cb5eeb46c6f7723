"""
Configuration validation utilities.

This module turns the raw TOML tables into validated configuration
dataclasses. Credential files referenced by the configuration are read here,
once, so that an unreadable file stops the process before any loop starts.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..models.config import (
    AppConfig,
    AzureADConfig,
    BasicAuthConfig,
    DEFAULT_REMOTE_TIMEOUT,
    FunctionMatcher,
    ParcaConfig,
    QueryConfig,
    RemoteWriteConfig,
    SigV4Config,
    TLSConfig,
)
from ..validation import (
    ValidationError,
    validate_duration,
    validate_enum_choice,
    validate_header_name,
    validate_non_empty_string,
    validate_path_exists,
    validate_url,
)

logger = logging.getLogger(__name__)

AZURE_CLOUDS = ["AzurePublic", "AzureChina", "AzureGovernment"]

APP_KEYS = ("remote_write", "parca", "queries")
REMOTE_WRITE_KEYS = (
    "url", "remote_timeout", "headers", "bearer_token", "bearer_token_file", "authorization",
    "basic_auth", "tls_config", "proxy_url", "sigv4", "azuread",
)
AUTHORIZATION_KEYS = ("type", "credentials", "credentials_file")
BASIC_AUTH_KEYS = ("username", "password", "password_file")
TLS_KEYS = ("ca_file", "cert_file", "key_file", "insecure_skip_verify")
SIGV4_KEYS = ("region", "access_key", "secret_key", "profile", "role_arn", "service")
AZUREAD_KEYS = ("cloud", "managed_identity", "oauth", "sdk")
AZUREAD_METHOD_KEYS = {
    "managed_identity": ("client_id",),
    "oauth": ("client_id", "client_secret", "tenant_id"),
    "sdk": ("tenant_id",),
}
PARCA_KEYS = ("address", "bearer_token", "bearer_token_file", "insecure", "insecure_skip_verify")
QUERY_KEYS = ("name", "query", "duration", "matchers")
MATCHER_KEYS = ("contains",)


def _read_secret_file(path: Any, field_name: str) -> str:
    """Read a credential file, stripping the trailing newline."""
    path_str = validate_non_empty_string(path, field_name=field_name)
    try:
        return Path(path_str).read_text(encoding="utf-8").rstrip("\r\n")
    except OSError as e:
        raise ValidationError(
            f"Failed to read {field_name} '{path_str}': {e}",
            field_name=field_name,
            value=path_str
        )


def _validate_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a boolean",
            field_name=field_name,
            value=value
        )
    return value


def _optional_string(data: Dict[str, Any], key: str, prefix: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    return validate_non_empty_string(value, field_name=f"{prefix}.{key}")


def _require_table(
    data: Any,
    field_name: str,
    allowed_keys: Optional[Sequence[str]] = None
) -> Dict[str, Any]:
    """Check that `data` is a table holding no keys outside `allowed_keys`."""
    if not isinstance(data, dict):
        raise ValidationError(
            f"{field_name} must be a table",
            field_name=field_name,
            value=data
        )
    if allowed_keys is not None:
        unknown = sorted(set(data) - set(allowed_keys))
        if unknown:
            raise ValidationError(
                f"unknown or unsupported keys in {field_name}: {', '.join(unknown)}",
                field_name=field_name,
                value=unknown
            )
    return data


def validate_tls_config(tls_data: Dict[str, Any], prefix: str) -> TLSConfig:
    """Validate a `tls_config` table; referenced files must exist."""
    tls_data = _require_table(tls_data, prefix, TLS_KEYS)
    files = {}
    for key in ("ca_file", "cert_file", "key_file"):
        value = _optional_string(tls_data, key, prefix)
        if value is not None:
            validate_path_exists(value, field_name=f"{prefix}.{key}")
        files[key] = value

    if (files["cert_file"] is None) != (files["key_file"] is None):
        raise ValidationError(
            f"{prefix}.cert_file and {prefix}.key_file must be set together",
            field_name=f"{prefix}.cert_file"
        )

    return TLSConfig(
        ca_file=files["ca_file"],
        cert_file=files["cert_file"],
        key_file=files["key_file"],
        insecure_skip_verify=_validate_bool(
            tls_data.get("insecure_skip_verify", False),
            f"{prefix}.insecure_skip_verify"
        ),
    )


def validate_basic_auth_config(data: Dict[str, Any], prefix: str) -> BasicAuthConfig:
    data = _require_table(data, prefix, BASIC_AUTH_KEYS)
    username = validate_non_empty_string(data.get("username"), field_name=f"{prefix}.username")

    password = data.get("password")
    password_file = data.get("password_file")
    if password is not None and password_file is not None:
        raise ValidationError(
            f"at most one of {prefix}.password and {prefix}.password_file must be configured",
            field_name=f"{prefix}.password"
        )
    if password_file is not None:
        password = _read_secret_file(password_file, f"{prefix}.password_file")

    return BasicAuthConfig(username=username, password=password or "")


def validate_sigv4_config(data: Dict[str, Any], prefix: str) -> SigV4Config:
    data = _require_table(data, prefix, SIGV4_KEYS)
    access_key = _optional_string(data, "access_key", prefix)
    secret_key = _optional_string(data, "secret_key", prefix)
    if (access_key is None) != (secret_key is None):
        raise ValidationError(
            f"{prefix}.access_key and {prefix}.secret_key must be set together",
            field_name=f"{prefix}.access_key"
        )

    return SigV4Config(
        region=_optional_string(data, "region", prefix),
        access_key=access_key,
        secret_key=secret_key,
        profile=_optional_string(data, "profile", prefix),
        role_arn=_optional_string(data, "role_arn", prefix),
        service=validate_non_empty_string(
            data.get("service", "aps"), field_name=f"{prefix}.service"
        ),
    )


def validate_azuread_config(data: Dict[str, Any], prefix: str) -> AzureADConfig:
    data = _require_table(data, prefix, AZUREAD_KEYS)
    cloud = validate_enum_choice(
        data.get("cloud", "AzurePublic"),
        valid_choices=AZURE_CLOUDS,
        field_name=f"{prefix}.cloud",
    )

    methods = [key for key in ("managed_identity", "oauth", "sdk") if key in data]
    if len(methods) != 1:
        raise ValidationError(
            f"exactly one of {prefix}.managed_identity, {prefix}.oauth or {prefix}.sdk must be configured",
            field_name=prefix,
            value=methods
        )

    method = methods[0]
    section = _require_table(data[method], f"{prefix}.{method}", AZUREAD_METHOD_KEYS[method])
    section_prefix = f"{prefix}.{method}"

    if method == "managed_identity":
        return AzureADConfig(
            cloud=cloud,
            managed_identity_client_id=validate_non_empty_string(
                section.get("client_id"), field_name=f"{section_prefix}.client_id"
            ),
        )
    if method == "oauth":
        return AzureADConfig(
            cloud=cloud,
            oauth_client_id=validate_non_empty_string(
                section.get("client_id"), field_name=f"{section_prefix}.client_id"
            ),
            oauth_client_secret=validate_non_empty_string(
                section.get("client_secret"), field_name=f"{section_prefix}.client_secret"
            ),
            oauth_tenant_id=validate_non_empty_string(
                section.get("tenant_id"), field_name=f"{section_prefix}.tenant_id"
            ),
        )
    return AzureADConfig(
        cloud=cloud,
        sdk_tenant_id=_optional_string(section, "tenant_id", section_prefix),
    )


def validate_authorization_config(data: Dict[str, Any], prefix: str) -> Tuple[str, str]:
    """
    Validate an `authorization` table.

    Returns:
        The (type, credentials) pair of the Authorization header
    """
    data = _require_table(data, prefix, AUTHORIZATION_KEYS)
    auth_type = validate_non_empty_string(data.get("type", "Bearer"), field_name=f"{prefix}.type")
    if auth_type.lower() == "basic":
        raise ValidationError(
            f"{prefix}.type cannot be set to 'Basic', use basic_auth instead",
            field_name=f"{prefix}.type",
            value=auth_type
        )

    credentials = data.get("credentials")
    credentials_file = data.get("credentials_file")
    if (credentials is None) == (credentials_file is None):
        raise ValidationError(
            f"exactly one of {prefix}.credentials and {prefix}.credentials_file must be configured",
            field_name=f"{prefix}.credentials"
        )
    if credentials_file is not None:
        return auth_type, _read_secret_file(credentials_file, f"{prefix}.credentials_file")
    return auth_type, validate_non_empty_string(credentials, field_name=f"{prefix}.credentials")


def validate_remote_write_config(remote_write_data: Optional[Dict[str, Any]]) -> RemoteWriteConfig:
    """
    Validate and create a RemoteWriteConfig from the `[remote_write]` table.

    Args:
        remote_write_data: Raw remote_write table, or None when absent

    Returns:
        Validated RemoteWriteConfig instance

    Raises:
        ValidationError: If the table is missing, malformed, or configures
            more than one authentication scheme
    """
    if remote_write_data is None:
        raise ValidationError("remote_write config is required", field_name="remote_write")
    data = _require_table(remote_write_data, "remote_write", REMOTE_WRITE_KEYS)

    url = validate_url(data.get("url"), field_name="remote_write.url")

    remote_timeout = DEFAULT_REMOTE_TIMEOUT
    if data.get("remote_timeout") is not None:
        remote_timeout = validate_duration(
            data["remote_timeout"], field_name="remote_write.remote_timeout", allow_zero=True
        ) or DEFAULT_REMOTE_TIMEOUT

    headers = {}
    for name, value in _require_table(data.get("headers", {}), "remote_write.headers").items():
        validate_header_name(name, field_name=f"remote_write.headers.{name}")
        if not isinstance(value, str):
            raise ValidationError(
                f"remote_write.headers.{name} must be a string",
                field_name=f"remote_write.headers.{name}",
                value=value
            )
        headers[name] = value

    schemes = [
        key for key in (
            "bearer_token", "bearer_token_file", "authorization", "basic_auth", "sigv4", "azuread"
        )
        if data.get(key) is not None
    ]
    if len(schemes) > 1:
        raise ValidationError(
            f"at most one of bearer_token, bearer_token_file, authorization, basic_auth, sigv4 and azuread "
            f"must be configured in remote_write, got {schemes}",
            field_name="remote_write",
            value=schemes
        )

    bearer_token = None
    authorization_type = "Bearer"
    if data.get("bearer_token") is not None:
        bearer_token = validate_non_empty_string(
            data["bearer_token"], field_name="remote_write.bearer_token"
        )
    elif data.get("bearer_token_file") is not None:
        bearer_token = _read_secret_file(
            data["bearer_token_file"], "remote_write.bearer_token_file"
        )
    elif data.get("authorization") is not None:
        authorization_type, bearer_token = validate_authorization_config(
            data["authorization"], "remote_write.authorization"
        )

    basic_auth = None
    if data.get("basic_auth") is not None:
        basic_auth = validate_basic_auth_config(data["basic_auth"], "remote_write.basic_auth")

    sigv4 = None
    if data.get("sigv4") is not None:
        sigv4 = validate_sigv4_config(data["sigv4"], "remote_write.sigv4")

    azuread = None
    if data.get("azuread") is not None:
        azuread = validate_azuread_config(data["azuread"], "remote_write.azuread")

    proxy_url = None
    if data.get("proxy_url") is not None:
        proxy_url = validate_url(
            data["proxy_url"],
            field_name="remote_write.proxy_url",
            allowed_schemes=["http", "https", "socks5"],
        )

    return RemoteWriteConfig(
        url=url,
        remote_timeout=remote_timeout,
        headers=headers,
        bearer_token=bearer_token,
        authorization_type=authorization_type,
        basic_auth=basic_auth,
        tls_config=validate_tls_config(data.get("tls_config", {}), "remote_write.tls_config"),
        proxy_url=proxy_url,
        sigv4=sigv4,
        azuread=azuread,
    )


def validate_parca_config(parca_data: Optional[Dict[str, Any]]) -> ParcaConfig:
    """
    Validate and create a ParcaConfig from the `[parca]` table.

    Raises:
        ValidationError: If the table is missing or malformed
    """
    if parca_data is None:
        raise ValidationError("parca config is required", field_name="parca")
    data = _require_table(parca_data, "parca", PARCA_KEYS)

    if data.get("bearer_token") is not None and data.get("bearer_token_file") is not None:
        raise ValidationError(
            "at most one of parca.bearer_token and parca.bearer_token_file must be configured",
            field_name="parca.bearer_token"
        )

    bearer_token = _optional_string(data, "bearer_token", "parca")
    if data.get("bearer_token_file") is not None:
        bearer_token = _read_secret_file(data["bearer_token_file"], "parca.bearer_token_file")

    return ParcaConfig(
        address=validate_non_empty_string(data.get("address"), field_name="parca.address"),
        bearer_token=bearer_token,
        insecure=_validate_bool(data.get("insecure", False), "parca.insecure"),
        insecure_skip_verify=_validate_bool(
            data.get("insecure_skip_verify", False), "parca.insecure_skip_verify"
        ),
    )


def validate_queries_config(queries_data: Optional[List[Dict[str, Any]]]) -> List[QueryConfig]:
    """
    Validate the `[[queries]]` array.

    Every query needs a name, a query expression and an explicit positive
    duration. Matchers keep their configured order.

    Raises:
        ValidationError: If no query is configured or one is malformed
    """
    if not queries_data:
        raise ValidationError("at least one query is required", field_name="queries")
    if not isinstance(queries_data, list):
        raise ValidationError(
            "queries must be an array of tables",
            field_name="queries",
            value=queries_data
        )

    queries = []
    seen_names = set()
    for i, query_data in enumerate(queries_data):
        prefix = f"queries[{i}]"
        query_data = _require_table(query_data, prefix, QUERY_KEYS)

        name = validate_non_empty_string(query_data.get("name"), field_name=f"{prefix}.name")
        if name in seen_names:
            raise ValidationError(
                f"{prefix}.name must be unique, '{name}' already exists",
                field_name=f"{prefix}.name",
                value=name
            )
        seen_names.add(name)

        if query_data.get("duration") is None:
            raise ValidationError(
                f"{prefix}.duration is required",
                field_name=f"{prefix}.duration"
            )

        matchers_data = query_data.get("matchers", [])
        if not isinstance(matchers_data, list):
            raise ValidationError(
                f"{prefix}.matchers must be an array",
                field_name=f"{prefix}.matchers",
                value=matchers_data
            )

        matchers = []
        for j, matcher_data in enumerate(matchers_data):
            matcher_field = f"{prefix}.matchers[{j}].contains"
            matcher_data = _require_table(matcher_data, f"{prefix}.matchers[{j}]", MATCHER_KEYS)
            contains = matcher_data.get("contains")
            if not isinstance(contains, str):
                raise ValidationError(
                    f"{matcher_field} must be a string",
                    field_name=matcher_field,
                    value=contains
                )
            matchers.append(FunctionMatcher(contains=contains))

        queries.append(QueryConfig(
            name=name,
            query=validate_non_empty_string(query_data.get("query"), field_name=f"{prefix}.query"),
            duration=validate_duration(query_data["duration"], field_name=f"{prefix}.duration"),
            matchers=tuple(matchers),
        ))

    return queries


def validate_app_config(config_data: Dict[str, Any]) -> AppConfig:
    """Validate the whole configuration file."""
    _require_table(config_data, "configuration", APP_KEYS)
    return AppConfig(
        remote_write=validate_remote_write_config(config_data.get("remote_write")),
        parca=validate_parca_config(config_data.get("parca")),
        queries=validate_queries_config(config_data.get("queries")),
    )
