"""
Prometheus remote-write delivery: protobuf encoding, snappy compression,
authentication and the HTTP client.
"""

from .auth import AuthorizationHeaderAuth, AzureADAuth, SigV4Auth, build_auth
from .client import (
    MAX_ERR_MSG_LEN,
    PROTOCOL_HEADERS,
    REMOTE_WRITE_VERSION,
    RemoteWriteClient,
    build_ssl_context,
)
from .encoder import WriteEncoder
from .proto import WriteRequest, build_write_request

__all__ = [
    "AzureADAuth",
    "AuthorizationHeaderAuth",
    "SigV4Auth",
    "build_auth",
    "MAX_ERR_MSG_LEN",
    "PROTOCOL_HEADERS",
    "REMOTE_WRITE_VERSION",
    "RemoteWriteClient",
    "build_ssl_context",
    "WriteEncoder",
    "WriteRequest",
    "build_write_request",
]
