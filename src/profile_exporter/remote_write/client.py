"""
HTTP client for the Prometheus remote-write endpoint.

One RemoteWriteClient is shared by every collection loop. Its configuration
is fixed at construction; the only per-call state is the encoder scratch
buffer, which is checked out of a small pool for the duration of one encode.
"""

import logging
import ssl
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Union

import httpx

from .. import __version__
from ..models.config import RemoteWriteConfig, TLSConfig
from ..models.samples import WriteBatch
from ..validation import DeliveryError
from .auth import build_auth
from .encoder import WriteEncoder

logger = logging.getLogger(__name__)

MAX_ERR_MSG_LEN = 1024
REMOTE_WRITE_VERSION = "0.1.0"
USER_AGENT = f"profile-exporter/{__version__}"

PROTOCOL_HEADERS = {
    "Content-Encoding": "snappy",
    "Content-Type": "application/x-protobuf",
    "X-Prometheus-Remote-Write-Version": REMOTE_WRITE_VERSION,
}


def build_ssl_context(tls_config: TLSConfig) -> Union[ssl.SSLContext, bool]:
    """Translate a TLS configuration into an httpx `verify` argument."""
    if tls_config == TLSConfig():
        return True

    context = ssl.create_default_context(cafile=tls_config.ca_file)
    if tls_config.insecure_skip_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    if tls_config.cert_file:
        context.load_cert_chain(tls_config.cert_file, tls_config.key_file)
    return context


class RemoteWriteClient:
    """
    Send write batches to a remote-write endpoint.

    Every send is a single POST: there are no retries. Non-2xx responses,
    timeouts and transport failures are raised as DeliveryError.
    """

    def __init__(
        self,
        config: RemoteWriteConfig,
        auth: Optional[httpx.Auth] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the remote-write client.

        Args:
            config: Validated remote-write configuration
            auth: Authentication scheme (defaults to the one configured)
            transport: Optional transport, used by tests to mock the endpoint
        """
        self.url = config.url
        self.timeout = config.remote_timeout
        self.headers: Dict[str, str] = dict(config.headers)

        client_kwargs = {}
        if transport is not None:
            client_kwargs["transport"] = transport
        else:
            client_kwargs["verify"] = build_ssl_context(config.tls_config)
            if config.proxy_url:
                client_kwargs["proxy"] = config.proxy_url

        self._client = httpx.AsyncClient(
            auth=auth if auth is not None else build_auth(config),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=False,
            **client_kwargs,
        )
        self._encoders: List[WriteEncoder] = []

    @contextmanager
    def _checkout_encoder(self) -> Iterator[WriteEncoder]:
        encoder = self._encoders.pop() if self._encoders else WriteEncoder()
        try:
            yield encoder
        finally:
            self._encoders.append(encoder)

    async def send(self, batch: WriteBatch) -> None:
        """
        Encode and deliver one write batch.

        Raises:
            EncodeError: If the batch cannot be encoded
            DeliveryError: If the endpoint rejects the batch or cannot be reached
        """
        with self._checkout_encoder() as encoder:
            payload = encoder.encode(batch)

        await self._send_request(payload)
        logger.debug(f"Sent {len(batch)} series ({len(payload)} bytes) to {self.url}")

    async def _send_request(self, payload: bytes) -> None:
        headers = dict(PROTOCOL_HEADERS)
        headers.update(self.headers)

        try:
            async with self._client.stream(
                "POST",
                self.url,
                content=payload,
                headers=headers,
                timeout=self.timeout,
            ) as response:
                if 200 <= response.status_code < 300:
                    return
                body_prefix = await _read_body_prefix(response, MAX_ERR_MSG_LEN)
        except httpx.TimeoutException as e:
            raise DeliveryError(
                None,
                message=f"request to {self.url} timed out after {self.timeout}s: {e}"
            ) from e
        except httpx.HTTPError as e:
            raise DeliveryError(None, message=f"error sending request: {e}") from e

        raise DeliveryError(response.status_code, body_prefix)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


async def _read_body_prefix(response: httpx.Response, limit: int) -> str:
    prefix = bytearray()
    async for chunk in response.aiter_bytes():
        prefix.extend(chunk)
        if len(prefix) >= limit:
            break
    return bytes(prefix[:limit]).decode("utf-8", errors="replace")
