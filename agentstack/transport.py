"""
Registration file transport.

Fetches the bytes behind an agent's token URI and returns them as text.
Supported sources:
- ``data:`` URIs, plain or base64 encoded
- ``ipfs://`` URIs, resolved through an HTTP gateway
- ``ar://`` URIs, resolved through an Arweave gateway
- ``http://`` and ``https://`` URLs
"""

import base64
import binascii
import time
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import unquote_to_bytes

import httpx

from agentstack.constants import DEFAULT_IPFS_GATEWAY
from agentstack.exceptions import RegistrationFetchError
from agentstack.logging import log_http_request, log_http_response

DEFAULT_ARWEAVE_GATEWAY = "https://arweave.net/"

# Registration files are small JSON documents
MAX_REGISTRATION_BYTES = 1024 * 1024


class RegistrationFetcher(ABC):
    """Fetches registration files by URI."""

    @abstractmethod
    async def fetch(self, uri: str) -> str:
        """
        Fetch the document behind ``uri`` as text.

        Raises:
            RegistrationFetchError: If the document cannot be retrieved
        """

    async def close(self) -> None:
        """Release any network resources."""


def decode_data_uri(uri: str) -> str:
    """
    Decode a ``data:`` URI into text.

    Raises:
        RegistrationFetchError: If the URI is malformed or not UTF-8
    """
    header, sep, payload = uri[len("data:"):].partition(",")
    if not sep:
        raise RegistrationFetchError("data URI has no ',' separator", uri=_preview(uri))

    if header.lower().endswith(";base64"):
        padded = payload.strip() + "=" * (-len(payload.strip()) % 4)
        try:
            raw = base64.b64decode(padded, validate=True)
        except (binascii.Error, ValueError):
            try:
                raw = base64.b64decode(padded, altchars=b"-_", validate=True)
            except (binascii.Error, ValueError) as e:
                raise RegistrationFetchError(
                    f"invalid base64 in data URI: {e}", uri=_preview(uri)
                ) from e
    else:
        raw = unquote_to_bytes(payload)

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise RegistrationFetchError(f"data URI is not UTF-8: {e}", uri=_preview(uri)) from e


def resolve_gateway_url(
    uri: str,
    ipfs_gateway: str = DEFAULT_IPFS_GATEWAY,
    arweave_gateway: str = DEFAULT_ARWEAVE_GATEWAY,
) -> str:
    """
    Map an ``ipfs://`` or ``ar://`` URI to an HTTP gateway URL.

    Other URIs are returned unchanged.
    """
    if uri.startswith("ipfs://"):
        path = uri[len("ipfs://"):]
        # Some publishers write ipfs://ipfs/<cid>
        path = path.removeprefix("ipfs/")
        return ipfs_gateway.rstrip("/") + "/" + path
    if uri.startswith("ar://"):
        return arweave_gateway.rstrip("/") + "/" + uri[len("ar://"):]
    return uri


class HTTPRegistrationFetcher(RegistrationFetcher):
    """
    RegistrationFetcher using an httpx async client.

    One GET per fetch, no retries, redirects followed.
    """

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        ipfs_gateway: str = DEFAULT_IPFS_GATEWAY,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
        arweave_gateway: str = DEFAULT_ARWEAVE_GATEWAY,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            ipfs_gateway: Base URL of the IPFS HTTP gateway
            timeout: Request timeout in seconds
            http_client: Preconfigured httpx client (the fetcher will not close it)
            arweave_gateway: Base URL of the Arweave HTTP gateway
        """
        self.ipfs_gateway = ipfs_gateway
        self.arweave_gateway = arweave_gateway
        self.timeout = timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HTTPRegistrationFetcher":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def fetch(self, uri: str) -> str:
        if not isinstance(uri, str) or not uri:
            raise RegistrationFetchError("empty registration URI")

        if uri.startswith("data:"):
            return decode_data_uri(uri)

        url = resolve_gateway_url(uri, self.ipfs_gateway, self.arweave_gateway)
        if not url.startswith(("http://", "https://")):
            raise RegistrationFetchError(f"unsupported URI scheme in {uri!r}", uri=uri)

        log_http_request("GET", url)
        start = time.monotonic()
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            raise RegistrationFetchError(f"timed out fetching {uri}", uri=uri) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RegistrationFetchError(f"could not fetch {uri}: {e}", uri=uri) from e
        log_http_response(response.status_code, url, (time.monotonic() - start) * 1000)

        if response.status_code >= 400:
            raise RegistrationFetchError(
                f"HTTP {response.status_code} fetching {uri}", uri=uri
            )
        if len(response.content) > MAX_REGISTRATION_BYTES:
            raise RegistrationFetchError(
                f"registration at {uri} exceeds {MAX_REGISTRATION_BYTES} bytes", uri=uri
            )

        try:
            return response.content.decode(response.encoding or "utf-8")
        except (LookupError, UnicodeDecodeError) as e:
            raise RegistrationFetchError(f"registration at {uri} is not text: {e}", uri=uri) from e


def _preview(uri: str) -> str:
    return uri if len(uri) <= 64 else uri[:61] + "..."
