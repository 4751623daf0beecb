"""HTTP client for the MCP server registry.

The registry exposes a cursor-paginated listing plus per-name lookups::

    GET {endpoint}?cursor=&limit=&search=&version=
    GET {endpoint}/{name}/versions/{version}
    GET {endpoint}/{name}/versions

Every method raises :class:`RegistryTransportError` for non-2xx responses,
timeouts and connection failures, except that a 404 on a per-name lookup is
reported as "not found" rather than as an error.
"""

from __future__ import annotations

import dataclasses
import os
import typing as typ
from urllib.parse import quote

import httpx
import msgspec

from .errors import (
    RegistryConfigError,
    RegistryResponseShapeError,
    RegistryTransportError,
)
from .models import (
    CatalogEntity,
    ServerEnvelope,
    ServerListResponse,
    entity_from_envelope,
)

OFFICIAL_REGISTRY_URL = "https://registry.modelcontextprotocol.io/v0/servers"
LATEST_VERSION = "latest"

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_NOT_FOUND = 404


@dataclasses.dataclass(frozen=True, slots=True)
class ServerQuery:
    """Parameters for one page request against the registry listing."""

    cursor: str | None = None
    limit: int = 100
    search: str | None = None
    version: str | None = None
    registry_url: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class RegistryPage:
    """One decoded page of registry envelopes.

    Envelopes are kept raw so that a malformed entry fails only when the
    consumer converts it with :func:`entity_from_envelope`, not for the
    whole page.
    """

    envelopes: tuple[ServerEnvelope, ...]
    next_cursor: str | None = None
    count: int | None = None


class RegistryFeed(typ.Protocol):
    """Interface for reading the upstream registry."""

    async def list_servers(self, query: ServerQuery) -> RegistryPage:
        """Fetch one page of servers."""
        ...

    async def get_server(
        self,
        name: str,
        *,
        version: str | None = None,
        registry_url: str | None = None,
    ) -> CatalogEntity | None:
        """Fetch one server version, or ``None`` when it does not exist."""
        ...

    async def list_versions(
        self, name: str, *, registry_url: str | None = None
    ) -> list[CatalogEntity]:
        """Fetch every published version of a server name."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class RegistryClientConfig:
    """Configuration for :class:`RegistryHTTPClient`."""

    endpoint: str = OFFICIAL_REGISTRY_URL
    timeout_s: float = 30.0
    user_agent: str = "mcpindex/0.1"

    @classmethod
    def from_env(cls) -> RegistryClientConfig:
        """Build configuration from ``MCPINDEX_REGISTRY_URL`` and friends.

        Reads ``MCPINDEX_REGISTRY_URL`` (default: the official registry) and
        ``MCPINDEX_HTTP_TIMEOUT_S`` (default: 30 seconds).

        Raises
        ------
        RegistryConfigError
            If the timeout is not a positive number.

        """
        endpoint = os.environ.get("MCPINDEX_REGISTRY_URL", "").strip()
        raw_timeout = os.environ.get("MCPINDEX_HTTP_TIMEOUT_S", "").strip()
        timeout_s = 30.0
        if raw_timeout:
            try:
                timeout_s = float(raw_timeout)
            except ValueError as exc:
                raise RegistryConfigError.invalid_timeout(raw_timeout) from exc
            if timeout_s <= 0:
                raise RegistryConfigError.invalid_timeout(raw_timeout)
        return cls(endpoint=endpoint or OFFICIAL_REGISTRY_URL, timeout_s=timeout_s)


def _page_params(query: ServerQuery) -> dict[str, str | int]:
    params: dict[str, str | int] = {"limit": query.limit}
    if query.cursor:
        params["cursor"] = query.cursor
    if query.search:
        params["search"] = query.search
    if query.version:
        params["version"] = query.version
    return params


def _decode[T](response: httpx.Response, target: type[T]) -> T:
    try:
        return msgspec.json.decode(response.content, type=target)
    except (msgspec.DecodeError, msgspec.ValidationError) as exc:
        raise RegistryResponseShapeError.undecodable(str(response.url), exc) from exc


class RegistryHTTPClient:
    """httpx implementation of :class:`RegistryFeed`."""

    def __init__(
        self,
        config: RegistryClientConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client, creating an owned ``httpx.AsyncClient``."""
        resolved = config or RegistryClientConfig()
        if not resolved.endpoint.strip():
            raise RegistryConfigError.empty_endpoint()

        self._config = resolved
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=resolved.timeout_s,
            headers={
                "User-Agent": resolved.user_agent,
                "Accept": "application/json",
            },
        )

    @property
    def endpoint(self) -> str:
        """Return the default registry endpoint."""
        return self._config.endpoint

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def list_servers(self, query: ServerQuery) -> RegistryPage:
        """Fetch one page of servers matching ``query``."""
        url = self._base_url(query.registry_url)
        response = await self._get(url, params=_page_params(query))
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise RegistryTransportError.http_error(response.status_code, url)

        body = _decode(response, ServerListResponse)
        return RegistryPage(
            envelopes=tuple(body.servers),
            next_cursor=body.metadata.next_cursor or None,
            count=body.metadata.count,
        )

    async def get_server(
        self,
        name: str,
        *,
        version: str | None = None,
        registry_url: str | None = None,
    ) -> CatalogEntity | None:
        """Fetch ``name`` at ``version`` (latest when omitted)."""
        url = (
            f"{self._base_url(registry_url)}/{quote(name, safe='')}"
            f"/versions/{quote(version or LATEST_VERSION, safe='')}"
        )
        response = await self._get(url)
        if response.status_code == _HTTP_NOT_FOUND:
            return None
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise RegistryTransportError.http_error(response.status_code, url)
        return entity_from_envelope(_decode(response, ServerEnvelope))

    async def list_versions(
        self, name: str, *, registry_url: str | None = None
    ) -> list[CatalogEntity]:
        """Fetch every published version of ``name``; empty when unknown."""
        url = f"{self._base_url(registry_url)}/{quote(name, safe='')}/versions"
        response = await self._get(url)
        if response.status_code == _HTTP_NOT_FOUND:
            return []
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise RegistryTransportError.http_error(response.status_code, url)
        body = _decode(response, ServerListResponse)
        return [entity_from_envelope(item) for item in body.servers]

    def _base_url(self, registry_url: str | None) -> str:
        return (registry_url or self._config.endpoint).rstrip("/")

    async def _get(
        self, url: str, *, params: dict[str, str | int] | None = None
    ) -> httpx.Response:
        try:
            return await self._client.get(url, params=params)
        except httpx.TimeoutException as exc:
            raise RegistryTransportError.timeout(url) from exc
        except httpx.HTTPError as exc:
            raise RegistryTransportError.unreachable(url, exc) from exc
