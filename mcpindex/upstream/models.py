"""Typed registry payloads.

The registry returns each server as an envelope ``{"server": {...},
"_meta": {...}}``. The envelope is decoded with msgspec; the ``server`` and
``_meta`` objects stay as plain JSON objects so unknown fields survive the
round trip into storage and back out to callers.
"""

from __future__ import annotations

import typing as typ

import msgspec

from .errors import RegistryResponseShapeError

OFFICIAL_META_KEY = "io.modelcontextprotocol.registry/official"

JSONObject = dict[str, typ.Any]


class OfficialMeta(msgspec.Struct, kw_only=True, rename="camel"):
    """Registry-maintained metadata for one server version.

    Attributes
    ----------
    status : str, optional
        Registry lifecycle status such as ``active`` or ``deprecated``.
    published_at : str, optional
        ISO-8601 timestamp of first publication.
    updated_at : str, optional
        ISO-8601 timestamp of the last registry update.
    is_latest : bool
        Whether the registry currently marks this version as latest.

    """

    status: str | None = None
    published_at: str | None = None
    updated_at: str | None = None
    is_latest: bool = False


class ServerEnvelope(msgspec.Struct, kw_only=True):
    """One entry of a registry response."""

    server: JSONObject
    meta: JSONObject = msgspec.field(name="_meta", default_factory=dict)


class ListMetadata(msgspec.Struct, kw_only=True, rename="camel"):
    """Pagination block of a list response."""

    next_cursor: str | None = None
    count: int | None = None


class ServerListResponse(msgspec.Struct, kw_only=True):
    """Body of ``GET /servers`` and ``GET /servers/{name}/versions``."""

    servers: list[ServerEnvelope] = msgspec.field(default_factory=list)
    metadata: ListMetadata = msgspec.field(default_factory=ListMetadata)


class CatalogEntity(msgspec.Struct, frozen=True, kw_only=True):
    """A single ``(name, version)`` server descriptor fetched from upstream.

    Entities are transient: they live for one page request or one sync pass
    and are never cached.
    """

    name: str
    version: str
    title: str | None = None
    description: str | None = None
    schema_url: str | None = None
    website_url: str | None = None
    repository: JSONObject | None = None
    packages: list[typ.Any] = msgspec.field(default_factory=list)
    remotes: list[typ.Any] = msgspec.field(default_factory=list)
    icons: list[typ.Any] = msgspec.field(default_factory=list)
    official: OfficialMeta = msgspec.field(default_factory=OfficialMeta)
    server_data: JSONObject = msgspec.field(default_factory=dict)
    meta_data: JSONObject = msgspec.field(default_factory=dict)

    @property
    def repository_url(self) -> str | None:
        """Return the repository URL when upstream supplied one."""
        if self.repository is None:
            return None
        url = self.repository.get("url")
        return url if isinstance(url, str) and url else None

    def to_payload(self) -> JSONObject:
        """Return the raw upstream envelope for this entity."""
        return {"server": self.server_data, "_meta": self.meta_data}


def _optional_str(data: JSONObject, key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _json_list(data: JSONObject, key: str) -> list[typ.Any]:
    value = data.get(key)
    return list(value) if isinstance(value, list) else []


def _official_meta(meta: JSONObject) -> OfficialMeta:
    raw = meta.get(OFFICIAL_META_KEY)
    if not isinstance(raw, dict):
        return OfficialMeta()
    try:
        return msgspec.convert(raw, OfficialMeta)
    except msgspec.ValidationError as exc:
        raise RegistryResponseShapeError.missing(f"_meta.{OFFICIAL_META_KEY}") from exc


def envelope_name(envelope: ServerEnvelope) -> str:
    """Return the server name of a raw envelope, or ``<unnamed>``."""
    return _optional_str(envelope.server, "name") or "<unnamed>"


def entity_from_envelope(envelope: ServerEnvelope) -> CatalogEntity:
    """Build a :class:`CatalogEntity` from a decoded registry envelope.

    Raises
    ------
    RegistryResponseShapeError
        If the server object lacks a string ``name`` or ``version``.

    """
    server = envelope.server
    name = _optional_str(server, "name")
    if not name:
        raise RegistryResponseShapeError.missing("server.name")
    version = _optional_str(server, "version")
    if not version:
        raise RegistryResponseShapeError.missing("server.version")

    raw_repository = server.get("repository")
    return CatalogEntity(
        name=name,
        version=version,
        title=_optional_str(server, "title"),
        description=_optional_str(server, "description"),
        schema_url=_optional_str(server, "$schema"),
        website_url=_optional_str(server, "websiteUrl"),
        repository=raw_repository if isinstance(raw_repository, dict) else None,
        packages=_json_list(server, "packages"),
        remotes=_json_list(server, "remotes"),
        icons=_json_list(server, "icons"),
        official=_official_meta(envelope.meta),
        server_data=server,
        meta_data=envelope.meta,
    )
