"""Flatten upstream entities into indexable records.

The record identity ``name:version`` doubles as the external server id that
callers pass back into lookups, so :func:`format_server_id` and
:func:`parse_server_id` must stay inverse for versions without a colon.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import typing as typ

if typ.TYPE_CHECKING:
    from mcpindex.upstream.models import CatalogEntity, JSONObject

SERVER_ID_SEPARATOR = ":"


def format_server_id(name: str, version: str) -> str:
    """Return the identity key for ``(name, version)``."""
    return f"{name}{SERVER_ID_SEPARATOR}{version}"


def parse_server_id(server_id: str) -> tuple[str, str | None]:
    """Split ``server_id`` on its first colon.

    Returns
    -------
    tuple[str, str | None]
        The server name and the version, or ``None`` when the id carries no
        version part.

    """
    name, sep, version = server_id.partition(SERVER_ID_SEPARATOR)
    if not sep or not version:
        return (name, None)
    return (name, version)


def parse_upstream_timestamp(value: str | None) -> dt.datetime | None:
    """Parse an upstream ISO-8601 timestamp, returning ``None`` if unusable."""
    if not value:
        return None
    try:
        parsed = dt.datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.UTC)
    return parsed.astimezone(dt.UTC)


@dataclasses.dataclass(frozen=True, slots=True)
class IndexedRecord:
    """Flattened, persistable view of one ``(name, version)`` entity."""

    id: str
    name: str
    version: str
    title: str
    description: str | None
    schema_url: str | None
    repository_url: str | None
    website_url: str | None
    packages: list[typ.Any]
    remotes: list[typ.Any]
    icons: list[typ.Any]
    server_data: JSONObject
    meta_data: JSONObject
    has_remotes: bool
    has_packages: bool
    has_icons: bool
    has_repository: bool
    has_website: bool
    is_latest: bool
    is_official: bool
    published_at: dt.datetime | None
    updated_at: dt.datetime | None
    synced_at: dt.datetime


def to_record(
    entity: CatalogEntity, *, is_official: bool, synced_at: dt.datetime
) -> IndexedRecord:
    """Map ``entity`` to an :class:`IndexedRecord`.

    Missing optional fields become ``None`` or empty collections; derived
    flags are "present and non-empty".
    """
    repository_url = entity.repository_url
    return IndexedRecord(
        id=format_server_id(entity.name, entity.version),
        name=entity.name,
        version=entity.version,
        title=entity.title or entity.name,
        description=entity.description,
        schema_url=entity.schema_url,
        repository_url=repository_url,
        website_url=entity.website_url,
        packages=list(entity.packages),
        remotes=list(entity.remotes),
        icons=list(entity.icons),
        server_data=dict(entity.server_data),
        meta_data=dict(entity.meta_data),
        has_remotes=bool(entity.remotes),
        has_packages=bool(entity.packages),
        has_icons=bool(entity.icons),
        has_repository=bool(repository_url),
        has_website=bool(entity.website_url),
        is_latest=entity.official.is_latest,
        is_official=is_official,
        published_at=parse_upstream_timestamp(entity.official.published_at),
        updated_at=parse_upstream_timestamp(entity.official.updated_at),
        synced_at=synced_at,
    )
