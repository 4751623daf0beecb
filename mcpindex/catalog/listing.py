"""Caller-facing paginated listing over the upstream registry.

Two strategies are available and one is chosen per call:

Allow-list mode
    The cursor is a decimal offset into :data:`ALLOWED_SERVERS` (after the
    optional search narrowing). Each name in the requested slice is fetched
    concurrently by identity; names that fail to resolve are dropped from the
    page. ``next_cursor`` is set only while the slice end is short of the
    narrowed list length.

Dynamic mode
    The cursor is the upstream's own opaque token. Upstream pages are pulled
    and filtered through the :class:`ExclusionPolicy` until ``limit``
    survivors have accumulated or the upstream is exhausted, so filtering
    never silently shrinks the page a caller sees.

A custom registry URL always selects dynamic mode.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from mcpindex.catalog.allowlist import ALLOWED_SERVERS
from mcpindex.catalog.config import ListingDefaults
from mcpindex.catalog.errors import InvalidListRequestError
from mcpindex.catalog.policy import ExclusionPolicy
from mcpindex.catalog.search import extract_search_term
from mcpindex.catalog.transform import format_server_id
from mcpindex.common.time import utcnow
from mcpindex.logging import get_logger, log_warning
from mcpindex.upstream.client import LATEST_VERSION, ServerQuery
from mcpindex.upstream.errors import RegistryResponseShapeError, RegistryTransportError
from mcpindex.upstream.models import entity_from_envelope, envelope_name

if typ.TYPE_CHECKING:
    import datetime as dt

    from mcpindex.upstream.client import RegistryFeed, RegistryPage
    from mcpindex.upstream.models import CatalogEntity, JSONObject

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class ListRequest:
    """Raw listing input as received from a caller.

    ``limit`` and ``version`` fall back to :class:`ListingDefaults`; ``where``
    is a legacy filter object or a comparison tree.
    """

    cursor: str | None = None
    limit: int | None = None
    where: object = None
    version: str | None = None
    registry_url: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class CatalogItem:
    """One entry of a listing page in caller-facing shape."""

    id: str
    title: str
    created_at: str
    updated_at: str
    server: JSONObject
    meta: JSONObject

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the JSON shape with ``_meta`` as the metadata key."""
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "server": self.server,
            "_meta": self.meta,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class ListingPage:
    """A page of items; a missing ``next_cursor`` marks the end of the list."""

    items: list[CatalogItem]
    next_cursor: str | None = None

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the JSON shape, omitting ``nextCursor`` at end of list."""
        payload: dict[str, typ.Any] = {"items": [item.to_dict() for item in self.items]}
        if self.next_cursor is not None:
            payload["nextCursor"] = self.next_cursor
        return payload


def catalog_item_from_entity(entity: CatalogEntity, *, now: dt.datetime) -> CatalogItem:
    """Build the caller-facing item for ``entity``.

    Timestamps fall back to ``now`` when upstream omits them.
    """
    fallback = now.isoformat()
    return CatalogItem(
        id=format_server_id(entity.name, entity.version),
        title=entity.name,
        created_at=entity.official.published_at or fallback,
        updated_at=entity.official.updated_at or fallback,
        server=entity.server_data,
        meta=entity.meta_data,
    )


@dataclasses.dataclass(frozen=True, slots=True)
class _ResolvedRequest:
    cursor: str | None
    limit: int
    version: str
    search: str | None
    registry_url: str | None


class CatalogListingEngine:
    """Serve gap-free listing pages from a :class:`RegistryFeed`."""

    def __init__(
        self,
        feed: RegistryFeed,
        *,
        defaults: ListingDefaults | None = None,
        policy: ExclusionPolicy | None = None,
        allowlist: typ.Sequence[str] = ALLOWED_SERVERS,
        clock: typ.Callable[[], dt.datetime] = utcnow,
    ) -> None:
        """Configure the engine with its feed and listing defaults."""
        self._feed = feed
        self._defaults = defaults or ListingDefaults()
        self._policy = policy or ExclusionPolicy()
        self._allowlist = tuple(allowlist)
        self._clock = clock

    async def list_servers(self, request: ListRequest) -> ListingPage:
        """Return one page for ``request``.

        Raises
        ------
        InvalidListRequestError
            If the limit, cursor or filter expression is malformed.
        RegistryTransportError
            If a dynamic-mode page fetch fails.

        """
        resolved = self._resolve(request)
        if resolved.registry_url is None and self._defaults.allowlist_enabled:
            return await self._list_from_allowlist(resolved)
        return await self._list_dynamic(resolved)

    def _resolve(self, request: ListRequest) -> _ResolvedRequest:
        limit = self._defaults.default_limit if request.limit is None else request.limit
        if (
            isinstance(limit, bool)
            or not isinstance(limit, int)
            or not 1 <= limit <= self._defaults.max_limit
        ):
            raise InvalidListRequestError.limit_out_of_range(
                limit, self._defaults.max_limit
            )
        if request.where is not None and not isinstance(request.where, dict):
            raise InvalidListRequestError.bad_where("must be a JSON object")

        return _ResolvedRequest(
            cursor=request.cursor or None,
            limit=limit,
            version=request.version or self._defaults.default_version,
            search=extract_search_term(request.where),
            registry_url=request.registry_url or None,
        )

    def _names_for(self, search: str | None) -> tuple[str, ...]:
        if not search:
            return self._allowlist
        term = search.lower()
        return tuple(name for name in self._allowlist if term in name.lower())

    async def _list_from_allowlist(self, request: _ResolvedRequest) -> ListingPage:
        offset = _parse_offset(request.cursor)
        names = self._names_for(request.search)
        end = offset + request.limit
        page_names = names[offset:end]

        version = None if request.version == LATEST_VERSION else request.version
        fetched = await asyncio.gather(
            *(self._fetch_allowed(name, version) for name in page_names)
        )
        now = self._clock()
        items = [
            catalog_item_from_entity(entity, now=now)
            for entity in fetched
            if entity is not None
        ]
        next_cursor = str(end) if end < len(names) else None
        return ListingPage(items=items, next_cursor=next_cursor)

    async def _fetch_allowed(
        self, name: str, version: str | None
    ) -> CatalogEntity | None:
        try:
            return await self._feed.get_server(name, version=version)
        except (RegistryTransportError, RegistryResponseShapeError) as exc:
            log_warning(
                logger,
                "Dropping allow-listed server %s from page: %s",
                name,
                exc,
            )
            return None

    async def _list_dynamic(self, request: _ResolvedRequest) -> ListingPage:
        survivors: list[CatalogEntity] = []
        cursor = request.cursor
        page_size = max(request.limit, self._defaults.min_page_fetch)

        while True:
            page = await self._feed.list_servers(
                ServerQuery(
                    cursor=cursor,
                    limit=page_size,
                    search=request.search,
                    version=request.version,
                    registry_url=request.registry_url,
                )
            )
            survivors.extend(
                entity
                for entity in _decode_page(page)
                if not self._policy.should_skip(entity, only_with_remotes=True)
            )
            cursor = page.next_cursor
            if len(survivors) >= request.limit or cursor is None:
                break

        now = self._clock()
        items = [
            catalog_item_from_entity(entity, now=now)
            for entity in survivors[: request.limit]
        ]
        return ListingPage(items=items, next_cursor=cursor)


def _decode_page(page: RegistryPage) -> list[CatalogEntity]:
    entities: list[CatalogEntity] = []
    for envelope in page.envelopes:
        try:
            entities.append(entity_from_envelope(envelope))
        except RegistryResponseShapeError as exc:
            log_warning(
                logger,
                "Dropping malformed server %s from page: %s",
                envelope_name(envelope),
                exc,
            )
    return entities


def _parse_offset(cursor: str | None) -> int:
    if cursor is None:
        return 0
    if not (cursor.isascii() and cursor.isdigit()):
        raise InvalidListRequestError.bad_cursor(cursor)
    return int(cursor)
