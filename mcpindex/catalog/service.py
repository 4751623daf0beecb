"""Facade over listing, lookup, index queries and sync.

Usage
-----
>>> service = RegistryCatalogService(RegistryHTTPClient(), store=store)
>>> page = await service.list_servers(ListRequest(limit=10))
>>> payload = await service.get_server("ai.exa/exa:3.1.3")

"""

from __future__ import annotations

import dataclasses
import typing as typ

from mcpindex.catalog.allowlist import ALLOWED_SERVERS
from mcpindex.catalog.config import ListingDefaults
from mcpindex.catalog.errors import (
    IndexUnavailableError,
    InvalidListRequestError,
    InvalidServerIdError,
    ServerNotFoundError,
)
from mcpindex.catalog.listing import CatalogListingEngine, catalog_item_from_entity
from mcpindex.catalog.policy import ExclusionPolicy
from mcpindex.catalog.store import IndexFilters
from mcpindex.catalog.sync import CatalogSyncEngine, SyncOptions
from mcpindex.catalog.transform import parse_server_id
from mcpindex.common.time import utcnow

if typ.TYPE_CHECKING:
    import datetime as dt

    from mcpindex.catalog.listing import ListingPage, ListRequest
    from mcpindex.catalog.store import IndexedPage, IndexStats, RecordStore
    from mcpindex.catalog.sync import SyncResult
    from mcpindex.upstream.client import RegistryFeed
    from mcpindex.upstream.models import JSONObject


def _require_text(value: object, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidServerIdError(field)
    return value.strip()


class RegistryCatalogService:
    """Entry point for every catalog operation exposed to callers.

    Parameters
    ----------
    feed
        Upstream registry reader.
    store
        Optional index store; index and sync operations require it.
    registry_url
        Custom upstream URL. When set, listings use dynamic mode and synced
        records are not marked official.
    defaults
        Listing defaults validated at the boundary.
    policy
        Exclusion rules shared by listing and sync.
    allowlist
        Server names served in allow-list mode.

    """

    def __init__(  # noqa: PLR0913
        self,
        feed: RegistryFeed,
        *,
        store: RecordStore | None = None,
        registry_url: str | None = None,
        defaults: ListingDefaults | None = None,
        policy: ExclusionPolicy | None = None,
        allowlist: typ.Sequence[str] = ALLOWED_SERVERS,
        clock: typ.Callable[[], dt.datetime] = utcnow,
    ) -> None:
        """Wire the listing and sync engines around shared collaborators."""
        self._feed = feed
        self._store = store
        self._registry_url = registry_url or None
        self._defaults = defaults or ListingDefaults()
        self._clock = clock
        resolved_policy = policy or ExclusionPolicy()
        self._listing = CatalogListingEngine(
            feed,
            defaults=self._defaults,
            policy=resolved_policy,
            allowlist=allowlist,
            clock=clock,
        )
        self._sync_engine = (
            None
            if store is None
            else CatalogSyncEngine(feed, store, policy=resolved_policy, clock=clock)
        )

    @property
    def has_index(self) -> bool:
        """Return True when a record store is configured."""
        return self._store is not None

    async def list_servers(self, request: ListRequest) -> ListingPage:
        """Return one listing page, applying the configured registry URL."""
        if request.registry_url is None and self._registry_url is not None:
            request = dataclasses.replace(request, registry_url=self._registry_url)
        return await self._listing.list_servers(request)

    async def get_server(self, server_id: object) -> JSONObject:
        """Return the raw upstream envelope for ``name`` or ``name:version``.

        Raises
        ------
        InvalidServerIdError
            If ``server_id`` is missing or blank; no fetch is attempted.
        ServerNotFoundError
            If the name, or the requested version of it, does not exist.

        """
        identifier = _require_text(server_id, "id")
        name, version = parse_server_id(identifier)
        entity = await self._feed.get_server(
            name, version=version, registry_url=self._registry_url
        )
        if entity is None:
            raise ServerNotFoundError(identifier)
        return entity.to_payload()

    async def list_versions(self, name: object) -> dict[str, typ.Any]:
        """Return every upstream version of ``name`` with a ``count``."""
        server_name = _require_text(name, "name")
        entities = await self._feed.list_versions(
            server_name, registry_url=self._registry_url
        )
        now = self._clock()
        versions = [catalog_item_from_entity(e, now=now).to_dict() for e in entities]
        return {"versions": versions, "count": len(versions)}

    async def list_indexed(
        self,
        filters: IndexFilters | None = None,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> IndexedPage:
        """Return one offset page of stored records.

        Raises
        ------
        IndexUnavailableError
            If no record store is configured.
        InvalidListRequestError
            If ``limit`` or ``offset`` is out of range.

        """
        store = self._require_store()
        page_limit = self._defaults.default_limit if limit is None else limit
        if not 1 <= page_limit <= self._defaults.max_limit:
            raise InvalidListRequestError.limit_out_of_range(
                page_limit, self._defaults.max_limit
            )
        if offset < 0:
            msg = f"must be non-negative, got {offset}"
            raise InvalidListRequestError(msg, field="offset")
        return await store.list_paged(
            filters or IndexFilters(), limit=page_limit, offset=offset
        )

    async def stats(self) -> IndexStats:
        """Return aggregate counts over the index."""
        return await self._require_store().stats()

    async def sync(self, options: SyncOptions | None = None) -> SyncResult:
        """Run a sync pass into the configured store.

        A custom ``registry_url`` on the service applies when ``options``
        names none.
        """
        if self._sync_engine is None:
            raise IndexUnavailableError
        opts = options or SyncOptions()
        if opts.registry_url is None and self._registry_url is not None:
            opts = dataclasses.replace(opts, registry_url=self._registry_url)
        return await self._sync_engine.sync(opts)

    def _require_store(self) -> RecordStore:
        if self._store is None:
            raise IndexUnavailableError
        return self._store
