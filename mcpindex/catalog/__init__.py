"""Registry catalog: sync into a local index and gap-free listing.

The catalog keeps two independent paths over the upstream registry:

- Synchronisation walks the upstream feed, applies the exclusion policy,
  flattens entities and upserts them into the ``mcp_servers`` table.
- Listing serves caller pages either from the static allow-list or by
  filtering upstream pages on the fly.

Usage
-----
Sync the official registry into a database::

    from mcpindex.catalog import RegistryCatalogService, SqlRecordStore

    service = RegistryCatalogService(feed, store=SqlRecordStore(session_factory))
    result = await service.sync(SyncOptions(max_apps=100))

Serve a page::

    page = await service.list_servers(ListRequest(limit=20))

"""

from mcpindex.catalog.config import ListingDefaults
from mcpindex.catalog.errors import (
    CatalogError,
    IndexUnavailableError,
    InvalidListRequestError,
    InvalidServerIdError,
    ServerNotFoundError,
)
from mcpindex.catalog.listing import (
    CatalogItem,
    CatalogListingEngine,
    ListingPage,
    ListRequest,
)
from mcpindex.catalog.policy import ExclusionPolicy
from mcpindex.catalog.search import extract_search_term
from mcpindex.catalog.service import RegistryCatalogService
from mcpindex.catalog.storage import CatalogServerRecord, init_catalog_storage
from mcpindex.catalog.store import (
    IndexedPage,
    IndexFilters,
    IndexStats,
    RecordStore,
    SqlRecordStore,
)
from mcpindex.catalog.sync import CatalogSyncEngine, SyncOptions, SyncResult
from mcpindex.catalog.transform import (
    IndexedRecord,
    format_server_id,
    parse_server_id,
    to_record,
)

__all__ = [
    "CatalogError",
    "CatalogItem",
    "CatalogListingEngine",
    "CatalogServerRecord",
    "CatalogSyncEngine",
    "ExclusionPolicy",
    "IndexFilters",
    "IndexStats",
    "IndexUnavailableError",
    "IndexedPage",
    "IndexedRecord",
    "InvalidListRequestError",
    "InvalidServerIdError",
    "ListRequest",
    "ListingDefaults",
    "ListingPage",
    "RecordStore",
    "RegistryCatalogService",
    "ServerNotFoundError",
    "SqlRecordStore",
    "SyncOptions",
    "SyncResult",
    "extract_search_term",
    "format_server_id",
    "init_catalog_storage",
    "parse_server_id",
    "to_record",
]
