"""Registry-to-index synchronisation.

A sync run walks the upstream listing page by page (latest versions only),
filters each entity through the :class:`ExclusionPolicy`, flattens survivors
with :func:`to_record` and upserts them one at a time. Per-item failures are
counted and the run continues; a failed page fetch ends the run. Either way
the caller receives a :class:`SyncResult`.
"""

from __future__ import annotations

import dataclasses
import time
import typing as typ

from mcpindex.catalog.observability import SyncEventLogger
from mcpindex.catalog.policy import ExclusionPolicy
from mcpindex.catalog.transform import to_record
from mcpindex.common.time import elapsed_ms, utcnow
from mcpindex.upstream.client import LATEST_VERSION, ServerQuery
from mcpindex.upstream.errors import RegistryResponseShapeError
from mcpindex.upstream.models import entity_from_envelope, envelope_name

if typ.TYPE_CHECKING:
    import datetime as dt

    from mcpindex.catalog.store import RecordStore
    from mcpindex.upstream.client import RegistryFeed, RegistryPage
    from mcpindex.upstream.models import CatalogEntity

SYNC_PAGE_SIZE = 100


@dataclasses.dataclass(frozen=True, slots=True)
class SyncOptions:
    """Caller-supplied knobs for one sync run.

    Attributes
    ----------
    registry_url
        Custom upstream listing URL. Records synced from a custom URL are
        stored with ``is_official`` false.
    max_apps
        Cap on the number of upstream entities examined, skipped ones
        included. ``None`` or ``0`` walks the whole feed.
    only_with_remotes
        Skip entities that expose no remote endpoint.

    """

    registry_url: str | None = None
    max_apps: int | None = None
    only_with_remotes: bool = False

    def __post_init__(self) -> None:
        """Reject negative caps and read a zero cap as no cap."""
        if self.max_apps is not None and self.max_apps < 0:
            msg = f"max_apps must not be negative, got {self.max_apps}"
            raise ValueError(msg)
        if self.max_apps == 0:
            object.__setattr__(self, "max_apps", None)

    @property
    def is_official(self) -> bool:
        """Return True when syncing from the default upstream."""
        return not self.registry_url


@dataclasses.dataclass(slots=True)
class SyncResult:
    """Summary of one sync run, returned even when the run fails."""

    synced: int = 0
    skipped: int = 0
    errors: int = 0
    duration_ms: float = 0.0
    error_messages: list[str] = dataclasses.field(default_factory=list)

    def record_error(self, message: str) -> None:
        """Count an error and keep its message."""
        self.errors += 1
        self.error_messages.append(message)

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the operator-facing summary shape."""
        return {
            "synced": self.synced,
            "skipped": self.skipped,
            "errors": self.errors,
            "durationMs": self.duration_ms,
            "errorMessages": list(self.error_messages),
        }


def _cap_reached(options: SyncOptions, examined: int) -> bool:
    return options.max_apps is not None and examined >= options.max_apps


class CatalogSyncEngine:
    """Drive an upstream feed into a record store.

    Parameters
    ----------
    feed
        Upstream registry reader.
    store
        Destination for flattened records.
    policy
        Exclusion rules; defaults to :class:`ExclusionPolicy`.
    clock
        Source of ``synced_at`` timestamps.
    event_logger
        Structured event sink.

    """

    def __init__(
        self,
        feed: RegistryFeed,
        store: RecordStore,
        *,
        policy: ExclusionPolicy | None = None,
        clock: typ.Callable[[], dt.datetime] = utcnow,
        event_logger: SyncEventLogger | None = None,
    ) -> None:
        """Configure the engine with its collaborators."""
        self._feed = feed
        self._store = store
        self._policy = policy or ExclusionPolicy()
        self._clock = clock
        self._events = event_logger or SyncEventLogger()

    async def sync(self, options: SyncOptions | None = None) -> SyncResult:
        """Run one sync pass and return its summary."""
        opts = options or SyncOptions()
        started = time.perf_counter()
        result = SyncResult()
        examined = 0
        cursor: str | None = None
        page_number = 0

        self._events.log_run_started(
            registry_url=opts.registry_url, max_apps=opts.max_apps
        )
        while True:
            try:
                page = await self._fetch_page(opts, cursor)
            except Exception as exc:  # noqa: BLE001 - ends the run
                result.record_error(f"Fatal sync error: {exc}")
                result.duration_ms = elapsed_ms(started)
                self._events.log_run_failed(result, exc)
                return result

            page_number += 1
            self._events.log_page_fetched(
                page=page_number,
                items=len(page.envelopes),
                has_next_cursor=page.next_cursor is not None,
            )
            examined = await self._process_page(page, opts, result, examined)
            if _cap_reached(opts, examined):
                break

            cursor = page.next_cursor
            if not cursor:
                break

        result.duration_ms = elapsed_ms(started)
        self._events.log_run_completed(result)
        return result

    async def _fetch_page(
        self, options: SyncOptions, cursor: str | None
    ) -> RegistryPage:
        return await self._feed.list_servers(
            ServerQuery(
                cursor=cursor,
                limit=SYNC_PAGE_SIZE,
                version=LATEST_VERSION,
                registry_url=options.registry_url,
            )
        )

    async def _process_page(
        self,
        page: RegistryPage,
        options: SyncOptions,
        result: SyncResult,
        examined: int,
    ) -> int:
        """Process envelopes in upstream order; return the updated examined count."""
        for envelope in page.envelopes:
            if _cap_reached(options, examined):
                break
            examined += 1

            try:
                entity = entity_from_envelope(envelope)
            except RegistryResponseShapeError as exc:
                self._record_item_failure(envelope_name(envelope), exc, result)
                continue
            if self._policy.should_skip(
                entity, only_with_remotes=options.only_with_remotes
            ):
                result.skipped += 1
                continue
            await self._sync_entity(entity, options, result)
        return examined

    async def _sync_entity(
        self, entity: CatalogEntity, options: SyncOptions, result: SyncResult
    ) -> None:
        try:
            record = to_record(
                entity, is_official=options.is_official, synced_at=self._clock()
            )
            await self._store.upsert(record)
        except Exception as exc:  # noqa: BLE001 - counted per item
            self._record_item_failure(entity.name, exc, result)
            return
        result.synced += 1

    def _record_item_failure(
        self, name: str, error: Exception, result: SyncResult
    ) -> None:
        result.record_error(f"Error syncing {name}: {error}")
        self._events.log_item_failed(server_name=name, error=error)
