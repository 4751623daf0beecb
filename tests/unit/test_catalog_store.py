"""Unit tests for the SQLAlchemy record store."""

from __future__ import annotations

import datetime as dt
import typing as typ

import pytest

from mcpindex.catalog.store import IndexFilters, SqlRecordStore
from mcpindex.catalog.transform import to_record
from tests.helpers.registry_fakes import make_entity

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from mcpindex.catalog.transform import IndexedRecord

T0 = dt.datetime(2025, 10, 1, 12, 0, tzinfo=dt.UTC)


def _record(
    name: str,
    version: str = "1.0.0",
    *,
    synced_at: dt.datetime = T0,
    is_official: bool = True,
    **kwargs: typ.Any,
) -> IndexedRecord:
    return to_record(
        make_entity(name, version, **kwargs),
        is_official=is_official,
        synced_at=synced_at,
    )


@pytest.fixture
def store(
    session_factory: async_sessionmaker[AsyncSession],
) -> SqlRecordStore:
    """Return a record store over the sqlite session factory."""
    return SqlRecordStore(session_factory)


class TestUpsert:
    """Tests for SqlRecordStore.upsert."""

    @pytest.mark.asyncio
    async def test_insert_then_read_back(self, store: SqlRecordStore) -> None:
        """An upserted record reads back unchanged."""
        record = _record("ai.exa/exa", "3.1.3", website_url="https://exa.ai")

        await store.upsert(record)
        stored = await store.get_by_id("ai.exa/exa:3.1.3")

        assert stored == record, "stored record should round-trip"

    @pytest.mark.asyncio
    async def test_upsert_is_idempotent(self, store: SqlRecordStore) -> None:
        """Upserting the same record twice keeps a single row."""
        record = _record("ai.exa/exa")

        await store.upsert(record)
        await store.upsert(record)
        page = await store.list_paged(IndexFilters(), limit=10, offset=0)

        assert page.total == 1, "expected exactly one row"

    @pytest.mark.asyncio
    async def test_newer_sync_replaces_row(self, store: SqlRecordStore) -> None:
        """A later synced_at overwrites every mutable field."""
        await store.upsert(_record("ai.exa/exa", description="old"))
        later = T0 + dt.timedelta(hours=1)
        await store.upsert(
            _record("ai.exa/exa", description="new", synced_at=later, is_latest=False)
        )

        stored = await store.get_by_id("ai.exa/exa:1.0.0")

        assert stored is not None, "row should exist"
        assert stored.description == "new", "description should update"
        assert stored.synced_at == later, "synced_at should advance"
        assert not stored.is_latest, "is_latest should update"

    @pytest.mark.asyncio
    async def test_older_sync_does_not_regress(self, store: SqlRecordStore) -> None:
        """A write carrying an older synced_at leaves the newer row intact."""
        later = T0 + dt.timedelta(hours=1)
        await store.upsert(_record("ai.exa/exa", description="new", synced_at=later))
        await store.upsert(_record("ai.exa/exa", description="stale", synced_at=T0))

        stored = await store.get_by_id("ai.exa/exa:1.0.0")

        assert stored is not None, "row should exist"
        assert stored.description == "new", "stale write must not win"
        assert stored.synced_at == later, "synced_at must not move backwards"

    @pytest.mark.asyncio
    async def test_missing_id_returns_none(self, store: SqlRecordStore) -> None:
        """Looking up an unknown id returns None."""
        assert await store.get_by_id("nope:1.0.0") is None


class TestReads:
    """Tests for name lookups, paging and stats."""

    @pytest.mark.asyncio
    async def test_get_by_name_orders_versions(self, store: SqlRecordStore) -> None:
        """Versions of a name come back newest first."""
        await store.upsert(_record("ai.exa/exa", "1.0.0", is_latest=False))
        await store.upsert(_record("ai.exa/exa", "2.0.0"))
        await store.upsert(_record("com.acme/other", "9.0.0"))

        versions = await store.get_by_name("ai.exa/exa")
        latest = await store.get_by_name("ai.exa/exa", latest_only=True)

        assert [r.version for r in versions] == ["2.0.0", "1.0.0"]
        assert [r.version for r in latest] == ["2.0.0"]

    @pytest.mark.asyncio
    async def test_list_paged_orders_and_pages(self, store: SqlRecordStore) -> None:
        """Rows are ordered by name then version descending and paged."""
        for name in ("c.acme/z", "a.acme/x", "b.acme/y"):
            await store.upsert(_record(name))
        await store.upsert(_record("a.acme/x", "2.0.0"))

        first = await store.list_paged(IndexFilters(), limit=2, offset=0)
        second = await store.list_paged(IndexFilters(), limit=2, offset=2)

        assert first.total == 4, "total ignores paging"
        assert [r.id for r in first.rows] == ["a.acme/x:2.0.0", "a.acme/x:1.0.0"]
        assert [r.id for r in second.rows] == ["b.acme/y:1.0.0", "c.acme/z:1.0.0"]

    @pytest.mark.asyncio
    async def test_list_paged_filters(self, store: SqlRecordStore) -> None:
        """Flag and search filters narrow rows and the total."""
        await store.upsert(_record("io.acme/remote", description="Weather API"))
        await store.upsert(_record("io.acme/packaged", remotes=()))
        await store.upsert(_record("io.acme/custom", is_official=False))

        remote_only = await store.list_paged(
            IndexFilters(has_remotes=True, is_official=True), limit=10, offset=0
        )
        by_description = await store.list_paged(
            IndexFilters(search="WEATHER"), limit=10, offset=0
        )
        by_name = await store.list_paged(
            IndexFilters(search="pack"), limit=10, offset=0
        )

        assert [r.name for r in remote_only.rows] == ["io.acme/remote"]
        assert remote_only.total == 1, "total reflects filters"
        assert [r.name for r in by_description.rows] == ["io.acme/remote"]
        assert [r.name for r in by_name.rows] == ["io.acme/packaged"]

    @pytest.mark.asyncio
    async def test_search_escapes_like_wildcards(
        self, store: SqlRecordStore
    ) -> None:
        """Percent signs in a search term match literally."""
        await store.upsert(_record("io.acme/plain"))

        page = await store.list_paged(IndexFilters(search="%"), limit=10, offset=0)

        assert page.total == 0, "a literal % should match nothing"

    @pytest.mark.asyncio
    async def test_stats(self, store: SqlRecordStore) -> None:
        """Stats count flags and report the newest sync time."""
        later = T0 + dt.timedelta(minutes=5)
        await store.upsert(_record("io.acme/a"))
        await store.upsert(
            _record(
                "io.acme/b",
                remotes=(),
                packages=({"registryType": "pypi", "identifier": "b"},),
                is_latest=False,
                synced_at=later,
            )
        )

        stats = await store.stats()

        assert stats.total == 2, "two rows"
        assert stats.with_remotes == 1, "one row has remotes"
        assert stats.with_packages == 1, "one row has packages"
        assert stats.latest_versions == 1, "one row is latest"
        assert stats.last_synced_at == later, "newest sync time"

    @pytest.mark.asyncio
    async def test_stats_on_empty_index(self, store: SqlRecordStore) -> None:
        """An empty index reports zeros and no sync time."""
        stats = await store.stats()

        assert stats.total == 0, "no rows"
        assert stats.with_remotes == 0, "no remote rows"
        assert stats.last_synced_at is None, "never synced"
