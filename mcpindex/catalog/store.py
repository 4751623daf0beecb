"""Keyed upsert and read access over indexed registry records."""

from __future__ import annotations

import dataclasses
import typing as typ

from sqlalchemy import case, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from mcpindex.catalog.storage import CatalogServerRecord
from mcpindex.catalog.transform import IndexedRecord

if typ.TYPE_CHECKING:
    import datetime as dt

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
    from sqlalchemy.sql import Select

    type SessionFactory = async_sessionmaker[AsyncSession]

_RECORD_FIELDS: tuple[str, ...] = tuple(
    field.name for field in dataclasses.fields(IndexedRecord)
)
_UPDATE_FIELDS: tuple[str, ...] = tuple(f for f in _RECORD_FIELDS if f != "id")
_DIALECT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


@dataclasses.dataclass(frozen=True, slots=True)
class IndexFilters:
    """Optional filters for :meth:`RecordStore.list_paged`.

    ``None`` leaves a flag unconstrained; ``search`` matches name or
    description case-insensitively.
    """

    search: str | None = None
    has_remotes: bool | None = None
    has_packages: bool | None = None
    is_latest: bool | None = None
    is_official: bool | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class IndexedPage:
    """One offset page of stored records plus the unpaged total."""

    rows: list[IndexedRecord]
    total: int


@dataclasses.dataclass(frozen=True, slots=True)
class IndexStats:
    """Aggregate counts over the stored index."""

    total: int
    with_remotes: int
    with_packages: int
    latest_versions: int
    last_synced_at: dt.datetime | None


class RecordStore(typ.Protocol):
    """Persistence interface used by the sync engine and catalog service."""

    async def upsert(self, record: IndexedRecord) -> None:
        """Insert ``record`` or replace the row sharing its id."""
        ...

    async def get_by_id(self, record_id: str) -> IndexedRecord | None:
        """Return the record with ``record_id`` if present."""
        ...

    async def get_by_name(
        self, name: str, *, latest_only: bool = False
    ) -> list[IndexedRecord]:
        """Return stored versions of ``name``, newest version first."""
        ...

    async def list_paged(
        self, filters: IndexFilters, *, limit: int, offset: int
    ) -> IndexedPage:
        """Return one page of filtered records and the matching total."""
        ...

    async def stats(self) -> IndexStats:
        """Return aggregate counts over the index."""
        ...


def record_from_row(row: CatalogServerRecord) -> IndexedRecord:
    """Convert an ORM row into an :class:`IndexedRecord`."""
    return IndexedRecord(**{name: getattr(row, name) for name in _RECORD_FIELDS})


def _apply_filters(
    query: Select[typ.Any], filters: IndexFilters
) -> Select[typ.Any]:
    if filters.search:
        term = filters.search.lower()
        query = query.where(
            func.lower(CatalogServerRecord.name).contains(term, autoescape=True)
            | func.lower(CatalogServerRecord.description).contains(
                term, autoescape=True
            )
        )
    flag_columns = (
        (filters.has_remotes, CatalogServerRecord.has_remotes),
        (filters.has_packages, CatalogServerRecord.has_packages),
        (filters.is_latest, CatalogServerRecord.is_latest),
        (filters.is_official, CatalogServerRecord.is_official),
    )
    for wanted, column in flag_columns:
        if wanted is not None:
            query = query.where(column.is_(wanted))
    return query


def _count_where(condition: typ.Any) -> typ.Any:  # noqa: ANN401 - SQL expression
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


class SqlRecordStore:
    """SQLAlchemy implementation of :class:`RecordStore`.

    Each upsert runs in its own transaction and is the unit of atomicity:
    concurrent writers to the same id resolve as last-writer-wins, except
    that a write carrying an older ``synced_at`` never replaces a newer row.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        """Bind the store to an async session factory."""
        self._session_factory = session_factory

    async def upsert(self, record: IndexedRecord) -> None:
        """Insert ``record`` or update the existing row with the same id."""
        values = dataclasses.asdict(record)
        async with self._session_factory() as session, session.begin():
            dialect = session.get_bind().dialect.name
            insert = _DIALECT_INSERTS.get(dialect)
            if insert is None:
                await self._merge_upsert(session, record)
                return

            stmt = insert(CatalogServerRecord).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[CatalogServerRecord.id],
                set_={name: stmt.excluded[name] for name in _UPDATE_FIELDS},
                where=CatalogServerRecord.synced_at <= stmt.excluded.synced_at,
            )
            await session.execute(stmt)

    async def _merge_upsert(
        self, session: AsyncSession, record: IndexedRecord
    ) -> None:
        existing = await session.get(CatalogServerRecord, record.id)
        if existing is None:
            session.add(CatalogServerRecord(**dataclasses.asdict(record)))
            return
        if existing.synced_at > record.synced_at:
            return
        for name in _UPDATE_FIELDS:
            setattr(existing, name, getattr(record, name))

    async def get_by_id(self, record_id: str) -> IndexedRecord | None:
        """Return the record stored under ``record_id``."""
        async with self._session_factory() as session:
            row = await session.get(CatalogServerRecord, record_id)
            return None if row is None else record_from_row(row)

    async def get_by_name(
        self, name: str, *, latest_only: bool = False
    ) -> list[IndexedRecord]:
        """Return stored versions of ``name`` ordered by version descending."""
        query = select(CatalogServerRecord).where(CatalogServerRecord.name == name)
        if latest_only:
            query = query.where(CatalogServerRecord.is_latest.is_(True))
        query = query.order_by(CatalogServerRecord.version.desc())
        async with self._session_factory() as session:
            rows = await session.scalars(query)
            return [record_from_row(row) for row in rows]

    async def list_paged(
        self, filters: IndexFilters, *, limit: int, offset: int
    ) -> IndexedPage:
        """Return records ordered by name ascending then version descending."""
        count_query = _apply_filters(
            select(func.count()).select_from(CatalogServerRecord), filters
        )
        page_query = (
            _apply_filters(select(CatalogServerRecord), filters)
            .order_by(
                CatalogServerRecord.name.asc(), CatalogServerRecord.version.desc()
            )
            .limit(limit)
            .offset(offset)
        )
        async with self._session_factory() as session:
            total = await session.scalar(count_query) or 0
            rows = await session.scalars(page_query)
            return IndexedPage(rows=[record_from_row(row) for row in rows], total=total)

    async def stats(self) -> IndexStats:
        """Return totals for the whole index."""
        query = select(
            func.count(CatalogServerRecord.id),
            _count_where(CatalogServerRecord.has_remotes.is_(True)),
            _count_where(CatalogServerRecord.has_packages.is_(True)),
            _count_where(CatalogServerRecord.is_latest.is_(True)),
            func.max(CatalogServerRecord.synced_at),
        )
        async with self._session_factory() as session:
            row = (await session.execute(query)).one()
        total, with_remotes, with_packages, latest, last_synced_at = row
        return IndexStats(
            total=int(total),
            with_remotes=int(with_remotes),
            with_packages=int(with_packages),
            latest_versions=int(latest),
            last_synced_at=last_synced_at,
        )
