"""Persistence model for indexed registry servers."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine


class TimezoneAwareRequiredError(ValueError):
    """Raised when a naive datetime is bound to a UTC column."""

    def __init__(self, column: str = "timestamp") -> None:
        """Attach a consistent message for the failing column."""
        super().__init__(f"{column} must be timezone aware")


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Force bound datetime values to UTC with tzinfo."""
        if value is None:
            return None
        if value.tzinfo is None:
            raise TimezoneAwareRequiredError
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Ensure result datetimes are UTC and timezone aware."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class Base(DeclarativeBase):
    """Base declarative class for catalog models."""


class CatalogServerRecord(Base):
    """One indexed ``(name, version)`` registry entry."""

    __tablename__ = "mcp_servers"
    __table_args__ = (
        Index("ix_mcp_servers_name", "name"),
        Index("ix_mcp_servers_is_latest", "is_latest"),
        Index("ix_mcp_servers_has_remotes", "has_remotes"),
        Index("ix_mcp_servers_synced_at", "synced_at"),
    )

    id: Mapped[str] = mapped_column(String(512), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    version: Mapped[str] = mapped_column(String(255))
    title: Mapped[str | None] = mapped_column(String(512), default=None)
    description: Mapped[str | None] = mapped_column(Text(), default=None)
    schema_url: Mapped[str | None] = mapped_column(Text(), default=None)
    repository_url: Mapped[str | None] = mapped_column(Text(), default=None)
    website_url: Mapped[str | None] = mapped_column(Text(), default=None)
    packages: Mapped[list[typ.Any]] = mapped_column(JSON, default=list)
    remotes: Mapped[list[typ.Any]] = mapped_column(JSON, default=list)
    icons: Mapped[list[typ.Any]] = mapped_column(JSON, default=list)
    server_data: Mapped[dict[str, typ.Any]] = mapped_column(JSON)
    meta_data: Mapped[dict[str, typ.Any]] = mapped_column(JSON)
    has_remotes: Mapped[bool] = mapped_column(Boolean, default=False)
    has_packages: Mapped[bool] = mapped_column(Boolean, default=False)
    has_icons: Mapped[bool] = mapped_column(Boolean, default=False)
    has_repository: Mapped[bool] = mapped_column(Boolean, default=False)
    has_website: Mapped[bool] = mapped_column(Boolean, default=False)
    is_latest: Mapped[bool] = mapped_column(Boolean, default=False)
    is_official: Mapped[bool] = mapped_column(Boolean, default=True)
    published_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime())
    updated_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime())
    synced_at: Mapped[dt.datetime] = mapped_column(UTCDateTime())


async def init_catalog_storage(engine: AsyncEngine) -> None:
    """Create all catalog tables if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
