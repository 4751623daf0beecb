"""Dramatiq actor running a registry sync into a database.

Usage
-----
Queue a sync of the first 200 official servers:

>>> sync_registry_job.send(
...     "postgresql+asyncpg://...",
...     max_apps=200,
...     only_with_remotes=True,
... )

"""

from __future__ import annotations

import asyncio
import threading
import typing as typ

import dramatiq
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mcpindex.api.factory import build_catalog_service
from mcpindex.catalog.storage import init_catalog_storage
from mcpindex.catalog.sync import SyncOptions
from mcpindex.jobs._broker import ensure_broker_configured
from mcpindex.upstream.client import RegistryClientConfig, RegistryHTTPClient

type SessionFactory = async_sessionmaker[AsyncSession]

# Reused across actor invocations within one worker process. Each invocation
# runs on a fresh event loop, so engines hold no pooled connections between
# runs.
_ENGINE_CACHE: dict[str, AsyncEngine] = {}
_SESSION_FACTORY_CACHE: dict[str, SessionFactory] = {}
_CACHE_LOCK = threading.Lock()


def _get_or_create_engine(database_url: str) -> AsyncEngine:
    """Return the cached engine for ``database_url``, creating it if absent."""
    with _CACHE_LOCK:
        if database_url not in _ENGINE_CACHE:
            _ENGINE_CACHE[database_url] = create_async_engine(
                database_url, poolclass=pool.NullPool
            )
        return _ENGINE_CACHE[database_url]


def _get_or_create_session_factory(database_url: str) -> SessionFactory:
    """Return the cached session factory bound to the cached engine."""
    engine = _get_or_create_engine(database_url)
    with _CACHE_LOCK:
        if database_url not in _SESSION_FACTORY_CACHE:
            _SESSION_FACTORY_CACHE[database_url] = async_sessionmaker(
                engine, expire_on_commit=False
            )
        return _SESSION_FACTORY_CACHE[database_url]


async def run_sync_async(
    database_url: str, options: SyncOptions
) -> dict[str, typ.Any]:
    """Create tables if needed, run one sync and return its summary dict.

    Parameters
    ----------
    database_url
        SQLAlchemy async URL for the index database.
    options
        Sync options for the run.

    Returns
    -------
    dict[str, Any]
        ``{synced, skipped, errors, durationMs, errorMessages}``.

    """
    engine = _get_or_create_engine(database_url)
    await init_catalog_storage(engine)
    session_factory = _get_or_create_session_factory(database_url)

    config = RegistryClientConfig.from_env()
    client = RegistryHTTPClient(config)
    try:
        service = build_catalog_service(
            client, config=config, session_factory=session_factory
        )
        result = await service.sync(options)
    finally:
        await client.aclose()
    return result.to_dict()


ensure_broker_configured()


@dramatiq.actor(max_retries=0)
def sync_registry_job(
    database_url: str,
    *,
    registry_url: str | None = None,
    max_apps: int | None = None,
    only_with_remotes: bool = False,
) -> dict[str, typ.Any]:
    """Dramatiq actor syncing the upstream registry into ``database_url``.

    The actor is not retried automatically; re-enqueue to retry.

    Parameters
    ----------
    database_url
        SQLAlchemy async URL for the index database.
    registry_url
        Optional custom upstream URL.
    max_apps
        Optional cap on examined upstream entities; ``0`` means no cap.
    only_with_remotes
        Skip entities without remote endpoints.

    Returns
    -------
    dict[str, Any]
        The sync summary.

    Raises
    ------
    ValueError
        If ``max_apps`` is negative.

    """
    options = SyncOptions(
        registry_url=registry_url,
        max_apps=max_apps,
        only_with_remotes=only_with_remotes,
    )
    return asyncio.run(run_sync_async(database_url, options))
