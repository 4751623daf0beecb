"""Build a :class:`RegistryCatalogService` from environment configuration.

Shared by the HTTP runtime, the CLI and the Dramatiq actor so each surface
applies the same ``MCPINDEX_*`` settings.

Usage
-----
::

    from mcpindex.api.factory import build_catalog_service

    client = RegistryHTTPClient(config)
    service = build_catalog_service(client, config=config,
                                    session_factory=session_factory)

"""

from __future__ import annotations

import typing as typ

from mcpindex.catalog.config import ListingDefaults
from mcpindex.catalog.service import RegistryCatalogService
from mcpindex.catalog.store import SqlRecordStore
from mcpindex.upstream.client import OFFICIAL_REGISTRY_URL

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from mcpindex.upstream.client import RegistryClientConfig, RegistryFeed

__all__ = ["build_catalog_service", "custom_registry_url"]


def custom_registry_url(config: RegistryClientConfig) -> str | None:
    """Return the configured endpoint unless it is the official registry."""
    endpoint = config.endpoint.rstrip("/")
    return None if endpoint == OFFICIAL_REGISTRY_URL else endpoint


def build_catalog_service(
    feed: RegistryFeed,
    *,
    config: RegistryClientConfig,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> RegistryCatalogService:
    """Assemble a catalog service around ``feed``.

    Parameters
    ----------
    feed
        Upstream reader, normally a :class:`RegistryHTTPClient` built from
        ``config``.
    config
        Client configuration; a non-official endpoint switches listings to
        dynamic mode and marks synced records unofficial.
    session_factory
        Optional async session factory; when given, the service can serve
        index queries and run syncs.

    Returns
    -------
    RegistryCatalogService
        Service with listing defaults read from the environment.

    """
    store = SqlRecordStore(session_factory) if session_factory is not None else None
    return RegistryCatalogService(
        feed,
        store=store,
        registry_url=custom_registry_url(config),
        defaults=ListingDefaults.from_env(),
    )
