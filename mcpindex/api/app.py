"""Application factory for the mcpindex Falcon ASGI application.

Usage
-----
Create a health-only app::

    app = create_app()

Create an app serving the catalog (and, with a store, the index)::

    from mcpindex.api.app import AppDependencies, create_app

    app = create_app(AppDependencies(catalog_service=service))

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from mcpindex.api.errors import register_error_handlers
from mcpindex.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from mcpindex.api.middleware import LifespanHook
    from mcpindex.catalog.service import RegistryCatalogService

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    catalog_service
        Catalog facade. When ``None`` only health endpoints are registered;
        index and sync endpoints additionally require the service to carry a
        record store.
    on_startup
        Hooks awaited on ASGI startup, such as table creation.
    on_shutdown
        Hooks awaited on ASGI shutdown, such as closing HTTP clients.

    """

    catalog_service: RegistryCatalogService | None = None
    on_startup: tuple[LifespanHook, ...] = ()
    on_shutdown: tuple[LifespanHook, ...] = ()


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None``, only ``/health``
        and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    service = dependencies.catalog_service if dependencies is not None else None
    has_index = service is not None and service.has_index

    middleware: list[object] = []
    if dependencies is not None and (
        dependencies.on_startup or dependencies.on_shutdown
    ):
        from mcpindex.api.middleware import LifespanHooks

        middleware.append(
            LifespanHooks(
                on_startup=dependencies.on_startup,
                on_shutdown=dependencies.on_shutdown,
            )
        )

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/health", HealthResource())
    app.add_route(
        "/ready", ReadyResource(catalog=service is not None, index=has_index)
    )

    if service is not None:
        from mcpindex.api.catalog.resources import (
            CatalogQueryResource,
            CatalogServerResource,
            CatalogServersResource,
            CatalogVersionsResource,
        )

        app.add_route("/catalog/servers", CatalogServersResource(service))
        app.add_route("/catalog/servers/query", CatalogQueryResource(service))
        app.add_route("/catalog/server", CatalogServerResource(service))
        app.add_route("/catalog/versions", CatalogVersionsResource(service))

    if service is not None and has_index:
        from mcpindex.api.catalog.resources import (
            IndexServersResource,
            IndexStatsResource,
            SyncResource,
        )

        app.add_route("/index/servers", IndexServersResource(service))
        app.add_route("/index/stats", IndexStatsResource(service))
        app.add_route("/sync", SyncResource(service))

    register_error_handlers(app)
    return app
