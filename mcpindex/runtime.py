"""mcpindex runtime entrypoint.

The ASGI application factory builds the catalog service from the
environment; when ``MCPINDEX_DATABASE_URL`` is set it also mounts the index
and sync routes and creates the ``mcp_servers`` table on startup.

Configuration is driven by environment variables:

- ``MCPINDEX_HOST``: Bind address (default ``0.0.0.0``)
- ``MCPINDEX_PORT``: Listen port (default ``8080``)
- ``MCPINDEX_LOG_LEVEL``: Log level (default ``INFO``)
- ``MCPINDEX_DATABASE_URL``: Database connection URL (optional)
- ``MCPINDEX_REGISTRY_URL`` / ``MCPINDEX_HTTP_TIMEOUT_S``: upstream client

Run the service directly with ``python -m mcpindex.runtime``.
"""

from __future__ import annotations

import functools
import os
import typing as typ

from mcpindex.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

    from mcpindex.api.middleware import LifespanHook

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid MCPINDEX_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application from the environment.

    Returns
    -------
    falcon.asgi.App
        App serving health and catalog routes, plus index and sync routes
        when ``MCPINDEX_DATABASE_URL`` is set.

    """
    from mcpindex.api.app import AppDependencies
    from mcpindex.api.app import create_app as _create_api_app
    from mcpindex.api.factory import build_catalog_service
    from mcpindex.upstream.client import RegistryClientConfig, RegistryHTTPClient

    config = RegistryClientConfig.from_env()
    client = RegistryHTTPClient(config)
    on_startup: list[LifespanHook] = []
    on_shutdown: list[LifespanHook] = [client.aclose]
    session_factory = None

    database_url = os.environ.get("MCPINDEX_DATABASE_URL")
    if database_url:
        from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

        from mcpindex.catalog.storage import init_catalog_storage

        engine = create_async_engine(database_url)
        session_factory = async_sessionmaker(engine, expire_on_commit=False)
        on_startup.append(functools.partial(init_catalog_storage, engine))
        on_shutdown.append(engine.dispose)

    service = build_catalog_service(
        client, config=config, session_factory=session_factory
    )
    return _create_api_app(
        AppDependencies(
            catalog_service=service,
            on_startup=tuple(on_startup),
            on_shutdown=tuple(on_shutdown),
        )
    )


def main() -> None:
    """Start the mcpindex runtime server using Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("MCPINDEX_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port = _parse_port(os.environ.get("MCPINDEX_PORT", "8080"))
    log_level_str = os.environ.get("MCPINDEX_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid MCPINDEX_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting mcpindex runtime on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "mcpindex.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
