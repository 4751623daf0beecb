"""ASGI lifespan middleware running startup and shutdown hooks.

The runtime uses it to create the index tables before the first request and
to close the upstream HTTP client and database engine on shutdown.

Usage
-----
Register the middleware when creating the Falcon app::

    from mcpindex.api.middleware import LifespanHooks

    hooks = LifespanHooks(
        on_startup=(partial(init_catalog_storage, engine),),
        on_shutdown=(client.aclose, engine.dispose),
    )
    app = falcon.asgi.App(middleware=[hooks])

"""

from __future__ import annotations

import typing as typ

from mcpindex.logging import get_logger, log_exception, log_info

__all__ = ["LifespanHook", "LifespanHooks"]

logger = get_logger(__name__)

type LifespanHook = typ.Callable[[], typ.Awaitable[object]]


class LifespanHooks:
    """Falcon middleware that awaits hooks on ASGI startup and shutdown.

    Startup hooks run in order and a failure aborts startup. Shutdown hooks
    all run; failures are logged so one broken resource does not leak the
    others.

    Parameters
    ----------
    on_startup
        Hooks awaited before the app accepts requests.
    on_shutdown
        Hooks awaited when the server stops.

    """

    def __init__(
        self,
        *,
        on_startup: typ.Sequence[LifespanHook] = (),
        on_shutdown: typ.Sequence[LifespanHook] = (),
    ) -> None:
        """Store the hook sequences."""
        self._on_startup = tuple(on_startup)
        self._on_shutdown = tuple(on_shutdown)

    async def process_startup(self, _scope: object, _event: object) -> None:
        """Await every startup hook in order."""
        for hook in self._on_startup:
            await hook()
        log_info(logger, "Ran %d startup hook(s)", len(self._on_startup))

    async def process_shutdown(self, _scope: object, _event: object) -> None:
        """Await every shutdown hook, logging failures."""
        for hook in self._on_shutdown:
            try:
                await hook()
            except Exception as exc:  # noqa: BLE001 - remaining hooks still run
                log_exception(logger, "Shutdown hook failed", exc)
