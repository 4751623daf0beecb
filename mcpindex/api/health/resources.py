"""Health probe resources for liveness and readiness checks.

Neither probe touches the upstream registry or the database, so they stay
green while either dependency is degraded.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe resource returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe reporting which route groups are mounted.

    Parameters
    ----------
    catalog
        Whether the catalog routes are registered.
    index
        Whether the index and sync routes are registered.

    """

    def __init__(self, *, catalog: bool = False, index: bool = False) -> None:
        """Record which optional route groups the app serves."""
        self._catalog = catalog
        self._index = index

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        resp.media = {
            "status": "ready",
            "catalog": self._catalog,
            "index": self._index,
        }
        resp.status = HTTPStatus.OK
