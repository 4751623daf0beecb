"""Falcon error handlers mapping catalog failures to HTTP responses.

Usage
-----
Register error handlers on the Falcon app::

    from mcpindex.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from mcpindex.catalog.errors import (
    IndexUnavailableError,
    InvalidListRequestError,
    InvalidServerIdError,
    ServerNotFoundError,
)
from mcpindex.upstream.errors import RegistryResponseShapeError, RegistryTransportError

if typ.TYPE_CHECKING:
    from falcon.asgi import App, Request, Response

__all__ = [
    "InvalidInputError",
    "handle_index_unavailable",
    "handle_invalid_input",
    "handle_invalid_list_request",
    "handle_invalid_server_id",
    "handle_server_not_found",
    "handle_upstream_failure",
    "register_error_handlers",
]


class InvalidInputError(Exception):
    """Raised for malformed HTTP input that should map to HTTP 400.

    Catalog validation failures have their own exception types; this one
    covers request bodies and parameters that never reach the catalog.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Optional name of the input field that failed validation.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)


def _bad_request(resp: Response, reason: str, field: str | None) -> None:
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {"title": "Invalid input", "description": reason}
    if field is not None:
        media["field"] = field
    resp.media = media


async def handle_server_not_found(
    _req: Request,
    resp: Response,
    ex: ServerNotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ServerNotFoundError`` to an HTTP 404 JSON response."""
    resp.status = falcon.HTTP_404
    resp.media = {"title": "Server not found", "description": str(ex)}


async def handle_invalid_server_id(
    _req: Request,
    resp: Response,
    ex: InvalidServerIdError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidServerIdError`` to an HTTP 400 JSON response."""
    _bad_request(resp, str(ex), ex.field)


async def handle_invalid_list_request(
    _req: Request,
    resp: Response,
    ex: InvalidListRequestError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidListRequestError`` to an HTTP 400 JSON response."""
    _bad_request(resp, ex.reason, ex.field)


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to an HTTP 400 JSON response.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The validation exception containing reason and optional field.
    _params
        URI template parameters (unused).

    """
    _bad_request(resp, ex.reason, ex.field)


async def handle_upstream_failure(
    _req: Request,
    resp: Response,
    ex: RegistryTransportError | RegistryResponseShapeError,
    _params: dict[str, typ.Any],
) -> None:
    """Map upstream transport and payload failures to HTTP 502."""
    resp.status = falcon.HTTP_502
    resp.media = {"title": "Upstream registry error", "description": str(ex)}


async def handle_index_unavailable(
    _req: Request,
    resp: Response,
    ex: IndexUnavailableError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``IndexUnavailableError`` to HTTP 503."""
    resp.status = falcon.HTTP_503
    resp.media = {"title": "Index unavailable", "description": str(ex)}


def register_error_handlers(app: App) -> None:
    """Attach every catalog error handler to ``app``."""
    app.add_error_handler(ServerNotFoundError, handle_server_not_found)
    app.add_error_handler(InvalidServerIdError, handle_invalid_server_id)
    app.add_error_handler(InvalidListRequestError, handle_invalid_list_request)
    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(RegistryTransportError, handle_upstream_failure)
    app.add_error_handler(RegistryResponseShapeError, handle_upstream_failure)
    app.add_error_handler(IndexUnavailableError, handle_index_unavailable)
