"""HTTP resources over :class:`RegistryCatalogService`.

Routes
------
``GET /catalog/servers``
    Listing page from query parameters ``cursor``, ``limit``, ``version``
    and ``search``.
``POST /catalog/servers/query``
    Listing page from a JSON body ``{cursor, limit, where, version}``.
``GET /catalog/server?id=``
    Raw upstream envelope for ``name`` or ``name:version``.
``GET /catalog/versions?name=``
    Every upstream version of a server name.
``GET /index/servers`` and ``GET /index/stats``
    Queries over the local index.
``POST /sync``
    Run a sync pass and return its summary.

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from mcpindex.api.errors import InvalidInputError
from mcpindex.catalog.listing import ListRequest
from mcpindex.catalog.store import IndexFilters
from mcpindex.catalog.sync import SyncOptions

if typ.TYPE_CHECKING:
    import datetime as dt

    from falcon.asgi import Request, Response

    from mcpindex.catalog.service import RegistryCatalogService
    from mcpindex.catalog.store import IndexStats
    from mcpindex.catalog.transform import IndexedRecord

__all__ = [
    "CatalogQueryResource",
    "CatalogServerResource",
    "CatalogServersResource",
    "CatalogVersionsResource",
    "IndexServersResource",
    "IndexStatsResource",
    "SyncResource",
]


def _isoformat(value: dt.datetime | None) -> str | None:
    return None if value is None else value.isoformat()


def serialize_record(record: IndexedRecord) -> dict[str, typ.Any]:
    """Serialize an :class:`IndexedRecord` to a JSON-compatible dict."""
    return {
        "id": record.id,
        "name": record.name,
        "version": record.version,
        "title": record.title,
        "description": record.description,
        "schema_url": record.schema_url,
        "repository_url": record.repository_url,
        "website_url": record.website_url,
        "packages": record.packages,
        "remotes": record.remotes,
        "icons": record.icons,
        "has_remotes": record.has_remotes,
        "has_packages": record.has_packages,
        "has_icons": record.has_icons,
        "has_repository": record.has_repository,
        "has_website": record.has_website,
        "is_latest": record.is_latest,
        "is_official": record.is_official,
        "published_at": _isoformat(record.published_at),
        "updated_at": _isoformat(record.updated_at),
        "synced_at": record.synced_at.isoformat(),
    }


def serialize_stats(stats: IndexStats) -> dict[str, typ.Any]:
    """Serialize :class:`IndexStats` to a JSON-compatible dict."""
    return {
        "total": stats.total,
        "with_remotes": stats.with_remotes,
        "with_packages": stats.with_packages,
        "latest_versions": stats.latest_versions,
        "last_synced_at": _isoformat(stats.last_synced_at),
    }


async def _json_object(req: Request, *, required: bool) -> dict[str, typ.Any]:
    """Return the request body as a JSON object.

    Raises
    ------
    InvalidInputError
        If the body is present but is not a JSON object, or is required and
        absent.

    """
    body = await req.get_media(default_when_empty=None)
    if body is None and not required:
        return {}
    if not isinstance(body, dict):
        msg = "request body must be a JSON object"
        raise InvalidInputError(msg)
    return body


def _optional_str(body: dict[str, typ.Any], key: str) -> str | None:
    value = body.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        msg = "must be a string"
        raise InvalidInputError(msg, field=key)
    return value


def _optional_int(body: dict[str, typ.Any], key: str) -> int | None:
    value = body.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        msg = "must be an integer"
        raise InvalidInputError(msg, field=key)
    return value


class _CatalogResource:
    def __init__(self, service: RegistryCatalogService) -> None:
        self._service = service


class CatalogServersResource(_CatalogResource):
    """``GET /catalog/servers`` driven by query parameters."""

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return one listing page.

        ``search`` is applied as a name filter, equivalent to a legacy
        ``{"appName": search}`` expression.
        """
        search = req.get_param("search")
        request = ListRequest(
            cursor=req.get_param("cursor"),
            limit=req.get_param_as_int("limit"),
            where={"appName": search} if search else None,
            version=req.get_param("version"),
        )
        page = await self._service.list_servers(request)
        resp.media = page.to_dict()
        resp.status = HTTPStatus.OK


class CatalogQueryResource(_CatalogResource):
    """``POST /catalog/servers/query`` accepting a filter expression."""

    async def on_post(self, req: Request, resp: Response) -> None:
        """Return one listing page for the JSON body."""
        body = await _json_object(req, required=False)
        request = ListRequest(
            cursor=_optional_str(body, "cursor"),
            limit=_optional_int(body, "limit"),
            where=body.get("where"),
            version=_optional_str(body, "version"),
        )
        page = await self._service.list_servers(request)
        resp.media = page.to_dict()
        resp.status = HTTPStatus.OK


class CatalogServerResource(_CatalogResource):
    """``GET /catalog/server?id=name[:version]``."""

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return the raw upstream ``{server, _meta}`` envelope."""
        resp.media = await self._service.get_server(req.get_param("id"))
        resp.status = HTTPStatus.OK


class CatalogVersionsResource(_CatalogResource):
    """``GET /catalog/versions?name=``."""

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return ``{versions, count}`` for the named server."""
        resp.media = await self._service.list_versions(req.get_param("name"))
        resp.status = HTTPStatus.OK


class IndexServersResource(_CatalogResource):
    """``GET /index/servers`` over the local index."""

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return ``{rows, total, offset}`` for the filtered index."""
        filters = IndexFilters(
            search=req.get_param("search"),
            has_remotes=req.get_param_as_bool("has_remotes"),
            has_packages=req.get_param_as_bool("has_packages"),
            is_latest=req.get_param_as_bool("is_latest"),
            is_official=req.get_param_as_bool("is_official"),
        )
        limit = req.get_param_as_int("limit")
        offset = req.get_param_as_int("offset", default=0)
        page = await self._service.list_indexed(filters, limit=limit, offset=offset)
        resp.media = {
            "rows": [serialize_record(row) for row in page.rows],
            "total": page.total,
            "offset": offset,
        }
        resp.status = HTTPStatus.OK


class IndexStatsResource(_CatalogResource):
    """``GET /index/stats``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Return aggregate index counts."""
        resp.media = serialize_stats(await self._service.stats())
        resp.status = HTTPStatus.OK


class SyncResource(_CatalogResource):
    """``POST /sync`` triggering a synchronous sync pass."""

    async def on_post(self, req: Request, resp: Response) -> None:
        """Run a sync with ``{registryUrl, maxApps, onlyWithRemotes}``.

        An absent or zero ``maxApps`` walks the whole upstream.
        """
        body = await _json_object(req, required=False)
        only_with_remotes = body.get("onlyWithRemotes", False)
        if not isinstance(only_with_remotes, bool):
            msg = "must be a boolean"
            raise InvalidInputError(msg, field="onlyWithRemotes")
        try:
            options = SyncOptions(
                registry_url=_optional_str(body, "registryUrl"),
                max_apps=_optional_int(body, "maxApps"),
                only_with_remotes=only_with_remotes,
            )
        except ValueError as exc:
            raise InvalidInputError(str(exc), field="maxApps") from exc
        result = await self._service.sync(options)
        resp.media = result.to_dict()
        resp.status = HTTPStatus.OK
