"""Unit tests for the catalog, index and sync HTTP resources."""

from __future__ import annotations

import datetime as dt
from unittest import mock

import falcon
import falcon.testing
import pytest

from mcpindex.api.app import AppDependencies, create_app
from mcpindex.catalog.config import ListingDefaults
from mcpindex.catalog.service import RegistryCatalogService
from mcpindex.catalog.store import IndexedPage, IndexFilters, IndexStats
from mcpindex.catalog.sync import SyncOptions, SyncResult
from mcpindex.catalog.transform import to_record
from mcpindex.upstream.errors import RegistryTransportError
from tests.helpers.registry_fakes import FakeRegistryFeed, make_entity, paginate

NOW = dt.datetime(2025, 10, 1, 12, 0, tzinfo=dt.UTC)
ALLOWED = ("a/x", "a/y", "b/z")


@pytest.fixture
def feed() -> FakeRegistryFeed:
    """Build a feed that knows every allow-listed name."""
    return FakeRegistryFeed(
        servers=[
            make_entity("a/x", "1.0.0", is_latest=False),
            make_entity("a/x", "2.0.0"),
            make_entity("a/y"),
            make_entity("b/z"),
        ],
        failing={"boom/boom": RegistryTransportError.http_error(502, "u")},
    )


@pytest.fixture
def client(feed: FakeRegistryFeed) -> falcon.testing.TestClient:
    """Build a test client over a store-less catalog service."""
    service = RegistryCatalogService(
        feed, defaults=ListingDefaults(), allowlist=ALLOWED, clock=lambda: NOW
    )
    return falcon.testing.TestClient(
        create_app(AppDependencies(catalog_service=service))
    )


@pytest.fixture
def index_service() -> mock.MagicMock:
    """Build a mocked service that reports an index."""
    service = mock.MagicMock(spec=RegistryCatalogService)
    service.has_index = True
    return service


@pytest.fixture
def index_client(index_service: mock.MagicMock) -> falcon.testing.TestClient:
    """Build a test client over the mocked index service."""
    return falcon.testing.TestClient(
        create_app(AppDependencies(catalog_service=index_service))
    )


class TestListingEndpoints:
    """Tests for GET /catalog/servers and POST /catalog/servers/query."""

    def test_get_first_page(self, client: falcon.testing.TestClient) -> None:
        """The first page carries items and a numeric cursor."""
        result = client.simulate_get("/catalog/servers", params={"limit": "2"})

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        assert [item["id"] for item in result.json["items"]] == [
            "a/x:2.0.0",
            "a/y:1.0.0",
        ]
        assert result.json["nextCursor"] == "2", "offset cursor"

    def test_get_last_page_omits_cursor(
        self, client: falcon.testing.TestClient
    ) -> None:
        """The final page has no nextCursor key."""
        result = client.simulate_get(
            "/catalog/servers", params={"limit": "2", "cursor": "2"}
        )

        assert [item["id"] for item in result.json["items"]] == ["b/z:1.0.0"]
        assert "nextCursor" not in result.json, "end of list"

    def test_get_search_param(self, client: falcon.testing.TestClient) -> None:
        """search narrows the listing like a legacy appName filter."""
        result = client.simulate_get("/catalog/servers", params={"search": "b/"})

        assert [item["id"] for item in result.json["items"]] == ["b/z:1.0.0"]

    def test_query_with_where_tree(self, client: falcon.testing.TestClient) -> None:
        """POST bodies accept comparison trees."""
        body = {
            "limit": 5,
            "where": {
                "operator": "and",
                "conditions": [
                    {"field": ["name"], "operator": "contains", "value": "a/y"}
                ],
            },
        }

        result = client.simulate_post("/catalog/servers/query", json=body)

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        assert [item["id"] for item in result.json["items"]] == ["a/y:1.0.0"]

    def test_query_without_body(self, client: falcon.testing.TestClient) -> None:
        """An empty POST body lists with defaults."""
        result = client.simulate_post("/catalog/servers/query")

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        assert len(result.json["items"]) == 3, "whole allow-list fits"

    @pytest.mark.parametrize(
        ("body", "field"),
        [
            ({"limit": 0}, "limit"),
            ({"limit": "ten"}, "limit"),
            ({"cursor": 5}, "cursor"),
            ({"cursor": "x"}, "cursor"),
            ({"where": "github"}, "where"),
        ],
    )
    def test_query_validation_errors(
        self,
        client: falcon.testing.TestClient,
        body: dict[str, object],
        field: str,
    ) -> None:
        """Malformed bodies map to HTTP 400 naming the field."""
        result = client.simulate_post("/catalog/servers/query", json=body)

        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert result.json["title"] == "Invalid input"
        assert result.json["field"] == field

    def test_query_rejects_non_object_body(
        self, client: falcon.testing.TestClient
    ) -> None:
        """A JSON array body is rejected."""
        result = client.simulate_post("/catalog/servers/query", json=[1, 2])

        assert result.status == falcon.HTTP_400, "expected HTTP 400"


class TestLookupEndpoints:
    """Tests for GET /catalog/server and GET /catalog/versions."""

    def test_get_server_by_id(self, client: falcon.testing.TestClient) -> None:
        """A versioned id returns the raw envelope."""
        result = client.simulate_get("/catalog/server", params={"id": "a/x:1.0.0"})

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        assert result.json["server"]["version"] == "1.0.0"
        assert "_meta" in result.json, "meta is returned"

    def test_unknown_server_is_404(self, client: falcon.testing.TestClient) -> None:
        """Unknown ids map to HTTP 404."""
        result = client.simulate_get("/catalog/server", params={"id": "nope/x"})

        assert result.status == falcon.HTTP_404, "expected HTTP 404"
        assert result.json["title"] == "Server not found"

    def test_missing_id_is_400(self, client: falcon.testing.TestClient) -> None:
        """A missing id maps to HTTP 400."""
        result = client.simulate_get("/catalog/server")

        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert result.json["field"] == "id"

    def test_upstream_failure_is_502(self, client: falcon.testing.TestClient) -> None:
        """Upstream transport failures map to HTTP 502."""
        result = client.simulate_get("/catalog/server", params={"id": "boom/boom"})

        assert result.status == falcon.HTTP_502, "expected HTTP 502"
        assert result.json["title"] == "Upstream registry error"

    def test_versions(self, client: falcon.testing.TestClient) -> None:
        """Every version of a name is listed with a count."""
        result = client.simulate_get("/catalog/versions", params={"name": "a/x"})

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        assert result.json["count"] == 2, "two versions"


class TestIndexEndpoints:
    """Tests for GET /index/servers, GET /index/stats and POST /sync."""

    def test_index_servers_passes_filters(
        self,
        index_client: falcon.testing.TestClient,
        index_service: mock.MagicMock,
    ) -> None:
        """Query parameters become IndexFilters and paging arguments."""
        record = to_record(make_entity("io.acme/a"), is_official=True, synced_at=NOW)
        index_service.list_indexed = mock.AsyncMock(
            return_value=IndexedPage(rows=[record], total=7)
        )

        result = index_client.simulate_get(
            "/index/servers",
            params={
                "search": "acme",
                "has_remotes": "true",
                "is_latest": "false",
                "limit": "1",
                "offset": "3",
            },
        )

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        assert result.json["total"] == 7
        assert result.json["offset"] == 3
        assert result.json["rows"][0]["id"] == "io.acme/a:1.0.0"
        assert result.json["rows"][0]["synced_at"] == NOW.isoformat()
        index_service.list_indexed.assert_awaited_once_with(
            IndexFilters(search="acme", has_remotes=True, is_latest=False),
            limit=1,
            offset=3,
        )

    def test_index_stats(
        self,
        index_client: falcon.testing.TestClient,
        index_service: mock.MagicMock,
    ) -> None:
        """Stats are serialized with ISO timestamps."""
        index_service.stats = mock.AsyncMock(
            return_value=IndexStats(
                total=3,
                with_remotes=2,
                with_packages=1,
                latest_versions=3,
                last_synced_at=NOW,
            )
        )

        result = index_client.simulate_get("/index/stats")

        assert result.json == {
            "total": 3,
            "with_remotes": 2,
            "with_packages": 1,
            "latest_versions": 3,
            "last_synced_at": NOW.isoformat(),
        }

    def test_sync_returns_summary(
        self,
        index_client: falcon.testing.TestClient,
        index_service: mock.MagicMock,
    ) -> None:
        """POST /sync runs a sync with the body's options."""
        index_service.sync = mock.AsyncMock(
            return_value=SyncResult(synced=4, skipped=1, duration_ms=12.5)
        )

        result = index_client.simulate_post(
            "/sync",
            json={"maxApps": 5, "onlyWithRemotes": True},
        )

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        assert result.json == {
            "synced": 4,
            "skipped": 1,
            "errors": 0,
            "durationMs": 12.5,
            "errorMessages": [],
        }
        index_service.sync.assert_awaited_once_with(
            SyncOptions(max_apps=5, only_with_remotes=True)
        )

    def test_sync_zero_cap_walks_everything(
        self,
        index_client: falcon.testing.TestClient,
        index_service: mock.MagicMock,
    ) -> None:
        """A zero maxApps runs an uncapped sync."""
        index_service.sync = mock.AsyncMock(return_value=SyncResult())

        result = index_client.simulate_post("/sync", json={"maxApps": 0})

        assert result.status == falcon.HTTP_200, "zero is accepted"
        index_service.sync.assert_awaited_once_with(SyncOptions(max_apps=None))

    @pytest.mark.parametrize(
        ("body", "field"),
        [
            ({"maxApps": -1}, "maxApps"),
            ({"maxApps": "5"}, "maxApps"),
            ({"onlyWithRemotes": "yes"}, "onlyWithRemotes"),
            ({"registryUrl": 3}, "registryUrl"),
        ],
    )
    def test_sync_validation_errors(
        self,
        index_client: falcon.testing.TestClient,
        index_service: mock.MagicMock,
        body: dict[str, object],
        field: str,
    ) -> None:
        """Malformed sync bodies are rejected before a run starts."""
        index_service.sync = mock.AsyncMock()

        result = index_client.simulate_post("/sync", json=body)

        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert result.json["field"] == field
        index_service.sync.assert_not_awaited()


def test_dynamic_listing_through_http() -> None:
    """A service bound to a custom registry pages through upstream cursors."""
    feed = FakeRegistryFeed(
        pages=paginate([make_entity("c/one"), make_entity("c/two")], 1)
    )
    service = RegistryCatalogService(
        feed,
        registry_url="https://mirror.example/v0/servers",
        defaults=ListingDefaults(),
        clock=lambda: NOW,
    )
    client = falcon.testing.TestClient(
        create_app(AppDependencies(catalog_service=service))
    )

    result = client.simulate_get("/catalog/servers", params={"limit": "1"})

    assert [item["id"] for item in result.json["items"]] == ["c/one:1.0.0"]
    assert result.json["nextCursor"] == "c1", "upstream cursor is passed through"
