import pytest
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from cinedesk.database import get_db
from cinedesk.main import create_app
from cinedesk.models import Cinema, Movie, Theater

from conftest import ALLOWED_ORIGIN, EVIL_ORIGIN, make_settings

RESOURCES = ["auth", "cinema", "theater", "movie", "showtime"]


@pytest.mark.parametrize("path", ["/health", "/api/health"])
def test_health_check(client, path):
    res = client.get(path)
    assert res.status_code == 200
    body = res.json()
    assert set(body) == {"status", "timestamp", "environment"}
    assert body["status"] == "OK"
    assert body["environment"] == "development"
    assert body["timestamp"].endswith("Z")


def test_health_check_does_not_need_the_database():
    app = create_app(make_settings(environment="production"))

    def broken_db():
        raise RuntimeError("database unavailable")

    app.dependency_overrides[get_db] = broken_db

    with TestClient(app) as client:
        for path in ("/health", "/api/health"):
            res = client.get(path)
            assert res.status_code == 200
            assert res.json()["environment"] == "production"

        assert client.get("/api/movie").status_code == 500


def test_app_starts_when_database_is_unreachable():
    app = create_app(make_settings(database="sqlite:////nonexistent-dir/sub/cinedesk.db"))

    with capture_logs() as logs:
        with TestClient(app) as client:
            for path in ("/health", "/api/health"):
                assert client.get(path).status_code == 200
            res = client.get("/api/movie")

    assert res.status_code == 500
    assert res.json()["success"] is False
    assert "Failed to initialize database" in [entry["event"] for entry in logs]


def test_unparsed_body_over_limit_reaches_router():
    app = create_app(make_settings(body_limit=64))
    with TestClient(app) as client:
        res = client.post("/does-not-exist", content=b"x" * 100, headers={"Content-Type": "text/plain"})
    assert res.status_code == 404
    assert res.json()["message"] == "Route /does-not-exist not found"


def test_unknown_route(client):
    res = client.get("/does-not-exist")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Route /does-not-exist not found"}


def test_unknown_route_keeps_query_string(client):
    res = client.post("/api/nothing?page=2")
    assert res.status_code == 404
    assert res.json()["message"] == "Route /api/nothing?page=2 not found"


def test_rejected_origin_on_resource_route(client):
    res = client.get("/api/movie", headers={"Origin": EVIL_ORIGIN})
    assert res.status_code == 403
    assert res.json()["origin"] == EVIL_ORIGIN


def test_admitted_origin_on_resource_route(client):
    res = client.get("/movie", headers={"Origin": ALLOWED_ORIGIN})
    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == ALLOWED_ORIGIN


def test_preflight_on_resource_route(client):
    res = client.options("/api/showtime", headers={"Origin": "https://preview.vercel.app"})
    assert res.status_code == 204
    assert res.headers["access-control-allow-origin"] == "https://preview.vercel.app"


@pytest.fixture
def catalog(db_session):
    cinema = Cinema(name="Downtown")
    db_session.add(cinema)
    db_session.flush()
    db_session.add(Theater(cinema_id=cinema.id, number=1, rows=8, cols=10))
    db_session.add(Movie(name="Dune", length=166, price=45000))
    db_session.commit()


@pytest.mark.parametrize("resource", ["cinema", "theater", "movie", "showtime"])
def test_prefixed_and_bare_paths_are_aliases(client, catalog, resource):
    bare = client.get(f"/{resource}")
    prefixed = client.get(f"/api/{resource}")
    assert bare.status_code == 200
    assert bare.json() == prefixed.json()


@pytest.mark.parametrize("resource", RESOURCES)
def test_every_resource_is_mounted_twice(app, resource):
    paths = {route.path for route in app.routes}
    assert any(path.startswith(f"/api/{resource}") for path in paths)
    assert any(path.startswith(f"/{resource}") for path in paths)


def test_auth_aliases(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/api/auth/me").status_code == 401


def test_schema_publishes_prefixed_paths_only(client):
    paths = client.get("/openapi.json").json()["paths"]
    assert "/api/movie" in paths
    assert "/api/health" in paths
    assert "/movie" not in paths
    assert "/health" not in paths
