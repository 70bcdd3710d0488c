from datetime import timedelta

import pytest

from cinedesk.models import Showtime, utcnow


@pytest.fixture
def refs(client, admin_headers):
    cinema_id = client.post("/api/cinema", json={"name": "Downtown"}, headers=admin_headers).json()["data"]["id"]
    theater_id = client.post("/api/theater", json={
        "cinema_id": cinema_id, "number": 1, "rows": 8, "cols": 10
    }, headers=admin_headers).json()["data"]["id"]
    movie_id = client.post("/api/movie", json={"name": "Dune", "length": 166}, headers=admin_headers).json()["data"]["id"]
    return {"theater_id": theater_id, "movie_id": movie_id}


def add_showtime(client, admin_headers, refs, starts_at="2030-12-10T14:30:00", **extra):
    payload = dict(refs, starts_at=starts_at, **extra)
    return client.post("/api/showtime", json=payload, headers=admin_headers)


def test_add_showtime(client, admin_headers, refs):
    res = add_showtime(client, admin_headers, refs)
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["movie_name"] == "Dune"
    assert data["theater_number"] == 1
    assert data["cinema_name"] == "Downtown"
    assert data["starts_at"] == "2030-12-10T14:30:00"
    assert data["is_release"] is True


def test_add_showtime_with_timezone_is_stored_in_utc(client, admin_headers, refs):
    res = add_showtime(client, admin_headers, refs, starts_at="2030-12-10T21:30:00+07:00")
    assert res.json()["data"]["starts_at"] == "2030-12-10T14:30:00"


def test_add_showtime_unknown_movie(client, admin_headers, refs):
    res = add_showtime(client, admin_headers, dict(refs, movie_id=999))
    assert res.status_code == 404
    assert res.json()["message"] == "Movie 999 not found"


def test_add_showtime_unknown_theater(client, admin_headers, refs):
    res = add_showtime(client, admin_headers, dict(refs, theater_id=999))
    assert res.status_code == 404
    assert res.json()["message"] == "Theater 999 not found"


def test_add_showtime_requires_admin(client, user_headers, refs):
    res = add_showtime(client, user_headers, refs)
    assert res.status_code == 403


def test_get_showtimes_empty(client):
    res = client.get("/api/showtime")
    assert res.status_code == 200
    assert res.json()["data"] == []


def test_get_showtimes_ordered_and_filtered(client, admin_headers, refs):
    add_showtime(client, admin_headers, refs, starts_at="2030-12-11T12:00:00")
    add_showtime(client, admin_headers, refs, starts_at="2030-12-10T12:00:00")

    res = client.get("/showtime", params={"movie_id": refs["movie_id"]})
    starts = [s["starts_at"] for s in res.json()["data"]]
    assert starts == ["2030-12-10T12:00:00", "2030-12-11T12:00:00"]

    assert client.get("/showtime", params={"theater_id": 999}).json()["count"] == 0


def test_update_showtime(client, admin_headers, refs):
    showtime_id = add_showtime(client, admin_headers, refs).json()["data"]["id"]

    res = client.put(f"/api/showtime/{showtime_id}", json=dict(
        refs, starts_at="2030-12-11T16:00:00", is_release=False
    ), headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["data"]["starts_at"] == "2030-12-11T16:00:00"
    assert res.json()["data"]["is_release"] is False


def test_delete_showtime(client, admin_headers, refs):
    showtime_id = add_showtime(client, admin_headers, refs).json()["data"]["id"]

    res = client.delete(f"/api/showtime/{showtime_id}", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["message"] == f"Showtime {showtime_id} deleted"


def test_delete_showtime_not_found(client, admin_headers):
    res = client.delete("/api/showtime/999", headers=admin_headers)
    assert res.status_code == 404
    assert res.json()["message"] == "Showtime 999 not found"


def test_delete_previous_showtimes(client, admin_headers, refs, db_session):
    past = (utcnow() - timedelta(hours=3)).isoformat()
    add_showtime(client, admin_headers, refs, starts_at=past)
    add_showtime(client, admin_headers, refs)

    res = client.delete("/api/showtime/previous", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["count"] == 1
    assert db_session.query(Showtime).count() == 1


def test_deleting_movie_removes_its_showtimes(client, admin_headers, refs, db_session):
    add_showtime(client, admin_headers, refs)
    client.delete(f"/api/movie/{refs['movie_id']}", headers=admin_headers)
    assert db_session.query(Showtime).count() == 0
