from datetime import timedelta

import pytest

from cinedesk.models import Cinema, Movie, Showtime, Theater, price, utcnow
from cinedesk.routers.movie import MovieOut


@pytest.mark.parametrize("length, expected", [(200, 50000), (180, 50000), (125, 45000), (124, 40000), (90, 40000)])
def test_price_tiers(length, expected):
    assert price(length) == expected


def test_add_movie(client, admin_headers):
    res = client.post("/api/movie", json={"name": "Avatar", "length": 192, "img": "https://img.example.com/a.jpg"}, headers=admin_headers)
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["name"] == "Avatar"
    assert data["price"] == 50000


def test_add_movie_requires_admin(client, user_headers):
    res = client.post("/api/movie", json={"name": "Avatar", "length": 192}, headers=user_headers)
    assert res.status_code == 403


def test_get_movies(client, db_session):
    db_session.add(Movie(name="Test Film", length=120, price=40000))
    db_session.commit()

    res = client.get("/api/movie")
    assert res.status_code == 200
    assert res.json()["count"] == 1
    assert res.json()["data"][0]["name"] == "Test Film"


def test_get_movie_not_found(client):
    res = client.get("/movie/42")
    assert res.status_code == 404
    assert res.json()["message"] == "Movie 42 not found"


def test_update_movie_recomputes_price(client, admin_headers):
    movie_id = client.post("/api/movie", json={"name": "Old", "length": 190}, headers=admin_headers).json()["data"]["id"]

    res = client.put(f"/api/movie/{movie_id}", json={"name": "New Title", "length": 100}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["data"]["name"] == "New Title"
    assert res.json()["data"]["price"] == 40000


def test_update_movie_not_found(client, admin_headers):
    res = client.put("/api/movie/999", json={"name": "X", "length": 90}, headers=admin_headers)
    assert res.status_code == 404


def test_delete_movie(client, admin_headers):
    movie_id = client.post("/api/movie", json={"name": "Gone", "length": 90}, headers=admin_headers).json()["data"]["id"]

    res = client.delete(f"/api/movie/{movie_id}", headers=admin_headers)
    assert res.status_code == 200
    assert client.get(f"/api/movie/{movie_id}").status_code == 404


def test_showing_lists_movies_with_upcoming_released_showtimes(client, db_session):
    cinema = Cinema(name="Downtown")
    db_session.add(cinema)
    db_session.flush()
    theater = Theater(cinema_id=cinema.id, number=1, rows=5, cols=5)
    upcoming = Movie(name="Upcoming", length=120, price=40000)
    finished = Movie(name="Finished", length=120, price=40000)
    unreleased = Movie(name="Unreleased", length=120, price=40000)
    db_session.add_all([theater, upcoming, finished, unreleased])
    db_session.flush()

    now = utcnow()
    db_session.add_all([
        Showtime(theater_id=theater.id, movie_id=upcoming.id, starts_at=now + timedelta(days=1)),
        Showtime(theater_id=theater.id, movie_id=upcoming.id, starts_at=now + timedelta(days=2)),
        Showtime(theater_id=theater.id, movie_id=finished.id, starts_at=now - timedelta(days=1)),
        Showtime(theater_id=theater.id, movie_id=unreleased.id, starts_at=now + timedelta(days=1), is_release=False),
    ])
    db_session.commit()

    res = client.get("/api/movie/showing")
    assert res.status_code == 200
    assert [m["name"] for m in res.json()["data"]] == ["Upcoming"]


def test_movie_out_reads_orm_attributes():
    out = MovieOut.model_validate(Movie(id=5, name="Frozen", length=102, price=40000))
    assert out.price == 40000
    assert out.img is None
