"""
tests/test_movies_routes.py -- Integration tests for /api/movies.

Covers:
  - fetching a never-created id -> 404; a created one -> 200 with its fields
  - writes require a session (401 before 404)
  - validation of title / year / director (400)
  - update and delete round trips
"""

from __future__ import annotations

import pytest
from conftest import signup

MISSING_ID = "f" * 24

MOVIE = {"title": "Cleo from 5 to 7", "year": 1962, "director": "Agnes Varda"}


@pytest.fixture
def authed(client):
    signup(client)
    return client


def _create(client, **overrides) -> dict:
    resp = client.post("/api/movies", json={**MOVIE, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestMovieReads:
    def test_never_created_id_returns_404(self, client) -> None:
        resp = client.get(f"/api/movies/{MISSING_ID}")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_created_movie_is_readable_without_session(self, authed) -> None:
        created = _create(authed)
        authed.cookies.clear()
        resp = authed.get(f"/api/movies/{created['_id']}")
        assert resp.status_code == 200
        assert resp.json() == {"_id": created["_id"], **MOVIE}

    def test_list_is_public(self, authed) -> None:
        created = _create(authed, title="Vagabond", year=1985)
        authed.cookies.clear()
        resp = authed.get("/api/movies", params={"limit": 500})
        assert resp.status_code == 200
        assert created["_id"] in [m["_id"] for m in resp.json()]


class TestMovieWrites:
    def test_create_requires_session(self, client) -> None:
        resp = client.post("/api/movies", json=MOVIE)
        assert resp.status_code == 401

    def test_create_returns_generated_id(self, authed) -> None:
        created = _create(authed)
        assert len(created["_id"]) == 24
        assert created["title"] == MOVIE["title"]

    def test_director_is_free_text_by_default(self, authed) -> None:
        created = _create(authed, director="Someone Not In The Catalog")
        assert created["director"] == "Someone Not In The Catalog"

    @pytest.mark.parametrize(
        "body",
        [
            {"year": 1962, "director": "X"},
            {"title": "T", "director": "X"},
            {"title": "T", "year": 1962},
            {"title": "", "year": 1962, "director": "X"},
            {"title": "T", "year": "nineteen", "director": "X"},
            {"title": "T", "year": 1500, "director": "X"},
            {"title": "T", "year": 1962, "director": ""},
        ],
    )
    def test_create_invalid_returns_400(self, authed, body) -> None:
        resp = authed.post("/api/movies", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_malformed_json_returns_400(self, authed) -> None:
        resp = authed.post("/api/movies", content=b"{not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400

    def test_update(self, authed) -> None:
        created = _create(authed)
        new = {"title": "Cleo de 5 a 7", "year": 1962, "director": "Varda"}
        resp = authed.put(f"/api/movies/{created['_id']}", json=new)
        assert resp.status_code == 200
        assert resp.json() == {"_id": created["_id"], **new}
        assert authed.get(f"/api/movies/{created['_id']}").json() == {"_id": created["_id"], **new}

    def test_update_unknown_returns_404(self, authed) -> None:
        assert authed.put(f"/api/movies/{MISSING_ID}", json=MOVIE).status_code == 404

    def test_update_unknown_without_session_returns_401(self, client) -> None:
        assert client.put(f"/api/movies/{MISSING_ID}", json=MOVIE).status_code == 401

    def test_malformed_json_without_session_returns_400(self, client) -> None:
        # The body is parsed before the session guard runs.
        resp = client.put(f"/api/movies/{MISSING_ID}", content=b"{bad", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_update_partial_body_returns_400(self, authed) -> None:
        created = _create(authed)
        assert authed.put(f"/api/movies/{created['_id']}", json={"title": "Only title"}).status_code == 400

    def test_delete(self, authed) -> None:
        created = _create(authed)
        resp = authed.delete(f"/api/movies/{created['_id']}")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Movie deleted."}
        assert authed.get(f"/api/movies/{created['_id']}").status_code == 404

    def test_delete_unknown_returns_404(self, authed) -> None:
        assert authed.delete(f"/api/movies/{MISSING_ID}").status_code == 404

    def test_delete_unknown_without_session_returns_401(self, client) -> None:
        assert client.delete(f"/api/movies/{MISSING_ID}").status_code == 401

    def test_session_ended_by_logout_cannot_write(self, authed) -> None:
        authed.get("/auth/logout")
        assert authed.post("/api/movies", json=MOVIE).status_code == 401
