"""
tests/test_health.py -- Integration tests for GET /api/health and the API docs.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against the test store
  - No authentication required
  - Swagger UI at /api-docs and the sessionAuth cookie scheme in OpenAPI
  - Unknown paths use the shared error envelope
"""

from __future__ import annotations


def test_health_returns_200_with_components(client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["version"] == "1.0.0"
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_health_reports_database_error(client, api_client, monkeypatch):
    monkeypatch.setattr(api_client.catalog, "ping", lambda: False)
    data = client.get("/api/health").json()
    assert data["components"]["database"] == "error"
    assert data["status"] == "degraded"


def test_api_docs_served_without_auth(client):
    resp = client.get("/api-docs")
    assert resp.status_code == 200
    assert "swagger-ui" in resp.text.lower()


def test_openapi_declares_session_cookie_scheme(client):
    schema = client.get("/openapi.json").json()
    scheme = schema["components"]["securitySchemes"]["sessionAuth"]
    assert scheme == {"type": "apiKey", "in": "cookie", "name": "sid"}

    post_movie = schema["paths"]["/api/movies"]["post"]
    assert {"sessionAuth": []} in post_movie["security"]
    assert "security" not in schema["paths"]["/api/movies"]["get"]


def test_unknown_path_uses_error_envelope(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"


def test_wrong_method_uses_error_envelope(client):
    resp = client.patch("/api/health")
    assert resp.status_code == 405
    assert resp.json()["error"] == {"code": "http_405", "message": "Method Not Allowed", "detail": None}
    assert "GET" in resp.headers["allow"]
