from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from opessocius.app import create_app
from opessocius.app.security import HTML_NO_STORE
from opessocius.config import DevelopmentConfig, ProductionConfig, get_config
from opessocius.store import CommunityMessageRepository, ModuleRepository


@pytest.fixture()
def production_client():
    app = create_app({"ENV_NAME": "production", "DOCUMENT_DB_PATH": ":memory:", "STATIC_SITE_DIR": None})
    with app.test_client() as test_client:
        yield test_client


def test_security_headers_on_api_responses(client: FlaskClient):
    resp = client.get("/api/ping")

    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert resp.headers["Strict-Transport-Security"].startswith("max-age=31536000")
    assert "default-src 'self'" in resp.headers["Content-Security-Policy"]
    assert "upgrade-insecure-requests" not in resp.headers["Content-Security-Policy"]
    assert "camera=()" in resp.headers["Permissions-Policy"]


def test_plain_http_is_redirected_in_production(production_client: FlaskClient):
    resp = production_client.get("/api/ping?x=1")

    assert resp.status_code == 301
    assert resp.headers["Location"] == "https://localhost/api/ping?x=1"


def test_forwarded_https_is_served_in_production(production_client: FlaskClient):
    resp = production_client.get("/api/ping", headers={"X-Forwarded-Proto": "https"})

    assert resp.status_code == 200
    assert "upgrade-insecure-requests" in resp.headers["Content-Security-Policy"]


def test_cors_headers_for_api(client: FlaskClient):
    resp = client.get("/api/ping", headers={"Origin": "https://opessocius.support"})

    assert "Access-Control-Allow-Origin" in resp.headers


def test_unknown_api_route_is_json_404(client: FlaskClient):
    resp = client.get("/api/does-not-exist")

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Not Found", "status_code": 404}


def test_config_lookup():
    assert get_config("development") is DevelopmentConfig
    assert get_config("unknown") is ProductionConfig
    assert DevelopmentConfig.FORCE_HTTPS is False


def test_modules_endpoint_lists_published_in_order(client: FlaskClient, store):
    modules = ModuleRepository(store)
    modules.create({"title": "Risk", "order": 2})
    modules.create({"title": "Basics", "order": 1})
    modules.create({"title": "Unfinished", "order": 3, "published": False})

    resp = client.get("/api/modules")

    assert resp.status_code == 200
    assert [module["title"] for module in resp.get_json()] == ["Basics", "Risk"]


def test_community_messages_endpoint(client: FlaskClient, store):
    messages = CommunityMessageRepository(store)
    messages.save({"title": "Older", "message": "first"})
    messages.save({"title": "Newer", "message": "second"})

    resp = client.get("/api/community-messages?limit=1")

    assert resp.status_code == 200
    body = resp.get_json()
    assert len(body) == 1
    assert body[0]["messageTitle"] == "Newer"


def test_static_site_pages(tmp_path):
    (tmp_path / "index.html").write_text("<html><body>home</body></html>")
    (tmp_path / "about.html").write_text("<html><body>about</body></html>")
    (tmp_path / "site.css").write_text("body { color: black; }")

    app = create_app({"ENV_NAME": "testing", "STATIC_SITE_DIR": str(tmp_path)})
    with app.test_client() as test_client:
        home = test_client.get("/")
        about = test_client.get("/about")
        css = test_client.get("/site.css")
        missing = test_client.get("/missing.png")
        api = test_client.get("/api/ping")

    assert b"home" in home.data
    assert home.headers["Cache-Control"] == HTML_NO_STORE
    assert b"about" in about.data
    assert about.headers["Cache-Control"] == HTML_NO_STORE
    assert css.status_code == 200
    assert css.headers.get("Cache-Control") != HTML_NO_STORE
    assert missing.status_code == 404
    assert api.get_json() == {"message": "pong"}
