from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from teleop_core.app import create_app
from teleop_core.web.router import resolve_asset


def _seed_web(home: Path) -> Path:
    web = home / "web"
    web.mkdir(parents=True, exist_ok=True)
    (web / "index.html").write_text("<h1>Login</h1>", encoding="utf-8")
    (web / "cars.html").write_text("<h1>Cars</h1>", encoding="utf-8")
    (web / "js").mkdir(exist_ok=True)
    (web / "js" / "control.js").write_text("console.log('hi');", encoding="utf-8")
    (web / "style.css").write_text("body {}", encoding="utf-8")
    return web


def test_resolve_asset_maps_root_to_index(tmp_path: Path) -> None:
    web = _seed_web(tmp_path)
    assert resolve_asset(web, "") == (web / "index.html").resolve()
    assert resolve_asset(web, "js/control.js") == (web / "js" / "control.js").resolve()
    assert resolve_asset(web, "missing.html") is None


def test_resolve_asset_refuses_traversal(tmp_path: Path) -> None:
    web = _seed_web(tmp_path)
    (tmp_path / "config").mkdir(exist_ok=True)
    (tmp_path / "config" / "users.json").write_text("{}", encoding="utf-8")

    assert resolve_asset(web, "../config/users.json") is None


def test_static_pages_are_served(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("TELEOP_HOME", str(tmp_path))
    _seed_web(tmp_path)

    with TestClient(create_app()) as client:
        root = client.get("/")
        assert root.status_code == 200
        assert "Login" in root.text
        assert root.headers["content-type"].startswith("text/html")

        cars = client.get("/cars.html")
        assert cars.status_code == 200
        assert "Cars" in cars.text

        js = client.get("/js/control.js")
        assert js.status_code == 200
        assert "javascript" in js.headers["content-type"]

        css = client.get("/style.css")
        assert css.headers["content-type"].startswith("text/css")


def test_missing_page_returns_html_404(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("TELEOP_HOME", str(tmp_path))
    _seed_web(tmp_path)

    with TestClient(create_app()) as client:
        r = client.get("/does-not-exist.html")
        assert r.status_code == 404
        assert r.headers["content-type"].startswith("text/html")
        assert "404" in r.text
        assert 'href="/"' in r.text


def test_api_routes_are_not_shadowed_by_assets(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("TELEOP_HOME", str(tmp_path))
    _seed_web(tmp_path)

    with TestClient(create_app()) as client:
        assert client.get("/healthz").json() == {"status": "ok"}
        assert client.get("/v1/ping").json()["data"] == {"pong": True}
