"""HTTP tests for the browsing surface."""

from __future__ import annotations

import pytest

from gradeless_mcp.server import create_app
from tests.conftest import SAMPLE_LESSONS, open_client

pytestmark = pytest.mark.unit


async def test_index_lists_lessons(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    for lesson in SAMPLE_LESSONS:
        assert lesson["title"] in resp.text
        assert f'/lesson/{lesson["id"]}' in resp.text


async def test_lessons_json(client):
    resp = await client.get("/lessons")
    assert resp.status_code == 200
    assert resp.json() == SAMPLE_LESSONS


async def test_api_lessons_alias(client):
    resp = await client.get("/api/lessons")
    assert resp.json() == SAMPLE_LESSONS


async def test_lesson_page(client):
    resp = await client.get("/lesson/l2")
    assert resp.status_code == 200
    assert "Intro" in resp.text
    assert "youtube-nocookie.com/embed/abc123" in resp.text


async def test_lesson_page_not_found(client):
    resp = await client.get("/lesson/zzz")
    assert resp.status_code == 404
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.text == "Lesson not found"


async def test_escapes_hostile_titles(make_config, write_lessons):
    path = write_lessons([{"id": "h", "title": "<b>&\"'</b>", "desc": "d", "youtube_id": "v"}])
    app = create_app(make_config(lessons_path=str(path)))
    async with open_client(app) as http:
        for url in ("/", "/lesson/h"):
            resp = await http.get(url)
            assert resp.status_code == 200
            assert "<b>" not in resp.text


class TestDegraded:
    """Broken or missing lesson file."""

    @pytest.fixture()
    async def broken(self, make_config, lessons_path):
        lessons_path.write_text("{ this is not json")
        app = create_app(make_config())
        async with open_client(app) as http:
            yield http

    async def test_index_stays_healthy(self, broken):
        resp = await broken.get("/")
        assert resp.status_code == 200
        assert resp.text == "Gradeless — healthy"

    async def test_lessons_json_500(self, broken):
        resp = await broken.get("/lessons")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Unable to load lessons"}

    async def test_lesson_page_500(self, broken):
        resp = await broken.get("/lesson/l1")
        assert resp.status_code == 500
        assert resp.text == "Server error"

    async def test_deleted_file(self, make_config, lessons_path):
        lessons_path.unlink()
        app = create_app(make_config())
        async with open_client(app) as http:
            assert (await http.get("/")).status_code == 200
            assert (await http.get("/lessons")).status_code == 500

    async def test_invalid_utf8_file(self, make_config, lessons_path):
        lessons_path.write_bytes(b'[{"id": "l1", "title": "\xff\xfe", "desc": "d", "youtube_id": "v"}]')
        app = create_app(make_config())
        async with open_client(app) as http:
            index = await http.get("/")
            assert index.status_code == 200
            assert index.text == "Gradeless — healthy"

            listing = await http.get("/lessons")
            assert listing.status_code == 500
            assert listing.json() == {"error": "Unable to load lessons"}

            rpc = await http.post("/mcp", json={
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {"name": "list_lessons"},
            })
            assert rpc.status_code == 200
            text = rpc.json()["result"]["content"][0]["text"]
            assert text.startswith("Error loading lessons: not valid UTF-8")


class TestStatic:
    async def test_sdk_app(self, client):
        resp = await client.get("/sdk-app/")
        assert resp.status_code == 200
        assert "demo" in resp.text
        assert resp.headers["cache-control"] == "public, max-age=300"

    async def test_well_known(self, client):
        resp = await client.get("/.well-known/ai-plugin.json")
        assert resp.status_code == 200
        assert resp.headers["cache-control"] == "public, max-age=3600"

    async def test_openapi(self, client):
        resp = await client.get("/openapi.json")
        assert resp.status_code == 200
        assert resp.json() == {"openapi": "3.1.0"}

    async def test_missing_logo(self, client):
        resp = await client.get("/logo.png")
        assert resp.status_code == 404

    async def test_missing_static_dir(self, make_config, tmp_path):
        app = create_app(make_config(static_dir=str(tmp_path / "nowhere")))
        async with open_client(app) as http:
            assert (await http.get("/sdk-app/")).status_code == 404
            assert (await http.get("/")).status_code == 200


async def test_cors_exposes_session_header(client):
    resp = await client.get("/lessons", headers={"Origin": "https://chat.example"})
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "mcp-session-id" in resp.headers["access-control-expose-headers"].lower()
