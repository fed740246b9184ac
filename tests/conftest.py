"""Shared test fixtures for gradeless-mcp."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from pathlib import Path

import httpx
import pytest
from starlette.applications import Starlette

import gradeless_mcp.config as cfg_mod
from gradeless_mcp.config import ServerConfig
from gradeless_mcp.server import create_app
from gradeless_mcp.store import LessonStore

PUBLIC_URL = "https://lessons.test"

SAMPLE_LESSONS = [
    {"id": "l1", "title": "Welcome", "desc": "Start here.", "youtube_id": "yt111"},
    {"id": "l2", "title": "Intro", "desc": "The basics.", "youtube_id": "abc123"},
    {"id": "l3", "title": "Deep Dive", "desc": "Going further.", "youtube_id": "yt333"},
]


@pytest.fixture(autouse=True)
def _clean_config():
    """Reset the config singleton between tests."""
    cfg_mod._config = None
    yield
    cfg_mod._config = None


@pytest.fixture(autouse=True)
def _isolate_dotenv(tmp_path, monkeypatch):
    """Prevent tests from loading the user's real ~/.config/gradeless-mcp/.env."""
    monkeypatch.setattr(
        "gradeless_mcp.dotenv.DEFAULT_ENV_PATH",
        tmp_path / "nonexistent.env",
    )


@pytest.fixture(autouse=True)
def _disable_tracing(monkeypatch):
    """Keep MLflow out of every test; test_tracing patches the module directly."""
    monkeypatch.setenv("GRADELESS_TRACING_ENABLED", "false")


@pytest.fixture()
def write_lessons(tmp_path):
    """Factory writing a lesson file and returning its path.

    Pass a list for JSON content, a str for raw (possibly broken) text, or
    bytes for an exact on-disk payload.
    """
    def _factory(lessons: list | str | bytes = SAMPLE_LESSONS, name: str = "lessons.json") -> Path:
        path = tmp_path / name
        if isinstance(lessons, bytes):
            path.write_bytes(lessons)
        elif isinstance(lessons, str):
            path.write_text(lessons)
        else:
            path.write_text(json.dumps(lessons))
        return path

    return _factory


@pytest.fixture()
def lessons_path(write_lessons) -> Path:
    return write_lessons()


@pytest.fixture()
def store(lessons_path) -> LessonStore:
    return LessonStore(lessons_path)


@pytest.fixture()
def static_dir(tmp_path) -> Path:
    """Minimal static tree: demo app, manifest, API description."""
    root = tmp_path / "static"
    (root / "sdk-app").mkdir(parents=True)
    (root / "sdk-app" / "index.html").write_text("<!doctype html><title>demo</title>")
    (root / ".well-known").mkdir()
    (root / ".well-known" / "ai-plugin.json").write_text('{"name_for_model": "gradeless"}')
    (root / "openapi.json").write_text('{"openapi": "3.1.0"}')
    return root


@pytest.fixture()
def make_config(lessons_path, static_dir):
    def _factory(**overrides) -> ServerConfig:
        data = {
            "lessons_path": str(lessons_path),
            "static_dir": str(static_dir),
            "public_base_url": PUBLIC_URL,
        }
        data.update(overrides)
        return ServerConfig(**data)

    return _factory


@asynccontextmanager
async def open_client(app: Starlette, *, lifespan: bool = False) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client bound to *app*.

    With ``lifespan=True`` the app's startup and shutdown run around the
    client; the streamable transport needs this. Use it inside the test body
    so the session manager's task group is entered and exited by one task.
    """
    async with AsyncExitStack() as stack:
        if lifespan:
            await stack.enter_async_context(app.router.lifespan_context(app))
        transport = httpx.ASGITransport(app=app)
        yield await stack.enter_async_context(
            httpx.AsyncClient(transport=transport, base_url="http://testserver")
        )


@pytest.fixture()
async def client(make_config):
    """HTTP client for the plain routes; the app lifespan is not started."""
    async with open_client(create_app(make_config())) as http:
        yield http
