"""Browser-facing routes: lesson pages, JSON listing, static pass-through."""

from __future__ import annotations

import logging
from pathlib import Path

from starlette.requests import Request
from starlette.responses import (
    FileResponse,
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    Response,
)
from starlette.routing import BaseRoute, Mount, Route
from starlette.staticfiles import StaticFiles

from .errors import StoreUnavailable
from .render import render_lesson_list_page, render_lesson_page
from .store import LessonStore

logger = logging.getLogger(__name__)

HEALTHY_TEXT = "Gradeless — healthy"
SDK_APP_MAX_AGE = 5 * 60
WELL_KNOWN_MAX_AGE = 60 * 60
FILE_MAX_AGE = 5 * 60


class CachedStaticFiles(StaticFiles):
    """StaticFiles that stamps a ``Cache-Control: max-age`` on every file."""

    def __init__(self, *args, max_age: int, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.max_age = max_age

    def file_response(self, *args, **kwargs) -> Response:
        response = super().file_response(*args, **kwargs)
        response.headers["Cache-Control"] = f"public, max-age={self.max_age}"
        return response


class LessonPages:
    """HTML and JSON endpoints over a :class:`LessonStore`."""

    def __init__(self, store: LessonStore) -> None:
        self.store = store

    async def index(self, request: Request) -> Response:
        try:
            lessons = await self.store.list_lessons()
        except StoreUnavailable as exc:
            logger.warning("Index degraded: %s", exc)
            return PlainTextResponse(HEALTHY_TEXT)
        return HTMLResponse(render_lesson_list_page(lessons))

    async def lessons_json(self, request: Request) -> Response:
        try:
            lessons = await self.store.list_lessons()
        except StoreUnavailable as exc:
            logger.warning("Lesson listing failed: %s", exc)
            return JSONResponse({"error": "Unable to load lessons"}, status_code=500)
        return JSONResponse([lesson.model_dump() for lesson in lessons])

    async def lesson_detail(self, request: Request) -> Response:
        lesson_id = request.path_params["lesson_id"]
        try:
            lesson = await self.store.find_lesson(lesson_id)
        except StoreUnavailable as exc:
            logger.warning("Lesson page %r failed: %s", lesson_id, exc)
            return PlainTextResponse("Server error", status_code=500)
        if lesson is None:
            return PlainTextResponse("Lesson not found", status_code=404)
        return HTMLResponse(render_lesson_page(lesson))

    def routes(self) -> list[BaseRoute]:
        return [
            Route("/", self.index, methods=["GET"]),
            Route("/lessons", self.lessons_json, methods=["GET"]),
            Route("/api/lessons", self.lessons_json, methods=["GET"]),
            Route("/lesson/{lesson_id}", self.lesson_detail, methods=["GET"]),
        ]


def _file_endpoint(path: Path, media_type: str):
    async def endpoint(request: Request) -> Response:
        if not path.is_file():
            return PlainTextResponse("Not Found", status_code=404)
        return FileResponse(
            path,
            media_type=media_type,
            headers={"Cache-Control": f"public, max-age={FILE_MAX_AGE}"},
        )

    return endpoint


def static_routes(static_dir: str | Path) -> list[BaseRoute]:
    """Demo app, discovery manifest, API description and logo.

    Directory mounts are skipped when the directory does not exist, so a
    bare deployment still starts and simply answers 404.
    """
    root = Path(static_dir)
    routes: list[BaseRoute] = []
    for prefix, subdir, max_age in (
        ("/sdk-app", "sdk-app", SDK_APP_MAX_AGE),
        ("/.well-known", ".well-known", WELL_KNOWN_MAX_AGE),
    ):
        directory = root / subdir
        if directory.is_dir():
            routes.append(
                Mount(prefix, app=CachedStaticFiles(directory=directory, html=True, max_age=max_age))
            )
        else:
            logger.info("Static directory %s not found — %s disabled", directory, prefix)
    routes.append(Route("/openapi.json", _file_endpoint(root / "openapi.json", "application/json")))
    routes.append(Route("/logo.png", _file_endpoint(root / "logo.png", "image/png")))
    return routes
