"""Read-only lesson store backed by a JSON file.

The file is re-read on every call: there is no in-memory cache, so edits
to the file are visible on the next request.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from .errors import StoreUnavailable
from .models.lesson import Lesson

logger = logging.getLogger(__name__)


def _load_lessons_sync(path: Path) -> list[Lesson]:
    """Read and validate the lesson file (sync)."""
    try:
        payload = path.read_bytes()
    except OSError as exc:
        raise StoreUnavailable(str(path), exc.strerror or str(exc)) from exc

    try:
        raw = payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise StoreUnavailable(str(path), f"not valid UTF-8: {exc.reason} at byte {exc.start}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StoreUnavailable(str(path), f"invalid JSON: {exc.msg}") from exc

    if not isinstance(data, list):
        raise StoreUnavailable(str(path), "expected a JSON array of lessons")

    try:
        lessons = [Lesson.model_validate(item) for item in data]
    except ValidationError as exc:
        raise StoreUnavailable(str(path), f"malformed lesson record: {exc.error_count()} error(s)") from exc

    seen: set[str] = set()
    for lesson in lessons:
        if lesson.id in seen:
            logger.warning("Duplicate lesson id %r in %s — first entry wins", lesson.id, path)
        seen.add(lesson.id)
    return lessons


def first_match(lessons: list[Lesson], lesson_id: str) -> Lesson | None:
    """First lesson in *lessons* whose id equals *lesson_id*."""
    wanted = str(lesson_id)
    return next((lesson for lesson in lessons if lesson.id == wanted), None)


class LessonStore:
    """Lesson collection loaded from *path*."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def list_lessons(self) -> list[Lesson]:
        """Return every lesson in source order.

        Raises:
            StoreUnavailable: The file is missing, unreadable, or malformed.
        """
        return await asyncio.to_thread(_load_lessons_sync, self.path)

    async def find_lesson(self, lesson_id: str) -> Lesson | None:
        """Return the first lesson whose id matches *lesson_id*, or None."""
        return first_match(await self.list_lessons(), lesson_id)

    async def lesson_ids(self) -> list[str]:
        """Ids in source order."""
        return [lesson.id for lesson in await self.list_lessons()]
