"""Lesson tools — 2 tools on a FastMCP sub-server."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from fastmcp.tools.tool import ToolResult
from mcp.types import ToolAnnotations
from pydantic import Field

from ..dispatcher import (
    LESSON_ID_DESCRIPTION,
    LIST_LESSONS_DESCRIPTION,
    OPEN_LESSON_DESCRIPTION,
    Dispatcher,
    to_content_blocks,
)

_READ_ONLY = ToolAnnotations(readOnlyHint=True, openWorldHint=False)


def build_lessons_server(dispatcher: Dispatcher) -> FastMCP:
    """Create the ``lessons`` sub-server with tools bound to *dispatcher*."""
    lessons_server = FastMCP("lessons")

    @lessons_server.tool(
        name="list_lessons",
        description=LIST_LESSONS_DESCRIPTION,
        annotations=_READ_ONLY,
    )
    async def list_lessons() -> ToolResult:
        outcome = await dispatcher.call("list_lessons", {})
        return ToolResult(content=to_content_blocks(outcome))

    @lessons_server.tool(
        name="open_lesson",
        description=OPEN_LESSON_DESCRIPTION,
        annotations=_READ_ONLY,
    )
    async def open_lesson(
        id: Annotated[str, Field(min_length=1, description=LESSON_ID_DESCRIPTION)],
    ) -> ToolResult:
        outcome = await dispatcher.call("open_lesson", {"id": id})
        return ToolResult(content=to_content_blocks(outcome))

    return lessons_server
