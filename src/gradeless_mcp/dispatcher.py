"""Transport-independent tool dispatcher.

Both tool transports (FastMCP streamable HTTP and the plain JSON-RPC
adapter) resolve operations through one :class:`Dispatcher`, so the two
surfaces share the same names, argument contract and rendered content.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from mcp.types import ContentBlock, EmbeddedResource, TextContent, TextResourceContents
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidArguments, StoreUnavailable, UnsupportedOperation
from .render import (
    render_lesson_detail_text,
    render_lesson_list_widget,
    render_lesson_not_found_text,
    render_lesson_player_widget,
    render_lesson_summary_text,
)
from .store import LessonStore, first_match
from .tracing import trace

logger = logging.getLogger(__name__)

WIDGET_MIME_TYPE = "text/html+skybridge"
LIST_WIDGET_URI = "ui://gradeless/lesson-list.html"
PLAYER_WIDGET_URI = "ui://gradeless/lesson-player.html"

LIST_LESSONS_DESCRIPTION = "Show a list of all available AI tutorial lessons"
OPEN_LESSON_DESCRIPTION = "Open and display a specific lesson video by its ID"
LESSON_ID_DESCRIPTION = "The lesson ID (e.g., l1, l2, l3, l4)"


# ── Argument models ──────────────────────────────────────────────────────────


class ListLessonsArgs(BaseModel):
    """``list_lessons`` takes no arguments."""


class OpenLessonArgs(BaseModel):
    """Arguments for ``open_lesson``."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(min_length=1, description=LESSON_ID_DESCRIPTION)


# ── Results ──────────────────────────────────────────────────────────────────


class ToolOutcome(BaseModel):
    """Rendered result of one operation.

    ``widget_html`` is optional rich content; hosts that cannot render it
    still get a complete answer from ``text``.
    """

    text: str
    widget_html: str | None = None
    widget_uri: str | None = None


def to_content_blocks(outcome: ToolOutcome) -> list[ContentBlock]:
    """Shape an outcome as MCP content: text first, then the tagged widget."""
    blocks: list[ContentBlock] = [TextContent(type="text", text=outcome.text)]
    if outcome.widget_html is not None and outcome.widget_uri is not None:
        blocks.append(
            EmbeddedResource(
                type="resource",
                resource=TextResourceContents(
                    uri=outcome.widget_uri,
                    mimeType=WIDGET_MIME_TYPE,
                    text=outcome.widget_html,
                ),
            )
        )
    return blocks


def content_to_json(outcome: ToolOutcome) -> list[dict]:
    """Content blocks as plain JSON-RPC result dicts."""
    return [
        block.model_dump(mode="json", by_alias=True, exclude_none=True)
        for block in to_content_blocks(outcome)
    ]


# ── Registry ─────────────────────────────────────────────────────────────────


Handler = Callable[[BaseModel], Awaitable[ToolOutcome]]


@dataclass(frozen=True)
class Operation:
    """A named tool: description, argument model and handler."""

    name: str
    description: str
    args_model: type[BaseModel]
    handler: Handler
    read_only: bool = True

    @property
    def input_schema(self) -> dict:
        schema = self.args_model.model_json_schema()
        schema.pop("title", None)
        schema.pop("description", None)
        for prop in schema.get("properties", {}).values():
            prop.pop("title", None)
        schema.setdefault("properties", {})
        return schema

    def describe(self) -> dict:
        """Static descriptor in ``tools/list`` shape."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass
class OperationRegistry:
    """Operations by name, plus legacy aliases that discovery does not advertise."""

    _operations: dict[str, Operation] = field(default_factory=dict)
    _aliases: dict[str, str] = field(default_factory=dict)

    def register(self, operation: Operation, aliases: tuple[str, ...] = ()) -> None:
        if operation.name in self._operations:
            raise ValueError(f"Operation already registered: {operation.name}")
        self._operations[operation.name] = operation
        for alias in aliases:
            self._aliases[alias] = operation.name

    def resolve(self, name: str) -> Operation:
        """Return the operation for *name* or an alias of it.

        Raises:
            UnsupportedOperation: No such operation.
        """
        canonical = self._aliases.get(name, name)
        try:
            return self._operations[canonical]
        except KeyError:
            raise UnsupportedOperation(str(name)) from None

    def operations(self) -> list[Operation]:
        return list(self._operations.values())

    def names(self) -> list[str]:
        return list(self._operations)


# ── Dispatcher ───────────────────────────────────────────────────────────────


def _summarize_validation(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class Dispatcher:
    """Routes an operation name + arguments to the store and renderers.

    Built once at process start and handed to every transport adapter.
    With *tracing_enabled*, each operation runs inside an MLflow ``TOOL`` span.
    """

    def __init__(self, store: LessonStore, base_url: str, tracing_enabled: bool = False) -> None:
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.registry = OperationRegistry()
        self.registry.register(
            Operation(
                name="list_lessons",
                description=LIST_LESSONS_DESCRIPTION,
                args_model=ListLessonsArgs,
                handler=trace(
                    self._list_lessons, enabled=tracing_enabled, name="list_lessons", span_type="TOOL"
                ),
            ),
            aliases=("show_lessons",),
        )
        self.registry.register(
            Operation(
                name="open_lesson",
                description=OPEN_LESSON_DESCRIPTION,
                args_model=OpenLessonArgs,
                handler=trace(
                    self._open_lesson, enabled=tracing_enabled, name="open_lesson", span_type="TOOL"
                ),
            )
        )

    def describe(self) -> list[dict]:
        """Tool descriptors for discovery (``tools/list``)."""
        return [op.describe() for op in self.registry.operations()]

    async def call(self, name: str, arguments: object = None) -> ToolOutcome:
        """Validate *arguments* and run the operation called *name*.

        Args:
            name: Operation name (or legacy alias).
            arguments: JSON object of arguments; ``None`` means no arguments.

        Raises:
            UnsupportedOperation: *name* is not registered.
            InvalidArguments: *arguments* is not an object or fails validation.
        """
        operation = self.registry.resolve(name)
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidArguments(operation.name, "arguments must be a JSON object")
        try:
            args = operation.args_model.model_validate(arguments)
        except ValidationError as exc:
            raise InvalidArguments(operation.name, _summarize_validation(exc)) from exc
        return await operation.handler(args)

    async def _list_lessons(self, args: ListLessonsArgs) -> ToolOutcome:
        try:
            lessons = await self.store.list_lessons()
        except StoreUnavailable as exc:
            logger.warning("list_lessons failed: %s", exc)
            return ToolOutcome(text=f"Error loading lessons: {exc.reason}")
        return ToolOutcome(
            text=render_lesson_summary_text(lessons),
            widget_html=render_lesson_list_widget(lessons, self.base_url),
            widget_uri=LIST_WIDGET_URI,
        )

    async def _open_lesson(self, args: OpenLessonArgs) -> ToolOutcome:
        try:
            lessons = await self.store.list_lessons()
        except StoreUnavailable as exc:
            logger.warning("open_lesson(%r) failed: %s", args.id, exc)
            return ToolOutcome(text=f"Error opening lesson: {exc.reason}")

        lesson = first_match(lessons, args.id)
        if lesson is None:
            valid_ids = [item.id for item in lessons]
            return ToolOutcome(text=render_lesson_not_found_text(args.id, valid_ids))

        return ToolOutcome(
            text=render_lesson_detail_text(lesson, self.base_url),
            widget_html=render_lesson_player_widget(lesson),
            widget_uri=PLAYER_WIDGET_URI,
        )
