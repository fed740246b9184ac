"""Application assembly — web pages, FastMCP transport and JSON-RPC on one app."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.types import ASGIApp, Receive, Scope, Send

from . import tracing
from .config import ServerConfig, get_config
from .dispatcher import Dispatcher
from .jsonrpc import rpc_endpoint
from .store import LessonStore
from .tools.lessons import build_lessons_server
from .web import LessonPages, static_routes

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"
SERVER_DESCRIPTION = "MCP server for Gradeless AI tutorials"


def build_mcp_server(dispatcher: Dispatcher, cfg: ServerConfig) -> FastMCP:
    """Main FastMCP server — mounts the lesson tools."""
    server = FastMCP(
        cfg.server_name,
        instructions=(
            "Gradeless AI video tutorials. Use list_lessons to browse the "
            "catalog and open_lesson with a lesson ID to watch one."
        ),
    )
    server.mount(build_lessons_server(dispatcher))
    return server


def _wants_session_transport(request: Request) -> bool:
    """True for streamable-HTTP clients: they send a session id or accept SSE."""
    if "mcp-session-id" in request.headers:
        return True
    return "text/event-stream" in request.headers.get("accept", "")


class McpEndpoint:
    """ASGI endpoint for ``/mcp``.

    Streamable-HTTP clients go to the FastMCP app. Each of their requests
    runs on a fresh stateless transport that FastMCP tears down when the
    response ends or the client goes away. Plain POSTs go to the JSON-RPC
    adapter, and a plain GET returns the static server description.
    """

    def __init__(self, dispatcher: Dispatcher, managed_app: ASGIApp, cfg: ServerConfig) -> None:
        self.dispatcher = dispatcher
        self.managed_app = managed_app
        self.server_info = {"name": cfg.server_name, "version": cfg.server_version}

    def description(self) -> dict:
        return {
            **self.server_info,
            "description": SERVER_DESCRIPTION,
            "tools": self.dispatcher.registry.names(),
        }

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        if _wants_session_transport(request):
            try:
                await self.managed_app(scope, receive, send)
            finally:
                logger.debug("Streamable HTTP request closed: %s %s", request.method, request.url.path)
            return

        if request.method == "GET":
            response = JSONResponse(self.description())
        elif request.method == "POST":
            response = await rpc_endpoint(request, self.dispatcher, self.server_info)
        else:
            response = PlainTextResponse("Method Not Allowed", status_code=405)
        await response(scope, receive, send)


async def _mcp_health(request: Request) -> PlainTextResponse:
    return PlainTextResponse("OK MCP")


def create_app(cfg: ServerConfig | None = None) -> Starlette:
    """Build the ASGI app.

    The store, dispatcher and FastMCP server are created here once and
    shared by every route.
    """
    if cfg is None:
        cfg = get_config()
    store = LessonStore(cfg.lessons_path)
    dispatcher = Dispatcher(store, base_url=cfg.base_url, tracing_enabled=cfg.tracing_enabled)
    mcp_server = build_mcp_server(dispatcher, cfg)
    managed_app = mcp_server.http_app(path=MCP_PATH, stateless_http=True)

    @asynccontextmanager
    async def _lifespan(app: Starlette):
        """Startup/shutdown hook — runs the FastMCP session manager."""
        tracing.setup(cfg)
        async with managed_app.lifespan(app):
            logger.info("Serving %d lesson tool(s) at %s", len(dispatcher.registry.names()), MCP_PATH)
            yield
        tracing.shutdown(cfg)
        logger.info("Lifespan shutdown: %s", cfg.server_name)

    routes = [
        *LessonPages(store).routes(),
        Route(f"{MCP_PATH}/health", _mcp_health, methods=["GET"]),
        Route(
            MCP_PATH,
            McpEndpoint(dispatcher, managed_app, cfg),
            methods=["GET", "POST", "DELETE"],
        ),
        *static_routes(cfg.static_dir),
    ]
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "mcp-session-id"],
            expose_headers=["Mcp-Session-Id"],
        ),
    ]
    app = Starlette(routes=routes, middleware=middleware, lifespan=_lifespan)
    app.state.dispatcher = dispatcher
    app.state.store = store
    return app


def main() -> None:
    """Entry-point for ``gradeless-mcp`` console script."""
    import uvicorn

    cfg = get_config()
    logging.basicConfig(
        level=cfg.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Server listening on %s:%d", cfg.host, cfg.port)
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port)


if __name__ == "__main__":
    main()
