"""Plain JSON-RPC adapter for hosts that POST single requests to ``/mcp``.

Answers ``initialize``, ``ping``, ``tools/list`` and ``tools/call`` from
the shared :class:`~gradeless_mcp.dispatcher.Dispatcher`. Hosts that speak
the streamable-HTTP session protocol are routed to FastMCP instead (see
:mod:`gradeless_mcp.server`).
"""

from __future__ import annotations

import json
import logging

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from .dispatcher import Dispatcher, content_to_json
from .errors import InvalidArguments, UnsupportedOperation, make_tool_error

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
SERVER_ERROR = -32000


def rpc_result(msg_id: object, result: dict) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "id": msg_id, "result": result}


def rpc_error(msg_id: object, code: int, message: str, data: dict | None = None) -> dict:
    error: dict = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": msg_id, "error": error}


def _is_notification(method: str) -> bool:
    """Only ``notifications/*`` go unanswered; other methods always get an envelope."""
    return method.startswith("notifications/")


async def handle_rpc(
    payload: object,
    dispatcher: Dispatcher,
    server_info: dict,
) -> tuple[int, dict | None]:
    """Answer one decoded JSON-RPC message.

    Args:
        payload: The decoded request body.
        dispatcher: Shared operation dispatcher.
        server_info: ``{"name": ..., "version": ...}`` for ``initialize``.

    Returns:
        ``(http_status, body)``; body is None for notifications. Requests
        without an id are still answered, with ``"id": null``.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("method"), str):
        msg_id = payload.get("id") if isinstance(payload, dict) else None
        return 400, rpc_error(msg_id, INVALID_REQUEST, "Invalid Request")

    method = payload["method"]
    msg_id = payload.get("id")
    if _is_notification(method):
        logger.debug("Ignoring notification %s", method)
        return 202, None

    if method == "initialize":
        return 200, rpc_result(msg_id, {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": server_info,
        })
    if method == "ping":
        return 200, rpc_result(msg_id, {})
    if method == "tools/list":
        return 200, rpc_result(msg_id, {"tools": dispatcher.describe()})
    if method != "tools/call":
        return 200, rpc_error(msg_id, METHOD_NOT_FOUND, f"Unknown method: {method}")

    params = payload.get("params")
    if not isinstance(params, dict) or not isinstance(params.get("name"), str):
        return 200, rpc_error(msg_id, INVALID_PARAMS, "tools/call requires params.name")

    try:
        outcome = await dispatcher.call(params["name"], params.get("arguments"))
    except UnsupportedOperation as exc:
        return 200, rpc_error(msg_id, METHOD_NOT_FOUND, str(exc), make_tool_error(exc))
    except InvalidArguments as exc:
        return 200, rpc_error(msg_id, INVALID_PARAMS, str(exc), make_tool_error(exc))
    return 200, rpc_result(msg_id, {"content": content_to_json(outcome)})


async def rpc_endpoint(request: Request, dispatcher: Dispatcher, server_info: dict) -> Response:
    """Starlette handler wrapping :func:`handle_rpc`."""
    try:
        payload = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(rpc_error(None, PARSE_ERROR, "Parse error"), status_code=400)

    if isinstance(payload, dict):
        logger.info("MCP request: method=%s id=%s", payload.get("method"), payload.get("id"))

    try:
        status, body = await handle_rpc(payload, dispatcher, server_info)
    except Exception as exc:
        logger.exception("MCP POST error")
        msg_id = payload.get("id") if isinstance(payload, dict) else None
        return JSONResponse(rpc_error(msg_id, SERVER_ERROR, str(exc)), status_code=500)

    if body is None:
        return Response(status_code=status)
    return JSONResponse(body, status_code=status)
