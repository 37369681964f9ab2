"""
JSON-RPC 2.0 dispatcher for the MCP methods this server speaks.

Transport independent: the stdio loop and the HTTP route both hand parsed
messages to ``McpServer.handle_message``. Tool failures come back as tool
results with ``isError`` set; only protocol problems become JSON-RPC errors.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Dict, List, Optional, Union

from .. import __version__
from ..utils.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    JsonRpcError,
    jsonrpc_error,
    text_result,
)
from .tools import McpHandler

mcp_logger = logging.getLogger("ai_response.mcp")

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "ai-response-mcp"

JsonMessage = Union[Dict[str, Any], List[Any]]


class McpServer:
    def __init__(self, tools: List[Dict[str, Any]], handlers: Dict[str, McpHandler]) -> None:
        self.tools = tools
        self.handlers = handlers
        self.initialized = False

    @property
    def method_names(self) -> List[str]:
        return ["initialize", "notifications/initialized", "ping", "tools/list", "tools/call"]

    async def handle_raw(self, raw: str) -> Optional[JsonMessage]:
        """Parse one serialized message and dispatch it."""
        try:
            body = json.loads(raw)
        except json.JSONDecodeError as e:
            return jsonrpc_error(PARSE_ERROR, "Parse error", data=str(e))
        return await self.handle_message(body)

    async def handle_message(self, body: Any) -> Optional[JsonMessage]:
        if isinstance(body, list):
            if not body:
                return jsonrpc_error(INVALID_REQUEST, "Invalid Request", data="empty batch")
            responses = await asyncio.gather(*(self._handle_single(item) for item in body))
            return [r for r in responses if r is not None] or None
        return await self._handle_single(body)

    async def _handle_single(self, body: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(body, dict):
            return jsonrpc_error(INVALID_REQUEST, "Invalid Request", data="message must be an object")

        req_id = body.get("id")
        is_notification = "id" not in body
        method = body.get("method")
        params = body.get("params") or {}

        if body.get("jsonrpc") != "2.0":
            return jsonrpc_error(INVALID_REQUEST, "Invalid Request", req_id=req_id, data="jsonrpc must be '2.0'")
        if not method or not isinstance(method, str):
            return jsonrpc_error(INVALID_REQUEST, "Invalid Request", req_id=req_id, data="method is required")
        if not isinstance(params, dict):
            return jsonrpc_error(INVALID_PARAMS, "Invalid params", req_id=req_id, data="params must be an object")

        start_time = time.time()
        try:
            result = await self._dispatch(method, params)
        except JsonRpcError as exc:
            mcp_logger.warning(f"MCP_ERROR | Method: {method} | {exc.message}")
            return jsonrpc_error(exc.code, exc.message, req_id=req_id, data=exc.data)
        except Exception as exc:
            return jsonrpc_error(
                INTERNAL_ERROR,
                "Internal error",
                req_id=req_id,
                data=str(exc),
                internal_message=f"{method}: {exc!r}",
            )

        latency_ms = (time.time() - start_time) * 1000
        mcp_logger.info(f"MCP_METHOD | Method: {method} | {latency_ms:.1f}ms")
        if is_notification:
            return None
        return {"jsonrpc": "2.0", "result": result, "id": req_id}

    async def _dispatch(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if method == "initialize":
            self.initialized = True
            return {
                "protocolVersion": params.get("protocolVersion") or PROTOCOL_VERSION,
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
                "capabilities": {"tools": {"listChanged": False}},
            }
        if method in ("notifications/initialized", "ping"):
            return {}
        if method == "tools/list":
            return {"tools": self.tools}
        if method == "tools/call":
            return await self.call_tool(params)
        raise JsonRpcError(METHOD_NOT_FOUND, "Method not found", f"'{method}' not supported")

    async def call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}

        if not tool_name:
            raise JsonRpcError(INVALID_PARAMS, "Invalid params", "'name' parameter is required for tools/call")
        handler = self.handlers.get(tool_name)
        if handler is None:
            raise JsonRpcError(INVALID_PARAMS, "Invalid params", f"Unknown tool: {tool_name}")
        if not isinstance(arguments, dict):
            raise JsonRpcError(INVALID_PARAMS, "Invalid params", "'arguments' must be an object")

        mcp_logger.info(f"MCP_TOOL | {tool_name}")
        try:
            return await handler(arguments)
        except Exception as exc:
            mcp_logger.exception(f"Tool {tool_name} failed: {exc}")
            return text_result(f"Error running {tool_name}: {exc}", is_error=True)
