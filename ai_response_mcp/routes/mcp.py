from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from ..utils.errors import PARSE_ERROR, jsonrpc_error

mcp_logger = logging.getLogger("ai_response.mcp")

router = APIRouter()


@router.post("/v1/mcp", tags=["MCP"], summary="MCP JSON-RPC endpoint")
@router.post("/mcp", tags=["MCP"], summary="MCP JSON-RPC endpoint (alias)", include_in_schema=False)
async def mcp_endpoint(request: Request) -> Response:
    server = request.app.state.mcp_server
    client_ip = request.client.host if request.client else "unknown"
    mcp_logger.debug(f"MCP_MESSAGE | IP: {client_ip}")

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return JSONResponse(
            content=jsonrpc_error(PARSE_ERROR, "Parse error", data=str(e)),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    response = await server.handle_message(body)
    if response is None:
        return Response(status_code=status.HTTP_202_ACCEPTED)
    return JSONResponse(content=response)


@router.get("/v1/mcp/status", tags=["MCP"], summary="Health check for MCP subsystem")
async def mcp_status(request: Request) -> Dict[str, Any]:
    server = request.app.state.mcp_server
    return {
        "status": "ok",
        "initialized": server.initialized,
        "methods": server.method_names,
        "tools": [tool["name"] for tool in server.tools],
    }
