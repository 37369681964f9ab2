from __future__ import annotations

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger("ai_response.errors")

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ToolError(Exception):
    """Base class for failures surfaced to a tool caller as a message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PathRejected(ToolError):
    """Requested path lies outside every allowed root."""

    def __init__(self, requested_path: str, message: str) -> None:
        super().__init__(message)
        self.requested_path = requested_path


class FileAccessError(ToolError):
    """Underlying read, write, list or create failure.

    The underlying exception is chained as ``__cause__``; callers only see
    the message.
    """

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class DispatchError(ToolError):
    """Detached process could not be started.

    ``output_path`` is where results were expected, so the caller can still
    tell the user where to look.
    """

    def __init__(self, message: str, output_path: str) -> None:
        super().__init__(message)
        self.output_path = output_path


class ModelBackendError(ToolError):
    """Model provider request failed or returned an unusable response."""


class JsonRpcError(Exception):
    """Protocol level failure that becomes a JSON-RPC ``error`` member."""

    def __init__(self, code: int, message: str, data: Optional[Any] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def jsonrpc_error(
    code: int,
    message: str,
    *,
    req_id: Any = None,
    data: Optional[Any] = None,
    internal_message: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a JSON-RPC error response.

    Args:
        code: JSON-RPC error code
        message: Short message for the client
        req_id: Request id to echo back (None for unparseable requests)
        data: Optional detail for the client
        internal_message: Optional detailed message for logging only

    Returns:
        JSON-RPC response dict with an ``error`` member
    """
    if internal_message:
        logger.error(f"[{code}] Internal: {internal_message}")

    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "error": error, "id": req_id}


def text_result(text: str, *, is_error: bool = False) -> Dict[str, Any]:
    """MCP tool result carrying a single text block."""
    return {"content": [{"type": "text", "text": text}], "isError": is_error}
