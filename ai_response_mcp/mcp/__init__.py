"""
MCP (Model Context Protocol) module.

JSON-RPC Methods:
- initialize - Initialize MCP session
- tools/list - List available tools
- tools/call - Execute a tool

Transports:
- stdio - line delimited JSON-RPC (default)
- HTTP - POST /v1/mcp (see routes.mcp)
"""

from .server import McpServer
from .stdio import StdioTransport
from .tools import TOOLS, build_handlers

__all__ = ["McpServer", "StdioTransport", "TOOLS", "build_handlers"]
