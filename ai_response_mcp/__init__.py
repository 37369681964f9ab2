"""ai-response-mcp: sandboxed file access and detached Claude Code tasks over MCP."""

__version__ = "1.0.0"
