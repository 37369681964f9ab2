"""
HTTP routes.

- health: liveness check
- mcp: MCP JSON-RPC endpoint (/v1/mcp) and status
"""
