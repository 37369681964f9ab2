"""
stdio transport: one JSON-RPC message per line on stdin, one response per
line on stdout. Logging must go to stderr while this runs.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Optional, Set, TextIO

from .server import McpServer

mcp_logger = logging.getLogger("ai_response.mcp")


class StdioTransport:
    def __init__(self, server: McpServer, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
        self.server = server
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def _write(self, response) -> None:
        self.stdout.write(json.dumps(response) + "\n")
        self.stdout.flush()

    async def _serve_line(self, line: str) -> None:
        response = await self.server.handle_raw(line)
        if response is not None:
            self._write(response)

    async def run(self) -> None:
        """Read until EOF; requests are handled concurrently."""
        mcp_logger.info("MCP stdio server running")
        pending: Set[asyncio.Task] = set()

        while True:
            line = await asyncio.to_thread(self.stdin.readline)
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            task = asyncio.create_task(self._serve_line(line))
            pending.add(task)
            task.add_done_callback(pending.discard)

        if pending:
            await asyncio.gather(*pending)
        mcp_logger.info("MCP stdio server stopped (EOF)")
