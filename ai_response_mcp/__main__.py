#!/usr/bin/env python3
"""
ai-response-mcp server

Usage: python -m ai_response_mcp [--transport stdio|http] [--host 127.0.0.1] [--port 9100]
"""

import argparse
import asyncio
import sys

from .config import get_settings
from .utils.central_logging import get_logger, setup_central_logging


def parse_args(argv=None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="ai-response-mcp", description="MCP server for sandboxed file access and background Claude Code tasks")
    parser.add_argument("--transport", choices=["stdio", "http"], default="stdio")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--log-level", default=settings.log_level)
    parser.add_argument("--log-dir", default=settings.log_dir)
    return parser.parse_args(argv)


async def _run_stdio() -> None:
    from .main import build_mcp_server
    from .mcp.stdio import StdioTransport
    from .services.container import get_services
    from .utils.http_client import HttpClient

    try:
        await StdioTransport(build_mcp_server(get_services())).run()
    finally:
        await HttpClient.close_all()


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_central_logging(console_level=args.log_level, log_dir=args.log_dir)
    logger = get_logger("system")

    try:
        if args.transport == "http":
            import uvicorn
            from .main import create_app

            uvicorn.run(create_app(), host=args.host, port=args.port, log_config=None)
        else:
            asyncio.run(_run_stdio())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
