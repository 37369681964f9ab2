from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .mcp.server import McpServer
from .mcp.tools import TOOLS, build_handlers
from .routes.health import router as health_router
from .routes.mcp import router as mcp_router
from .services.container import Services, get_services
from .utils.http_client import HttpClient

logger = logging.getLogger("ai_response.system")


def build_mcp_server(services: Services) -> McpServer:
    return McpServer(TOOLS, build_handlers(services))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"ai-response-mcp {__version__} HTTP transport starting")
    yield
    await HttpClient.close_all()
    logger.info("ai-response-mcp HTTP transport stopped")


def create_app(services: Optional[Services] = None) -> FastAPI:
    services = services or get_services()

    app = FastAPI(title="ai-response-mcp", version=__version__, lifespan=lifespan)
    app.state.services = services
    app.state.mcp_server = build_mcp_server(services)

    app.include_router(health_router)
    app.include_router(mcp_router)
    return app
