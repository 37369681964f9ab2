import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

router = APIRouter()

logger = logging.getLogger("ai_response.system")

HEALTH_RESPONSE = {"ok": True, "status": "ok"}


@router.get(
    "/health",
    tags=["Monitoring"],
    summary="Health check endpoint",
    include_in_schema=False,
)
@router.get(
    "/healthz",
    tags=["Monitoring"],
    summary="Kubernetes style health check endpoint",
    include_in_schema=False,
)
async def health_check():
    logger.debug("Health probe received")
    return JSONResponse(content=HEALTH_RESPONSE, status_code=status.HTTP_200_OK)


@router.get(
    "/sandbox",
    tags=["Monitoring"],
    summary="Configured sandbox roots",
)
async def sandbox_status(request: Request):
    sandbox = request.app.state.services.sandbox
    return {"roots": list(sandbox.roots), "home": sandbox.home, "cwd": sandbox.cwd}
