from datetime import datetime, timezone
from fastapi import APIRouter, Request
from ...core.config import cfg_summary
from ...schemas.common import HealthOut

router = APIRouter()


@router.get("/health", response_model=HealthOut)
async def health(request: Request) -> HealthOut:
    """Liveness plus whether /weather can reach the upstream at all."""
    settings = request.app.state.settings
    return HealthOut(
        status="ok" if settings.api_key else "degraded",
        time_utc=datetime.now(timezone.utc).isoformat(),
        upstream_configured=bool(settings.api_key),
    )


@router.get("/config")
async def config(request: Request):
    return cfg_summary(request.app.state.settings)
