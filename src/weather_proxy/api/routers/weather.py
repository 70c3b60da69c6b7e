import asyncio
import logging
from typing import Optional
from fastapi import APIRouter, Query, Request
from ...core.errors import ClientDisconnected
from ...schemas.common import SimplifiedWeather
from ...services.openweather import get_weather

router = APIRouter()
logger = logging.getLogger(__name__)

DISCONNECT_POLL_SEC = 0.25


async def _cancel_on_disconnect(request: Request, coro):
    """Run ``coro`` but cancel it if the inbound client goes away first."""
    task = asyncio.ensure_future(coro)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SEC)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("client disconnected, cancelling upstream call")
                task.cancel()
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()


@router.get("/weather", response_model=SimplifiedWeather)
async def weather(
    request: Request,
    lat: Optional[str] = Query(None, description="Latitude, passed through to the upstream"),
    lon: Optional[str] = Query(None, description="Longitude, passed through to the upstream"),
) -> SimplifiedWeather:
    state = request.app.state
    return await _cancel_on_disconnect(
        request,
        get_weather(state.settings, lat, lon, transport=state.transport),
    )
