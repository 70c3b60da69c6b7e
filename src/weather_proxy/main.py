import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .core.config import Settings, load_settings
from .core.errors import WeatherError
from .core.logs import configure_logging
from .api.routers import health, weather

VERSION = "0.1.0"

logger = logging.getLogger("weather_proxy")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Weather Proxy API", version=VERSION)
    app.state.settings = settings
    app.state.transport = transport

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(WeatherError)
    async def weather_error_handler(request: Request, exc: WeatherError):
        logger.warning("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.detail)
        return PlainTextResponse(exc.detail, status_code=exc.status_code)

    # Global exception handler
    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("UNHANDLED ERROR: %r", exc)
        return JSONResponse(status_code=500, content={"ok": False, "error": "internal_server_error"})

    @app.get("/")
    async def root():
        return {"ok": True, "project": "weather-proxy", "version": VERSION}

    app.include_router(health.router)
    app.include_router(weather.router)
    return app


app = create_app()


def run():
    import uvicorn
    settings = app.state.settings
    logger.info("Starting Uvicorn on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


# Entrypoint
if __name__ == "__main__":
    run()
