import os
from typing import List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_BASE_URL = "https://api.openweathermap.org"
UNITS = "metric"


class Settings(BaseModel):
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0
    host: str = "0.0.0.0"
    port: int = 8080
    allowed_origins: List[str] = ["*"]
    log_level: str = "INFO"
    log_upstream_body: bool = False

    @property
    def weather_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/data/2.5/weather"


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    origins = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]
    return Settings(
        # empty string counts as unset
        api_key=os.getenv("OPENWEATHER_API_KEY") or None,
        base_url=os.getenv("OPENWEATHER_BASE_URL", DEFAULT_BASE_URL),
        timeout=float(os.getenv("UPSTREAM_TIMEOUT", "10.0")),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        allowed_origins=origins or ["*"],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_upstream_body=_flag("LOG_UPSTREAM_BODY"),
    )


def cfg_summary(settings: Settings):
    return {
        "allowed_origins": settings.allowed_origins,
        "openweather_base_url": settings.base_url,
        "openweather_api_key_configured": bool(settings.api_key),
        "upstream_timeout": settings.timeout,
        "log_level": settings.log_level,
    }
