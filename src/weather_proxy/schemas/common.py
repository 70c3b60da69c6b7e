from typing import Literal
from pydantic import BaseModel, StrictInt, StrictStr


class HealthOut(BaseModel):
    status: str
    time_utc: str
    upstream_configured: bool


class SimplifiedWeather(BaseModel):
    condition: str
    temperature: Literal["Cold", "Moderate", "Hot"]


class UpstreamErrorBody(BaseModel):
    # OpenWeatherMap error shape, e.g. {"cod": 401, "message": "Invalid API key. ..."}
    cod: StrictInt = 0
    message: StrictStr = ""
