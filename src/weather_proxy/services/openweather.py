import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

import httpx

from ..core.config import Settings, UNITS
from ..core.errors import (
    MissingApiKey,
    MissingCoordinates,
    UpstreamAuthError,
    UpstreamPayloadError,
    UpstreamUnavailable,
)
from ..core.http import get_client
from ..core.logs import mask_secret, preview, redact_url
from ..schemas.common import SimplifiedWeather, UpstreamErrorBody

logger = logging.getLogger(__name__)

UNKNOWN_CONDITION = "unknown"

T = TypeVar("T")


# =========================
# Partial decode
# =========================

class FieldState(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    WRONG_TYPE = "wrong_type"


@dataclass(frozen=True)
class Extracted(Generic[T]):
    state: FieldState
    value: Optional[T] = None

    @property
    def ok(self) -> bool:
        return self.state is FieldState.PRESENT


def _absent() -> Extracted:
    return Extracted(FieldState.ABSENT)


def _wrong_type() -> Extracted:
    return Extracted(FieldState.WRONG_TYPE)


@dataclass(frozen=True)
class PartialWeather:
    """What could be read out of an upstream payload.

    ``condition`` is ``weather[0].main``; ``main`` is the ``main`` object and
    ``temp`` is ``main.temp``. When ``main`` is not PRESENT, ``temp`` is ABSENT.
    """

    condition: Extracted[str]
    main: Extracted[Dict[str, Any]]
    temp: Extracted[float]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _extract_condition(payload: Dict[str, Any]) -> Extracted[str]:
    if "weather" not in payload:
        return _absent()
    weather = payload["weather"]
    if not isinstance(weather, list):
        return _wrong_type()
    if not weather:
        return _absent()
    first = weather[0]
    if not isinstance(first, dict):
        return _wrong_type()
    if "main" not in first:
        return _absent()
    if not isinstance(first["main"], str):
        return _wrong_type()
    return Extracted(FieldState.PRESENT, first["main"])


def extract(payload: Dict[str, Any]) -> PartialWeather:
    condition = _extract_condition(payload)

    if "main" not in payload:
        return PartialWeather(condition, _absent(), _absent())
    main = payload["main"]
    if not isinstance(main, dict):
        return PartialWeather(condition, _wrong_type(), _absent())

    if "temp" not in main:
        temp = _absent()
    elif not _is_number(main["temp"]):
        temp = _wrong_type()
    else:
        temp = Extracted(FieldState.PRESENT, float(main["temp"]))
    return PartialWeather(condition, Extracted(FieldState.PRESENT, main), temp)


def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name} in payload")


# Every JSON number must fit a finite double.
def _parse_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number {text[:20]} out of range")
    return value


def _parse_int(text: str) -> int:
    value = int(text)
    try:
        float(value)
    except OverflowError:
        raise ValueError(f"number {text[:20]}... out of range")
    return value


def decode_payload(body: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(
            body,
            parse_constant=_reject_constant,
            parse_float=_parse_float,
            parse_int=_parse_int,
        )
    except ValueError as e:
        logger.warning("upstream body is not valid JSON: %s", e)
        raise UpstreamPayloadError("Failed to decode weather data")
    if not isinstance(data, dict):
        logger.warning("upstream body is JSON %s, expected an object", type(data).__name__)
        raise UpstreamPayloadError("Failed to decode weather data")
    return data


# =========================
# Classification
# =========================

COLD_BELOW = 10.0
HOT_ABOVE = 25.0


def classify_temperature(temp: float) -> str:
    if temp < COLD_BELOW:
        return "Cold"
    if temp > HOT_ABOVE:
        return "Hot"
    return "Moderate"


def simplify(partial: PartialWeather) -> SimplifiedWeather:
    # A missing condition degrades to "unknown" while a missing temperature
    # fails the request. Both behaviours are kept on purpose.
    if partial.condition.ok:
        condition = partial.condition.value
    else:
        logger.info("weather condition %s, using %r", partial.condition.state.value, UNKNOWN_CONDITION)
        condition = UNKNOWN_CONDITION

    if not partial.main.ok:
        raise UpstreamPayloadError("Weather data format is unexpected")
    if not partial.temp.ok:
        raise UpstreamPayloadError("Temperature data is unavailable")

    return SimplifiedWeather(
        condition=condition.lower(),
        temperature=classify_temperature(partial.temp.value),
    )


# =========================
# Upstream call
# =========================

def build_params(lat: str, lon: str, api_key: str) -> Dict[str, str]:
    return {"lat": lat, "lon": lon, "appid": api_key, "units": UNITS}


def _auth_error(body: bytes) -> UpstreamAuthError:
    """Build the 401 error from the first JSON value of ``body``.

    ``null`` (as a whole body or as a field) leaves the defaults in place and
    bytes after the first value are ignored; any other shape is undecodable.
    """
    try:
        data, _ = json.JSONDecoder().raw_decode(body.decode("utf-8").lstrip())
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"error body is JSON {type(data).__name__}")
        err = UpstreamErrorBody.model_validate({k: v for k, v in data.items() if v is not None})
    except ValueError as e:
        logger.info("undecodable upstream error body: %s", e)
        return UpstreamAuthError()
    return UpstreamAuthError(f"Invalid API key: {err.message}")


async def fetch_current(
    settings: Settings,
    lat: str,
    lon: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bytes:
    """GET the current weather for ``lat``/``lon`` and return the raw body.

    Raises ``UpstreamUnavailable`` on transport errors, ``UpstreamAuthError``
    when the upstream answers 401 and ``UpstreamPayloadError`` when the body
    cannot be read. Any other status is passed on to the payload decoder.
    """
    params = build_params(lat, lon, settings.api_key)
    async with get_client(settings.timeout, transport=transport) as client:
        request = client.build_request("GET", settings.weather_url, params=params)
        logger.info("upstream GET %s", redact_url(str(request.url)))
        try:
            r = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.error("upstream request failed: %r", e)
            raise UpstreamUnavailable()

        try:
            try:
                body = await r.aread()
            except httpx.HTTPError as e:
                logger.error("failed to read upstream body (status=%s): %r", r.status_code, e)
                if r.status_code == 401:
                    raise UpstreamAuthError()
                raise UpstreamPayloadError("Failed to process weather data")
        finally:
            await r.aclose()

    logger.info("upstream status=%s bytes=%d", r.status_code, len(body))
    if settings.log_upstream_body:
        logger.debug("upstream body: %s", preview(body))

    if r.status_code == 401:
        logger.warning("upstream rejected the API key")
        raise _auth_error(body)
    if r.status_code != 200:
        logger.warning("upstream answered status=%s, decoding body anyway", r.status_code)
    return body


async def get_weather(
    settings: Settings,
    lat: Optional[str],
    lon: Optional[str],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> SimplifiedWeather:
    if not settings.api_key:
        logger.error("OPENWEATHER_API_KEY is not set")
        raise MissingApiKey()
    logger.debug("using OpenWeather API key %s", mask_secret(settings.api_key))

    if not lat or not lon:
        raise MissingCoordinates()

    body = await fetch_current(settings, lat, lon, transport=transport)
    payload = decode_payload(body)
    return simplify(extract(payload))
