import logging
import re
from typing import Optional

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
MAX_BODY_CHARS = 800

_APPID_RE = re.compile(r"(appid=)[^&\s]*")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    # httpx logs full request URLs at INFO, appid included
    logging.getLogger("httpx").setLevel(logging.WARNING)


def mask_secret(value: Optional[str]) -> str:
    if not value:
        return "<unset>"
    if len(value) <= 4:
        return "****"
    return "****" + value[-4:]


def redact_url(url: str) -> str:
    return _APPID_RE.sub(r"\1****", url)


def preview(body: bytes) -> str:
    text = body.decode("utf-8", errors="replace")
    if len(text) > MAX_BODY_CHARS:
        return text[:MAX_BODY_CHARS] + "...(truncated)"
    return text
