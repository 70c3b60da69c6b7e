from typing import Optional
import httpx


def get_client(timeout: float, transport: Optional[httpx.AsyncBaseTransport] = None, headers=None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport, headers=headers)
