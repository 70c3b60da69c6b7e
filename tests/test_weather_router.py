from __future__ import annotations

import asyncio

import pytest

from weather_proxy.api.routers import weather as weather_router
from weather_proxy.core.errors import ClientDisconnected


class FakeRequest:
    def __init__(self, disconnected: bool) -> None:
        self.disconnected = disconnected
        self.polls = 0

    async def is_disconnected(self) -> bool:
        self.polls += 1
        return self.disconnected


@pytest.fixture(autouse=True)
def fast_poll(monkeypatch) -> None:
    monkeypatch.setattr(weather_router, "DISCONNECT_POLL_SEC", 0.01)


def test_upstream_call_is_cancelled_when_client_disconnects() -> None:
    request = FakeRequest(disconnected=True)
    state = {}

    async def slow_upstream():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            state["cancelled"] = True
            raise
        return "late"

    async def scenario():
        with pytest.raises(ClientDisconnected) as exc:
            await weather_router._cancel_on_disconnect(request, slow_upstream())
        # let the cancelled task observe its cancellation
        await asyncio.sleep(0.01)
        return exc.value

    err = asyncio.run(scenario())

    assert err.status_code == 499
    assert request.polls >= 1
    assert state.get("cancelled") is True


def test_result_is_returned_when_upstream_answers_first() -> None:
    request = FakeRequest(disconnected=False)

    async def quick_upstream():
        await asyncio.sleep(0.03)
        return "payload"

    result = asyncio.run(weather_router._cancel_on_disconnect(request, quick_upstream()))

    assert result == "payload"
    assert request.polls >= 1


def test_upstream_errors_propagate_unchanged() -> None:
    async def failing_upstream():
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        asyncio.run(weather_router._cancel_on_disconnect(FakeRequest(disconnected=False), failing_upstream()))
