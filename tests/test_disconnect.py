import asyncio

import pytest

from gateway import config
from gateway.api.http_api import _invoke_model
from gateway.errors import ClientDisconnectedError, ModelInvocationError
from gateway.payload import ContentPayload


class DisconnectedRequest:
    async def is_disconnected(self):
        return True


class BlockingAdapter:
    """Waits for cancellation, as a slow outbound call would."""

    def __init__(self):
        self.cancel_event = None

    def generate(self, payload, cancel_event=None):
        self.cancel_event = cancel_event
        cancel_event.wait(5)
        raise ModelInvocationError("model call cancelled")


def test_disconnect_signals_cancellation(monkeypatch):
    monkeypatch.setattr(config, "DISCONNECT_POLL_SECONDS", 0.01)
    adapter = BlockingAdapter()

    with pytest.raises(ClientDisconnectedError):
        asyncio.run(_invoke_model(DisconnectedRequest(), adapter, ContentPayload(instruction="hi")))

    assert adapter.cancel_event.is_set()
