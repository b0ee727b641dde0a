import os

import pytest
from fastapi.testclient import TestClient

from gateway.api.http_api import create_app


class FakeAdapter:
    """Stand-in for `ModelAdapter` that records every payload it receives."""

    model = "fake-model"

    def __init__(self, outputs=None, error=None, on_call=None):
        self.outputs = list(outputs or [])
        self.error = error
        self.on_call = on_call
        self.calls = []

    def generate(self, payload, cancel_event=None):
        self.calls.append(payload)
        if self.on_call is not None:
            self.on_call(payload)
        if self.error is not None:
            raise self.error
        if self.outputs:
            return self.outputs.pop(0)
        return f"echo: {payload.instruction}"

    def close(self):
        pass


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return str(path)


@pytest.fixture
def adapter():
    return FakeAdapter()


@pytest.fixture
def client(adapter, upload_dir):
    return TestClient(create_app(adapter=adapter, upload_dir=upload_dir))


def stored_files(upload_dir):
    return sorted(os.listdir(upload_dir))
