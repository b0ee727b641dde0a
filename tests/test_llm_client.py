import base64
import json
import threading

import pytest
import requests

from gateway import config
from gateway.errors import ModelInvocationError
from gateway.llm.client import build_request_body, extract_text
from gateway.llm.service import ModelAdapter
from gateway.payload import Attachment, ContentPayload


class FakeResponse:
    def __init__(self, status_code=200, payload=None, raw=None):
        self.status_code = status_code
        self.content = raw if raw is not None else json.dumps(payload).encode()

    def json(self):
        return json.loads(self.content)

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        pass


def reply(*parts):
    return {"candidates": [{"content": {"role": "model", "parts": list(parts)}}]}


def make_adapter(session, api_key="test-key"):
    return ModelAdapter(session=session, model="gemini-test", api_key=api_key, timeout=7)


def test_text_request_shape():
    session = FakeSession(FakeResponse(payload=reply({"text": "Hi there"})))

    output = make_adapter(session).generate(ContentPayload(instruction="Say hi"))

    assert output == "Hi there"
    url, kwargs = session.requests[0]
    assert url == config.GEMINI_URL_TEMPLATE.format(model="gemini-test")
    assert kwargs["headers"]["x-goog-api-key"] == "test-key"
    assert kwargs["timeout"] == 7
    assert kwargs["json"] == {"contents": [{"role": "user", "parts": [{"text": "Say hi"}]}]}


def test_attachment_request_shape():
    session = FakeSession(FakeResponse(payload=reply({"text": "A cat"})))
    payload = ContentPayload(
        instruction="Describe this image",
        attachment=Attachment(data=b"png-bytes", mime_type="image/png"),
    )

    make_adapter(session).generate(payload)

    parts = session.requests[0][1]["json"]["contents"][0]["parts"]
    assert parts[0] == {"text": "Describe this image"}
    assert parts[1]["inline_data"]["mime_type"] == "image/png"
    assert base64.b64decode(parts[1]["inline_data"]["data"]) == b"png-bytes"


def test_build_request_body_accepts_bare_string():
    assert build_request_body("x") == {"contents": [{"role": "user", "parts": [{"text": "x"}]}]}


def test_text_parts_are_joined_and_thoughts_skipped():
    data = reply(
        {"text": "thinking...", "thought": True},
        {"text": "Hello, "},
        {"text": "world"},
    )

    assert extract_text(data) == "Hello, world"


def test_service_error_message_is_passed_through():
    body = {"error": {"code": 429, "message": "Resource has been exhausted", "status": "RESOURCE_EXHAUSTED"}}
    session = FakeSession(FakeResponse(status_code=429, payload=body))

    with pytest.raises(ModelInvocationError) as exc_info:
        make_adapter(session).generate(ContentPayload(instruction="hi"))

    assert str(exc_info.value) == "Resource has been exhausted"
    assert exc_info.value.status_code == 429


def test_status_without_error_body_uses_fallback():
    session = FakeSession(FakeResponse(status_code=503, raw=b"<html>down</html>"))

    with pytest.raises(ModelInvocationError, match="HTTP 503"):
        make_adapter(session).generate(ContentPayload(instruction="hi"))


def test_transport_error_is_wrapped():
    session = FakeSession(error=requests.exceptions.ConnectionError("connection refused"))

    with pytest.raises(ModelInvocationError, match="connection refused"):
        make_adapter(session).generate(ContentPayload(instruction="hi"))


def test_malformed_body_is_wrapped():
    session = FakeSession(FakeResponse(raw=b"not json"))

    with pytest.raises(ModelInvocationError, match="malformed"):
        make_adapter(session).generate(ContentPayload(instruction="hi"))


def test_blocked_prompt_names_reason():
    with pytest.raises(ModelInvocationError, match="SAFETY"):
        extract_text({"promptFeedback": {"blockReason": "SAFETY"}})


def test_no_candidates():
    with pytest.raises(ModelInvocationError, match="no candidates"):
        extract_text({"candidates": []})


def test_missing_api_key_fails_without_calling_service():
    session = FakeSession(FakeResponse(payload=reply({"text": "unused"})))

    with pytest.raises(ModelInvocationError, match="GEMINI_API_KEY"):
        make_adapter(session, api_key="").generate(ContentPayload(instruction="hi"))

    assert session.requests == []


def test_cancelled_call_is_not_sent():
    session = FakeSession(FakeResponse(payload=reply({"text": "unused"})))
    cancel_event = threading.Event()
    cancel_event.set()

    with pytest.raises(ModelInvocationError, match="cancelled"):
        make_adapter(session).generate(ContentPayload(instruction="hi"), cancel_event=cancel_event)

    assert session.requests == []


def test_each_call_goes_to_the_service():
    session = FakeSession(FakeResponse(payload=reply({"text": "same"})))
    adapter = make_adapter(session)

    adapter.generate(ContentPayload(instruction="hi"))
    adapter.generate(ContentPayload(instruction="hi"))

    assert len(session.requests) == 2
