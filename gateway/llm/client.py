"""Gemini `generateContent` transport.

Architectural role:
    Executes the single HTTP round trip against the model service and turns the
    JSON reply into text.

Model invocation flow:
    `service.ModelAdapter.generate` -> `build_request_body(contents)` ->
    `send_request(session, ...)` -> `extract_text(data)`.

Retry behavior:
    No retry loop is implemented. Each call is attempted once with the configured
    timeout.

Cancellation:
    The response body is read in chunks; when `cancel_event` is set the read is
    abandoned and the connection closed.

Failure handling model:
    Every failure (transport, HTTP status, non-JSON body, missing candidates) is
    raised as `ModelInvocationError`. The service's own error message is preferred
    over generic text so callers can pass it through verbatim.
"""

import json
import logging

import requests

from gateway.errors import ModelInvocationError


logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


def build_request_body(contents) -> dict:
    """Map adapter input onto the `generateContent` request body.

    Args:
        contents: Bare instruction string, or a list mixing strings and
            `{"data", "mimeType"}` inline-data dictionaries.

    Returns:
        Request body with a single user turn.
    """
    if isinstance(contents, str):
        contents = [contents]

    parts = []
    for item in contents:
        if isinstance(item, str):
            parts.append({"text": item})
        else:
            parts.append({
                "inline_data": {
                    "mime_type": item["mimeType"],
                    "data": item["data"],
                }
            })

    return {"contents": [{"role": "user", "parts": parts}]}


def _error_message(response) -> str:
    """Return the service's error message, or a status-labeled fallback."""
    try:
        data = response.json()
        message = data.get("error", {}).get("message")
    except (ValueError, AttributeError):
        message = None
    return message or f"model service returned HTTP {response.status_code}"


def send_request(session, url: str, api_key: str, body: dict, timeout, cancel_event=None) -> dict:
    """POST one request and return the decoded JSON reply.

    Args:
        session: `requests.Session` (or compatible) shared across calls.
        url: Fully-resolved `generateContent` URL.
        api_key: Service credential, sent as `x-goog-api-key`.
        body: Request body from `build_request_body`.
        timeout: Seconds passed to `requests` as the call deadline.
        cancel_event: Optional `threading.Event`; when set, the call is abandoned.

    Raises:
        ModelInvocationError: On any transport, status, or decoding failure.
    """
    headers = {
        "x-goog-api-key": api_key,
        "Content-Type": "application/json",
    }

    try:
        with session.post(url, headers=headers, json=body, timeout=timeout, stream=True) as response:
            if response.status_code >= 400:
                raise ModelInvocationError(_error_message(response), status_code=response.status_code)

            chunks = []
            for chunk in response.iter_content(chunk_size=READ_CHUNK_SIZE):
                if cancel_event is not None and cancel_event.is_set():
                    raise ModelInvocationError("model call cancelled")
                chunks.append(chunk)

    except requests.exceptions.RequestException as err:
        raise ModelInvocationError(str(err) or err.__class__.__name__) from err

    try:
        return json.loads(b"".join(chunks))
    except ValueError as err:
        raise ModelInvocationError("model service returned a malformed response") from err


def extract_text(data: dict) -> str:
    """Join the text of every non-thought part of the first candidate.

    Raises:
        ModelInvocationError: No candidates, or an unexpected reply shape.
    """
    if not isinstance(data, dict):
        raise ModelInvocationError("model service returned a malformed response")

    candidates = data.get("candidates") or []
    if not candidates:
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise ModelInvocationError(f"prompt was blocked: {block_reason}")
        raise ModelInvocationError("model service returned no candidates")

    try:
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(
            part["text"]
            for part in parts
            if isinstance(part.get("text"), str) and not part.get("thought")
        )
    except (AttributeError, TypeError) as err:
        raise ModelInvocationError("model service returned a malformed response") from err
