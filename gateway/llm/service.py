"""Payload-to-model adapter.

Architectural role:
    Owns the outbound call contract: one `ContentPayload` in, the model's joined
    text out. Bridges the normalizer (`gateway.normalizer`) to the transport
    (`gateway.llm.client`).

Model call flow:
    payload -> `payload.to_contents()` -> request body -> `client.send_request`
    -> `client.extract_text`.

Client handle:
    The `requests.Session` is injected at construction and shared by every call
    made through one adapter. HTTP handlers receive the adapter the same way, so
    tests substitute either one.

Determinism:
    Request assembly is deterministic for a fixed payload and configuration.
    Generated output is not.
"""

import logging

import requests

from gateway import config
from gateway.errors import ModelInvocationError
from gateway.llm.client import build_request_body, extract_text, send_request
from gateway.payload import ContentPayload


logger = logging.getLogger(__name__)


class ModelAdapter:
    """Issues single blocking `generateContent` calls.

    Args:
        session: Shared HTTP client. A new `requests.Session` when omitted.
        model: Model identifier.
        api_key: Credential. Resolved through `config.load_key` when omitted.
        timeout: Per-call deadline in seconds.
    """

    def __init__(self, session=None, model=None, api_key=None, timeout=None):
        self.session = session if session is not None else requests.Session()
        self.model = model or config.GEMINI_MODEL
        self.api_key = api_key if api_key is not None else config.load_key()
        self.timeout = timeout if timeout is not None else config.MODEL_TIMEOUT_SECONDS

    @property
    def url(self) -> str:
        return config.GEMINI_URL_TEMPLATE.format(model=self.model)

    def generate(self, payload: ContentPayload, cancel_event=None) -> str:
        """Invoke the model once and return its text.

        Args:
            payload: Canonical content unit; consumed once.
            cancel_event: Optional `threading.Event` signalling the caller gave up.

        Returns:
            Joined response text.

        Raises:
            ModelInvocationError: Missing credential, cancellation, or any
                transport/service/response failure.
        """
        if not self.api_key:
            raise ModelInvocationError("GEMINI_API_KEY is not configured")
        if cancel_event is not None and cancel_event.is_set():
            raise ModelInvocationError("model call cancelled")

        body = build_request_body(payload.to_contents())
        logger.debug(
            "Calling model=%s attachment=%s",
            self.model,
            payload.attachment.mime_type if payload.attachment else None,
        )

        data = send_request(
            self.session,
            self.url,
            self.api_key,
            body,
            timeout=self.timeout,
            cancel_event=cancel_event,
        )
        return extract_text(data)

    def close(self):
        self.session.close()
