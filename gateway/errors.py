"""Error taxonomy shared by the normalizer, the model adapter, and the HTTP layer.

Handler-boundary mapping (see `gateway.api.http_api`):
    - `MissingInputError` -> 400
    - `UploadTooLargeError` -> 413
    - `NormalizationError`, `ModelInvocationError` -> 500, message passed through
    - `ResourceReleaseError` -> logged only, never surfaced
"""


class GatewayError(Exception):
    """Base class for every error raised by this package."""


class MissingInputError(GatewayError):
    """A required prompt or file is absent."""


class NormalizationError(GatewayError):
    """An uploaded file could not be turned into a content payload."""


class ModelInvocationError(GatewayError):
    """The external model service call failed.

    Covers auth, quota, transport, and malformed-response failures. The message is
    the one shown to the HTTP client.
    """

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class UploadTooLargeError(GatewayError):
    """An upload exceeded the configured size ceiling."""


class ResourceReleaseError(GatewayError):
    """A temporary upload could not be deleted.

    Never propagates past `gateway.api.uploads.release_upload`.
    """


class ClientDisconnectedError(GatewayError):
    """The inbound client went away while the model call was in flight."""
