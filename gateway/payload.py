"""Data contracts passed from the normalizer to the model adapter.

Architectural role:
    Defines the canonical content unit (`ContentPayload`) and the file handle the
    upload receiver hands to the normalizer.

Lifecycle:
    A `ContentPayload` is built per request, consumed once by
    `llm.service.ModelAdapter.generate`, and discarded. `FileHandle` points at a
    request-scoped temporary file owned by the HTTP handler.
"""

import base64
from dataclasses import dataclass
from enum import Enum


class Modality(str, Enum):
    """Supported input kinds."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    DOCUMENT = "document"


@dataclass(frozen=True)
class FileHandle:
    """Location and declared MIME type of a stored upload.

    Attributes:
        path: Filesystem path of the stored bytes.
        mime_type: MIME type declared by the client, or `None`/empty if undeclared.
        filename: Original client-side filename, informational only.
    """

    path: str
    mime_type: str | None = None
    filename: str | None = None


@dataclass(frozen=True)
class Attachment:
    """Binary blob sent alongside the instruction.

    Attributes:
        data: Raw file bytes.
        mime_type: Non-empty MIME type.
    """

    data: bytes
    mime_type: str

    def __post_init__(self):
        if not self.mime_type:
            raise ValueError("attachment mime_type must be a non-empty string")

    def inline_data(self) -> dict:
        """Return the base64 wire form `{"data": ..., "mimeType": ...}`."""
        return {
            "data": base64.b64encode(self.data).decode("ascii"),
            "mimeType": self.mime_type,
        }


@dataclass(frozen=True)
class ContentPayload:
    """Canonical unit consumed by the model adapter.

    Attributes:
        instruction: Never-empty instruction text.
        attachment: Optional binary attachment.
    """

    instruction: str
    attachment: Attachment | None = None

    def __post_init__(self):
        if not self.instruction:
            raise ValueError("instruction must be a non-empty string")

    def to_contents(self):
        """Return the model input: a bare string, or `[instruction, inline_data]`."""
        if self.attachment is None:
            return self.instruction
        return [self.instruction, self.attachment.inline_data()]
