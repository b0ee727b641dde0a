"""Modality normalization: request inputs -> `ContentPayload`.

Processing lifecycle:
    1. Check the inputs required by the modality (prompt for text, file otherwise).
    2. Fill in the per-modality default instruction when none was given.
    3. Read the stored upload fully into memory.
    4. Resolve the attachment MIME type (declared type or per-modality default).

Side effects:
    - Reads the file once. Never deletes it; the HTTP handler owns release.

Error handling strategy:
    - Missing required input -> `MissingInputError`.
    - Unreadable file -> `NormalizationError`.
"""

import logging

from gateway.errors import MissingInputError, NormalizationError
from gateway.payload import Attachment, ContentPayload, FileHandle, Modality


logger = logging.getLogger(__name__)

DEFAULT_INSTRUCTIONS = {
    Modality.IMAGE: "Describe this image",
    Modality.AUDIO: "Transcribe or analyze the following audio:",
    Modality.DOCUMENT: "Analyze this document:",
}

DEFAULT_MIME_TYPES = {
    Modality.IMAGE: "image/png",
    Modality.AUDIO: "audio/webm",
    Modality.DOCUMENT: "application/pdf",
}


def normalize(
    modality: Modality,
    instruction: str | None = None,
    file_handle: FileHandle | None = None,
) -> ContentPayload:
    """Build the canonical payload for one request.

    Args:
        modality: Input kind selected by the route.
        instruction: Caller-supplied prompt, possibly `None` or empty.
        file_handle: Stored upload for file-based modalities.

    Returns:
        `ContentPayload` with no attachment for text, otherwise with one.

    Raises:
        MissingInputError: Prompt absent for text, or file absent for the others
            (even when a prompt was given).
        NormalizationError: The stored file could not be read.
    """
    modality = Modality(modality)

    if modality is Modality.TEXT:
        if not instruction:
            raise MissingInputError("prompt is required")
        return ContentPayload(instruction=instruction)

    if file_handle is None:
        raise MissingInputError(f"{modality.value} file is required")

    try:
        with open(file_handle.path, "rb") as f:
            data = f.read()
    except OSError as e:
        logger.exception("Failed to read upload %s", file_handle.path)
        raise NormalizationError(f"could not read {modality.value} file: {e.strerror or e}") from e

    return ContentPayload(
        instruction=instruction or DEFAULT_INSTRUCTIONS[modality],
        attachment=Attachment(
            data=data,
            mime_type=file_handle.mime_type or DEFAULT_MIME_TYPES[modality],
        ),
    )
