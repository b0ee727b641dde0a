"""Multipart upload receiver and temporary-file release.

Architectural role:
    - Stores one uploaded file under the scoped upload directory.
    - Returns a `FileHandle` for the normalizer.
    - Releases the stored file once the handler is done with it.

Processing lifecycle:
    1. Stream the upload into a `NamedTemporaryFile` inside the upload directory.
    2. Abort and remove the partial file once the size ceiling is crossed.
    3. Handler runs normalizer + adapter.
    4. `release_upload` deletes the file in the handler's `finally`.

Error handling strategy:
    - Oversized upload -> `UploadTooLargeError` (nothing left on disk).
    - Delete failure -> `ResourceReleaseError`, logged at warning and never raised.
"""

import logging
import os
import tempfile

from gateway import config
from gateway.errors import ResourceReleaseError, UploadTooLargeError
from gateway.payload import FileHandle


logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024 * 1024
MAX_SUFFIX_LENGTH = 10


def _safe_suffix(filename: str | None) -> str:
    """Keep a short alphanumeric extension from the client filename, if any."""
    _, ext = os.path.splitext(os.path.basename(filename or ""))
    if 1 < len(ext) <= MAX_SUFFIX_LENGTH and ext[1:].isalnum():
        return ext.lower()
    return ".tmp"


async def store_upload(upload, upload_dir=None, max_bytes=None) -> FileHandle:
    """Persist an `UploadFile` to the upload directory.

    Args:
        upload: FastAPI/Starlette `UploadFile`.
        upload_dir: Target directory. Defaults to `config.UPLOAD_DIR`.
        max_bytes: Size ceiling. Defaults to `config.MAX_UPLOAD_SIZE_BYTES`.

    Returns:
        `FileHandle` carrying the stored path and declared MIME type.

    Raises:
        UploadTooLargeError: Upload exceeds `max_bytes`.
    """
    upload_dir = upload_dir or config.UPLOAD_DIR
    max_bytes = max_bytes if max_bytes is not None else config.MAX_UPLOAD_SIZE_BYTES
    os.makedirs(upload_dir, exist_ok=True)

    temp_file = tempfile.NamedTemporaryFile(
        delete=False,
        suffix=_safe_suffix(upload.filename),
        dir=upload_dir,
    )
    written = 0
    try:
        with temp_file:
            while True:
                chunk = await upload.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLargeError(
                        f"file exceeds max size limit of {max_bytes // (1024 * 1024)} MB"
                    )
                temp_file.write(chunk)
    except BaseException:
        release_upload(temp_file.name)
        raise
    finally:
        await upload.close()

    return FileHandle(
        path=temp_file.name,
        mime_type=upload.content_type or None,
        filename=upload.filename,
    )


def release_upload(handle) -> None:
    """Delete a stored upload. Failures are logged and swallowed.

    Args:
        handle: `FileHandle`, a path string, or `None` (no-op).
    """
    if handle is None:
        return
    path = handle.path if isinstance(handle, FileHandle) else handle
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        err = ResourceReleaseError(f"failed to remove temporary upload {path}: {e}")
        logger.warning("%s", err)
