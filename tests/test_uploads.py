import asyncio
import io
import logging
import os

import pytest
from starlette.datastructures import Headers, UploadFile

import gateway.api.uploads as uploads
from gateway.api.uploads import release_upload, store_upload
from gateway.errors import UploadTooLargeError
from gateway.payload import FileHandle


def make_upload(data, filename="photo.JPG", content_type="image/jpeg"):
    headers = Headers({"content-type": content_type}) if content_type else None
    return UploadFile(file=io.BytesIO(data), filename=filename, headers=headers)


def test_store_upload_writes_into_upload_dir(tmp_path):
    handle = asyncio.run(store_upload(make_upload(b"jpeg-bytes"), upload_dir=str(tmp_path)))

    assert os.path.dirname(handle.path) == str(tmp_path)
    assert handle.path.endswith(".jpg")
    assert handle.mime_type == "image/jpeg"
    assert handle.filename == "photo.JPG"
    with open(handle.path, "rb") as f:
        assert f.read() == b"jpeg-bytes"


def test_store_upload_without_content_type(tmp_path):
    upload = make_upload(b"x", filename="../../etc/odd name", content_type=None)

    handle = asyncio.run(store_upload(upload, upload_dir=str(tmp_path)))

    assert handle.mime_type is None
    assert handle.path.endswith(".tmp")
    assert os.path.dirname(handle.path) == str(tmp_path)


def test_oversized_upload_leaves_nothing_behind(tmp_path):
    with pytest.raises(UploadTooLargeError):
        asyncio.run(store_upload(make_upload(b"0123456789"), upload_dir=str(tmp_path), max_bytes=5))

    assert os.listdir(tmp_path) == []


def test_release_upload_removes_file(tmp_path):
    path = tmp_path / "upload.tmp"
    path.write_bytes(b"x")

    release_upload(FileHandle(path=str(path)))

    assert not path.exists()


def test_release_upload_ignores_none_and_missing(tmp_path):
    release_upload(None)
    release_upload(str(tmp_path / "already-gone.tmp"))


def test_release_failure_is_logged_not_raised(tmp_path, monkeypatch, caplog):
    def failing_remove(path):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(uploads.os, "remove", failing_remove)

    with caplog.at_level(logging.WARNING, logger="gateway.api.uploads"):
        release_upload(str(tmp_path / "locked.tmp"))

    assert "failed to remove temporary upload" in caplog.text
