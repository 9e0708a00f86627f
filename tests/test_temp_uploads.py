from __future__ import annotations

import os
from pathlib import Path

import pytest

from filepond_backend.config import settings
from filepond_backend.errors import InvalidTemporaryReferenceError
from filepond_backend.http_headers import build_content_disposition, sanitize_filename
from filepond_backend.temp_uploads import (
    is_temporary_reference,
    read_temporary_upload,
    remove_temporary_upload,
    store_temporary_upload,
    temp_root,
)


@pytest.mark.anyio
async def test_store_read_remove_temporary_upload():
    path = await store_temporary_upload(filename="../../evil/photo.png", data=b"png")

    assert is_temporary_reference(path)
    assert Path(path).name == "photo.png"
    assert Path(path).parent.parent == temp_root()
    assert await read_temporary_upload(path) == b"png"

    assert await remove_temporary_upload(path) is True
    assert not Path(path).exists()
    # Per-upload folder is cleaned up too.
    assert not Path(path).parent.exists()
    assert await remove_temporary_upload(path) is False


@pytest.mark.anyio
async def test_store_temporary_upload_without_name():
    path = await store_temporary_upload(filename=None, data=b"x")
    assert Path(path).name == "upload"


def test_is_temporary_reference():
    root = Path(settings.filepond_temp_dir)
    assert is_temporary_reference(str(root / "abc" / "a.jpg"))
    assert not is_temporary_reference(str(root))
    assert not is_temporary_reference("dir/a.jpg")
    assert not is_temporary_reference("")
    assert not is_temporary_reference(None)
    assert not is_temporary_reference(str(root / ".." / "outside.jpg"))
    assert not is_temporary_reference(os.path.join(os.sep, "etc", "passwd"))


@pytest.mark.anyio
async def test_persisted_paths_are_rejected():
    with pytest.raises(InvalidTemporaryReferenceError):
        _ = await read_temporary_upload("dir/a.jpg")
    with pytest.raises(InvalidTemporaryReferenceError):
        _ = await remove_temporary_upload("dir/a.jpg")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("C:\\Users\\me\\photo.jpg", "photo.jpg"),
        ("a/b/c.txt", "c.txt"),
        ("..", "file"),
        ("  ", "file"),
        ("bad\r\nname.txt", "badname.txt"),
    ],
)
def test_sanitize_filename(raw: str, expected: str):
    assert sanitize_filename(raw) == expected


def test_sanitize_filename_keeps_extension_when_truncating():
    name = sanitize_filename("x" * 300 + ".jpeg")
    assert len(name) == 150
    assert name.endswith(".jpeg")


def test_content_disposition_has_ascii_and_utf8_names():
    value = build_content_disposition("报告.pdf", disposition="attachment")
    assert value.startswith('attachment; filename=".pdf"')
    assert "filename*=UTF-8''%E6%8A%A5%E5%91%8A.pdf" in value
