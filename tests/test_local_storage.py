from __future__ import annotations

from pathlib import Path

import pytest

from filepond_backend.config import settings
from filepond_backend.errors import UnknownDiskError
from filepond_backend.integrations.storage.local_storage import LocalObjectStorage
from filepond_backend.integrations.storage.object_storage import (
    get_object_storage,
    reset_object_storage_cache,
)


@pytest.mark.anyio
async def test_local_storage_put_get_delete(tmp_path: Path):
    s = LocalObjectStorage(root_dir=str(tmp_path / "disk"), base_url="http://test/storage/public")

    assert await s.put_bytes("dir/abc.jpg", b"jpeg") is True
    assert (tmp_path / "disk" / "dir" / "abc.jpg").read_bytes() == b"jpeg"
    # No leftover from the atomic write.
    assert not (tmp_path / "disk" / "dir" / "abc.jpg.tmp").exists()
    assert await s.get_bytes("dir/abc.jpg") == b"jpeg"

    assert await s.delete("dir/abc.jpg") is True
    assert await s.delete("dir/abc.jpg") is False
    with pytest.raises(FileNotFoundError):
        _ = await s.get_bytes("dir/abc.jpg")


@pytest.mark.parametrize("key", ["../escape.txt", "dir/../../x", ""])
@pytest.mark.anyio
async def test_local_storage_rejects_unsafe_keys(tmp_path: Path, key: str):
    s = LocalObjectStorage(root_dir=str(tmp_path))
    with pytest.raises(ValueError):
        _ = await s.put_bytes(key, b"x")


def test_local_storage_url_quotes_key():
    s = LocalObjectStorage(root_dir="/unused", base_url="http://test/storage/public/")
    assert s.url("dir/my photo.jpg") == "http://test/storage/public/dir/my%20photo.jpg"
    assert s.url("/dir/a.jpg") == "http://test/storage/public/dir/a.jpg"


def test_get_object_storage_builds_local_disk(tmp_path: Path):
    storage = get_object_storage("public")
    assert isinstance(storage, LocalObjectStorage)
    assert storage.resolve_path("a/b.txt") == tmp_path / "storage" / "public" / "a" / "b.txt"
    assert storage.url("a/b.txt") == "http://test/storage/public/a/b.txt"
    # Cached per disk.
    assert get_object_storage("public") is storage


def test_get_object_storage_unknown_disk():
    with pytest.raises(UnknownDiskError):
        _ = get_object_storage("private")


def test_get_object_storage_multiple_disks(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "filepond_disks", "public:local,private:local")
    reset_object_storage_cache()
    public = get_object_storage("public")
    private = get_object_storage("private")
    assert isinstance(private, LocalObjectStorage)
    assert public is not private
    assert private.url("x.txt") == "http://test/storage/private/x.txt"
