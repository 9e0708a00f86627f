from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from filepond_backend.config import settings
from filepond_backend.integrations.storage.object_storage import reset_object_storage_cache
from filepond_backend.token_codec import reset_token_codec_cache

from fakes import FakeStorage

TEST_TOKEN_KEY = "WmfpBBPjCEIb_IJvZP_t6aG9AZ51qHm_iNg0Q_y6Bno="


@pytest.fixture(autouse=True)
def _isolated_settings(  # pyright: ignore[reportUnusedFunction]
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    # Every test gets its own temp/storage roots and a known token key.
    monkeypatch.setattr(settings, "filepond_token_key", TEST_TOKEN_KEY)
    monkeypatch.setattr(settings, "filepond_temp_dir", str(tmp_path / "tmp"))
    monkeypatch.setattr(settings, "storage_local_dir", str(tmp_path / "storage"))
    monkeypatch.setattr(settings, "filepond_disks", "public:local")
    monkeypatch.setattr(settings, "filepond_default_disk", "public")
    monkeypatch.setattr(settings, "public_base_url", "http://test")
    reset_token_codec_cache()
    reset_object_storage_cache()
    yield
    reset_token_codec_cache()
    reset_object_storage_cache()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def temp_upload(tmp_path: Path):
    """Create a just-uploaded file under the temp root and return its path."""

    def _make(name: str, data: bytes = b"data") -> str:
        folder = Path(settings.filepond_temp_dir) / f"u-{name}"
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / name
        _ = path.write_bytes(data)
        return str(path)

    _ = tmp_path
    return _make
