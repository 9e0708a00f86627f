from __future__ import annotations

import os
import uuid
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from filepond_backend.config import settings
from filepond_backend.errors import InvalidTemporaryReferenceError
from filepond_backend.http_headers import sanitize_filename


def temp_root() -> Path:
    return Path(os.path.abspath(settings.filepond_temp_dir))


def is_temporary_reference(path: object) -> bool:
    """True when `path` points at a just-uploaded file inside the temp directory."""

    if not isinstance(path, str) or not path:
        return False
    if not os.path.isabs(path):
        return False
    # normpath folds `..` so a crafted path cannot escape the temp root.
    normalized = Path(os.path.normpath(path))
    root = temp_root()
    return normalized != root and root in normalized.parents


async def store_temporary_upload(*, filename: str | None, data: bytes) -> str:
    """Write an upload below the temp root and return its absolute path."""

    name = sanitize_filename(filename, fallback="upload")
    path = temp_root() / uuid.uuid4().hex / name

    def _write() -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_bytes(data)

    await run_in_threadpool(_write)
    return str(path)


async def read_temporary_upload(path: str) -> bytes:
    if not is_temporary_reference(path):
        raise InvalidTemporaryReferenceError(path)
    return await run_in_threadpool(Path(path).read_bytes)


async def remove_temporary_upload(path: str) -> bool:
    if not is_temporary_reference(path):
        raise InvalidTemporaryReferenceError(path)

    target = Path(os.path.normpath(path))

    def _remove() -> bool:
        if not target.is_file():
            return False
        target.unlink()
        # Drop the per-upload directory when it is empty.
        parent = target.parent
        if parent != temp_root():
            try:
                parent.rmdir()
            except OSError:
                pass
        return True

    return await run_in_threadpool(_remove)
