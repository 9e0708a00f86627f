from __future__ import annotations

from pathlib import Path, PurePosixPath
from urllib.parse import quote

from starlette.concurrency import run_in_threadpool


def _safe_join(root: Path, key: str) -> Path:
    parts = [p for p in PurePosixPath(key).parts if p not in {"/", ""}]
    if not parts or any(p in {"..", "."} for p in parts):
        raise ValueError("invalid storage key")
    return root.joinpath(*parts)


class LocalObjectStorage:
    def __init__(self, *, root_dir: str, base_url: str = "") -> None:
        self._root = Path(root_dir)
        self._base_url = base_url.rstrip("/")

    def resolve_path(self, key: str) -> Path:
        return _safe_join(self._root, key)

    async def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> bool:
        _ = content_type
        path = self.resolve_path(key)
        tmp_path = path.with_name(path.name + ".tmp")

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            _ = tmp_path.write_bytes(data)
            _ = tmp_path.replace(path)

        await run_in_threadpool(_write)
        return True

    async def get_bytes(self, key: str) -> bytes:
        path = self.resolve_path(key)
        return await run_in_threadpool(path.read_bytes)

    async def delete(self, key: str) -> bool:
        path = self.resolve_path(key)
        if not path.exists():
            return False
        await run_in_threadpool(path.unlink)
        return True

    def url(self, key: str) -> str:
        parts = [p for p in PurePosixPath(key).parts if p not in {"/", ""}]
        return f"{self._base_url}/{quote('/'.join(parts))}"
