from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Protocol

from filepond_backend.config import settings
from filepond_backend.errors import UnknownDiskError


class ObjectStorage(Protocol):
    async def put_bytes(
        self, key: str, data: bytes, *, content_type: str | None = None
    ) -> bool: ...

    async def get_bytes(self, key: str) -> bytes: ...

    async def delete(self, key: str) -> bool: ...

    def url(self, key: str) -> str: ...


@lru_cache(maxsize=16)
def get_object_storage(disk: str) -> ObjectStorage:
    drivers = settings.disks_map()
    driver = drivers.get(disk)
    if driver is None:
        raise UnknownDiskError(f"disk {disk!r} is not configured")

    if driver == "s3":
        from .s3_storage import S3ObjectStorage

        # Every s3 disk shares the bucket, namespaced by disk name.
        return S3ObjectStorage(
            endpoint_url=settings.s3_endpoint_url,
            region=settings.s3_region,
            bucket=settings.s3_bucket,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            force_path_style=settings.s3_force_path_style,
            prefix=disk,
            presign_expires_seconds=settings.s3_presign_expires_seconds,
        )

    from .local_storage import LocalObjectStorage

    # Pinned local layout: ${STORAGE_LOCAL_DIR}/{disk}/{key}
    return LocalObjectStorage(
        root_dir=str(Path(settings.storage_local_dir) / disk),
        base_url=f"{settings.public_base_url.rstrip('/')}/storage/{disk}",
    )


def reset_object_storage_cache() -> None:
    get_object_storage.cache_clear()
