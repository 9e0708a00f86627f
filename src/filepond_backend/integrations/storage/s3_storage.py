from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from botocore.config import Config
from botocore.exceptions import ClientError
from starlette.concurrency import run_in_threadpool


@dataclass(frozen=True)
class S3Config:
    endpoint_url: str
    region: str
    bucket: str
    access_key_id: str
    secret_access_key: str
    force_path_style: bool
    prefix: str = ""
    presign_expires_seconds: int = 3600


class S3ObjectStorage:
    def __init__(
        self,
        *,
        endpoint_url: str,
        region: str,
        bucket: str,
        access_key_id: str,
        secret_access_key: str,
        force_path_style: bool,
        prefix: str = "",
        presign_expires_seconds: int = 3600,
    ) -> None:
        self._cfg = S3Config(
            endpoint_url=endpoint_url,
            region=region,
            bucket=bucket,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            force_path_style=force_path_style,
            prefix=prefix.strip("/"),
            presign_expires_seconds=presign_expires_seconds,
        )

        import boto3

        addressing_style = "path" if force_path_style else "virtual"
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region or None,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(s3={"addressing_style": addressing_style}),
        )

    def _object_key(self, key: str) -> str:
        key = key.strip("/")
        if not self._cfg.prefix:
            return key
        return f"{self._cfg.prefix}/{key}"

    async def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> bool:
        def _put() -> bool:
            kwargs: dict[str, object] = {
                "Bucket": self._cfg.bucket,
                "Key": self._object_key(key),
                "Body": data,
            }
            if content_type:
                kwargs["ContentType"] = content_type
            resp: dict[str, Any] = self._client.put_object(**kwargs) or {}
            status = (resp.get("ResponseMetadata") or {}).get("HTTPStatusCode")
            # Fakes and some S3-compatible providers omit metadata; no exception means stored.
            return status is None or 200 <= int(status) < 300

        return await run_in_threadpool(_put)

    async def get_bytes(self, key: str) -> bytes:
        def _get() -> bytes:
            resp = self._client.get_object(Bucket=self._cfg.bucket, Key=self._object_key(key))
            body = resp.get("Body")
            # StreamingBody.read() is blocking; run in threadpool.
            return body.read() if body is not None else b""

        try:
            return await run_in_threadpool(_get)
        except ClientError as e:
            code = str((e.response.get("Error") or {}).get("Code") or "")
            if code in {"NoSuchKey", "404"}:
                raise FileNotFoundError(key) from e
            raise

    async def delete(self, key: str) -> bool:
        def _delete() -> None:
            self._client.delete_object(Bucket=self._cfg.bucket, Key=self._object_key(key))

        await run_in_threadpool(_delete)
        return True

    def url(self, key: str) -> str:
        url: str = self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self._cfg.bucket, "Key": self._object_key(key)},
            ExpiresIn=self._cfg.presign_expires_seconds,
        )
        return url
