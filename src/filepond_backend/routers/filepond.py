"""Filepond server endpoints: process, revert and load."""

from __future__ import annotations

import mimetypes
from pathlib import PurePosixPath
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import PlainTextResponse, Response

from filepond_backend.config import settings
from filepond_backend.deps import get_codec
from filepond_backend.http_headers import build_content_disposition
from filepond_backend.integrations.storage.object_storage import get_object_storage
from filepond_backend.temp_uploads import (
    is_temporary_reference,
    remove_temporary_upload,
    store_temporary_upload,
)
from filepond_backend.token_codec import TokenCodec

router = APIRouter(prefix="/filepond", tags=["filepond"])


async def _read_upload_file_limited(*, file: UploadFile, max_bytes: int) -> bytes:
    # Read the file in chunks and hard-stop once size exceeds max_bytes.
    buf = bytearray()
    chunk_size = 1024 * 1024
    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_CONTENT_TOO_LARGE,
                detail="upload too large",
            )
    return bytes(buf)


@router.post("/process", response_class=PlainTextResponse)
async def process_upload(
    file: Annotated[UploadFile, File()],
    codec: TokenCodec = Depends(get_codec),
) -> PlainTextResponse:
    max_bytes = int(settings.filepond_max_upload_bytes)
    if max_bytes > 0:
        data = await _read_upload_file_limited(file=file, max_bytes=max_bytes)
    else:
        data = await file.read()

    path = await store_temporary_upload(filename=file.filename, data=data)
    return PlainTextResponse(codec.encode(path))


@router.delete("/revert", status_code=status.HTTP_204_NO_CONTENT)
async def revert_upload(
    request: Request,
    codec: TokenCodec = Depends(get_codec),
) -> Response:
    server_id = (await request.body()).decode("utf-8", errors="replace").strip()
    path = codec.decode(server_id)
    if not is_temporary_reference(path):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="only temporary uploads can be reverted",
        )

    _ = await remove_temporary_upload(path)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/load")
async def load_file(
    source: Annotated[str, Query(min_length=1)],
    disk: Annotated[str | None, Query()] = None,
    codec: TokenCodec = Depends(get_codec),
) -> Response:
    path = codec.decode(source)
    # Plain paths are never accepted here; only ids issued by this server.
    if not codec.is_token(source) or path == source:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid server id")
    if is_temporary_reference(path):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="temporary uploads cannot be loaded",
        )

    storage = get_object_storage(disk or settings.filepond_default_disk)
    try:
        data = await storage.get_bytes(path)
    except FileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="file not found") from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid path") from e

    filename = PurePosixPath(path).name
    media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    headers = {"Content-Disposition": build_content_disposition(filename)}
    return Response(content=data, media_type=media_type, headers=headers)
