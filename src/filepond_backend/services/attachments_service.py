from __future__ import annotations

import inspect
import logging
import mimetypes
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from pathlib import Path

from filepond_backend.domain.attachment_planner import (
    normalize_current,
    plan_attachments,
    split_submitted,
)
from filepond_backend.errors import InvalidTemporaryReferenceError, UploadFailedError
from filepond_backend.field import FieldConfig
from filepond_backend.integrations.storage.object_storage import ObjectStorage
from filepond_backend.schemas.filepond import FieldPayload, FileSource
from filepond_backend.temp_uploads import (
    is_temporary_reference,
    read_temporary_upload,
    remove_temporary_upload,
)
from filepond_backend.token_codec import TokenCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    value: str | list[str] | None
    moved: tuple[tuple[str, str], ...] = ()
    deleted: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()


def _trim_slashes(path: str) -> str:
    return path.strip("/")


def build_destination(field: FieldConfig, name: str) -> str:
    return _trim_slashes(_trim_slashes(field.directory or "") + "/" + _trim_slashes(name))


async def move_file(
    *,
    field: FieldConfig,
    source: str,
    storage: ObjectStorage,
    reserved: Collection[str] = (),
) -> str:
    """Copy a temporary upload onto the field's disk and return the stored key.

    Raises `UploadFailedError` if naming fails, the destination is one of the
    `reserved` keys, the source cannot be read or the disk does not acknowledge
    the write.
    """

    try:
        source_path = Path(source)
        name = field.store_as(source_path) if field.store_as else source_path.name
        destination = build_destination(field, name)
        if destination in reserved:
            raise UploadFailedError(f"destination already in use: {destination}")
        content_type, _ = mimetypes.guess_type(name)
        data = await read_temporary_upload(source)
        stored = await storage.put_bytes(destination, data, content_type=content_type)
    except UploadFailedError:
        raise
    except Exception as e:
        raise UploadFailedError("Failed to upload file.") from e
    if not stored:
        raise UploadFailedError("Failed to upload file.")

    try:
        _ = await remove_temporary_upload(source)
    except (OSError, InvalidTemporaryReferenceError):
        logger.debug("temporary upload cleanup failed source=%s", source, exc_info=True)

    logger.info("stored upload disk=%s key=%s", field.disk, destination)
    return destination


async def remove_files(
    *,
    field: FieldConfig,
    record: object,
    references: Iterable[str],
    storage: ObjectStorage,
) -> tuple[str, ...]:
    removed: list[str] = []
    for reference in references:
        try:
            _ = await storage.delete(reference)
        except Exception:
            logger.warning(
                "delete failed disk=%s key=%s", field.disk, reference, exc_info=True
            )
        removed.append(reference)

        if field.on_delete is None:
            continue
        try:
            result = field.on_delete(record, field.attribute, reference, field.disk)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.warning(
                "on_delete callback failed disk=%s key=%s", field.disk, reference, exc_info=True
            )
    return tuple(removed)


async def _fill_single(
    *,
    field: FieldConfig,
    record: object,
    submitted: str | None,
    storage: ObjectStorage,
    codec: TokenCodec,
) -> ReconcileResult:
    attribute = field.attribute
    current = getattr(record, attribute, None) or None

    # Null when the file was removed on the client.
    if submitted is None:
        deleted: tuple[str, ...] = ()
        if current is not None:
            deleted = await remove_files(
                field=field, record=record, references=[current], storage=storage
            )
        setattr(record, attribute, None)
        return ReconcileResult(value=None, deleted=deleted)

    uploaded = codec.decode(submitted)
    uploaded_is_tmp = is_temporary_reference(uploaded)

    cleared: tuple[str, ...] = ()
    if uploaded_is_tmp and current == uploaded:
        # The raw temporary path is already on the record: treat as a fresh upload.
        cleared = await remove_files(
            field=field, record=record, references=[current], storage=storage
        )
        setattr(record, attribute, None)
        current = None

    if uploaded_is_tmp and current != uploaded:
        try:
            destination = await move_file(field=field, source=uploaded, storage=storage)
        except UploadFailedError:
            logger.warning(
                "upload move failed; keeping previous value attribute=%s source=%s",
                attribute,
                uploaded,
                exc_info=True,
            )
            setattr(record, attribute, current)
            return ReconcileResult(value=current, deleted=cleared, failed=(uploaded,))

        setattr(record, attribute, destination)
        replaced: tuple[str, ...] = ()
        if current is not None and current != destination:
            replaced = await remove_files(
                field=field, record=record, references=[current], storage=storage
            )
        return ReconcileResult(
            value=destination,
            moved=((uploaded, destination),),
            deleted=cleared + replaced,
        )

    # Already persisted: store the decoded path as-is.
    setattr(record, attribute, uploaded)
    return ReconcileResult(value=uploaded, deleted=cleared)


async def _fill_multiple(
    *,
    field: FieldConfig,
    record: object,
    submitted: str | None,
    storage: ObjectStorage,
    codec: TokenCodec,
) -> ReconcileResult:
    attribute = field.attribute
    current = normalize_current(getattr(record, attribute, None))
    files = [codec.decode(token) for token in split_submitted(submitted)]

    plan = plan_attachments(submitted=files, current=current)

    deleted = await remove_files(
        field=field, record=record, references=plan.to_delete, storage=storage
    )

    moved: list[tuple[str, str]] = []
    failed: list[str] = []
    for uploaded in plan.to_append:
        if not is_temporary_reference(uploaded):
            logger.warning(
                "skipping unknown reference attribute=%s reference=%s", attribute, uploaded
            )
            failed.append(uploaded)
            continue
        try:
            # A kept file or an earlier upload of this batch is never overwritten.
            destination = await move_file(
                field=field,
                source=uploaded,
                storage=storage,
                reserved=set(plan.to_keep) | {key for _, key in moved},
            )
        except UploadFailedError:
            # Best-effort: one bad file must not drop the rest of the set.
            logger.warning(
                "upload move failed; skipping attribute=%s source=%s",
                attribute,
                uploaded,
                exc_info=True,
            )
            failed.append(uploaded)
            continue
        moved.append((uploaded, destination))

    value = list(plan.to_keep) + [destination for _, destination in moved]
    setattr(record, attribute, value)
    return ReconcileResult(
        value=value, moved=tuple(moved), deleted=deleted, failed=tuple(failed)
    )


async def fill_attribute_from_request(
    *,
    field: FieldConfig,
    record: object,
    submitted: str | None,
    storage: ObjectStorage,
    codec: TokenCodec,
) -> ReconcileResult:
    """Reconcile the record attribute with the server ids submitted by the form.

    Moves new temporary uploads onto the field's disk, deletes stored files the
    client dropped and writes the resulting reference(s) back onto `record`.
    Move and delete failures are absorbed; the record is left consistent.
    """

    raw = submitted if submitted else None
    if field.multiple:
        return await _fill_multiple(
            field=field, record=record, submitted=raw, storage=storage, codec=codec
        )
    return await _fill_single(
        field=field, record=record, submitted=raw, storage=storage, codec=codec
    )


def resolve_sources(*, field: FieldConfig, record: object, codec: TokenCodec) -> list[FileSource]:
    references = normalize_current(getattr(record, field.attribute, None))
    return [FileSource(source=codec.encode(reference)) for reference in references]


def resolve_thumbnails(
    *, sources: Iterable[FileSource], storage: ObjectStorage, codec: TokenCodec
) -> list[str]:
    return [storage.url(codec.decode(item.source)) for item in sources]


def build_field_payload(
    *,
    field: FieldConfig,
    record: object,
    storage: ObjectStorage,
    codec: TokenCodec,
    read_only: bool = False,
) -> FieldPayload:
    sources = resolve_sources(field=field, record=record, codec=codec)
    return FieldPayload(
        attribute=field.attribute,
        disk=field.disk,
        multiple=field.multiple,
        disabled=field.disabled or read_only,
        value=sources,
        thumbnails=resolve_thumbnails(sources=sources, storage=storage, codec=codec),
        columns=field.columns,
        full_width=field.full_width,
        max_height=field.max_height,
        limit=field.limit,
        mime_types=list(field.mime_types),
        labels=field.labels_payload(),
    )
