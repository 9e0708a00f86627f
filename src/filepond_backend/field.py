"""Attachment field configuration.

A `FieldConfig` describes how one record attribute is bound to stored files:
which disk and directory receive uploads, whether the attribute holds one file
or a list, and the optional naming and deletion hooks.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Protocol

from filepond_backend.config import settings

IMAGE_MIME_TYPES = ("image/jpeg", "image/png", "image/svg+xml")
VIDEO_MIME_TYPES = ("video/mp4", "video/webm", "video/ogg")
AUDIO_MIME_TYPES = ("audio/wav", "audio/mp3", "audio/ogg", "audio/webm")

StoreAsCallback = Callable[[Path], str]


class OnDeleteCallback(Protocol):
    def __call__(self, record: object, attribute: str, reference: str, disk: str) -> None: ...


def _default_disk() -> str:
    return settings.filepond_default_disk


@dataclass(frozen=True)
class FieldConfig:
    attribute: str
    disk: str = field(default_factory=_default_disk)
    directory: str | None = None
    multiple: bool = False
    store_as: StoreAsCallback | None = None
    on_delete: OnDeleteCallback | None = None
    labels: dict[str, str] = field(default_factory=dict)
    columns: int = 1
    full_width: bool = False
    max_height: str = "auto"
    limit: int | None = None
    mime_types: tuple[str, ...] = ()
    disabled: bool = False

    def single(self) -> "FieldConfig":
        return replace(self, multiple=False)

    def multiple_files(self, limit: int | None = None) -> "FieldConfig":
        return replace(self, multiple=True, limit=limit if limit is not None else self.limit)

    def with_disk(self, disk: str, directory: str | None = None) -> "FieldConfig":
        return replace(self, disk=disk, directory=directory)

    def with_labels(self, **labels: str) -> "FieldConfig":
        return replace(self, labels={**self.labels, **labels})

    def with_mime_types(self, *mime_types: str) -> "FieldConfig":
        merged = list(self.mime_types)
        merged.extend(m for m in mime_types if m not in merged)
        return replace(self, mime_types=tuple(merged))

    def image(self) -> "FieldConfig":
        return self.with_mime_types(*IMAGE_MIME_TYPES)

    def video(self) -> "FieldConfig":
        return self.with_mime_types(*VIDEO_MIME_TYPES)

    def audio(self) -> "FieldConfig":
        return self.with_mime_types(*AUDIO_MIME_TYPES)

    def labels_payload(self, defaults: dict[str, str] | None = None) -> dict[str, str]:
        """Client label map: `idle` becomes `labelIdle`, overrides win over defaults."""

        merged = {**(defaults if defaults is not None else settings.default_labels()), **self.labels}
        return {"label" + key.title().replace("_", ""): text for key, text in merged.items()}
