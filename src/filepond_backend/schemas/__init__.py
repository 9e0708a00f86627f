from __future__ import annotations

from .errors import ErrorResponse
from .filepond import FieldPayload, FileSource, FileSourceOptions

__all__ = [
    "ErrorResponse",
    "FieldPayload",
    "FileSource",
    "FileSourceOptions",
]
