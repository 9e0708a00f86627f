from __future__ import annotations

from typing import Literal
from urllib.parse import quote


def sanitize_filename(filename: str | None, *, fallback: str = "file") -> str:
    v = (filename or "").strip()
    # Client-supplied names may carry directories from either OS.
    v = v.split("/")[-1].split("\\")[-1]
    v = v.replace("\r", "").replace("\n", "").replace("\x00", "")
    if v in {"", ".", ".."}:
        v = fallback
    if len(v) > 150:
        stem, dot, ext = v.rpartition(".")
        v = (stem[: 150 - len(ext) - 1] + dot + ext) if dot and len(ext) < 16 else v[:150]
    return v


def build_content_disposition(
    filename: str, *, disposition: Literal["inline", "attachment"] = "inline"
) -> str:
    """Content-Disposition with an ASCII `filename=` and an RFC 5987 `filename*=`."""

    name = sanitize_filename(filename)
    ascii_name = name.encode("ascii", errors="ignore").decode("ascii") or "file"
    ascii_name = ascii_name.replace('"', "'")
    return f"{disposition}; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(name, safe='')}"
