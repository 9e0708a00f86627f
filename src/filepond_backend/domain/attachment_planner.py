from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class AttachmentPlan:
    # In both the submission and the record; untouched.
    to_keep: tuple[str, ...]
    # Only in the submission; must be moved out of temporary storage.
    to_append: tuple[str, ...]
    # Only on the record; dropped by the client.
    to_delete: tuple[str, ...]


def _unique(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


def split_submitted(raw: str | None) -> list[str]:
    """Split the comma-delimited wire value, dropping blanks."""

    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def normalize_current(value: object) -> list[str]:
    """Read an attribute value as an ordered list of references."""

    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, Iterable):
        return [str(v) for v in value if v]
    return [str(value)]


def plan_attachments(*, submitted: Iterable[str], current: Iterable[str]) -> AttachmentPlan:
    """Pure diff between the submitted references and the stored ones.

    - No storage/network/time.
    - Keep and append follow submission order; delete follows stored order.
    """

    submitted_list = _unique(submitted)
    current_list = _unique(current)
    current_set = set(current_list)
    submitted_set = set(submitted_list)

    return AttachmentPlan(
        to_keep=tuple(p for p in submitted_list if p in current_set),
        to_append=tuple(p for p in submitted_list if p not in current_set),
        to_delete=tuple(p for p in current_list if p not in submitted_set),
    )
