from __future__ import annotations

import pytest

from filepond_backend.domain.attachment_planner import (
    normalize_current,
    plan_attachments,
    split_submitted,
)


@pytest.mark.parametrize(
    "case",
    [
        {
            "name": "partial change",
            "current": ["a", "b", "c"],
            "submitted": ["a", "c", "d"],
            "keep": ("a", "c"),
            "append": ("d",),
            "delete": ("b",),
        },
        {
            "name": "unchanged",
            "current": ["a", "b"],
            "submitted": ["a", "b"],
            "keep": ("a", "b"),
            "append": (),
            "delete": (),
        },
        {
            "name": "all removed",
            "current": ["a", "b"],
            "submitted": [],
            "keep": (),
            "append": (),
            "delete": ("a", "b"),
        },
        {
            "name": "first upload",
            "current": [],
            "submitted": ["x", "y"],
            "keep": (),
            "append": ("x", "y"),
            "delete": (),
        },
        {
            "name": "reordered keeps submission order",
            "current": ["a", "b", "c"],
            "submitted": ["c", "a"],
            "keep": ("c", "a"),
            "append": (),
            "delete": ("b",),
        },
        {
            "name": "duplicates collapse",
            "current": ["a", "a"],
            "submitted": ["d", "a", "d"],
            "keep": ("a",),
            "append": ("d",),
            "delete": (),
        },
    ],
    ids=lambda c: c["name"],
)
def test_plan_attachments(case: dict[str, object]):
    plan = plan_attachments(submitted=case["submitted"], current=case["current"])  # type: ignore[arg-type]
    assert plan.to_keep == case["keep"]
    assert plan.to_append == case["append"]
    assert plan.to_delete == case["delete"]


def test_plan_partitions_both_sides():
    current = ["a", "b", "c", "e"]
    submitted = ["e", "x", "b", "y"]
    plan = plan_attachments(submitted=submitted, current=current)

    assert set(plan.to_keep) | set(plan.to_append) == set(submitted)
    assert set(plan.to_keep) | set(plan.to_delete) == set(current)
    assert set(plan.to_keep).isdisjoint(plan.to_append)
    assert set(plan.to_keep).isdisjoint(plan.to_delete)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, []),
        ("", []),
        ("a", ["a"]),
        ("a,b", ["a", "b"]),
        (" a , ,b,", ["a", "b"]),
    ],
)
def test_split_submitted(raw: str | None, expected: list[str]):
    assert split_submitted(raw) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, []),
        ("", []),
        ("dir/a.jpg", ["dir/a.jpg"]),
        (["dir/a.jpg", "", "dir/b.jpg"], ["dir/a.jpg", "dir/b.jpg"]),
        (("x",), ["x"]),
    ],
)
def test_normalize_current(value: object, expected: list[str]):
    assert normalize_current(value) == expected
