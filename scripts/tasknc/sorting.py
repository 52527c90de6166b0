"""
Ordering of records by a sort mode string.

Each character of the mode picks a comparison key; an upper-case character
reverses that key only. Later keys are consulted only to break ties:

    n  index
    p  project (tasks without a project go last)
    d  due date
    r  priority (L < M < H)
    u  uuid

Unknown characters compare equal. Ending the mode with `u` makes the order
fully deterministic.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import Callable, MutableSequence

from tasknc.records import Record

PRIORITY_RANKS = {"H": 3, "M": 2, "L": 1}


def priority_rank(priority: str | None) -> int:
    return PRIORITY_RANKS.get(priority or "", 0)


def _cmp(a: object, b: object) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


def _compare_project(a: Record, b: Record) -> int:
    if a.project is None:
        return 0 if b.project is None else 1
    if b.project is None:
        return -1
    return _cmp(a.project, b.project)


KEY_COMPARATORS: dict[str, Callable[[Record, Record], int]] = {
    "n": lambda a, b: a.index - b.index,
    "p": _compare_project,
    "d": lambda a, b: a.due - b.due,
    "r": lambda a, b: priority_rank(a.priority) - priority_rank(b.priority),
    "u": lambda a, b: _cmp(a.uuid, b.uuid),
}


def compare_records(a: Record, b: Record, mode: str) -> int:
    """Three-way comparison of two records under a sort mode."""
    for key in mode:
        invert = key.isupper()
        comparator = KEY_COMPARATORS.get(key.lower())
        if comparator is None:
            continue
        result = comparator(a, b)
        if invert:
            result = -result
        if result:
            return result
    return 0


def sort_records(records: MutableSequence[Record], mode: str) -> None:
    """Sort records in place."""
    ordered = sorted(records, key=cmp_to_key(lambda a, b: compare_records(a, b, mode)))
    records[:] = ordered
