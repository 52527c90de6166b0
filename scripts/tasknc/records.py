"""
Task records and the in-memory record store.

Records are mutable: the sort engine rearranges the store in place and the
color engine writes its resolved attributes into each record's cache slots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator


@dataclass(eq=False)
class Record:
    """One exported task.

    Timestamps are epoch seconds; 0 means unset.
    """

    uuid: str
    description: str
    index: int = 0
    project: str | None = None
    tags: tuple[str, ...] = ()
    priority: str | None = None
    due: int = 0
    start: int = 0
    # color cache, owned by the color engine
    attr_selected: int | None = field(default=None, repr=False)
    attr_unselected: int | None = field(default=None, repr=False)

    @property
    def started(self) -> bool:
        return self.start > 0

    @property
    def tags_text(self) -> str | None:
        """Tags joined for regex matching, or None when the task has none."""
        if not self.tags:
            return None
        return ",".join(self.tags)

    def invalidate_colors(self) -> None:
        self.attr_selected = None
        self.attr_unselected = None


class RecordStore:
    """Ordered collection of records keyed by uuid."""

    def __init__(self, records: list[Record] | None = None) -> None:
        self._records: list[Record] = list(records or [])

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, position: int) -> Record:
        return self._records[position]

    @property
    def records(self) -> list[Record]:
        """The backing list; the sort engine reorders it in place."""
        return self._records

    def replace_all(self, records: list[Record]) -> None:
        self._records[:] = records

    def get(self, uuid: str) -> Record | None:
        for record in self._records:
            if record.uuid == uuid:
                return record
        return None

    def position_of(self, uuid: str) -> int:
        """Position of the record with this uuid, or -1."""
        for position, record in enumerate(self._records):
            if record.uuid == uuid:
                return position
        return -1

    def replace(self, uuid: str, record: Record | None) -> None:
        """Swap in a reloaded record, or drop it when it no longer exists."""
        position = self.position_of(uuid)
        if position < 0:
            return
        if record is None:
            del self._records[position]
        else:
            self._records[position] = record

    def max_project_length(self) -> int:
        return max((len(r.project) for r in self._records if r.project), default=0)

    def invalidate_colors(self) -> None:
        """Drop every cached attribute in one sweep."""
        for record in self._records:
            record.invalidate_colors()
