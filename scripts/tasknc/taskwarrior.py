"""
Talking to the taskwarrior binary: exporting tasks and running actions.
"""

from __future__ import annotations

import calendar
import json
import re
import shlex
import subprocess
from datetime import datetime, timezone
from typing import Any, Iterable

from tasknc.errors import TaskCommandError
from tasknc.logging import get_logger
from tasknc.records import Record

log = get_logger(__name__)

_COMPACT_DATE = "%Y%m%dT%H%M%SZ"


def parse_timestamp(value: Any) -> int:
    """Convert a taskwarrior date to epoch seconds (0 when missing or invalid)."""
    if value in (None, ""):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value)
    try:
        parsed = datetime.strptime(text, _COMPACT_DATE)
        return calendar.timegm(parsed.timetuple())
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        log.warning("unparseable date %r", text)
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def record_from_dict(data: dict) -> Record | None:
    """Build a Record from one exported task; None when required keys are missing."""
    uuid = data.get("uuid")
    description = data.get("description")
    if not uuid or description is None:
        log.warning("skipping exported task without uuid/description: %r", data)
        return None
    priority = data.get("priority") or None
    tags = data.get("tags") or ()
    if isinstance(tags, str):
        tags = [t for t in tags.split(",") if t]
    return Record(
        uuid=str(uuid),
        description=str(description),
        index=int(data.get("id") or 0),
        project=data.get("project") or None,
        tags=tuple(str(t) for t in tags),
        priority=str(priority)[:1] if priority else None,
        due=parse_timestamp(data.get("due")),
        start=parse_timestamp(data.get("start")),
    )


def _iter_objects(text: str) -> Iterable[dict]:
    stripped = text.strip()
    if not stripped:
        return []
    try:
        data = json.loads(stripped)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, list):
        return [d for d in data if isinstance(d, dict)]
    if isinstance(data, dict):
        return [data]

    # older versions print one object per line, comma separated
    objects = []
    for line in stripped.splitlines():
        line = line.strip().rstrip(",")
        if not line.startswith("{"):
            continue
        try:
            objects.append(json.loads(line))
        except json.JSONDecodeError:
            log.error("error parsing task @ %s", line)
    return objects


def split_args(argstr: str) -> list[str]:
    try:
        return shlex.split(argstr)
    except ValueError as exc:
        raise TaskCommandError(f"cannot parse arguments: {argstr}") from exc


def parse_export(text: str) -> list[Record]:
    """Parse `task export` output into records."""
    records = []
    for data in _iter_objects(text):
        record = record_from_dict(data)
        if record is not None:
            records.append(record)
    return records


class TaskwarriorClient:
    """Thin wrapper over the `task` command line."""

    def __init__(self, task_bin: str = "task") -> None:
        self.task_bin = task_bin

    def _command(self, args: list[str], overrides: bool = True) -> list[str]:
        if not overrides:
            return [self.task_bin, *args]
        return [self.task_bin, "rc.confirmation:no", "rc.verbose:nothing", *args]

    def run(self, args: list[str], overrides: bool = True) -> str:
        """Run task with args and return stdout; raise TaskCommandError on failure."""
        command = self._command(args, overrides)
        log.debug("running %s", " ".join(command), extra={"command": command})
        try:
            result = subprocess.run(command, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise TaskCommandError(
                f"could not execute command: {shlex.join(command)}",
                metadata={"command": command},
            ) from exc
        if result.returncode != 0:
            message = (result.stderr or result.stdout).strip() or f"exit status {result.returncode}"
            raise TaskCommandError(
                f"task {' '.join(args)} failed: {message}",
                metadata={"command": command, "returncode": result.returncode},
            )
        return result.stdout

    def version(self) -> str:
        output = self.run(["--version"], overrides=False).strip()
        match = re.search(r"[0-9][0-9.\-]*", output)
        return match.group(0) if match else output

    def export(self, filter_string: str | None = None) -> list[Record]:
        args = split_args(filter_string) if filter_string else []
        log.debug("reloading tasks (%s)", filter_string)
        return parse_export(self.run([*args, "export"]))

    def export_one(self, uuid: str) -> Record | None:
        records = parse_export(self.run([uuid, "export"]))
        return records[0] if records else None

    def complete(self, uuid: str) -> str:
        return self.run([uuid, "done"])

    def delete(self, uuid: str) -> str:
        return self.run([uuid, "delete"])

    def start(self, uuid: str) -> str:
        return self.run([uuid, "start"])

    def stop(self, uuid: str) -> str:
        return self.run([uuid, "stop"])

    def add(self, argstr: str) -> str:
        return self.run(["add", *split_args(argstr)])

    def modify(self, uuid: str, argstr: str) -> str:
        return self.run([uuid, "modify", *split_args(argstr)])

    def undo(self) -> str:
        return self.run(["undo"])

    def sync(self) -> str:
        return self.run(["sync"])

    def info(self, uuid: str) -> str:
        return self.run([uuid, "info"])

    def edit(self, uuid: str) -> int:
        """Run the interactive editor; the caller must hand over the terminal."""
        command = [self.task_bin, uuid, "edit"]
        try:
            return subprocess.call(command)
        except OSError as exc:
            raise TaskCommandError(
                f"could not execute command: {shlex.join(command)}",
                metadata={"command": command},
            ) from exc
