"""
Runtime state of one tasknc run.

The session owns the record store, the color rules, the variable table and
the compiled formats, and is the only thing the UI talks to.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from pathlib import Path

from pydantic import ValidationError

from tasknc import PROGRAM_AUTHOR, PROGRAM_NAME, __version__
from tasknc.colors import AttributeAllocator, ColorEngine, ColorObject
from tasknc.commands import CommandInterpreter
from tasknc.config import Config
from tasknc.errors import CommandError, TaskncError
from tasknc.formats import RenderContext, Template, compile_format, evaluate
from tasknc.logging import get_logger
from tasknc.records import Record, RecordStore
from tasknc.sorting import sort_records
from tasknc.taskwarrior import TaskwarriorClient
from tasknc.variables import Variable, VariableTable, VarKind, VarPerms

log = get_logger(__name__)

FORMAT_NAMES = ("title_format", "task_format", "view_format")


class Session:
    """State shared by the task list, the pager and the command prompt."""

    def __init__(self, config: Config | None = None, client: TaskwarriorClient | None = None) -> None:
        self.config = config or Config()
        self.client = client or TaskwarriorClient(self.config.task_bin)
        self.store = RecordStore()
        self.allocator = AttributeAllocator(capacity=self.config.color_pairs)
        self.colors = ColorEngine(self.allocator, self.store)
        self.colors.set_defaults()
        self.selected = 0
        self.search_string: str | None = None
        self.task_version = ""
        self.message: str | None = None
        self.message_is_error = False
        self.variables = VariableTable(self._default_variables())
        self.commands = CommandInterpreter(self)
        self.templates: dict[str, Template] = {}
        self.compile_formats()

    # -------------------- variables --------------------
    def _default_variables(self) -> list[Variable]:
        cfg = self.config

        def setter(attr: str):
            def _set(value: object) -> None:
                try:
                    setattr(cfg, attr, value)
                except ValidationError as exc:
                    raise CommandError(f"invalid value for {attr}: {value}") from exc
                if attr in FORMAT_NAMES:
                    self.compile_formats()
            return _set

        return [
            Variable("filter_string", VarKind.STR, lambda: cfg.filter_string, setter("filter_string")),
            Variable("follow_task", VarKind.INT, lambda: cfg.follow_task, setter("follow_task")),
            Variable("history_max", VarKind.INT, lambda: cfg.history_max, setter("history_max"), VarPerms.RC),
            Variable("log_level", VarKind.STR, lambda: cfg.log_level, self._set_log_level),
            Variable("program_author", VarKind.STR, lambda: PROGRAM_AUTHOR, perms=VarPerms.RO),
            Variable("program_name", VarKind.STR, lambda: PROGRAM_NAME, perms=VarPerms.RO),
            Variable("program_version", VarKind.STR, lambda: __version__, perms=VarPerms.RO),
            Variable("search_string", VarKind.STR, lambda: self.search_string, self._set_search_string),
            Variable("selected_line", VarKind.INT, lambda: self.selected + 1,
                     lambda value: self.select(int(value) - 1)),
            Variable("sort_mode", VarKind.STR, lambda: cfg.sort_mode, setter("sort_mode")),
            Variable("statusbar_timeout", VarKind.INT, lambda: cfg.statusbar_timeout,
                     setter("statusbar_timeout")),
            Variable("task_count", VarKind.INT, lambda: len(self.store), perms=VarPerms.RO),
            Variable("task_format", VarKind.STR, lambda: cfg.task_format, setter("task_format"), VarPerms.RC),
            Variable("task_version", VarKind.STR, lambda: self.task_version, perms=VarPerms.RO),
            Variable("title_format", VarKind.STR, lambda: cfg.title_format, setter("title_format"), VarPerms.RC),
            Variable("view_format", VarKind.STR, lambda: cfg.view_format, setter("view_format"), VarPerms.RC),
        ]

    def _set_log_level(self, value: object) -> None:
        level = str(value).upper()
        self.config.log_level = level
        logging.getLogger().setLevel(getattr(logging, level, logging.WARNING))

    def _set_search_string(self, value: object) -> None:
        self.search_string = str(value) or None

    # -------------------- formats --------------------
    def compile_formats(self) -> None:
        for name in FORMAT_NAMES:
            self.templates[name] = compile_format(getattr(self.config, name), self.variables)

    def context(self) -> RenderContext:
        return RenderContext(variables=self.variables, project_width=self.store.max_project_length())

    def render_task(self, record: Record, selected: bool,
                    context: RenderContext | None = None) -> tuple[int, str]:
        """Color pair and text for one task line."""
        pair = self.colors.resolve(ColorObject.TASK, record, selected)
        return pair, evaluate(self.templates["task_format"], record, context or self.context())

    def render_title(self) -> tuple[int, str]:
        pair = self.colors.resolve(ColorObject.HEADER)
        return pair, evaluate(self.templates["title_format"], None, self.context())

    def render_view_title(self) -> tuple[int, str]:
        pair = self.colors.resolve(ColorObject.HEADER)
        return pair, evaluate(self.templates["view_format"], self.selected_record, self.context())

    # -------------------- messages --------------------
    def notify(self, message: str, error: bool = False) -> str:
        self.message = message
        self.message_is_error = error
        if error:
            log.error(message)
        else:
            log.info(message)
        return message

    def error_pair(self) -> int:
        return self.colors.resolve(ColorObject.ERROR)

    # -------------------- loading --------------------
    def startup(self) -> None:
        """Query the task version, run the user's config file and load tasks."""
        try:
            self.task_version = self.client.version()
            log.debug("task version: %s", self.task_version)
        except TaskncError as exc:
            log.error("could not determine task version: %s", exc)
        self.load_config_file(self.config.config_file)
        self.reload()

    def load_config_file(self, path: Path) -> None:
        if not Path(path).expanduser().exists():
            log.info("no config file at %s", path)
            return
        self.commands.source(str(path))

    def reload(self) -> None:
        """Re-export tasks with the active filter and restore the selection."""
        current = self.selected_record
        records = self.client.export(self.config.filter_string)
        self.store.replace_all(records)
        sort_records(self.store.records, self.config.sort_mode)
        log.debug("%d tasks loaded", len(self.store))
        if current is not None and self.config.follow_task:
            self.select_uuid(current.uuid)
        self.select(self.selected)

    def reload_record(self, uuid: str) -> None:
        """Refresh a single task after it was changed externally."""
        record = self.client.export_one(uuid)
        if record is not None and self.config.filter_string:
            # a task that left the filter (e.g. completed) disappears
            matching = {r.uuid for r in self.client.export(self.config.filter_string)}
            if uuid not in matching:
                record = None
        self.store.replace(uuid, record)
        self.sort()

    def sort(self, mode: str | None = None) -> None:
        if mode:
            self.config.sort_mode = mode
        current = self.selected_record
        sort_records(self.store.records, self.config.sort_mode)
        if current is not None and self.config.follow_task:
            self.select_uuid(current.uuid)
        self.select(self.selected)

    # -------------------- selection --------------------
    @property
    def selected_record(self) -> Record | None:
        if 0 <= self.selected < len(self.store):
            return self.store[self.selected]
        return None

    def select(self, position: int) -> None:
        self.selected = max(0, min(position, len(self.store) - 1))

    def select_uuid(self, uuid: str) -> bool:
        position = self.store.position_of(uuid)
        if position < 0:
            return False
        self.selected = position
        return True

    def scroll_up(self) -> None:
        self.select(self.selected - 1)

    def scroll_down(self) -> None:
        self.select(self.selected + 1)

    def scroll_home(self) -> None:
        self.select(0)

    def scroll_end(self) -> None:
        self.select(len(self.store) - 1)

    # -------------------- search / filter --------------------
    @staticmethod
    def task_match(record: Record, pattern: str) -> bool:
        try:
            regex = re.compile(pattern, re.IGNORECASE)
        except re.error:
            return False
        return any(
            text is not None and regex.search(text)
            for text in (record.project, record.description, record.tags_text)
        )

    def search(self, pattern: str) -> bool:
        self.search_string = pattern or None
        return self.search_next()

    def search_next(self) -> bool:
        """Select the next match after the selection, wrapping to the top."""
        if not self.search_string or not len(self.store):
            self.notify("no search string", error=True)
            return False
        count = len(self.store)
        for step in range(1, count + 1):
            position = (self.selected + step) % count
            if self.task_match(self.store[position], self.search_string):
                if position < self.selected:
                    self.notify("search wrapped to top")
                self.selected = position
                return True
        self.notify(f"no matches: {self.search_string}", error=True)
        return False

    def set_filter(self, filter_string: str) -> None:
        self.config.filter_string = filter_string.strip()
        self.reload()
        self.notify(f"filter applied: {self.config.filter_string or '(none)'}")

    # -------------------- task actions --------------------
    def _require_selected(self) -> Record:
        record = self.selected_record
        if record is None:
            raise TaskncError("no task selected")
        return record

    def toggle_started(self) -> str:
        record = self._require_selected()
        if record.started:
            self.client.stop(record.uuid)
            message = f"stopped task {record.index}"
        else:
            self.client.start(record.uuid)
            message = f"started task {record.index}"
        self.reload_record(record.uuid)
        return self.notify(message)

    def complete(self) -> str:
        record = self._require_selected()
        self.client.complete(record.uuid)
        self.reload()
        return self.notify(f"task {record.index} completed")

    def delete(self) -> str:
        record = self._require_selected()
        self.client.delete(record.uuid)
        self.reload()
        return self.notify(f"task {record.index} deleted")

    def add(self, argstr: str) -> str:
        self.client.add(argstr)
        self.reload()
        return self.notify("task added")

    def modify(self, argstr: str) -> str:
        record = self._require_selected()
        self.client.modify(record.uuid, argstr)
        self.reload_record(record.uuid)
        return self.notify(f"task {record.index} modified")

    def undo(self) -> str:
        self.client.undo()
        self.reload()
        return self.notify("undo executed")

    def sync(self) -> str:
        self.client.sync()
        self.reload()
        return self.notify("tasks synchronized")

    def task_info(self) -> str:
        record = self._require_selected()
        return self.client.info(record.uuid)

    def stats(self) -> list[str]:
        records = list(self.store)
        priorities = Counter(r.priority or "none" for r in records)
        projects = {r.project for r in records if r.project}
        return [
            f"{PROGRAM_NAME} version: {__version__}",
            f"task version: {self.task_version or 'unknown'}",
            f"tasks: {len(records)}",
            f"started: {sum(1 for r in records if r.started)}",
            f"with due date: {sum(1 for r in records if r.due)}",
            f"projects: {len(projects)}",
            "priorities: " + ", ".join(f"{k}={v}" for k, v in sorted(priorities.items())),
            f"filter: {self.config.filter_string or '(none)'}",
            f"sort mode: {self.config.sort_mode}",
        ]

    def run_command(self, line: str) -> str:
        """Run one command line; failures become an error message."""
        try:
            return self.notify(self.commands.run(line))
        except TaskncError as exc:
            log.error("command failed: %s", line, extra={"error_category": exc.category})
            return self.notify(str(exc), error=True)
