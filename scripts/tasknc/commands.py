"""
The command language shared by the config file and the `:` prompt.

    set <variable> <value>
    show <variable>
    color <object> <fg> <bg> [rule]
    source <path>

plus the actions reload, sync, undo, sort [mode], filter <string>,
search <pattern> and search_next, which are forwarded to the session, and
version and dump.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Callable

from tasknc import PROGRAM_AUTHOR, PROGRAM_NAME, __version__
from tasknc.colors import parse_object
from tasknc.errors import ColorPairsExhaustedError, CommandError, TaskncError
from tasknc.logging import get_logger

if TYPE_CHECKING:
    from tasknc.session import Session

log = get_logger(__name__)

Handler = Callable[[str, bool], str]


class CommandInterpreter:
    """Parses one command line and dispatches it."""

    def __init__(self, session: "Session") -> None:
        self.session = session
        self._handlers: dict[str, Handler] = {
            "set": self.cmd_set,
            "show": self.cmd_show,
            "color": self.cmd_color,
            "source": lambda args, from_config: self.source(args),
            "reload": self.cmd_reload,
            "sync": lambda args, from_config: self.session.sync(),
            "undo": lambda args, from_config: self.session.undo(),
            "sort": self.cmd_sort,
            "filter": self.cmd_filter,
            "search": self.cmd_search,
            "search_next": lambda args, from_config: self._search_result(self.session.search_next()),
            "version": self.cmd_version,
            "dump": self.cmd_dump,
        }

    def names(self) -> list[str]:
        return list(self._handlers)

    def run(self, line: str, *, from_config: bool = False) -> str:
        """Run a command line and return its status message."""
        line = line.strip()
        if not line:
            raise CommandError("empty command")
        name, _, args = line.partition(" ")
        handler = self._handlers.get(name)
        if handler is None:
            raise CommandError(f"unknown command: {name}")
        log.debug("running command %r", line, extra={"command": name})
        return handler(args.strip(), from_config)

    def source(self, path: str) -> str:
        """Run every command in a file; bad lines are logged and skipped."""
        if not path:
            raise CommandError("source: no file given")
        file = Path(path).expanduser()
        try:
            lines = file.read_text().splitlines()
        except OSError as exc:
            raise CommandError(f"could not read {file}: {exc.strerror}") from exc

        failures = 0
        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                self.run(line, from_config=True)
            except TaskncError as exc:
                failures += 1
                log.error("%s:%d: %s", file, lineno, exc, extra={"error_category": exc.category})
        if failures:
            return f"sourced {file} ({failures} errors)"
        return f"sourced {file}"

    def cmd_set(self, args: str, from_config: bool) -> str:
        name, _, value = args.partition(" ")
        if not name:
            raise CommandError("usage: set <variable> <value>")
        self.session.variables.set_value(name, value, from_config=from_config)
        return self.session.variables.message(name)

    def cmd_show(self, args: str, from_config: bool) -> str:
        if not args:
            raise CommandError("usage: show <variable>")
        return self.session.variables.message(args.split()[0])

    def cmd_color(self, args: str, from_config: bool) -> str:
        parts = args.split(None, 3)
        if len(parts) < 3:
            raise CommandError("usage: color <object> <fg> <bg> [rule]")
        obj = parse_object(parts[0])
        if obj is None:
            raise CommandError(f"invalid color object: {parts[0]}")
        allocator = self.session.allocator
        fg = allocator.parse_color(parts[1])
        bg = allocator.parse_color(parts[2])
        if fg is None or bg is None:
            raise CommandError(f"invalid color: {parts[1] if fg is None else parts[2]}")
        rule = parts[3] if len(parts) > 3 else None
        try:
            self.session.colors.add_rule(obj, rule, fg, bg)
        except ColorPairsExhaustedError as exc:
            raise CommandError(f"applying color rule failed: {exc}", metadata=exc.metadata) from exc
        return f"applied color rule for {obj.value}"

    def cmd_reload(self, args: str, from_config: bool) -> str:
        self.session.reload()
        return "task list reloaded"

    def cmd_sort(self, args: str, from_config: bool) -> str:
        self.session.sort(args.split()[0] if args else None)
        return f"sorted by {self.session.config.sort_mode}"

    def cmd_filter(self, args: str, from_config: bool) -> str:
        self.session.set_filter(args)
        return f"filter applied: {self.session.config.filter_string or '(none)'}"

    def cmd_search(self, args: str, from_config: bool) -> str:
        if not args:
            raise CommandError("usage: search <pattern>")
        return self._search_result(self.session.search(args))

    def cmd_version(self, args: str, from_config: bool) -> str:
        return f"{PROGRAM_NAME} {__version__} by {PROGRAM_AUTHOR}"

    def cmd_dump(self, args: str, from_config: bool) -> str:
        """Write every loaded task to the log."""
        for record in self.session.store:
            log.info("uuid: %s description: %s project: %s tags: %s",
                     record.uuid, record.description, record.project, record.tags_text)
        return f"dumped {len(self.session.store)} tasks to the log"

    def _search_result(self, found: bool) -> str:
        if not found:
            raise CommandError(self.session.message or "no matches")
        return f"found: {self.session.search_string}"
