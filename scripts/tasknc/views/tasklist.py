"""Main task list view: title bar, task lines, status bar and prompt."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.widgets import Input

from tasknc.errors import TaskncError
from tasknc.logging import get_logger
from tasknc.views.pager import PagerScreen
from tasknc.views.widgets import StatusBar, TaskListView, TitleBar

if TYPE_CHECKING:
    from tasknc.session import Session

log = get_logger(__name__)

PROMPTS = {
    "command": ":",
    "filter": "filter: ",
    "search": "search: ",
    "add": "add: ",
    "modify": "modify: ",
    "sort": "sort mode: ",
}


class TaskListScreen(Screen):
    """Task list screen."""

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("j,down", "scroll_down", "Down", show=False),
        Binding("k,up", "scroll_up", "Up", show=False),
        Binding("g,home", "scroll_home", "Top", show=False),
        Binding("G,end", "scroll_end", "Bottom", show=False),
        Binding("r", "reload", "Reload"),
        Binding("y", "sync", "Sync"),
        Binding("u", "undo", "Undo"),
        Binding("c", "complete", "Complete"),
        Binding("d", "delete", "Delete"),
        Binding("t", "toggle_started", "Start/Stop"),
        Binding("a", "prompt('add')", "Add"),
        Binding("m", "prompt('modify')", "Modify"),
        Binding("e", "edit", "Edit"),
        Binding("v,enter", "view", "View"),
        Binding("s", "prompt('sort')", "Sort"),
        Binding("slash", "prompt('search')", "Search"),
        Binding("n", "search_next", "Next", show=False),
        Binding("f", "prompt('filter')", "Filter"),
        Binding("colon", "prompt('command')", "Command", show=False),
        Binding("S", "stats", "Stats", show=False),
        Binding("escape", "cancel_prompt", "Cancel", show=False),
    ]

    DEFAULT_CSS = """
    TaskListScreen {
        layout: vertical;
    }

    TaskListScreen #prompt {
        display: none;
        height: 1;
        border: none;
        padding: 0;
    }

    TaskListScreen #prompt.active {
        display: block;
    }
    """

    def __init__(self, session: "Session", **kwargs) -> None:
        super().__init__(**kwargs)
        self._session = session
        self._prompt_kind: str | None = None

    def compose(self) -> ComposeResult:
        yield TitleBar(id="title")
        yield TaskListView(id="tasks")
        yield StatusBar(id="status")
        yield Input(id="prompt")

    def on_mount(self) -> None:
        self.call_after_refresh(self.refresh_view)

    def on_resize(self) -> None:
        self.call_after_refresh(self.refresh_view)

    def on_screen_resume(self) -> None:
        self.call_after_refresh(self.refresh_view)

    def refresh_view(self) -> None:
        """Redraw every line from the session state."""
        self.query_one(TitleBar).refresh_from(self._session)
        self.query_one(TaskListView).refresh_from(self._session)
        self.query_one(StatusBar).refresh_from(self._session)

    def _run(self, action: Callable[[], object]) -> None:
        try:
            action()
        except TaskncError as exc:
            log.error("action failed: %s", exc, extra={"error_category": exc.category})
            self._session.notify(str(exc), error=True)
        self.refresh_view()

    # -------------------- movement --------------------
    def action_scroll_down(self) -> None:
        self._run(self._session.scroll_down)

    def action_scroll_up(self) -> None:
        self._run(self._session.scroll_up)

    def action_scroll_home(self) -> None:
        self._run(self._session.scroll_home)

    def action_scroll_end(self) -> None:
        self._run(self._session.scroll_end)

    # -------------------- task actions --------------------
    def action_reload(self) -> None:
        self._run(lambda: self._session.run_command("reload"))

    def action_sync(self) -> None:
        self._run(self._session.sync)

    def action_undo(self) -> None:
        self._run(self._session.undo)

    def action_complete(self) -> None:
        self._run(self._session.complete)

    def action_delete(self) -> None:
        self._run(self._session.delete)

    def action_toggle_started(self) -> None:
        self._run(self._session.toggle_started)

    def action_search_next(self) -> None:
        self._run(self._session.search_next)

    def action_edit(self) -> None:
        record = self._session.selected_record
        if record is None:
            self._session.notify("no task selected", error=True)
            self.refresh_view()
            return

        def edit() -> None:
            with self.app.suspend():
                self._session.client.edit(record.uuid)
            self._session.reload_record(record.uuid)
            self._session.notify(f"task {record.index} edited")

        self._run(edit)

    def action_view(self) -> None:
        record = self._session.selected_record
        if record is None:
            return
        try:
            info = self._session.task_info()
        except TaskncError as exc:
            self._session.notify(str(exc), error=True)
            self.refresh_view()
            return
        _, title = self._session.render_view_title()
        self.app.push_screen(PagerScreen(title, info.splitlines(), self._session))

    def action_stats(self) -> None:
        self.app.push_screen(PagerScreen(" statistics", self._session.stats(), self._session))

    def action_quit(self) -> None:
        self.app.exit()

    # -------------------- prompt --------------------
    def action_prompt(self, kind: str) -> None:
        prompt = self.query_one("#prompt", Input)
        self._prompt_kind = kind
        prompt.value = ""
        prompt.placeholder = PROMPTS.get(kind, "")
        prompt.add_class("active")
        prompt.focus()

    def action_cancel_prompt(self) -> None:
        prompt = self.query_one("#prompt", Input)
        prompt.remove_class("active")
        self._prompt_kind = None
        self.set_focus(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        kind = self._prompt_kind
        value = event.value.strip()
        self.action_cancel_prompt()
        if kind is None:
            return
        if kind == "command" and value in ("quit", "exit"):
            self.app.exit()
            return

        session = self._session
        handlers: dict[str, Callable[[], object]] = {
            "command": lambda: session.run_command(value),
            "filter": lambda: session.run_command(f"filter {value}"),
            "search": lambda: session.run_command(f"search {value}"),
            "sort": lambda: session.run_command(f"sort {value}"),
            "add": lambda: session.add(value),
            "modify": lambda: session.modify(value),
        }
        if not value and kind not in ("filter",):
            self.refresh_view()
            return
        self._run(handlers[kind])
