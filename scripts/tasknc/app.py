"""
tasknc application.

Main entry point for the terminal user interface.
"""

from __future__ import annotations

from textual.app import App
from textual.binding import Binding

from tasknc.errors import TaskncError
from tasknc.logging import get_logger
from tasknc.session import Session
from tasknc.views.tasklist import TaskListScreen

log = get_logger(__name__)


class TaskncApp(App):
    """Main tasknc application."""

    TITLE = "tasknc"

    CSS = """
    Screen {
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=False),
    ]

    def __init__(self, session: Session, **kwargs) -> None:
        super().__init__(**kwargs)
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def on_mount(self) -> None:
        """Load tasks and show the task list."""
        try:
            self._session.startup()
        except TaskncError as exc:
            log.error("startup failed: %s", exc, extra={"error_category": exc.category})
            self._session.notify(str(exc), error=True)
        self.push_screen(TaskListScreen(self._session))


def run(session: Session) -> None:
    """Run the TUI application."""
    app = TaskncApp(session)
    app.run()
