"""Pager view for `task info` output and statistics."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import ScrollableContainer
from textual.screen import Screen
from textual.widgets import Footer, Label, Static

from tasknc.colors import ColorObject
from tasknc.formats import align
from tasknc.views.widgets import pair_style

if TYPE_CHECKING:
    from tasknc.session import Session


class PagerTitle(Static):
    DEFAULT_CSS = """
    PagerTitle {
        height: 1;
        width: 100%;
    }
    """


class PagerScreen(Screen):
    """Screen showing lines of text with a header line."""

    BINDINGS = [
        ("q", "back", "Back"),
        ("escape", "back", "Back"),
        ("j", "line_down", "Down"),
        ("k", "line_up", "Up"),
        ("g", "top", "Top"),
        ("G", "bottom", "Bottom"),
    ]

    DEFAULT_CSS = """
    PagerScreen {
        layout: vertical;
    }

    PagerScreen .pager-body {
        height: 1fr;
    }
    """

    def __init__(self, title: str, lines: list[str], session: "Session", **kwargs) -> None:
        super().__init__(**kwargs)
        self._title = title
        self._lines = lines
        self._session = session

    def compose(self) -> ComposeResult:
        pair = self._session.colors.resolve(ColorObject.HEADER)
        style = pair_style(self._session.allocator, pair)
        yield PagerTitle(Text(align(self._title, self.app.size.width), style=style))

        with ScrollableContainer(classes="pager-body"):
            if not self._lines:
                yield Label("(no output)")
            for line in self._lines:
                yield Label(Text(line))

        yield Footer()

    def _body(self) -> ScrollableContainer:
        return self.query_one(ScrollableContainer)

    def action_line_down(self) -> None:
        self._body().scroll_down()

    def action_line_up(self) -> None:
        self._body().scroll_up()

    def action_top(self) -> None:
        self._body().scroll_home()

    def action_bottom(self) -> None:
        self._body().scroll_end()

    def action_back(self) -> None:
        """Go back to the task list."""
        self.app.pop_screen()
