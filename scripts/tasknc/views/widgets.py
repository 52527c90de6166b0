"""Reusable widgets for the task list screen."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.style import Style
from rich.text import Text
from textual.widgets import Static

from tasknc.colors import AttributeAllocator
from tasknc.formats import align

if TYPE_CHECKING:
    from tasknc.session import Session

CURSES_COLOR_NAMES = ("black", "red", "green", "yellow", "blue", "magenta", "cyan", "white")


def color_name(color: int) -> str | None:
    """Map a curses color number to a rich color; -1 is the terminal default."""
    if color < 0:
        return None
    if color < len(CURSES_COLOR_NAMES):
        return CURSES_COLOR_NAMES[color]
    return f"color({color})"


def pair_style(allocator: AttributeAllocator, pair: int) -> Style:
    fg, bg = allocator.content(pair)
    return Style(color=color_name(fg), bgcolor=color_name(bg))


class TitleBar(Static):
    """First line: the rendered title format in the header color."""

    DEFAULT_CSS = """
    TitleBar {
        height: 1;
        width: 100%;
    }
    """

    def refresh_from(self, session: "Session") -> None:
        width = self.size.width or 80
        pair, line = session.render_title()
        self.update(Text(align(line, width), style=pair_style(session.allocator, pair)))


class TaskListView(Static):
    """The visible window of task lines, scrolled to keep the selection in view."""

    DEFAULT_CSS = """
    TaskListView {
        height: 1fr;
        width: 100%;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._offset = 0

    def visible_range(self, selected: int, count: int, height: int) -> range:
        height = max(height, 1)
        if selected < self._offset:
            self._offset = selected
        elif selected >= self._offset + height:
            self._offset = selected - height + 1
        self._offset = max(0, min(self._offset, max(count - height, 0)))
        return range(self._offset, min(self._offset + height, count))

    def refresh_from(self, session: "Session") -> None:
        width = self.size.width or 80
        height = self.size.height or 24
        store = session.store
        if not len(store):
            self.update(Text("no tasks found", style="dim"))
            return

        context = session.context()
        text = Text()
        for position in self.visible_range(session.selected, len(store), height):
            record = store[position]
            pair, line = session.render_task(record, position == session.selected, context)
            if text:
                text.append("\n")
            text.append(align(line, width), style=pair_style(session.allocator, pair))
        self.update(text)


class StatusBar(Static):
    """Last line: timed status messages; errors use the error color."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        width: 100%;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._timer = None

    def refresh_from(self, session: "Session") -> None:
        if not session.message:
            return
        style = pair_style(session.allocator, session.error_pair()) if session.message_is_error else Style()
        self.update(Text(session.message, style=style))
        session.message = None

        if self._timer is not None:
            self._timer.stop()
        timeout = session.config.statusbar_timeout
        if timeout > 0:
            self._timer = self.set_timer(timeout, self.clear)

    def clear(self) -> None:
        self._timer = None
        self.update("")
