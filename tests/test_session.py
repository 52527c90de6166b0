"""Unit tests for the runtime session."""

from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))
from tasknc.colors import COLOR_NAMES, ColorObject
from tasknc.config import Config
from tasknc.errors import TaskncError
from tasknc.session import Session


def order(session: Session) -> list[str]:
    return [r.uuid for r in session.store]


class TestStartup:
    """Tests for loading tasks."""

    def test_loads_and_sorts(self, session: Session) -> None:
        assert session.task_version == "2.6.2"
        assert order(session) == ["b", "d", "a", "c"]
        assert session.selected == 0

    def test_config_file_is_sourced(self, config: Config, client) -> None:
        config.config_file.write_text(
            "# user settings\n"
            "set task_format [$description]\n"
            "color task red -1 ~p 'work'\n"
        )
        session = Session(config, client)
        session.startup()
        record = session.store[session.store.position_of("a")]
        pair, line = session.render_task(record, False)
        assert line == "[Write report]"
        assert session.allocator.content(pair) == (COLOR_NAMES["red"], -1)

    def test_variables_in_order(self, session: Session) -> None:
        assert session.variables.names() == [
            "filter_string",
            "follow_task",
            "history_max",
            "log_level",
            "program_author",
            "program_name",
            "program_version",
            "search_string",
            "selected_line",
            "sort_mode",
            "statusbar_timeout",
            "task_count",
            "task_format",
            "task_version",
            "title_format",
            "view_format",
        ]


class TestRendering:
    """Tests for rendering through the session."""

    def test_title(self, session: Session) -> None:
        _, title = session.render_title()
        assert title.startswith(" tasknc (1/4) $> ")

    def test_task_line(self, session: Session) -> None:
        record = session.store[0]
        _, line = session.render_task(record, False)
        assert line == " home Water plants $>      L"

    def test_selected_line_uses_selected_color(self, session: Session) -> None:
        record = session.store[0]
        selected, _ = session.render_task(record, True)
        unselected, _ = session.render_task(record, False)
        assert session.allocator.content(selected) == (COLOR_NAMES["cyan"], COLOR_NAMES["black"])
        assert session.allocator.content(unselected) == (-1, -1)

    def test_changing_format_recompiles(self, session: Session) -> None:
        session.variables.set_value("task_format", "$-3index", from_config=True)
        _, line = session.render_task(session.store[0], False)
        assert line == "  2"


class TestSelection:
    """Tests for selection movement."""

    def test_scrolling_is_clamped(self, session: Session) -> None:
        session.scroll_up()
        assert session.selected == 0
        session.scroll_end()
        assert session.selected == 3
        session.scroll_down()
        assert session.selected == 3
        session.scroll_home()
        assert session.selected == 0

    def test_selected_line_variable_is_one_based(self, session: Session) -> None:
        session.select(2)
        assert session.variables.message("selected_line") == "selected_line: 3"
        session.variables.set_value("selected_line", "1")
        assert session.selected == 0

    def test_sort_follows_selected_task(self, session: Session) -> None:
        session.select_uuid("a")
        session.sort("u")
        assert order(session) == ["a", "b", "c", "d"]
        assert session.selected_record.uuid == "a"

    def test_sort_without_follow(self, session: Session) -> None:
        session.config.follow_task = False
        session.select_uuid("a")
        session.sort("u")
        assert session.selected == 2
        assert session.selected_record.uuid == "c"

    def test_reload_keeps_selection(self, session: Session) -> None:
        session.select_uuid("c")
        session.reload()
        assert session.selected_record.uuid == "c"


class TestSearchAndFilter:
    """Tests for search and filter."""

    def test_search_wraps(self, session: Session) -> None:
        session.scroll_end()
        assert session.search("REPORT")
        assert session.selected_record.uuid == "a"
        assert session.message == "search wrapped to top"

    def test_search_matches_tags(self, session: Session) -> None:
        assert session.search("office")
        assert session.selected_record.uuid == "a"

    def test_search_next_finds_following_match(self, session: Session) -> None:
        assert session.search("home")
        assert session.selected_record.uuid == "d"
        assert session.search_next()
        assert session.selected_record.uuid == "b"

    def test_search_without_match(self, session: Session) -> None:
        assert not session.search("nothing-like-this")
        assert session.message_is_error
        assert session.selected == 0

    def test_search_next_without_pattern(self, session: Session) -> None:
        assert not session.search_next()

    def test_filter_reloads(self, session: Session, client) -> None:
        session.set_filter("project:home")
        assert order(session) == ["b", "d"]
        assert client.calls[-1] == ("export", "project:home")


class TestTaskActions:
    """Tests for actions that run the task binary."""

    def test_toggle_started_refreshes_color(self, session: Session, client) -> None:
        session.run_command("color task green -1 ~t")
        session.select_uuid("a")
        before = session.colors.resolve(ColorObject.TASK, session.selected_record, False)

        assert session.toggle_started() == "started task 1"
        assert ("start", "a") in client.calls
        record = session.selected_record
        assert record.uuid == "a"
        assert record.started
        after = session.colors.resolve(ColorObject.TASK, record, False)
        assert after != before
        assert session.allocator.content(after) == (COLOR_NAMES["green"], -1)

        assert session.toggle_started() == "stopped task 1"
        assert not session.selected_record.started

    def test_complete(self, session: Session, client) -> None:
        session.select_uuid("c")
        session.complete()
        assert "c" not in order(session)
        assert session.selected == 2

    def test_delete(self, session: Session) -> None:
        session.select_uuid("b")
        session.delete()
        assert order(session) == ["d", "a", "c"]

    def test_add(self, session: Session, client) -> None:
        session.add("project:home 'buy milk'")
        assert len(session.store) == 5
        assert client.calls[-2] == ("add", "project:home 'buy milk'")

    def test_modify(self, session: Session) -> None:
        session.select_uuid("b")
        session.modify("priority:H")
        assert session.store.get("b").priority == "H"

    def test_undo_and_sync(self, session: Session, client) -> None:
        session.undo()
        session.sync()
        assert ("undo",) in client.calls
        assert ("sync",) in client.calls

    def test_info(self, session: Session) -> None:
        assert session.task_info().startswith("UUID b")

    def test_action_without_tasks(self, config: Config, client) -> None:
        client.tasks.clear()
        session = Session(config, client)
        session.startup()
        assert session.selected_record is None
        with pytest.raises(TaskncError):
            session.complete()

    def test_stats(self, session: Session) -> None:
        stats = session.stats()
        assert "tasks: 4" in stats
        assert "projects: 2" in stats
        assert "priorities: H=2, L=1, M=1" in stats


class TestRunCommand:
    """Tests for run_command error handling."""

    def test_success_message(self, session: Session) -> None:
        assert session.run_command("set search_string milk") == "search_string: milk"
        assert not session.message_is_error

    def test_config_only_variable_from_prompt(self, session: Session) -> None:
        message = session.run_command("set task_format $description")
        assert "config file" in message
        assert session.message_is_error

    def test_invalid_value(self, session: Session) -> None:
        session.run_command("set statusbar_timeout soon")
        assert session.message_is_error

    def test_unknown_command(self, session: Session) -> None:
        assert session.run_command("frobnicate") == "unknown command: frobnicate"
