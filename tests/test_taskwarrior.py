"""Unit tests for the taskwarrior client and export parsing."""

import json
import subprocess
from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))
from tasknc import taskwarrior
from tasknc.errors import TaskCommandError
from tasknc.taskwarrior import (
    TaskwarriorClient,
    parse_export,
    parse_timestamp,
    record_from_dict,
    split_args,
)

SAMPLE = [
    {
        "id": 1,
        "uuid": "11111111-0000-0000-0000-000000000001",
        "description": "Write report",
        "project": "work",
        "priority": "H",
        "tags": ["office", "q3"],
        "due": "20240705T120000Z",
        "entry": "20240601T080000Z",
        "status": "pending",
    },
    {
        "id": 2,
        "uuid": "11111111-0000-0000-0000-000000000002",
        "description": "Water plants",
        "start": "20240602T100000Z",
        "status": "pending",
    },
]


class FakeRun:
    """Records subprocess.run calls and returns canned output."""

    def __init__(self, stdout: str = "", returncode: int = 0, stderr: str = "") -> None:
        self.stdout = stdout
        self.returncode = returncode
        self.stderr = stderr
        self.calls: list[list[str]] = []

    def __call__(self, command, **kwargs):
        self.calls.append(command)
        return subprocess.CompletedProcess(command, self.returncode, self.stdout, self.stderr)


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> FakeRun:
    fake = FakeRun(stdout=json.dumps(SAMPLE))
    monkeypatch.setattr(taskwarrior.subprocess, "run", fake)
    return fake


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_compact_format_is_utc(self) -> None:
        assert parse_timestamp("19700101T000100Z") == 60

    def test_iso_format(self) -> None:
        assert parse_timestamp("1970-01-01T00:02:00Z") == 120

    def test_missing(self) -> None:
        assert parse_timestamp(None) == 0
        assert parse_timestamp("") == 0

    def test_numeric(self) -> None:
        assert parse_timestamp(1700000000) == 1700000000

    def test_garbage(self) -> None:
        assert parse_timestamp("next tuesday") == 0


class TestRecordFromDict:
    """Tests for record_from_dict."""

    def test_full_record(self) -> None:
        record = record_from_dict(SAMPLE[0])
        assert record is not None
        assert record.index == 1
        assert record.project == "work"
        assert record.priority == "H"
        assert record.tags == ("office", "q3")
        assert record.tags_text == "office,q3"
        assert record.due == parse_timestamp("20240705T120000Z")
        assert not record.started

    def test_optional_fields_missing(self) -> None:
        record = record_from_dict(SAMPLE[1])
        assert record is not None
        assert record.project is None
        assert record.priority is None
        assert record.tags == ()
        assert record.tags_text is None
        assert record.due == 0
        assert record.started

    def test_missing_uuid_is_skipped(self) -> None:
        assert record_from_dict({"description": "orphan"}) is None

    def test_missing_description_is_skipped(self) -> None:
        assert record_from_dict({"uuid": "x"}) is None


class TestParseExport:
    """Tests for parse_export."""

    def test_json_array(self) -> None:
        records = parse_export(json.dumps(SAMPLE))
        assert [r.description for r in records] == ["Write report", "Water plants"]

    def test_line_per_object(self) -> None:
        text = "\n".join(json.dumps(item) + "," for item in SAMPLE)
        records = parse_export("[\n" + text + "\n]")
        assert len(records) == 2

    def test_legacy_lines_skip_garbage(self) -> None:
        text = json.dumps(SAMPLE[0]) + ",\nnot json\n{broken,\n" + json.dumps(SAMPLE[1])
        records = parse_export(text)
        assert [r.index for r in records] == [1, 2]

    def test_empty(self) -> None:
        assert parse_export("") == []
        assert parse_export("[]") == []

    def test_invalid_records_dropped(self) -> None:
        records = parse_export(json.dumps([{"uuid": "a"}, SAMPLE[0]]))
        assert len(records) == 1


class TestSplitArgs:
    """Tests for split_args."""

    def test_quotes(self) -> None:
        assert split_args("project:home 'buy milk'") == ["project:home", "buy milk"]

    def test_unbalanced_quote(self) -> None:
        with pytest.raises(TaskCommandError):
            split_args("'oops")


class TestTaskwarriorClient:
    """Tests for TaskwarriorClient."""

    def test_export_uses_filter_and_overrides(self, fake_run: FakeRun) -> None:
        records = TaskwarriorClient("task").export("status:pending project:work")
        assert len(records) == 2
        assert fake_run.calls[0] == [
            "task",
            "rc.confirmation:no",
            "rc.verbose:nothing",
            "status:pending",
            "project:work",
            "export",
        ]

    def test_export_without_filter(self, fake_run: FakeRun) -> None:
        TaskwarriorClient("task").export("")
        assert fake_run.calls[0][-1] == "export"
        assert len(fake_run.calls[0]) == 4

    def test_export_one(self, fake_run: FakeRun) -> None:
        fake_run.stdout = json.dumps([SAMPLE[1]])
        record = TaskwarriorClient().export_one(SAMPLE[1]["uuid"])
        assert record is not None
        assert record.uuid == SAMPLE[1]["uuid"]
        assert fake_run.calls[0][-2:] == [SAMPLE[1]["uuid"], "export"]

    def test_export_one_missing(self, fake_run: FakeRun) -> None:
        fake_run.stdout = "[]"
        assert TaskwarriorClient().export_one("nope") is None

    @pytest.mark.parametrize(
        "method,verb",
        [("complete", "done"), ("delete", "delete"), ("start", "start"), ("stop", "stop"), ("info", "info")],
    )
    def test_task_actions(self, fake_run: FakeRun, method: str, verb: str) -> None:
        getattr(TaskwarriorClient(), method)("abc")
        assert fake_run.calls[0][-2:] == ["abc", verb]

    def test_add_and_modify_split_arguments(self, fake_run: FakeRun) -> None:
        client = TaskwarriorClient()
        client.add("project:home 'buy milk'")
        client.modify("abc", "priority:H")
        assert fake_run.calls[0][-3:] == ["add", "project:home", "buy milk"]
        assert fake_run.calls[1][-3:] == ["abc", "modify", "priority:H"]

    def test_version_has_no_overrides(self, fake_run: FakeRun) -> None:
        fake_run.stdout = "2.6.2\n"
        assert TaskwarriorClient().version() == "2.6.2"
        assert fake_run.calls[0] == ["task", "--version"]

    def test_failure_raises(self, fake_run: FakeRun) -> None:
        fake_run.returncode = 2
        fake_run.stderr = "No matches."
        with pytest.raises(TaskCommandError) as exc_info:
            TaskwarriorClient().undo()
        assert "No matches." in str(exc_info.value)
        assert exc_info.value.metadata["returncode"] == 2

    def test_missing_binary_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def missing(command, **kwargs):
            raise FileNotFoundError(command[0])

        monkeypatch.setattr(taskwarrior.subprocess, "run", missing)
        with pytest.raises(TaskCommandError):
            TaskwarriorClient("/nonexistent/task").sync()

    def test_edit_hands_over_terminal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls = []
        monkeypatch.setattr(taskwarrior.subprocess, "call", lambda command: calls.append(command) or 0)
        assert TaskwarriorClient().edit("abc") == 0
        assert calls == [["task", "abc", "edit"]]
