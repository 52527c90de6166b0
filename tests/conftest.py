"""Shared fixtures: an in-memory stand-in for the task binary."""

from dataclasses import replace
from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))
from tasknc.config import Config
from tasknc.records import Record
from tasknc.session import Session


class FakeClient:
    """Keeps tasks in a dict and answers like TaskwarriorClient."""

    def __init__(self, records: list[Record]) -> None:
        self.tasks = {r.uuid: r for r in records}
        self.calls: list[tuple] = []
        self.clock = 1700000000

    def _fresh(self, record: Record) -> Record:
        # every export hands out new objects, like parsing real output would
        return replace(record, attr_selected=None, attr_unselected=None)

    def version(self) -> str:
        return "2.6.2"

    def export(self, filter_string: str | None = None) -> list[Record]:
        self.calls.append(("export", filter_string))
        records = list(self.tasks.values())
        for term in (filter_string or "").split():
            if term.startswith("project:"):
                records = [r for r in records if r.project == term.split(":", 1)[1]]
        return [self._fresh(r) for r in records]

    def export_one(self, uuid: str) -> Record | None:
        self.calls.append(("export_one", uuid))
        record = self.tasks.get(uuid)
        return self._fresh(record) if record else None

    def start(self, uuid: str) -> str:
        self.calls.append(("start", uuid))
        self.tasks[uuid].start = self.clock
        return ""

    def stop(self, uuid: str) -> str:
        self.calls.append(("stop", uuid))
        self.tasks[uuid].start = 0
        return ""

    def complete(self, uuid: str) -> str:
        self.calls.append(("complete", uuid))
        del self.tasks[uuid]
        return ""

    def delete(self, uuid: str) -> str:
        self.calls.append(("delete", uuid))
        del self.tasks[uuid]
        return ""

    def add(self, argstr: str) -> str:
        self.calls.append(("add", argstr))
        uuid = f"new-{len(self.tasks)}"
        self.tasks[uuid] = Record(uuid=uuid, description=argstr, index=len(self.tasks) + 1)
        return ""

    def modify(self, uuid: str, argstr: str) -> str:
        self.calls.append(("modify", uuid, argstr))
        if argstr.startswith("priority:"):
            self.tasks[uuid].priority = argstr.split(":", 1)[1]
        return ""

    def undo(self) -> str:
        self.calls.append(("undo",))
        return ""

    def sync(self) -> str:
        self.calls.append(("sync",))
        return ""

    def info(self, uuid: str) -> str:
        self.calls.append(("info", uuid))
        return f"UUID {uuid}\nDescription {self.tasks[uuid].description}\n"

    def edit(self, uuid: str) -> int:
        self.calls.append(("edit", uuid))
        return 0


@pytest.fixture
def records() -> list[Record]:
    return [
        Record(uuid="a", description="Write report", index=1, project="work", priority="H",
               tags=("office",)),
        Record(uuid="b", description="Water plants", index=2, project="home", priority="L"),
        Record(uuid="c", description="Call mom", index=3, priority="M", due=1700500000),
        Record(uuid="d", description="Fix bike", index=4, project="home", priority="H"),
    ]


@pytest.fixture
def client(records: list[Record]) -> FakeClient:
    return FakeClient(records)


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(config_file=tmp_path / "config", filter_string="", log_file=tmp_path / "runlog")


@pytest.fixture
def session(config: Config, client: FakeClient) -> Session:
    session = Session(config, client)  # type: ignore[arg-type]
    session.startup()
    return session
