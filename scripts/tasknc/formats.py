"""
Format strings: compiling them into field sequences and evaluating them
against a record.

Syntax:
    $name          a field: date, time, a record attribute or a variable
    $-12name       right-align the field in a 12 column slot
    ?cond?pos?neg? render `pos` when `cond` is truthy, else `neg`; `cond`
                   is false when it renders empty, starts with `0` or a
                   space, or starts with `(null)`

Anything the compiler does not recognise is kept as literal text, so a bad
format string never stops the program.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterator, Union

from tasknc.records import Record
from tasknc.variables import VariableTable, VarKind


class RecordAttr(Enum):
    PROJECT = "project"
    DESCRIPTION = "description"
    DUE = "due"
    PRIORITY = "priority"
    UUID = "uuid"
    INDEX = "index"


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class RecordField:
    attr: RecordAttr
    width: int = 0
    right_align: bool = False


@dataclass(frozen=True)
class DateNow:
    width: int = 0
    right_align: bool = False


@dataclass(frozen=True)
class TimeNow:
    width: int = 0
    right_align: bool = False


@dataclass(frozen=True)
class VariableField:
    name: str
    kind: VarKind
    width: int = 0
    right_align: bool = False


@dataclass(frozen=True)
class Conditional:
    condition: tuple["Field", ...]
    positive: tuple["Field", ...]
    negative: tuple["Field", ...]
    width: int = 0
    right_align: bool = False


Field = Union[Literal, RecordField, DateNow, TimeNow, VariableField, Conditional]


@dataclass(frozen=True)
class Template:
    """A compiled format string. Immutable, so one instance serves every record."""

    source: str
    fields: tuple[Field, ...] = ()

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


@dataclass
class RenderContext:
    """Everything outside the record that evaluation depends on."""

    variables: VariableTable = field(default_factory=VariableTable)
    project_width: int = 0
    now: Callable[[], datetime] = datetime.now


# ?cond?pos?neg?  -- segments cannot contain '?'
_CONDITIONAL_RE = re.compile(r"\?([^?]+)\?([^?]*)\?([^?]*)\?")
_FALSY_FIRST_CHARS = ("0", " ")


def compile_format(source: str | None, variables: VariableTable | None = None) -> Template:
    """Compile a format string. Never raises."""
    if source is None:
        return Template("", ())
    names = variables.names() if variables is not None else []
    kinds = {v.name: v.kind for v in variables} if variables is not None else {}
    return Template(source, _compile_fields(source, names, kinds))


def _compile_fields(source: str, names: list[str], kinds: dict[str, VarKind]) -> tuple[Field, ...]:
    fields: list[Field] = []
    buffer: list[str] = []
    pos = 0
    end = len(source)

    def flush() -> None:
        if buffer:
            fields.append(Literal("".join(buffer)))
            buffer.clear()

    while pos < end:
        char = source[pos]
        if char not in "$?":
            buffer.append(char)
            pos += 1
            continue

        flush()

        if char == "?":
            match = _CONDITIONAL_RE.match(source, pos)
            if match is None or not (match.group(2) or match.group(3)):
                buffer.append("?")
                pos += 1
                continue
            condition, positive, negative = match.groups()
            fields.append(
                Conditional(
                    condition=_compile_fields(condition, names, kinds),
                    positive=_compile_fields(positive, names, kinds),
                    negative=_compile_fields(negative, names, kinds),
                )
            )
            pos = match.end()
            continue

        # '$' field
        pos += 1
        right_align = pos < end and source[pos] == "-"
        if right_align:
            pos += 1
        width = 0
        while pos < end and source[pos].isdigit():
            width = 10 * width + int(source[pos])
            pos += 1

        if source.startswith("date", pos):
            fields.append(DateNow(width, right_align))
            pos += 4
            continue
        if source.startswith("time", pos):
            fields.append(TimeNow(width, right_align))
            pos += 4
            continue

        attr = next((a for a in RecordAttr if source.startswith(a.value, pos)), None)
        if attr is not None:
            fields.append(RecordField(attr, width, right_align))
            pos += len(attr.value)
            continue

        name = next((n for n in names if n and source.startswith(n, pos)), None)
        if name is not None:
            fields.append(VariableField(name, kinds[name], width, right_align))
            pos += len(name)
            continue

        # unknown field: keep '$' and the following character as text
        buffer.append("$")
        if pos < end:
            buffer.append(source[pos])
        pos += 1

    flush()
    return tuple(fields)


def format_date(timestamp: int, now: datetime | None = None) -> str:
    """`Jan 05` for dates in the current year, `2011-01-05` otherwise."""
    now = now or datetime.now()
    when = datetime.fromtimestamp(timestamp) if timestamp else now
    if when.year != now.year:
        return when.strftime("%Y-%m-%d")
    return when.strftime("%b %d")


def format_time(now: datetime) -> str:
    return now.strftime("%H:%M")


def is_truthy(rendered: str) -> bool:
    """Truth value of a rendered conditional."""
    if not rendered or rendered.startswith("(null)"):
        return False
    return not rendered.startswith(_FALSY_FIRST_CHARS)


def evaluate(template: Template | tuple[Field, ...], record: Record | None = None,
             context: RenderContext | None = None) -> str:
    """Render a compiled template for `record` (None for title-like formats)."""
    context = context or RenderContext()
    fields = template.fields if isinstance(template, Template) else template
    return "".join(_render_field(f, record, context) for f in fields)


def _render_field(fmt: Field, record: Record | None, context: RenderContext) -> str:
    if isinstance(fmt, Literal):
        return fmt.text

    text = _field_text(fmt, record, context)
    if isinstance(fmt, RecordField) and fmt.attr is RecordAttr.PROJECT and fmt.width == 0:
        fieldwidth = context.project_width
    else:
        fieldwidth = fmt.width if fmt.width > 0 else len(text)

    # over-length text keeps its first `fieldwidth` characters either way
    text = text[:fieldwidth]
    if fmt.right_align:
        return text.rjust(fieldwidth)
    return text.ljust(fieldwidth)


def _field_text(fmt: Field, record: Record | None, context: RenderContext) -> str:
    if isinstance(fmt, DateNow):
        return format_date(0, context.now())
    if isinstance(fmt, TimeNow):
        return format_time(context.now())
    if isinstance(fmt, VariableField):
        return context.variables.value_text(fmt.name)
    if isinstance(fmt, Conditional):
        condition = evaluate(fmt.condition, record, context)
        branch = fmt.positive if is_truthy(condition) else fmt.negative
        return evaluate(branch, record, context)
    if isinstance(fmt, RecordField):
        return _record_text(fmt.attr, record, context)
    return ""


def _record_text(attr: RecordAttr, record: Record | None, context: RenderContext) -> str:
    if record is None:
        return ""
    if attr is RecordAttr.PROJECT:
        return record.project or ""
    if attr is RecordAttr.DESCRIPTION:
        return record.description or ""
    if attr is RecordAttr.DUE:
        return format_date(record.due, context.now()) if record.due else " "
    if attr is RecordAttr.PRIORITY:
        return record.priority or ""
    if attr is RecordAttr.UUID:
        return record.uuid
    if attr is RecordAttr.INDEX:
        return str(record.index)
    return ""


def align(line: str, width: int) -> str:
    """Split a rendered line at `$>` and push the right part to column `width`."""
    left, sep, right = line.partition("$>")
    if not sep:
        return line[:width].ljust(width)
    if len(right) >= width:
        return right[len(right) - width:]
    room = width - len(right)
    return left[:room].ljust(room) + right
