"""User-exposed variables, shared by templates and the `set`/`show` commands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator

from tasknc.errors import CommandError


class VarKind(Enum):
    INT = "int"
    CHAR = "char"
    STR = "str"


class VarPerms(Enum):
    RW = "rw"  # read/write at any time
    RC = "rc"  # writable from the config file only
    RO = "ro"  # read only


@dataclass(frozen=True)
class Variable:
    name: str
    kind: VarKind
    get: Callable[[], object]
    set: Callable[[object], None] | None = None
    perms: VarPerms = VarPerms.RW


def strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


class VariableTable:
    """Ordered table of variables.

    Order matters: the template compiler tries names in table order and the
    first prefix match wins.
    """

    def __init__(self, variables: list[Variable] | None = None) -> None:
        self._variables: list[Variable] = []
        for variable in variables or []:
            self.register(variable)

    def __iter__(self) -> Iterator[Variable]:
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def register(self, variable: Variable) -> None:
        for i, existing in enumerate(self._variables):
            if existing.name == variable.name:
                self._variables[i] = variable
                return
        self._variables.append(variable)

    def find(self, name: str) -> Variable | None:
        for variable in self._variables:
            if variable.name == name:
                return variable
        return None

    def names(self) -> list[str]:
        return [v.name for v in self._variables]

    def value_text(self, name: str) -> str:
        """Current value rendered as text; unknown names render empty."""
        variable = self.find(name)
        if variable is None:
            return ""
        return format_value(variable)

    def message(self, name: str) -> str:
        variable = self.find(name)
        if variable is None:
            raise CommandError(f"variable not found: {name}")
        return f"{variable.name}: {format_value(variable)}"

    def set_value(self, name: str, text: str, *, from_config: bool = False) -> None:
        """Parse `text` according to the variable's kind and store it."""
        variable = self.find(name)
        if variable is None:
            raise CommandError(f"variable not found: {name}")
        if variable.set is None or variable.perms is VarPerms.RO:
            raise CommandError(f"variable is read only: {name}")
        if variable.perms is VarPerms.RC and not from_config:
            raise CommandError(f"variable can only be set in the config file: {name}")

        if variable.kind is VarKind.INT:
            try:
                value: object = int(text.strip())
            except ValueError:
                raise CommandError(f"failed to parse value from command: set {name} {text}") from None
        elif variable.kind is VarKind.CHAR:
            stripped = text.strip()
            if not stripped:
                raise CommandError(f"failed to parse value from command: set {name} {text}")
            value = stripped[0]
        else:
            value = strip_quotes(text)
        variable.set(value)


def format_value(variable: Variable) -> str:
    value = variable.get()
    if value is None:
        return ""
    if variable.kind is VarKind.INT:
        return str(int(value))
    if variable.kind is VarKind.CHAR:
        return str(value)[:1]
    return str(value)
