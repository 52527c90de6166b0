"""
Color rules: which display attribute an object is drawn with.

A rule is (object, predicate, pair). Header and error objects take the first
rule registered for them. Tasks walk every task rule and the last one whose
predicate holds wins; the result is cached on the record until the rules or
the record change.

Predicates are chains of clauses, all of which must hold:

    ~s            task is selected
    ~t            task is started
    ~p 'regex'    project matches (whitespace before the quote is optional)
    ~d 'regex'    description matches
    ~t 'regex'    tags match
    ~r 'regex'    priority matches

An upper-case clause letter negates the clause.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from tasknc.errors import ColorPairsExhaustedError, PredicateError
from tasknc.logging import get_logger
from tasknc.records import Record, RecordStore

log = get_logger(__name__)

DEFAULT_ATTRIBUTE = 0

COLOR_NAMES = {
    "black": 0,
    "red": 1,
    "green": 2,
    "yellow": 3,
    "blue": 4,
    "magenta": 5,
    "cyan": 6,
    "white": 7,
}


class ColorObject(Enum):
    HEADER = "header"
    TASK = "task"
    ERROR = "error"


@dataclass
class ColorRule:
    object: ColorObject
    rule: str | None
    pair: int


class AttributeAllocator:
    """Hands out color pair numbers for (foreground, background) combinations.

    Pair 0 is the terminal default and is never reassigned. -1 as a color
    means "terminal default".
    """

    def __init__(self, capacity: int = 256, colors: int = 256) -> None:
        self.capacity = capacity
        self.colors = colors
        self._pairs: dict[int, tuple[int, int]] = {DEFAULT_ATTRIBUTE: (-1, -1)}

    def content(self, pair: int) -> tuple[int, int]:
        return self._pairs.get(pair, (-1, -1))

    def find_add_pair(self, fg: int, bg: int) -> int:
        """Reuse a pair with these colors or allocate the lowest free one."""
        for pair, content in self._pairs.items():
            if pair != DEFAULT_ATTRIBUTE and content == (fg, bg):
                return pair
        for pair in range(1, self.capacity):
            if pair not in self._pairs:
                self._pairs[pair] = (fg, bg)
                log.debug("assigned color pair %d to (%d, %d)", pair, fg, bg)
                return pair
        raise ColorPairsExhaustedError(
            f"no free color pairs for ({fg}, {bg})",
            metadata={"capacity": self.capacity},
        )

    def check_color(self, color: int) -> int:
        """Colors out of range fall back to the terminal default."""
        if color >= self.colors or color < -2:
            return -1
        return color

    def parse_color(self, name: str) -> int | None:
        """Parse `red`, `3`, `color123` or `-1`; None when unrecognised."""
        name = name.strip().lower()
        if re.fullmatch(r"-?\d+", name):
            return self.check_color(int(name))
        match = re.fullmatch(r"color(\d{1,3})", name)
        if match:
            return self.check_color(int(match.group(1)))
        if name in COLOR_NAMES:
            return self.check_color(COLOR_NAMES[name])
        return None


def parse_object(name: str) -> ColorObject | None:
    try:
        return ColorObject(name.strip().lower())
    except ValueError:
        return None


class ColorEngine:
    """Ordered color rules plus the cache bookkeeping for task records."""

    def __init__(self, allocator: AttributeAllocator | None = None,
                 store: RecordStore | None = None) -> None:
        self.allocator = allocator or AttributeAllocator()
        self.store = store
        self._rules: list[ColorRule] = []

    @property
    def rules(self) -> list[ColorRule]:
        return list(self._rules)

    def add_rule(self, obj: ColorObject, rule: str | None, fg: int, bg: int) -> int:
        """Add a rule, or recolor the rule with the same object and predicate.

        Returns the pair assigned. Raises ColorPairsExhaustedError when no pair
        can be allocated; the rule list is left unchanged in that case.
        """
        pair = self.allocator.find_add_pair(fg, bg)
        self._invalidate()
        for existing in self._rules:
            if existing.object is obj and existing.rule == rule:
                existing.pair = pair
                return pair
        self._rules.append(ColorRule(obj, rule, pair))
        return pair

    def remove_rule(self, obj: ColorObject, rule: str | None) -> bool:
        for i, existing in enumerate(self._rules):
            if existing.object is obj and existing.rule == rule:
                del self._rules[i]
                self._invalidate()
                return True
        return False

    def set_defaults(self) -> None:
        self.add_rule(ColorObject.HEADER, None, COLOR_NAMES["blue"], COLOR_NAMES["black"])
        self.add_rule(ColorObject.TASK, None, -1, -1)
        self.add_rule(ColorObject.TASK, "~s", COLOR_NAMES["cyan"], COLOR_NAMES["black"])
        self.add_rule(ColorObject.ERROR, None, COLOR_NAMES["red"], -1)

    def _invalidate(self) -> None:
        if self.store is not None:
            self.store.invalidate_colors()

    def resolve(self, obj: ColorObject, record: Record | None = None, selected: bool = False) -> int:
        """Return the color pair for an object."""
        if obj is ColorObject.TASK and record is not None:
            cached = record.attr_selected if selected else record.attr_unselected
            if cached is not None:
                return cached

        candidates = [r for r in self._rules if r.object is obj]
        if not candidates:
            return DEFAULT_ATTRIBUTE

        if obj is not ColorObject.TASK:
            return candidates[0].pair

        pair = DEFAULT_ATTRIBUTE
        for rule in candidates:
            if eval_rule(rule.rule, record, selected):
                pair = rule.pair

        if record is not None:
            if selected:
                record.attr_selected = pair
            else:
                record.attr_unselected = pair
        return pair


def match_string(haystack: str | None, pattern: str) -> bool:
    """Case-insensitive unanchored search; invalid patterns never match."""
    if haystack is None:
        return False
    try:
        return re.search(pattern, haystack, re.IGNORECASE) is not None
    except re.error:
        log.warning("invalid regex in color rule: %r", pattern)
        return False


def eval_rule(rule: str | None, record: Record | None, selected: bool) -> bool:
    """Evaluate a predicate; malformed predicates are logged and count as false."""
    if not rule:
        return True
    try:
        return all(
            invert != _clause_holds(letter, regex, record, selected)
            for letter, invert, regex in parse_rule(rule)
        )
    except PredicateError as exc:
        log.error("malformed rules - %r: %s", rule, exc, extra={"rule": rule})
        return False


def parse_rule(rule: str) -> list[tuple[str, bool, str | None]]:
    """Split a predicate into (letter, inverted, regex) clauses."""
    clauses: list[tuple[str, bool, str | None]] = []
    pos = 0
    end = len(rule)
    while pos < end:
        if rule[pos] != "~":
            pos += 1
            continue
        if pos + 1 >= end:
            raise PredicateError("clause without a letter")
        letter = rule[pos + 1]
        invert = letter.isupper()
        letter = letter.lower()
        pos += 2

        regex = None
        quote = pos
        while quote < end and rule[quote].isspace():
            quote += 1
        if quote < end and rule[quote] == "'":
            close = rule.find("'", quote + 1)
            if close < 0:
                raise PredicateError(f"missing closing quote in ~{letter} clause")
            regex = rule[quote + 1:close]
            if not regex:
                raise PredicateError(f"empty pattern in ~{letter} clause")
            pos = close + 1

        if regex is None and letter not in ("s", "t"):
            raise PredicateError(f"~{letter} needs a pattern")
        if regex is not None and letter not in ("p", "d", "t", "r"):
            raise PredicateError(f"unknown clause ~{letter} with pattern")
        clauses.append((letter, invert, regex))
    return clauses


def _clause_holds(letter: str, regex: str | None, record: Record | None, selected: bool) -> bool:
    if letter == "s" and regex is None:
        return selected
    if record is None:
        return False
    if regex is None:
        return record.started
    if letter == "p":
        return match_string(record.project, regex)
    if letter == "d":
        return match_string(record.description, regex)
    if letter == "t":
        return match_string(record.tags_text, regex)
    return match_string(record.priority or "", regex)
