"""Tag predicates and action matching."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

from ..models import Action, Tag
from .parser import strip_tags

if TYPE_CHECKING:
    from .index import Scope


class Comparison(str, Enum):
    """Closed set of ways a tag value can be compared."""

    PRESENT = "present"
    EQUALS = "=="
    CONTAINS = "*="
    BEGINS = "^="
    ENDS = "$="
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="


# Longest operators first so ">=" is not read as ">"
_OPERATORS: list[tuple[str, Comparison]] = [
    ("==", Comparison.EQUALS),
    ("*=", Comparison.CONTAINS),
    ("^=", Comparison.BEGINS),
    ("$=", Comparison.ENDS),
    (">=", Comparison.GE),
    ("<=", Comparison.LE),
    ("=", Comparison.EQUALS),
    (">", Comparison.GT),
    ("<", Comparison.LT),
]

_KEY_RE = re.compile(r"^[A-Za-z0-9_](?:[\w.-]*\w)?$")


@dataclass(frozen=True)
class TagPredicate:
    key: str
    comparison: Comparison = Comparison.PRESENT
    value: str | None = None

    def __str__(self) -> str:
        if self.comparison is Comparison.PRESENT:
            return f"@{self.key}"
        return f"@{self.key}{self.comparison.value}{self.value}"


def parse_tag_expression(expression: str) -> TagPredicate:
    """Parse `key`, `key=value`, `key>=3`, `@key*=text`, ...

    Raises:
        ValueError: if the key is empty or not a valid tag key.
    """
    expr = expression.strip()
    if expr.startswith("@"):
        expr = expr[1:]

    positions = [expr.find(op) for op, _ in _OPERATORS if op in expr]
    first = min(positions) if positions else -1
    for op, comparison in _OPERATORS:
        idx = expr.find(op)
        if idx == -1 or idx != first:
            continue
        key = expr[:idx].strip()
        value = expr[idx + len(op) :].strip()
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid tag expression: {expression!r}")
        return TagPredicate(key=key, comparison=comparison, value=value)

    if not _KEY_RE.match(expr):
        raise ValueError(f"Invalid tag expression: {expression!r}")
    return TagPredicate(key=expr)


def _as_number(value: str) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _ordered(op: Callable[[object, object], bool]) -> Callable[[str, str], bool]:
    def compare(actual: str, wanted: str) -> bool:
        left, right = _as_number(actual), _as_number(wanted)
        if left is not None and right is not None:
            return op(left, right)
        return op(actual.casefold(), wanted.casefold())

    return compare


_COMPARATORS: dict[Comparison, Callable[[str, str], bool]] = {
    Comparison.EQUALS: _ordered(lambda a, b: a == b),
    Comparison.CONTAINS: lambda a, b: b.casefold() in a.casefold(),
    Comparison.BEGINS: lambda a, b: a.casefold().startswith(b.casefold()),
    Comparison.ENDS: lambda a, b: a.casefold().endswith(b.casefold()),
    Comparison.GT: _ordered(lambda a, b: a > b),
    Comparison.GE: _ordered(lambda a, b: a >= b),
    Comparison.LT: _ordered(lambda a, b: a < b),
    Comparison.LE: _ordered(lambda a, b: a <= b),
}


def tag_matches(tag: Tag, predicate: TagPredicate) -> bool:
    """Test a single tag against a predicate."""
    if tag.name != predicate.key.lower():
        return False
    if predicate.comparison is Comparison.PRESENT:
        return True
    if tag.value is None or predicate.value is None:
        return False
    return _COMPARATORS[predicate.comparison](tag.value, predicate.value)


def action_has(action: Action, predicate: TagPredicate) -> bool:
    return any(tag_matches(tag, predicate) for tag in action.tags)


@dataclass(frozen=True)
class MatchQuery:
    """What to look for and where.

    `predicate=None` selects every action (subject to the other filters).
    `extra` predicates combine with `predicate` using all-of, or any-of when
    `match_any` is set.
    """

    predicate: TagPredicate | None
    scope: "Scope"
    extra: tuple[TagPredicate, ...] = ()
    match_any: bool = False
    include_done: bool = False
    done_tag: str = "done"
    project: tuple[str, ...] = ()
    search: tuple[str, ...] = ()

    @property
    def predicates(self) -> tuple[TagPredicate, ...]:
        head = (self.predicate,) if self.predicate is not None else ()
        return head + self.extra


def _in_project(action: Action, titles: tuple[str, ...]) -> bool:
    wanted = [t.lower() for t in titles]
    path = [t.lower() for t in action.project_path]
    # any contiguous run of the action's project path
    for start in range(len(path) - len(wanted) + 1):
        if path[start : start + len(wanted)] == wanted:
            return True
    return False


def matches(action: Action, query: MatchQuery) -> bool:
    """Decide whether `action` satisfies `query`.

    Pure and total: malformed values fall back to lexical comparison.
    """
    predicates = query.predicates
    if predicates:
        results = (action_has(action, p) for p in predicates)
        if not (any(results) if query.match_any else all(results)):
            return False

    if not query.include_done and action.has_tag(query.done_tag):
        asked_for_done = any(p.key.lower() == query.done_tag.lower() for p in predicates)
        if not asked_for_done:
            return False

    if query.project and not _in_project(action, query.project):
        return False

    if query.search:
        body = strip_tags(action.text).casefold()
        if not all(word.casefold() in body for word in query.search):
            return False

    return True
