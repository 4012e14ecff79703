"""Data models for project files, projects and actions."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Literal

Position = Literal["start", "end"]

IssueKind = Literal["malformed-indentation", "orphaned-action", "malformed-tag"]


@dataclass(frozen=True)
class Tag:
    """An inline `@key` or `@key(value)` annotation."""

    key: str
    value: str | None = None
    malformed: bool = False

    @property
    def name(self) -> str:
        """Case-folded key used for comparisons."""
        return self.key.lower()

    def __str__(self) -> str:
        if self.value is None:
            return f"@{self.key}"
        return f"@{self.key}({self.value})"


@dataclass(frozen=True)
class ParseIssue:
    """A non-fatal problem found on one line of a project file."""

    line: int  # zero-based line offset
    kind: IssueKind
    message: str

    def __str__(self) -> str:
        return f"line {self.line + 1}: [{self.kind}] {self.message}"


@dataclass
class Action:
    """A single todo line."""

    text: str  # line body without indentation or action prefix
    line: int
    project_path: tuple[str, ...]
    tags: list[Tag] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    indent_level: int = 0

    def get_tag(self, key: str) -> Tag | None:
        wanted = key.lower()
        for tag in self.tags:
            if tag.name == wanted:
                return tag
        return None

    def has_tag(self, key: str) -> bool:
        return self.get_tag(key) is not None

    @property
    def identity(self) -> tuple[tuple[str, ...], int]:
        return (self.project_path, self.line)

    def structure(self) -> tuple:
        return (self.text, tuple(self.tags), tuple(self.notes))


@dataclass
class Project:
    """A named node in the outline; the root node has depth 0 and no title."""

    title: str
    depth: int
    path: tuple[str, ...] = ()
    line: int = -1  # title line offset, -1 for the root
    end_line: int = -1  # last non-blank line of this project's content
    tags: list[Tag] = field(default_factory=list)
    children: list["Project"] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.depth == 0

    @property
    def display_path(self) -> str:
        return ":".join(self.path)

    def walk(self) -> Iterator["Project"]:
        """Yield this project and all descendants in depth-first pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def iter_actions(self) -> Iterator[tuple["Project", Action]]:
        """Yield (owner, action) for every action reachable from this project."""
        for project in self.walk():
            for action in project.actions:
                yield project, action

    def find(self, titles: tuple[str, ...] | list[str]) -> list["Project"]:
        """Projects whose path ends with `titles`, compared case-insensitively.

        Results are in pre-order; the root never matches.
        """
        wanted = tuple(t.lower() for t in titles)
        if not wanted:
            return []
        found = []
        for project in self.walk():
            if project.is_root or len(project.path) < len(wanted):
                continue
            tail = tuple(t.lower() for t in project.path[-len(wanted):])
            if tail == wanted:
                found.append(project)
        return found

    def structure(self) -> tuple:
        """Position-free nested form used to compare two parses."""
        return (
            self.title,
            self.depth,
            tuple(self.tags),
            tuple(a.structure() for a in self.actions),
            tuple(c.structure() for c in self.children),
        )


@dataclass
class ProjectFile:
    """A parsed project file on disk."""

    path: Path
    text: str
    mtime: float
    root: Project
    issues: list[ParseIssue] = field(default_factory=list)
    indent: str = "\t"

    @property
    def extension(self) -> str:
        return self.path.suffix.lstrip(".")

    @property
    def lines(self) -> list[str]:
        return self.text.splitlines(keepends=True)


@dataclass(frozen=True)
class InsertionTarget:
    """Where a new action will be spliced into a project file.

    `missing` holds project titles that do not exist yet; they are written
    (nested under `parent_path`) together with the action.
    """

    file: ProjectFile
    project_path: tuple[str, ...]
    offset: int
    indent_level: int
    indent: str
    parent_path: tuple[str, ...] = ()
    missing: tuple[str, ...] = ()

    @property
    def creates_projects(self) -> bool:
        return bool(self.missing)


@dataclass(frozen=True)
class Match:
    """One query result."""

    file: ProjectFile
    project: Project
    action: Action
