"""Aggregating parsed project files into a queryable index."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Iterator, Literal

from ..errors import NAError, ParseError, ScanError
from ..models import Match, ParseIssue, Project, ProjectFile
from .loader import load_project_file
from .scanner import DirectoryScanner, relative_depth
from .tags import MatchQuery, matches

if TYPE_CHECKING:
    from ..config import NAConfig

logger = logging.getLogger(__name__)

ScopeKind = Literal["file", "directory", "files"]


@dataclass(frozen=True)
class Scope:
    """The set of files a query or scan operates over."""

    kind: ScopeKind
    paths: tuple[Path, ...]
    depth: int = 0
    # problems met while narrowing a directory scan down to `paths`
    errors: tuple[ScanError, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        if not self.paths:
            raise ValueError("scope must name at least one path")
        if self.depth < 0:
            raise ValueError(f"depth must be >= 0, got {self.depth}")

    @classmethod
    def file(cls, path: Path) -> "Scope":
        return cls("file", (Path(path).absolute(),))

    @classmethod
    def directory(cls, root: Path, depth: int) -> "Scope":
        return cls("directory", (Path(root).absolute(),), depth)

    @classmethod
    def files(cls, paths: Iterable[Path], errors: Iterable[ScanError] = ()) -> "Scope":
        return cls("files", tuple(Path(p).absolute() for p in paths), errors=tuple(errors))

    @property
    def root(self) -> Path:
        return self.paths[0]

    def scanner(self, config: "NAConfig") -> DirectoryScanner:
        return DirectoryScanner(self.root, self.depth, config.extension, config.ignore)

    def resolve(self, config: "NAConfig") -> Iterator[Path]:
        """Yield the project files this scope covers."""
        if self.kind == "directory":
            yield from self.scanner(config)
        else:
            yield from self.paths

    def contains(self, path: Path) -> bool:
        path = Path(path).absolute()
        if self.kind != "directory":
            return path in self.paths
        try:
            path.relative_to(self.root)
        except ValueError:
            return False
        return relative_depth(path, self.root) <= self.depth


@dataclass
class ActionIndex:
    """Parsed project files keyed by path.

    The index holds parse results only; a file that changed on disk is
    re-parsed with `reload`, never patched in place.
    """

    files: dict[Path, ProjectFile] = field(default_factory=dict)
    issues: dict[Path, list[ParseIssue]] = field(default_factory=dict)
    errors: list[NAError] = field(default_factory=list)
    config: "NAConfig | None" = None

    @classmethod
    def build(cls, paths: Iterable[Path], config: "NAConfig") -> "ActionIndex":
        """Parse every file in `paths`; failures are recorded, not raised."""
        index = cls(config=config)
        for path in paths:
            index._add(Path(path))
        return index

    @classmethod
    def from_scope(cls, scope: Scope, config: "NAConfig") -> "ActionIndex":
        if scope.kind == "directory":
            scanner = scope.scanner(config)
            index = cls.build(scanner, config)
            index.errors[:0] = scanner.errors
            return index
        index = cls.build(scope.paths, config)
        index.errors[:0] = scope.errors
        return index

    def _add(self, path: Path) -> None:
        convention = self.config.convention if self.config else None
        try:
            project_file = load_project_file(path, convention)
        except ParseError as e:
            logger.warning("Could not read %s: %s", path, e.reason)
            self.errors.append(e)
            return
        self.files[project_file.path] = project_file
        if project_file.issues:
            self.issues[project_file.path] = project_file.issues

    def reload(self, path: Path) -> ProjectFile | None:
        """Re-parse one file from disk."""
        path = Path(path).absolute()
        self.files.pop(path, None)
        self.issues.pop(path, None)
        self._add(path)
        return self.files.get(path)

    def __len__(self) -> int:
        return len(self.files)

    @property
    def paths(self) -> list[Path]:
        return sorted(self.files)

    @property
    def scan_errors(self) -> list[ScanError]:
        return [e for e in self.errors if isinstance(e, ScanError)]

    def query(self, query: MatchQuery) -> list[Match]:
        """Return matching actions in file-path order, then source-line order."""
        results: list[Match] = []
        for path in self.paths:
            if not query.scope.contains(path):
                continue
            project_file = self.files[path]
            found = [
                Match(project_file, project, action)
                for project, action in project_file.root.iter_actions()
                if matches(action, query)
            ]
            found.sort(key=lambda m: m.action.line)
            results.extend(found)
        return results

    def projects(self) -> Iterator[tuple[ProjectFile, Project]]:
        """Every (file, project) pair in path order, projects in pre-order."""
        for path in self.paths:
            project_file = self.files[path]
            for project in project_file.root.walk():
                if not project.is_root:
                    yield project_file, project


def query(index: ActionIndex, match_query: MatchQuery) -> list[Match]:
    return index.query(match_query)
