"""Listing commands: projects, todos, init."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from rich.console import Console

from ..config import NAConfig
from ..errors import NotFoundError, WriteError
from ..outline.index import ActionIndex
from ..outline.insert import atomic_write_text
from ..pager import page
from ..render import format_files, format_projects
from .query import report_problems
from .scope import resolve_scope


def run_projects(config: NAConfig, cwd: Path, *, files: Sequence[Path] = (), patterns: Sequence[str] = ()) -> int:
    """List the project tree of every file in scope."""
    console = Console(stderr=True)
    try:
        scope = resolve_scope(config, cwd, files, patterns)
    except NotFoundError as e:
        console.print(e.reason, style="yellow")
        return 0

    index = ActionIndex.from_scope(scope, config)
    report_problems(console, ActionIndex(errors=index.errors), cwd)
    pairs = list(index.projects())
    if not pairs:
        console.print("No projects found", style="dim")
        return 0
    page(format_projects(pairs, color=config.color, cwd=cwd), config.pager)
    return 0


def run_todos(config: NAConfig, cwd: Path, *, patterns: Sequence[str] = ()) -> int:
    """List the project files discovery would use."""
    console = Console(stderr=True)
    try:
        scope = resolve_scope(config, cwd, (), patterns)
    except NotFoundError as e:
        console.print(e.reason, style="yellow")
        return 0

    if scope.kind == "directory":
        scanner = scope.scanner(config)
        paths = sorted(scanner)
        errors = list(scanner.errors)
    else:
        paths = sorted(scope.paths)
        errors = list(scope.errors)
    for error in errors:
        console.print(f"Warning: {error}", style="yellow", markup=False, highlight=False, soft_wrap=True)

    if not paths:
        console.print(f"No .{config.extension} file found", style="yellow")
        return 0
    page(format_files(paths, color=config.color, cwd=cwd), config.pager)
    return 0


def run_init(config: NAConfig, cwd: Path, name: str | None = None) -> int:
    """Create a new project file with an empty default project.

    Raises:
        WriteError: if the file already exists or cannot be written.
    """
    console = Console(stderr=True)
    stem = (name or cwd.name).strip()
    if stem.endswith(f".{config.extension}"):
        stem = stem[: -len(config.extension) - 1]
    path = cwd / f"{stem}.{config.extension}"
    if path.exists():
        raise WriteError(path, "already exists")

    atomic_write_text(path, f"{config.default_project}:\n")
    console.print(f"Created {path}", style="green", markup=False, highlight=False)
    return 0
