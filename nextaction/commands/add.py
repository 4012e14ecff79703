"""Mutating commands: add, complete."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from rich.console import Console

from ..config import NAConfig
from ..errors import AmbiguousTargetError, NotFoundError
from ..models import Action, Position, ProjectFile
from ..outline.index import ActionIndex
from ..outline.insert import add_action, split_project_path
from ..outline.tags import MatchQuery
from ..outline.update import mark_done
from ..render import file_label
from .scope import resolve_scope, target_file


def compose_action(
    text: str,
    tag: str | None,
    priority: int | None = None,
) -> str:
    """Append the next-action tag (unless present) and a priority tag."""
    body = " ".join(text.split())
    if tag and f"@{tag.lower()}" not in body.lower().split():
        body = f"{body} @{tag}"
    if priority is not None:
        body = f"{body} @priority({priority})"
    return body


def run_add(
    config: NAConfig,
    cwd: Path,
    text: str,
    *,
    project: str | None = None,
    position: Position | None = None,
    file: Path | None = None,
    priority: int | None = None,
    notes: Sequence[str] = (),
    tagged: bool = True,
    strict: bool = False,
) -> int:
    """Add an action to a project, creating the project if needed.

    Raises:
        NotFoundError: if there is no file to add to.
        WriteError: if the file could not be replaced.
        AmbiguousTargetError: if `strict` and the project path is ambiguous.
    """
    console = Console(stderr=True)
    if not text.strip():
        console.print("Nothing to add", style="yellow")
        return 1

    path = target_file(config, cwd, file)
    project_path = split_project_path(project or config.default_project)
    body = compose_action(text, config.tag if tagged else None, priority)

    add_action(
        path,
        project_path,
        body,
        position or config.position,  # type: ignore[arg-type]
        notes=notes,
        convention=config.convention,
        strict=strict,
    )
    console.print(
        f"Added to {file_label(path, cwd)} {':'.join(project_path)}: {body}",
        style="green",
        markup=False,
        highlight=False,
    )
    return 0


def run_complete(
    config: NAConfig,
    cwd: Path,
    words: Sequence[str],
    *,
    project: Sequence[str] = (),
    files: Sequence[Path] = (),
    all_matches: bool = False,
) -> int:
    """Mark actions containing every word as done.

    Raises:
        NotFoundError: if nothing matches.
        AmbiguousTargetError: if several actions match and `all_matches` is off.
    """
    console = Console(stderr=True)
    scope = resolve_scope(config, cwd, files)
    index = ActionIndex.from_scope(scope, config)
    results = index.query(
        MatchQuery(
            predicate=None,
            scope=scope,
            done_tag=config.done_tag,
            project=tuple(project),
            search=tuple(words),
        )
    )
    if not results:
        raise NotFoundError(cwd, f"no open action matching {' '.join(words)!r}")
    if len(results) > 1 and not all_matches:
        raise AmbiguousTargetError(
            cwd,
            f"{len(results)} actions match; narrow the search or pass --all",
            [f"{file_label(m.file.path, cwd)} {m.action.text}" for m in results],
        )

    by_file: dict[Path, tuple[ProjectFile, list[Action]]] = {}
    for m in results:
        by_file.setdefault(m.file.path, (m.file, []))[1].append(m.action)

    for project_file, actions in by_file.values():
        mark_done(
            project_file,
            actions,
            done_tag=config.done_tag,
            remove=[config.tag],
            convention=config.convention,
        )
        for action in actions:
            console.print(
                f"Completed {file_label(project_file.path, cwd)}: {action.text}",
                style="green",
                markup=False,
                highlight=False,
            )
    return 0
