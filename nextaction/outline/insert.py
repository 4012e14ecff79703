"""Resolving where a new action goes and splicing it into its file."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Sequence

from ..errors import AmbiguousTargetError, WriteError
from ..models import InsertionTarget, Position, Project, ProjectFile
from .loader import load_project_file
from .parser import OutlineConvention

logger = logging.getLogger(__name__)


def split_project_path(value: str) -> tuple[str, ...]:
    """Split `Work:Backend` or `Work/Backend` into titles."""
    for sep in (":", "/"):
        if sep in value:
            return tuple(part.strip() for part in value.split(sep) if part.strip())
    return (value.strip(),) if value.strip() else ()


def _pick(candidates: list[Project], project_file: ProjectFile, titles: tuple[str, ...], strict: bool) -> Project:
    if len(candidates) == 1:
        return candidates[0]
    if strict:
        raise AmbiguousTargetError(
            project_file.path,
            f"project '{':'.join(titles)}' matches {len(candidates)} projects",
            [p.display_path for p in candidates],
        )
    # shallowest wins; min() keeps the first in pre-order among equals
    chosen = min(candidates, key=lambda p: p.depth)
    logger.debug(
        "Project '%s' is ambiguous in %s, using %s",
        ":".join(titles),
        project_file.path,
        chosen.display_path,
    )
    return chosen


def resolve_insertion(
    project_file: ProjectFile,
    project_path: Sequence[str],
    position: Position = "end",
    strict: bool = False,
) -> InsertionTarget:
    """Compute where an action for `project_path` belongs in `project_file`.

    Titles match the tail of a project's path, case-insensitively. When the
    full path does not exist, the longest existing prefix becomes the parent
    and the remaining titles are created at the end of the parent's content.

    Raises:
        ValueError: for an empty path or an unknown position.
        AmbiguousTargetError: if `strict` and a path matches several projects.
    """
    titles = tuple(t.strip() for t in project_path if t and t.strip())
    if not titles:
        raise ValueError("project path must not be empty")
    if position not in ("start", "end"):
        raise ValueError(f"position must be 'start' or 'end', got {position!r}")

    root = project_file.root
    parent = root
    missing = titles
    for cut in range(len(titles), 0, -1):
        found = root.find(titles[:cut])
        if found:
            parent = _pick(found, project_file, titles[:cut], strict)
            missing = titles[cut:]
            break

    if not missing:
        offset = parent.line + 1 if position == "start" else parent.end_line + 1
        return InsertionTarget(
            file=project_file,
            project_path=parent.path,
            offset=offset,
            indent_level=parent.depth,
            indent=project_file.indent,
            parent_path=parent.path,
        )

    return InsertionTarget(
        file=project_file,
        project_path=parent.path + missing,
        offset=parent.end_line + 1,
        indent_level=parent.depth + len(missing),
        indent=project_file.indent,
        parent_path=parent.path,
        missing=missing,
    )


def render_insertion(
    target: InsertionTarget,
    text: str,
    notes: Sequence[str] = (),
    convention: OutlineConvention | None = None,
) -> list[str]:
    """Lines (without newlines) that `apply_insertion` will splice in."""
    convention = convention or OutlineConvention()
    indent = target.indent
    base = target.indent_level - len(target.missing)
    lines = [
        f"{indent * (base + i)}{title}{convention.project_delimiter}"
        for i, title in enumerate(target.missing)
    ]
    lines.append(f"{indent * target.indent_level}{convention.action_prefix} {text.strip()}")
    lines.extend(f"{indent * (target.indent_level + 1)}{note.strip()}" for note in notes if note.strip())
    return lines


def _newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def splice(text: str, offset: int, new_lines: Sequence[str]) -> str:
    """Insert `new_lines` before line `offset` of `text`."""
    lines = text.splitlines(keepends=True)
    newline = _newline(text)
    offset = max(0, min(offset, len(lines)))
    if offset == len(lines) and lines and not lines[-1].endswith(("\n", "\r")):
        lines[-1] += newline
    block = [line + newline for line in new_lines]
    return "".join(lines[:offset] + block + lines[offset:])


def atomic_write_text(path: Path, content: str) -> None:
    """Replace `path` with `content`, all or nothing.

    The new content goes to a temporary file in the same directory which is
    then renamed over the original. A symlinked `path` is written through to
    its target so the link survives.

    Raises:
        WriteError: if any step fails; the original file is left as it was.
    """
    path = Path(path)
    target = path.resolve()
    tmp_path: Path | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        if target.exists():
            shutil.copymode(target, tmp_path)
        os.replace(tmp_path, target)
        tmp_path = None
    except OSError as e:
        raise WriteError(path, e.strerror or str(e)) from e
    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)


def apply_insertion(
    target: InsertionTarget,
    text: str,
    notes: Sequence[str] = (),
    convention: OutlineConvention | None = None,
) -> ProjectFile:
    """Splice the action into the file text captured at resolve time and
    write it back atomically. Returns the re-parsed file."""
    new_lines = render_insertion(target, text, notes, convention)
    content = splice(target.file.text, target.offset, new_lines)
    atomic_write_text(target.file.path, content)
    if target.missing:
        logger.info("Created project %s in %s", ":".join(target.project_path), target.file.path)
    logger.info("Added action to %s in %s", ":".join(target.project_path), target.file.path)
    return load_project_file(target.file.path, convention)


def add_action(
    path: Path,
    project_path: Sequence[str],
    text: str,
    position: Position = "end",
    notes: Sequence[str] = (),
    convention: OutlineConvention | None = None,
    strict: bool = False,
) -> ProjectFile:
    """Resolve against the current file content and apply in one step."""
    project_file = load_project_file(path, convention)
    target = resolve_insertion(project_file, project_path, position, strict=strict)
    return apply_insertion(target, text, notes, convention)
