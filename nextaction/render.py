"""Rendering results to a text blob for the pager."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from rich.console import Console
from rich.text import Text

from .models import Match, Project, ProjectFile

TAG_STYLE = "yellow"
FILE_STYLE = "dim"
PROJECT_STYLE = "cyan"
TAG_REGEX = r"(?:(?<=\s)|^)@[A-Za-z0-9_](?:[\w.-]*\w)?(?:\([^)]*\))?"


def _console(color: bool) -> Console:
    return Console(
        force_terminal=color,
        no_color=not color,
        color_system="standard" if color else None,
        highlight=False,
        soft_wrap=True,
        width=200,
    )


def _relative(path: Path, cwd: Path | None) -> Path:
    if cwd is None:
        return Path(path)
    try:
        return Path(path).relative_to(cwd)
    except ValueError:
        return Path(path)


def file_label(path: Path, cwd: Path | None = None) -> str:
    """Path relative to `cwd` without the extension."""
    return str(_relative(path, cwd).with_suffix(""))


def match_line(match: Match, cwd: Path | None = None) -> Text:
    line = Text()
    line.append(file_label(match.file.path, cwd), style=FILE_STYLE)
    if match.project.path:
        line.append(" ")
        line.append(match.project.display_path, style=PROJECT_STYLE)
    line.append(" ")
    body = Text(match.action.text)
    body.highlight_regex(TAG_REGEX, TAG_STYLE)
    line.append_text(body)
    return line


def _render(lines: Iterable[Text], color: bool) -> str:
    console = _console(color)
    with console.capture() as capture:
        for line in lines:
            console.print(line)
    return capture.get()


def format_matches(matches: Iterable[Match], color: bool = True, cwd: Path | None = None) -> str:
    return _render((match_line(m, cwd) for m in matches), color)


def format_projects(pairs: Iterable[tuple[ProjectFile, Project]], color: bool = True, cwd: Path | None = None) -> str:
    lines = []
    current: Path | None = None
    for project_file, project in pairs:
        if project_file.path != current:
            current = project_file.path
            lines.append(Text(file_label(current, cwd), style=FILE_STYLE))
        lines.append(Text("  " * project.depth + project.title, style=PROJECT_STYLE))
    return _render(lines, color)


def format_files(paths: Iterable[Path], color: bool = True, cwd: Path | None = None) -> str:
    return _render((Text(str(_relative(p, cwd))) for p in paths), color)
