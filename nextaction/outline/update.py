"""In-place edits to existing action lines."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Sequence

from ..models import Action, ProjectFile
from .insert import atomic_write_text
from .loader import load_project_file
from .parser import OutlineConvention

logger = logging.getLogger(__name__)

DONE_FORMAT = "%Y-%m-%d %H:%M"


def _remove_tag(line: str, key: str) -> str:
    pattern = re.compile(rf"(^|\s)@{re.escape(key)}(\([^)]*\))?(?![.-]*\w|\()", re.IGNORECASE)

    def drop(match: re.Match[str]) -> str:
        # punctuation right after the tag stays attached to the previous word
        following = line[match.end() : match.end() + 1]
        return match.group(1) if not following or following.isspace() else ""

    return pattern.sub(drop, line).rstrip()


def finish_line(line: str, done_tag: str, remove: Sequence[str], when: datetime) -> str:
    """Return `line` tagged done, with the `remove` tags dropped."""
    body = line.rstrip("\r\n")
    ending = line[len(body) :]
    for key in remove:
        body = _remove_tag(body, key)
    body = re.sub(r"[ \t]{2,}", " ", body[len(body) - len(body.lstrip()) :])
    indent = line[: len(line) - len(line.lstrip(" \t"))]
    return f"{indent}{body.rstrip()} @{done_tag}({when.strftime(DONE_FORMAT)}){ending}"


def mark_done(
    project_file: ProjectFile,
    actions: Sequence[Action],
    done_tag: str = "done",
    remove: Sequence[str] = (),
    when: datetime | None = None,
    convention: OutlineConvention | None = None,
) -> ProjectFile:
    """Tag `actions` (parsed from `project_file`) as done and write the file.

    Actions already carrying the done tag are left alone. Returns the
    re-parsed file.
    """
    when = when or datetime.now()
    lines = project_file.text.splitlines(keepends=True)
    changed = 0
    for action in actions:
        if action.has_tag(done_tag):
            continue
        lines[action.line] = finish_line(lines[action.line], done_tag, remove, when)
        changed += 1
    if not changed:
        return project_file
    atomic_write_text(project_file.path, "".join(lines))
    logger.info("Marked %d action(s) done in %s", changed, project_file.path)
    return load_project_file(project_file.path, convention)
