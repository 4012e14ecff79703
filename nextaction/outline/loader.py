"""Reading project files from disk."""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import ParseError
from ..models import ProjectFile
from .parser import OutlineConvention, detect_indent, parse_outline

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    """Read a project file, keeping its line endings untouched."""
    with open(path, encoding="utf-8", newline="") as fh:
        return fh.read()


def parse_project_file(path: Path, text: str, mtime: float, convention: OutlineConvention) -> ProjectFile:
    outline = parse_outline(text, convention)
    for issue in outline.issues:
        logger.debug("%s: %s", path, issue)
    return ProjectFile(
        path=path,
        text=text,
        mtime=mtime,
        root=outline.root,
        issues=outline.issues,
        indent=detect_indent(text, convention),
    )


def load_project_file(path: Path, convention: OutlineConvention | None = None) -> ProjectFile:
    """Load and parse a single project file.

    Raises:
        ParseError: if the file cannot be read or decoded.
    """
    path = Path(path).absolute()
    try:
        text = read_text(path)
        mtime = path.stat().st_mtime
    except UnicodeDecodeError as e:
        raise ParseError(path, f"not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise ParseError(path, e.strerror or str(e)) from e
    return parse_project_file(path, text, mtime, convention or OutlineConvention())
