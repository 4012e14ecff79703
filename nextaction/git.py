"""Git repository scope: the project file that belongs to the current repo."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from .outline.scanner import DEFAULT_IGNORE, DirectoryScanner, select_project_file

logger = logging.getLogger(__name__)


def repo_root(cwd: Path) -> Path | None:
    """Top-level directory of the git work tree containing `cwd`."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("git unavailable: %s", e)
        return None
    if result.returncode != 0:
        return None
    top = result.stdout.strip()
    return Path(top) if top else None


def find_repo_file(cwd: Path, extension: str, ignore: tuple[str, ...] = DEFAULT_IGNORE) -> tuple[Path, str] | None:
    """Return (project file, repository name) for the repo around `cwd`.

    Only files directly in the repository root are considered.
    """
    root = repo_root(cwd)
    if root is None:
        return None
    scanner = DirectoryScanner(root, 0, extension, ignore)
    chosen = select_project_file(scanner, root)
    if chosen is None:
        logger.debug("No .%s file in repository %s", extension, root)
        return None
    return chosen.absolute(), root.name
