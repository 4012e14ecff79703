"""Bounded directory walk that finds project files."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

from ..errors import ScanError

logger = logging.getLogger(__name__)

DEFAULT_IGNORE = (".*", "node_modules", "__pycache__")


class DirectoryScanner:
    """Lazy depth-first walk from `root`, at most `max_depth` levels down.

    Depth 0 is the root directory itself. Files of a directory are yielded in
    name order before its subdirectories are entered. Every resolved real path
    is visited at most once, so symlink cycles terminate. Entries that cannot
    be read are recorded in `errors` and skipped.
    """

    def __init__(
        self,
        root: Path,
        max_depth: int,
        extension: str,
        ignore: Iterable[str] = DEFAULT_IGNORE,
    ) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.root = Path(root)
        self.max_depth = max_depth
        self.extension = extension.lstrip(".").lower()
        self.ignore = tuple(ignore)
        self.errors: list[ScanError] = []

    def _ignored(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.ignore)

    def _record(self, path: Path, reason: str) -> None:
        error = ScanError(path, reason)
        self.errors.append(error)
        logger.warning("Skipping %s: %s", path, reason)

    def _wanted(self, name: str) -> bool:
        return Path(name).suffix.lstrip(".").lower() == self.extension

    def __iter__(self) -> Iterator[Path]:
        return self.walk()

    def walk(self) -> Iterator[Path]:
        try:
            root_real = self.root.resolve(strict=True)
        except OSError as e:
            self._record(self.root, f"cannot resolve scan root ({e.strerror or e})")
            return
        if not root_real.is_dir():
            self._record(self.root, "scan root is not a directory")
            return

        visited: set[Path] = {root_real}
        # (directory, depth); popped LIFO with children pushed in reverse
        stack: list[tuple[Path, int]] = [(self.root, 0)]
        while stack:
            current, depth = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except PermissionError:
                self._record(current, "permission denied")
                continue
            except OSError as e:
                self._record(current, e.strerror or str(e))
                continue

            subdirs: list[Path] = []
            for entry in entries:
                if self._ignored(entry.name):
                    continue
                path = Path(entry.path)
                try:
                    is_dir = entry.is_dir()
                    is_file = entry.is_file()
                except OSError as e:
                    self._record(path, e.strerror or str(e))
                    continue

                if not is_dir and not is_file:
                    if entry.is_symlink():
                        self._record(path, "broken symlink")
                    continue

                try:
                    real = path.resolve(strict=True)
                except (OSError, RuntimeError):
                    self._record(path, "broken symlink")
                    continue
                if real in visited:
                    logger.debug("Already visited %s (via %s)", real, path)
                    continue

                if is_dir:
                    if depth < self.max_depth:
                        visited.add(real)
                        subdirs.append(path)
                elif self._wanted(entry.name):
                    visited.add(real)
                    yield path

            for subdir in reversed(subdirs):
                stack.append((subdir, depth + 1))


def scan(
    root: Path,
    max_depth: int,
    extension: str,
    ignore: Iterable[str] = DEFAULT_IGNORE,
) -> Iterator[Path]:
    """Yield project files below `root`; see DirectoryScanner."""
    return iter(DirectoryScanner(root, max_depth, extension, ignore))


def relative_depth(path: Path, root: Path) -> int:
    """Number of directories between `root` and the file `path`."""
    try:
        return len(Path(path).parent.relative_to(root).parts)
    except ValueError:
        return len(Path(path).parts)


def select_project_file(paths: Iterable[Path], root: Path) -> Path | None:
    """Pick the single project file for a directory: shallowest, then first found."""
    best: Path | None = None
    best_depth = -1
    for path in paths:
        depth = relative_depth(path, root)
        if best is None or depth < best_depth:
            best, best_depth = path, depth
    return best
