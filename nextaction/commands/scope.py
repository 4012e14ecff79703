"""Turning command-line scope options into a Scope."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from ..config import NAConfig
from ..errors import NotFoundError, ScanError
from ..git import find_repo_file
from ..outline.index import Scope
from ..outline.scanner import DirectoryScanner, select_project_file

logger = logging.getLogger(__name__)


def _pattern_hit(path: Path, cwd: Path, patterns: Sequence[str]) -> bool:
    try:
        path = path.relative_to(cwd)
    except ValueError:
        pass
    label = str(path.with_suffix("")).lower()
    return all(p.lower() in label for p in patterns)


def resolve_scope(
    config: NAConfig,
    cwd: Path,
    files: Sequence[Path] = (),
    patterns: Sequence[str] = (),
) -> Scope:
    """Explicit files win; then the git repository's file; then a directory scan.

    `patterns` narrows the result to files whose path contains every pattern.

    Raises:
        NotFoundError: if patterns leave no file.
    """
    if files:
        scope = Scope.files(files)
    else:
        repo = find_repo_file(cwd, config.extension, config.ignore) if config.repo else None
        if repo is not None:
            logger.debug("Using %s from repository %s", repo[0], repo[1])
            scope = Scope.file(repo[0])
        else:
            scope = Scope.directory(cwd, config.depth)

    if patterns:
        errors: list[ScanError] = []
        if scope.kind == "directory":
            scanner = scope.scanner(config)
            candidates = list(scanner)
            errors = scanner.errors
        else:
            candidates = list(scope.paths)
        paths = [p for p in candidates if _pattern_hit(Path(p), cwd, patterns)]
        if not paths:
            raise NotFoundError(cwd, f"no .{config.extension} file matching {' '.join(patterns)}")
        scope = Scope.files(paths, errors)
    return scope


def target_file(config: NAConfig, cwd: Path, file: Path | None = None) -> Path:
    """The single file a mutation writes to.

    Raises:
        NotFoundError: if no project file is in scope.
    """
    if file is not None:
        path = Path(file).absolute()
        if not path.is_file():
            raise NotFoundError(path, "file does not exist")
        return path

    if config.repo:
        repo = find_repo_file(cwd, config.extension, config.ignore)
        if repo is not None:
            return repo[0]

    scanner = DirectoryScanner(cwd, config.depth, config.extension, config.ignore)
    chosen = select_project_file(scanner, cwd)
    if chosen is None:
        raise NotFoundError(cwd, f"no .{config.extension} file found (run `na init` to create one)")
    return chosen.absolute()
