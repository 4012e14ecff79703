"""Error types shared by the engine and the command layer."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class NAError(RuntimeError):
    """Base error carrying the offending path and a human-readable reason."""

    def __init__(self, path: Path | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}" if path is not None else reason)


class ScanError(NAError):
    """A directory entry could not be visited (permission denied, broken symlink)."""


class ParseError(NAError):
    """A project file could not be read or parsed."""

    def __init__(self, path: Path | None, reason: str, line: int | None = None) -> None:
        self.line = line
        super().__init__(path, reason if line is None else f"line {line + 1}: {reason}")


class NotFoundError(NAError):
    """No project file (or no matching action) exists in the requested scope."""


class WriteError(NAError):
    """An atomic replace failed; the original file is unchanged."""


class AmbiguousTargetError(NAError):
    """A target resolves to more than one distinct node."""

    def __init__(self, path: Path | None, reason: str, candidates: Sequence[str] = ()) -> None:
        self.candidates = list(candidates)
        super().__init__(path, reason)


class ConfigError(ValueError):
    """Invalid configuration value."""
