"""Configuration defaults and loading.

The engine never reads configuration on its own; the CLI loads an `NAConfig`
once and threads it through every call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigError
from .outline.parser import OutlineConvention
from .outline.scanner import DEFAULT_IGNORE

CONFIG_ENV = "NA_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/na/config.toml")
POSITIONS = ("start", "end")


@dataclass(frozen=True)
class NAConfig:
    extension: str = "taskpaper"
    tag: str = "na"
    done_tag: str = "done"
    depth: int = 1
    position: str = "end"
    default_project: str = "Inbox"
    indent_width: int = 4
    ignore: tuple[str, ...] = DEFAULT_IGNORE
    color: bool = True
    pager: bool = False
    repo: bool = True

    @property
    def convention(self) -> OutlineConvention:
        return OutlineConvention(indent_width=self.indent_width)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "NAConfig":
        """Build a config from a mapping, ignoring unknown keys.

        Raises:
            ConfigError: if a known key has an unusable value.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, raw in data.items():
            key = key.replace("-", "_")
            if key not in known:
                continue
            values[key] = _coerce(key, raw)
        return cls(**values)


def _coerce(key: str, raw: Any) -> Any:
    if key in ("extension", "tag", "done_tag", "default_project"):
        value = str(raw).strip()
        if key == "extension":
            value = value.lstrip(".")
        if key in ("tag", "done_tag"):
            value = value.lstrip("@")
        if not value:
            raise ConfigError(f"{key} must not be empty")
        return value

    if key in ("depth", "indent_width"):
        if isinstance(raw, bool):
            raise ConfigError(f"{key} must be an integer")
        try:
            value = int(raw)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{key} must be an integer, got {raw!r}") from e
        minimum = 0 if key == "depth" else 1
        if value < minimum:
            raise ConfigError(f"{key} must be >= {minimum}")
        return value

    if key == "position":
        value = str(raw).strip().lower()
        if value not in POSITIONS:
            raise ConfigError(f"position must be one of {', '.join(POSITIONS)}")
        return value

    if key == "ignore":
        if isinstance(raw, str):
            raw = [raw]
        if not isinstance(raw, (list, tuple)):
            raise ConfigError("ignore must be a list of patterns")
        return tuple(str(p) for p in raw)

    if not isinstance(raw, bool):
        raise ConfigError(f"{key} must be true or false")
    return raw


def config_path() -> Path:
    env = os.environ.get(CONFIG_ENV)
    return Path(env).expanduser() if env else DEFAULT_CONFIG_PATH.expanduser()


def load_config(path: Path | None = None) -> NAConfig:
    """Load configuration from TOML; a missing file yields the defaults."""
    import tomllib

    path = path or config_path()
    if not path.exists():
        return NAConfig()
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e
    # Options may live at the top level or under [na]
    section = data.get("na", data)
    if not isinstance(section, dict):
        raise ConfigError(f"{path}: [na] must be a table")
    return NAConfig.from_mapping(section)
