"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from nextaction.config import NAConfig

SAMPLE = """\
Inbox:
	- call mom @na
Work: @area(office)
	project note
	- fix bug @na @priority(2)
		see ticket 42
	Backend:
		- write migration @na @priority(10)
		- review schema @waiting
	- after backend @due(2024-05-01)
Home:
	- water plants
	- pay rent @na @done(2024-01-01)
"""


@pytest.fixture
def sample_text() -> str:
    return SAMPLE


@pytest.fixture
def config() -> NAConfig:
    """Config that never touches git and renders plain text."""
    return NAConfig(repo=False, color=False)


@pytest.fixture
def project_tree(tmp_path: Path) -> Path:
    """A directory with project files at depth 0, 1 and 2."""
    (tmp_path / "todo.taskpaper").write_text(SAMPLE, encoding="utf-8")
    (tmp_path / "notes.txt").write_text("Work:\n\t- not a project file @na\n", encoding="utf-8")
    sub = tmp_path / "client"
    sub.mkdir()
    (sub / "client.taskpaper").write_text("Client:\n\t- send invoice @na\n", encoding="utf-8")
    deep = sub / "archive"
    deep.mkdir()
    (deep / "old.taskpaper").write_text("Old:\n\t- ancient task @na\n", encoding="utf-8")
    hidden = tmp_path / ".git"
    hidden.mkdir()
    (hidden / "hidden.taskpaper").write_text("Hidden:\n\t- secret @na\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point NA_CONFIG at a file that does not exist."""
    monkeypatch.setenv("NA_CONFIG", str(tmp_path / "missing-config.toml"))
