"""Tests for paging and rendering."""

import subprocess
import sys
from pathlib import Path

import pytest

from nextaction import pager
from nextaction.models import Match
from nextaction.outline.loader import parse_project_file
from nextaction.outline.parser import OutlineConvention
from nextaction.render import file_label, format_matches, format_projects

SINK = [sys.executable, "-c", "import sys; sys.stdin.buffer.read()"]


def test_open_pager_reaps_child():
    with pager.open_pager(SINK) as proc:
        pager.write_to(proc.stdin, "hello\n")
    assert proc.stdin.closed
    assert proc.returncode == 0


def test_open_pager_reaps_child_on_error():
    with pytest.raises(RuntimeError):
        with pager.open_pager(SINK) as proc:
            raise RuntimeError("render failed")
    assert proc.returncode == 0


def test_write_to_tolerates_closed_pager():
    quitter = [sys.executable, "-c", "pass"]
    with pager.open_pager(quitter) as proc:
        proc.wait()
        pager.write_to(proc.stdin, "x" * 1_000_000)


def test_page_without_pagination_prints(capsys: pytest.CaptureFixture[str]):
    assert pager.page("line one\n", paginate=False)
    assert capsys.readouterr().out == "line one\n"


def test_page_falls_back_when_not_a_tty(capsys: pytest.CaptureFixture[str]):
    assert pager.page("line two", paginate=True)
    assert capsys.readouterr().out == "line two\n"


def test_candidate_pagers_order(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PAGER", "most")
    monkeypatch.setenv("GIT_PAGER", "less -FXr")
    monkeypatch.setattr(pager, "git_pager", lambda: None)
    assert pager.candidate_pagers() == ["most", "less -FXr", "more -r"]


def test_which_pager_skips_missing(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(pager, "candidate_pagers", lambda: ["definitely-not-a-pager-xyz", "cat"])
    monkeypatch.setattr(pager.shutil, "which", lambda name: "/bin/cat" if name == "cat" else None)
    assert pager.which_pager() == ["cat"]


def test_git_pager_uses_last_configured_value(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def fake_run(args, **kwargs):
        calls.append(args)
        return subprocess.CompletedProcess(args, 0, stdout="less -R\ndelta\n", stderr="")

    monkeypatch.setattr(pager.shutil, "which", lambda name: "/usr/bin/git")
    monkeypatch.setattr(pager.subprocess, "run", fake_run)

    assert pager.git_pager() == "delta"
    assert calls == [["git", "config", "--get-all", "core.pager"]]


def test_git_pager_unset(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(pager.shutil, "which", lambda name: "/usr/bin/git")
    monkeypatch.setattr(
        pager.subprocess,
        "run",
        lambda args, **kwargs: subprocess.CompletedProcess(args, 1, stdout="", stderr=""),
    )
    assert pager.git_pager() is None


def _project_file(tmp_path: Path, text: str):
    return parse_project_file(tmp_path / "work.taskpaper", text, 0.0, OutlineConvention())


def test_format_matches_plain(tmp_path: Path):
    project_file = _project_file(tmp_path, "Work:\n\tSub:\n\t\t- fix bug @na\n")
    work = project_file.root.children[0]
    sub = work.children[0]
    match = Match(project_file, sub, sub.actions[0])

    text = format_matches([match], color=False, cwd=tmp_path)

    assert text == "work Work:Sub fix bug @na\n"


def test_format_matches_colored_highlights_tags(tmp_path: Path):
    project_file = _project_file(tmp_path, "Work:\n\t- fix bug @na\n")
    work = project_file.root.children[0]

    text = format_matches([Match(project_file, work, work.actions[0])], color=True, cwd=tmp_path)

    assert "\x1b[" in text
    assert "fix bug" in text


def test_format_projects(tmp_path: Path):
    project_file = _project_file(tmp_path, "Work:\n\tSub:\nHome:\n")
    pairs = [(project_file, p) for p in project_file.root.walk() if not p.is_root]

    text = format_projects(pairs, color=False, cwd=tmp_path)

    assert text.splitlines() == ["work", "  Work", "    Sub", "  Home"]


def test_file_label_outside_cwd(tmp_path: Path):
    assert file_label(Path("/elsewhere/todo.taskpaper"), tmp_path) == "/elsewhere/todo"
