"""Tests for building and querying the action index."""

from pathlib import Path

import pytest

from nextaction.config import NAConfig
from nextaction.errors import ParseError, ScanError
from nextaction.outline.index import ActionIndex, Scope
from nextaction.outline.tags import MatchQuery, TagPredicate, parse_tag_expression


def _texts(results) -> list[str]:
    return [m.action.text for m in results]


def test_single_file_query(tmp_path: Path, config: NAConfig):
    path = tmp_path / "work.taskpaper"
    path.write_text("Work:\n\t- fix bug @na\n\t- write docs", encoding="utf-8")
    scope = Scope.file(path)
    index = ActionIndex.from_scope(scope, config)

    results = index.query(MatchQuery(TagPredicate("na"), scope))

    assert len(results) == 1
    assert results[0].action.text == "fix bug @na"
    assert results[0].action.line == 1
    assert results[0].project.title == "Work"
    assert results[0].file.path == path


def test_results_follow_source_order(tmp_path: Path, config: NAConfig, sample_text: str):
    path = tmp_path / "todo.taskpaper"
    path.write_text(sample_text + "\t- trailing home task @na\n", encoding="utf-8")
    scope = Scope.file(path)
    index = ActionIndex.from_scope(scope, config)

    results = index.query(MatchQuery(None, scope))

    lines = [m.action.line for m in results]
    assert lines == sorted(lines)
    assert _texts(results)[:4] == [
        "call mom @na",
        "fix bug @na @priority(2)",
        "write migration @na @priority(10)",
        "review schema @waiting",
    ]
    assert "pay rent @na @done(2024-01-01)" not in _texts(results)


def test_directory_scope_orders_by_path(project_tree: Path, config: NAConfig):
    scope = Scope.directory(project_tree, 2)
    index = ActionIndex.from_scope(scope, config)

    results = index.query(MatchQuery(TagPredicate("na"), scope))

    # sorted by path: client/archive/ sorts before client/client.taskpaper
    assert [m.file.path.name for m in results] == [
        "old.taskpaper",
        "client.taskpaper",
        "todo.taskpaper",
        "todo.taskpaper",
        "todo.taskpaper",
    ]
    assert _texts(results)[:2] == ["ancient task @na", "send invoice @na"]


def test_query_respects_narrower_scope(project_tree: Path, config: NAConfig):
    index = ActionIndex.from_scope(Scope.directory(project_tree, 2), config)
    narrow = Scope.directory(project_tree, 0)

    results = index.query(MatchQuery(TagPredicate("na"), narrow))

    assert {m.file.path.name for m in results} == {"todo.taskpaper"}


def test_value_predicates(project_tree: Path, config: NAConfig):
    scope = Scope.directory(project_tree, 0)
    index = ActionIndex.from_scope(scope, config)

    results = index.query(MatchQuery(parse_tag_expression("priority>5"), scope))

    assert _texts(results) == ["write migration @na @priority(10)"]


def test_bad_file_does_not_abort_build(tmp_path: Path, config: NAConfig):
    good = tmp_path / "good.taskpaper"
    good.write_text("A:\n\t- fine @na\n", encoding="utf-8")
    bad = tmp_path / "bad.taskpaper"
    bad.write_bytes(b"A:\n\t- \xff\xfe broken\n")
    missing = tmp_path / "missing.taskpaper"

    index = ActionIndex.build([bad, good, missing], config)

    assert list(index.files) == [good]
    assert len(index.errors) == 2
    assert all(isinstance(e, ParseError) for e in index.errors)
    assert {e.path for e in index.errors} == {bad, missing}


def test_parse_issues_recorded_per_file(tmp_path: Path, config: NAConfig):
    path = tmp_path / "todo.taskpaper"
    path.write_text("- orphan @na\nA:\n\t- ok @na\n", encoding="utf-8")
    scope = Scope.file(path)
    index = ActionIndex.from_scope(scope, config)

    assert [i.kind for i in index.issues[path]] == ["orphaned-action"]
    # the orphan is still indexed
    assert _texts(index.query(MatchQuery(TagPredicate("na"), scope))) == ["orphan @na", "ok @na"]


def test_scan_errors_kept_with_results(tmp_path: Path, config: NAConfig):
    (tmp_path / "todo.taskpaper").write_text("A:\n\t- ok @na\n", encoding="utf-8")
    try:
        (tmp_path / "dangling.taskpaper").symlink_to(tmp_path / "gone.taskpaper")
    except OSError:
        pytest.skip("symlinks not supported")

    index = ActionIndex.from_scope(Scope.directory(tmp_path, 0), config)

    assert len(index.files) == 1
    assert len(index.scan_errors) == 1
    assert isinstance(index.scan_errors[0], ScanError)


def test_reload_reparses(tmp_path: Path, config: NAConfig):
    path = tmp_path / "todo.taskpaper"
    path.write_text("A:\n\t- one @na\n", encoding="utf-8")
    scope = Scope.file(path)
    index = ActionIndex.from_scope(scope, config)
    before = index.files[path]

    path.write_text("A:\n\t- one @na\n\t- two @na\n", encoding="utf-8")
    after = index.reload(path)

    assert after is not before
    assert len(before.root.children[0].actions) == 1
    assert _texts(index.query(MatchQuery(TagPredicate("na"), scope))) == ["one @na", "two @na"]


def test_projects_in_preorder(tmp_path: Path, config: NAConfig, sample_text: str):
    path = tmp_path / "todo.taskpaper"
    path.write_text(sample_text, encoding="utf-8")
    index = ActionIndex.from_scope(Scope.file(path), config)

    assert [p.display_path for _, p in index.projects()] == ["Inbox", "Work", "Work:Backend", "Home"]


def test_scope_validation(tmp_path: Path):
    with pytest.raises(ValueError):
        Scope.files([])
    with pytest.raises(ValueError):
        Scope.directory(tmp_path, -1)


def test_scope_contains(project_tree: Path):
    scope = Scope.directory(project_tree, 1)
    assert scope.contains(project_tree / "todo.taskpaper")
    assert scope.contains(project_tree / "client" / "client.taskpaper")
    assert not scope.contains(project_tree / "client" / "archive" / "old.taskpaper")
    assert not scope.contains(project_tree.parent / "elsewhere.taskpaper")


def test_scope_resolve(project_tree: Path, config: NAConfig):
    names = [p.name for p in Scope.directory(project_tree, 1).resolve(config)]
    assert names == ["todo.taskpaper", "client.taskpaper"]

    explicit = project_tree / "client" / "client.taskpaper"
    assert list(Scope.files([explicit]).resolve(config)) == [explicit]


def test_narrowed_scope_errors_reach_the_index(tmp_path: Path, config: NAConfig):
    path = tmp_path / "todo.taskpaper"
    path.write_text("A:\n\t- ok @na\n", encoding="utf-8")
    problem = ScanError(tmp_path / "locked", "permission denied")

    index = ActionIndex.from_scope(Scope.files([path], [problem]), config)

    assert index.scan_errors == [problem]
    assert Scope.files([path], [problem]) == Scope.files([path])
