"""Query commands: next, tagged, find."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from rich.console import Console

from ..config import NAConfig
from ..errors import NotFoundError
from ..outline.index import ActionIndex, Scope
from ..outline.tags import MatchQuery, TagPredicate, parse_tag_expression
from ..pager import page
from ..render import file_label, format_matches
from .scope import resolve_scope


def report_problems(console: Console, index: ActionIndex, cwd: Path | None = None) -> None:
    """Print scan errors and parse issues collected while indexing."""
    for error in index.errors:
        console.print(f"Warning: {error}", style="yellow", markup=False, highlight=False, soft_wrap=True)
    for path, issues in sorted(index.issues.items()):
        label = file_label(path, cwd)
        for issue in issues:
            console.print(
                f"{label}:{issue.line + 1} {issue.kind}: {issue.message}",
                style="dim",
                markup=False,
                highlight=False,
            )


def run_query(
    config: NAConfig,
    cwd: Path,
    predicate: TagPredicate | None,
    *,
    extra: Sequence[TagPredicate] = (),
    match_any: bool = False,
    include_done: bool = False,
    project: Sequence[str] = (),
    search: Sequence[str] = (),
    files: Sequence[Path] = (),
    patterns: Sequence[str] = (),
    verbose: bool = False,
) -> int:
    """Index the resolved scope, run one query and page the results.

    Returns:
        Exit code (0 even when nothing matches)
    """
    console = Console(stderr=True)

    try:
        scope: Scope = resolve_scope(config, cwd, files, patterns)
    except NotFoundError as e:
        console.print(e.reason, style="yellow")
        return 0

    index = ActionIndex.from_scope(scope, config)
    if verbose:
        report_problems(console, index, cwd)
    elif index.errors:
        report_problems(console, ActionIndex(errors=index.errors), cwd)

    if not index.files:
        console.print(f"No .{config.extension} file found", style="yellow")
        return 0

    match_query = MatchQuery(
        predicate=predicate,
        scope=scope,
        extra=tuple(extra),
        match_any=match_any,
        include_done=include_done,
        done_tag=config.done_tag,
        project=tuple(project),
        search=tuple(search),
    )
    results = index.query(match_query)
    if not results:
        console.print("No matching actions", style="dim")
        return 0

    page(format_matches(results, color=config.color, cwd=cwd), config.pager)
    return 0


def run_next(config: NAConfig, cwd: Path, *, tags: Sequence[str] = (), **kwargs) -> int:
    """Show actions carrying the next-action tag."""
    extra = [parse_tag_expression(t) for t in tags]
    return run_query(config, cwd, TagPredicate(config.tag), extra=extra, **kwargs)


def run_tagged(config: NAConfig, cwd: Path, expressions: Sequence[str], **kwargs) -> int:
    """Show actions matching tag expressions such as `due<2024-01-01`."""
    predicates = [parse_tag_expression(e) for e in expressions]
    return run_query(config, cwd, predicates[0], extra=predicates[1:], **kwargs)


def run_find(config: NAConfig, cwd: Path, words: Sequence[str], **kwargs) -> int:
    """Show actions whose text contains every word."""
    return run_query(config, cwd, None, search=words, **kwargs)
