"""CLI entrypoint for na."""

import dataclasses
import logging
import sys
from pathlib import Path
from typing import Callable

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import NAConfig, load_config
from .errors import ConfigError, NAError
from .outline.tags import parse_tag_expression


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=debug)],
        force=True,
    )


def _config(ctx: click.Context) -> NAConfig:
    return ctx.obj["config"]


def _finish(run: Callable[[], int]) -> None:
    """Run a command body and exit with its code; engine errors become
    click errors so the user sees the path and the reason."""
    try:
        code = run()
    except NAError as e:
        raise click.ClickException(str(e)) from e
    sys.exit(code)


def _validate_tags(ctx: click.Context, param: click.Parameter, value: tuple[str, ...]) -> tuple[str, ...]:
    for expression in value:
        try:
            parse_tag_expression(expression)
        except ValueError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param) from e
    return value


@click.group()
@click.version_option(__version__, prog_name="na")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Config file (defaults to $NA_CONFIG or ~/.config/na/config.toml)",
)
@click.option("--ext", default=None, help="Project file extension (default: taskpaper)")
@click.option("--tag", "na_tag", default=None, help="Tag that marks next actions (default: na)")
@click.option(
    "--depth",
    "-d",
    type=click.IntRange(min=0),
    default=None,
    help="Directory levels to search below the current one (0 = current only)",
)
@click.option("--pager/--no-pager", default=None, help="Page output")
@click.option("--color/--no-color", default=None, help="Colorize output")
@click.option("--repo/--no-repo", default=None, help="Use the git repository's project file when inside a repo")
@click.option("--debug", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    ext: str | None,
    na_tag: str | None,
    depth: int | None,
    pager: bool | None,
    color: bool | None,
    repo: bool | None,
    debug: bool,
) -> None:
    """na - list and add next actions in TaskPaper-style project files.

    Without --depth, files are looked up in the current directory only, or
    in the git repository root when inside a repository.
    """
    _setup_logging(debug)
    ctx.ensure_object(dict)
    try:
        config = load_config(config_file)
        overrides = {
            "extension": ext,
            "tag": na_tag,
            "depth": depth,
            "pager": pager,
            "color": color,
            "repo": repo,
        }
        merged = dataclasses.asdict(config)
        merged.update({k: v for k, v in overrides.items() if v is not None})
        config = NAConfig.from_mapping(merged)
    except ConfigError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    ctx.obj["config"] = config
    ctx.obj["cwd"] = Path.cwd()


def _project_filter(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    from .outline.insert import split_project_path

    return split_project_path(value)


@cli.command("next")
@click.argument("patterns", nargs=-1)
@click.option("--in", "project", default=None, metavar="PROJECT", help="Only actions under this project (e.g. Work:Backend)")
@click.option("--tagged", "-t", "tags", multiple=True, callback=_validate_tags, help="Additional tag expression. Repeatable.")
@click.option("--done", "include_done", is_flag=True, help="Include completed actions")
@click.option("--file", "-f", "files", multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Read this file instead of searching. Repeatable.")
@click.option("--verbose", is_flag=True, help="Report parse warnings")
@click.pass_context
def next_cmd(
    ctx: click.Context,
    patterns: tuple[str, ...],
    project: str | None,
    tags: tuple[str, ...],
    include_done: bool,
    files: tuple[Path, ...],
    verbose: bool,
) -> None:
    """Show next actions.

    PATTERNS narrow the search to project files whose path contains them.

    Examples:

        na next

        na -d 3 next --in Work

        na next client -t priority>2
    """
    from .commands.query import run_next

    _finish(
        lambda: run_next(
            _config(ctx),
            ctx.obj["cwd"],
            tags=tags,
            project=_project_filter(project),
            include_done=include_done,
            files=files,
            patterns=patterns,
            verbose=verbose,
        )
    )


@cli.command()
@click.argument("expressions", nargs=-1, required=True, callback=_validate_tags)
@click.option("--or", "match_any", is_flag=True, help="Match any expression instead of all")
@click.option("--in", "project", default=None, metavar="PROJECT", help="Only actions under this project")
@click.option("--done", "include_done", is_flag=True, help="Include completed actions")
@click.option("--file", "-f", "files", multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Read this file instead of searching. Repeatable.")
@click.option("--verbose", is_flag=True, help="Report parse warnings")
@click.pass_context
def tagged(
    ctx: click.Context,
    expressions: tuple[str, ...],
    match_any: bool,
    project: str | None,
    include_done: bool,
    files: tuple[Path, ...],
    verbose: bool,
) -> None:
    """Show actions matching tag expressions.

    Operators: = (or ==), *= contains, ^= begins with, $= ends with,
    > >= < <= (numeric when both sides are numbers).

    Examples:

        na tagged waiting

        na tagged "priority>=3" "due<2024-06-01"

        na tagged --or home errand
    """
    from .commands.query import run_tagged

    _finish(
        lambda: run_tagged(
            _config(ctx),
            ctx.obj["cwd"],
            expressions,
            match_any=match_any,
            project=_project_filter(project),
            include_done=include_done,
            files=files,
            verbose=verbose,
        )
    )


@cli.command()
@click.argument("words", nargs=-1, required=True)
@click.option("--in", "project", default=None, metavar="PROJECT", help="Only actions under this project")
@click.option("--done", "include_done", is_flag=True, help="Include completed actions")
@click.option("--file", "-f", "files", multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Read this file instead of searching. Repeatable.")
@click.pass_context
def find(
    ctx: click.Context,
    words: tuple[str, ...],
    project: str | None,
    include_done: bool,
    files: tuple[Path, ...],
) -> None:
    """Find actions containing every word, tagged or not."""
    from .commands.query import run_find

    _finish(
        lambda: run_find(
            _config(ctx),
            ctx.obj["cwd"],
            words,
            project=_project_filter(project),
            include_done=include_done,
            files=files,
        )
    )


@cli.command()
@click.argument("text", nargs=-1, required=True)
@click.option("--to", "project", default=None, metavar="PROJECT", help="Target project, e.g. Work:Backend (default: Inbox)")
@click.option("--at", "position", type=click.Choice(["start", "end"]), default=None, help="Position within the project")
@click.option("--priority", "-p", type=click.IntRange(min=0), default=None, help="Add @priority(N)")
@click.option("--note", "-n", "notes", multiple=True, help="Note line under the action. Repeatable.")
@click.option("--file", "-f", "file", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None, help="Add to this file")
@click.option("--no-tag", is_flag=True, help="Do not add the next-action tag")
@click.option("--strict", is_flag=True, help="Fail instead of choosing when the project name is ambiguous")
@click.pass_context
def add(
    ctx: click.Context,
    text: tuple[str, ...],
    project: str | None,
    position: str | None,
    priority: int | None,
    notes: tuple[str, ...],
    file: Path | None,
    no_tag: bool,
    strict: bool,
) -> None:
    """Add a next action.

    Examples:

        na add call the client

        na add --to Work:Backend --at start fix login bug -p 3
    """
    from .commands.add import run_add

    _finish(
        lambda: run_add(
            _config(ctx),
            ctx.obj["cwd"],
            " ".join(text),
            project=project,
            position=position,  # type: ignore[arg-type]
            file=file,
            priority=priority,
            notes=notes,
            tagged=not no_tag,
            strict=strict,
        )
    )


@cli.command()
@click.argument("words", nargs=-1, required=True)
@click.option("--in", "project", default=None, metavar="PROJECT", help="Only actions under this project")
@click.option("--all", "all_matches", is_flag=True, help="Complete every matching action")
@click.option("--file", "-f", "files", multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Search this file. Repeatable.")
@click.pass_context
def complete(
    ctx: click.Context,
    words: tuple[str, ...],
    project: str | None,
    all_matches: bool,
    files: tuple[Path, ...],
) -> None:
    """Mark the action containing WORDS as done."""
    from .commands.add import run_complete

    _finish(
        lambda: run_complete(
            _config(ctx),
            ctx.obj["cwd"],
            words,
            project=_project_filter(project),
            files=files,
            all_matches=all_matches,
        )
    )


@cli.command()
@click.argument("patterns", nargs=-1)
@click.option("--file", "-f", "files", multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Read this file instead of searching. Repeatable.")
@click.pass_context
def projects(ctx: click.Context, patterns: tuple[str, ...], files: tuple[Path, ...]) -> None:
    """List projects in the project files in scope."""
    from .commands.listing import run_projects

    _finish(lambda: run_projects(_config(ctx), ctx.obj["cwd"], files=files, patterns=patterns))


@cli.command()
@click.argument("patterns", nargs=-1)
@click.pass_context
def todos(ctx: click.Context, patterns: tuple[str, ...]) -> None:
    """List the project files that would be searched."""
    from .commands.listing import run_todos

    _finish(lambda: run_todos(_config(ctx), ctx.obj["cwd"], patterns=patterns))


@cli.command()
@click.argument("name", required=False)
@click.pass_context
def init(ctx: click.Context, name: str | None) -> None:
    """Create a project file in the current directory.

    NAME defaults to the directory name.
    """
    from .commands.listing import run_init

    _finish(lambda: run_init(_config(ctx), ctx.obj["cwd"], name))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
