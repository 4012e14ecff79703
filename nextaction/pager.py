"""Paging output through an external pager process."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import sys
from contextlib import contextmanager
from typing import IO, Iterator

import click

logger = logging.getLogger(__name__)


def git_pager() -> str | None:
    if shutil.which("git") is None:
        return None
    try:
        result = subprocess.run(
            ["git", "config", "--get-all", "core.pager"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    # the last value wins, as git itself resolves it
    values = [line.strip() for line in result.stdout.splitlines() if line.strip()]
    return values[-1] if values else None


def candidate_pagers() -> list[str]:
    candidates = [
        os.environ.get("PAGER"),
        "less -FXr",
        os.environ.get("GIT_PAGER"),
        git_pager(),
        "more -r",
    ]
    seen: list[str] = []
    for cmd in candidates:
        if cmd and cmd.strip() and cmd not in seen:
            seen.append(cmd.strip())
    return seen


def which_pager() -> list[str] | None:
    """First candidate pager whose executable exists, as an argv list."""
    for cmd in candidate_pagers():
        try:
            argv = shlex.split(cmd)
        except ValueError:
            continue
        if argv and shutil.which(argv[0]):
            return argv
    return None


@contextmanager
def open_pager(argv: list[str]) -> Iterator[subprocess.Popen]:
    """Start `argv` with a pipe on its stdin and yield the process.

    The pipe is closed and the child reaped on every exit path, so
    `returncode` is set once the block exits.
    """
    logger.debug("Pager %s", " ".join(argv))
    proc = subprocess.Popen(argv, stdin=subprocess.PIPE)
    try:
        yield proc
    finally:
        try:
            if proc.stdin is not None:
                proc.stdin.close()
        except BrokenPipeError:
            pass
        proc.wait()
        if proc.returncode:
            logger.debug("Pager exited with status %s", proc.returncode)


def write_to(stream: IO[bytes], text: str) -> None:
    try:
        stream.write(text.encode("utf-8"))
    except BrokenPipeError:
        # user quit the pager before reading everything
        pass


def page(text: str, paginate: bool = False) -> bool:
    """Show `text`, through a pager when `paginate` is set.

    Returns True when the text was shown successfully.
    """
    if not paginate or not sys.stdout.isatty():
        click.echo(text, nl=not text.endswith("\n"))
        return True

    argv = which_pager()
    if argv is None:
        click.echo(text, nl=not text.endswith("\n"))
        return True

    try:
        with open_pager(argv) as proc:
            if proc.stdin is not None:
                write_to(proc.stdin, text)
    except OSError as e:
        logger.warning("Pager error: %s", e)
        click.echo(text, nl=not text.endswith("\n"))
        return False
    return proc.returncode == 0
