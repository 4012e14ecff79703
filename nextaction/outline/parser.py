"""Outline parsing for TaskPaper-style project files.

A project file is line oriented:

    Work:
    	- fix bug @na
    		a note under the action
    	Backend: @area(server)
    		- write migration @na @priority(2)

Indentation (tabs, or `indent_width` spaces) gives nesting, a trailing
delimiter marks a project title, a leading prefix marks an action, and
anything else is a note.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..models import Action, ParseIssue, Project, Tag

# An @ that starts the text or follows whitespace; keys end on a word character
TAG_START = re.compile(r"(?:(?<=\s)|^)@([A-Za-z0-9_](?:[\w.-]*\w)?)")


@dataclass(frozen=True)
class OutlineConvention:
    """Nesting convention for one family of project files."""

    indent_width: int = 4
    project_delimiter: str = ":"
    action_prefix: str = "-"


@dataclass
class Outline:
    """Result of parsing: the root project plus per-line issues."""

    root: Project
    issues: list[ParseIssue] = field(default_factory=list)


def extract_tags(text: str) -> tuple[list[Tag], list[str]]:
    """Extract inline tags from a line.

    Returns:
        (tags, problems) where problems describe malformed tag tokens. A
        malformed token still yields a Tag with no value.
    """
    tags: list[Tag] = []
    problems: list[str] = []
    pos = 0
    while True:
        match = TAG_START.search(text, pos)
        if match is None:
            break
        key = match.group(1)
        pos = match.end()
        if not text.startswith("(", pos):
            tags.append(Tag(key))
            continue
        close = text.find(")", pos)
        if close == -1:
            problems.append(f"unclosed value for @{key}")
            tags.append(Tag(key, None, malformed=True))
            continue
        tags.append(Tag(key, text[pos + 1 : close].strip()))
        pos = close + 1
    return tags, problems


def strip_tags(text: str) -> str:
    """Return `text` with tag tokens removed and whitespace collapsed."""
    pieces = []
    pos = 0
    while True:
        match = TAG_START.search(text, pos)
        if match is None:
            pieces.append(text[pos:])
            break
        pieces.append(text[pos : match.start()])
        pos = match.end()
        if text.startswith("(", pos):
            close = text.find(")", pos)
            if close != -1:
                pos = close + 1
    return " ".join("".join(pieces).split())


def detect_indent(text: str, convention: OutlineConvention | None = None) -> str:
    """Indentation unit used by `text`; a tab when nothing is indented."""
    convention = convention or OutlineConvention()
    for line in text.splitlines():
        if not line.strip():
            continue
        if line.startswith("\t"):
            return "\t"
        if line.startswith(" "):
            return " " * convention.indent_width
    return "\t"


def _measure_indent(line: str, width: int) -> tuple[int, bool, str]:
    """Return (level, clean, content) for a raw line.

    `clean` is False when spaces do not add up to whole levels.
    """
    content = line.lstrip(" \t")
    leading = line[: len(line) - len(content)]
    level = 0
    spaces = 0
    clean = True
    for ch in leading:
        if ch == "\t":
            if spaces % width:
                clean = False
            level += spaces // width + 1
            spaces = 0
        else:
            spaces += 1
    if spaces % width:
        clean = False
    level += spaces // width
    return level, clean, content


def _is_action(stripped: str, convention: OutlineConvention) -> bool:
    prefix = convention.action_prefix
    return stripped == prefix or stripped.startswith(prefix + " ")


def _project_pattern(convention: OutlineConvention) -> re.Pattern[str]:
    delim = re.escape(convention.project_delimiter)
    return re.compile(
        rf"^(?P<title>\S.*?){delim}(?P<tags>(?:\s+@[A-Za-z0-9_][^\s(]*(?:\([^)]*\)|\([^)]*$)?)*)\s*$"
    )


class _OutlineBuilder:
    """Stack machine over indentation depth.

    The stack holds the currently open projects, root first. A line at
    indentation level L closes (pops) every project deeper than L before it is
    attached, so the top of the stack is always the line's owner.
    """

    def __init__(self, convention: OutlineConvention) -> None:
        self.convention = convention
        self.root = Project(title="", depth=0)
        self.stack: list[Project] = [self.root]
        self.issues: list[ParseIssue] = []
        self.last_action: Action | None = None
        self._project_re = _project_pattern(convention)

    @property
    def top(self) -> Project:
        return self.stack[-1]

    def _pop_to(self, level: int) -> Project:
        while self.top.depth > level:
            self.stack.pop()
        return self.top

    def _touch(self, offset: int) -> None:
        for project in self.stack:
            project.end_line = offset

    def _issue(self, offset: int, kind: str, message: str) -> None:
        self.issues.append(ParseIssue(offset, kind, message))  # type: ignore[arg-type]

    def feed(self, offset: int, raw: str) -> None:
        if not raw.strip():
            return
        level, clean, content = _measure_indent(raw, self.convention.indent_width)
        stripped = content.rstrip()
        if not clean:
            self._issue(offset, "malformed-indentation", "indentation is not a whole number of levels")

        if _is_action(stripped, self.convention):
            self._action(offset, level, stripped)
            return

        match = self._project_re.match(stripped)
        if match:
            self._project(offset, level, match.group("title").strip(), match.group("tags"))
            return

        self._note(offset, level, stripped)

    def _action(self, offset: int, level: int, stripped: str) -> None:
        previous = self.last_action
        owner = self._pop_to(level)
        nested = (
            previous is not None
            and previous.project_path == owner.path
            and level <= previous.indent_level + 1
        )
        if level > owner.depth and not nested:
            self._issue(offset, "malformed-indentation", f"action indented deeper than project '{owner.title}'")
        if owner.is_root:
            self._issue(offset, "orphaned-action", "action outside of any project")

        text = stripped[len(self.convention.action_prefix) :].strip()
        tags, problems = extract_tags(text)
        for problem in problems:
            self._issue(offset, "malformed-tag", problem)

        action = Action(
            text=text,
            line=offset,
            project_path=owner.path,
            tags=tags,
            indent_level=level,
        )
        owner.actions.append(action)
        self.last_action = action
        self._touch(offset)

    def _project(self, offset: int, level: int, title: str, tag_text: str) -> None:
        parent = self._pop_to(level)
        if level > parent.depth:
            self._issue(offset, "malformed-indentation", f"project '{title}' indented deeper than its parent")
        tags, problems = extract_tags(tag_text or "")
        for problem in problems:
            self._issue(offset, "malformed-tag", problem)

        project = Project(
            title=title,
            depth=parent.depth + 1,
            path=parent.path + (title,),
            line=offset,
            end_line=offset,
            tags=tags,
        )
        parent.children.append(project)
        self.stack.append(project)
        self.last_action = None
        self._touch(offset)

    def _note(self, offset: int, level: int, stripped: str) -> None:
        action = self.last_action
        if action is not None and level > action.indent_level:
            action.notes.append(stripped)
        else:
            self._pop_to(level).notes.append(stripped)
            self.last_action = None
        self._touch(offset)


def parse_outline(text: str, convention: OutlineConvention | None = None) -> Outline:
    """Parse project file text into a Project tree.

    Parsing is single pass and has no side effects; the same text always
    yields the same tree.
    """
    builder = _OutlineBuilder(convention or OutlineConvention())
    for offset, raw in enumerate(text.splitlines()):
        builder.feed(offset, raw)
    return Outline(root=builder.root, issues=builder.issues)


def serialize_outline(
    root: Project,
    indent: str = "\t",
    convention: OutlineConvention | None = None,
) -> str:
    """Render a Project tree back to canonical outline text."""
    convention = convention or OutlineConvention()
    prefix = convention.action_prefix
    lines: list[str] = []

    def emit_actions(project: Project, level: int) -> None:
        for action in project.actions:
            lines.append(f"{indent * level}{prefix} {action.text}".rstrip())
            lines.extend(f"{indent * (level + 1)}{note}" for note in action.notes)

    def emit(project: Project) -> None:
        title = f"{indent * (project.depth - 1)}{project.title}{convention.project_delimiter}"
        if project.tags:
            title += " " + " ".join(str(tag) for tag in project.tags)
        lines.append(title)
        lines.extend(f"{indent * project.depth}{note}" for note in project.notes)
        emit_actions(project, project.depth)
        for child in project.children:
            emit(child)

    lines.extend(root.notes)
    emit_actions(root, 0)
    for child in root.children:
        emit(child)
    return "\n".join(lines) + ("\n" if lines else "")
