"""Tests for outline parsing."""

from nextaction.models import Tag
from nextaction.outline.parser import (
    OutlineConvention,
    detect_indent,
    extract_tags,
    parse_outline,
    serialize_outline,
    strip_tags,
)


def test_parses_projects_and_actions(sample_text: str):
    outline = parse_outline(sample_text)
    root = outline.root

    assert outline.issues == []
    assert [p.title for p in root.children] == ["Inbox", "Work", "Home"]

    work = root.children[1]
    assert work.depth == 1
    assert work.path == ("Work",)
    assert work.line == 2
    assert work.end_line == 9
    assert work.tags == [Tag("area", "office")]
    assert work.notes == ["project note"]
    assert [a.text for a in work.actions] == ["fix bug @na @priority(2)", "after backend @due(2024-05-01)"]

    backend = work.children[0]
    assert backend.depth == 2
    assert backend.path == ("Work", "Backend")
    assert backend.end_line == 8
    assert [a.line for a in backend.actions] == [7, 8]


def test_children_are_one_level_deeper(sample_text: str):
    root = parse_outline(sample_text).root
    for project in root.walk():
        for child in project.children:
            assert child.depth == project.depth + 1


def test_action_tags_and_notes(sample_text: str):
    work = parse_outline(sample_text).root.children[1]
    fix = work.actions[0]
    assert fix.tags == [Tag("na"), Tag("priority", "2")]
    assert fix.notes == ["see ticket 42"]
    assert fix.project_path == ("Work",)
    assert fix.has_tag("NA")


def test_line_offsets():
    root = parse_outline("Work:\n\t- fix bug @na\n\t- write docs").root
    work = root.children[0]
    assert [(a.line, a.text) for a in work.actions] == [(1, "fix bug @na"), (2, "write docs")]


def test_shallower_line_closes_deeper_projects():
    text = "A:\n\tB:\n\t\tC:\n\t\t\t- deep\n\t- back in A\n"
    root = parse_outline(text).root
    a = root.children[0]
    assert [x.text for x in a.actions] == ["back in A"]
    assert a.children[0].children[0].actions[0].text == "deep"
    assert a.end_line == 4
    assert a.children[0].end_line == 3


def test_space_indentation():
    text = "Work:\n    - one @na\n    Sub:\n        - two\n"
    outline = parse_outline(text, OutlineConvention(indent_width=4))
    work = outline.root.children[0]
    assert outline.issues == []
    assert work.actions[0].text == "one @na"
    assert work.children[0].actions[0].text == "two"


def test_uneven_spaces_are_reported():
    text = "Work:\n\t- ok\n      - six spaces\n"
    outline = parse_outline(text)
    assert [i.kind for i in outline.issues] == ["malformed-indentation"]
    assert outline.issues[0].line == 2
    # the line is still kept
    assert len(outline.root.children[0].actions) == 2


def test_over_indented_action_is_reported_but_kept():
    outline = parse_outline("Work:\n\t\t\t- too deep\n")
    assert [i.kind for i in outline.issues] == ["malformed-indentation"]
    assert outline.root.children[0].actions[0].text == "too deep"


def test_nested_actions_are_not_malformed():
    outline = parse_outline("Work:\n\t- parent\n\t\t- child\n")
    assert outline.issues == []
    assert [a.text for a in outline.root.children[0].actions] == ["parent", "child"]


def test_orphaned_action():
    outline = parse_outline("- loose end @na\nWork:\n\t- ok\n")
    assert [(i.line, i.kind) for i in outline.issues] == [(0, "orphaned-action")]
    assert outline.root.actions[0].text == "loose end @na"
    assert outline.root.actions[0].project_path == ()


def test_malformed_tag_keeps_action():
    outline = parse_outline("Work:\n\t- ship it @due(2024-01 @na\n")
    assert [i.kind for i in outline.issues] == ["malformed-tag"]
    action = outline.root.children[0].actions[0]
    assert action.text == "ship it @due(2024-01 @na"
    assert action.tags == [Tag("due", None, malformed=True), Tag("na")]


def test_malformed_tag_on_project_keeps_project():
    outline = parse_outline("Work: @area(office\n\t- fix bug @na\n")

    assert [p.title for p in outline.root.children] == ["Work"]
    assert [(i.line, i.kind) for i in outline.issues] == [(0, "malformed-tag")]
    work = outline.root.children[0]
    assert work.tags == [Tag("area", None, malformed=True)]
    assert work.actions[0].project_path == ("Work",)


def test_extract_tags():
    tags, problems = extract_tags("mail bob@example.com @na @due(2024-05-01) done @x.")
    assert problems == []
    assert tags == [Tag("na"), Tag("due", "2024-05-01"), Tag("x")]


def test_strip_tags():
    assert strip_tags("fix bug @na @priority(2) today") == "fix bug today"
    assert strip_tags("ship it @due(2024-01 @na") == "ship it (2024-01"


def test_colon_in_text_is_not_a_project():
    root = parse_outline("Work:\n\tMeeting at 10:30 with Sam\n").root
    assert len(root.children) == 1
    assert root.children[0].notes == ["Meeting at 10:30 with Sam"]


def test_parse_is_deterministic(sample_text: str):
    first = parse_outline(sample_text)
    second = parse_outline(sample_text)
    assert first.root.structure() == second.root.structure()
    assert first.issues == second.issues


def test_serialize_then_parse_is_structurally_identical(sample_text: str):
    root = parse_outline(sample_text).root
    again = parse_outline(serialize_outline(root)).root
    assert again.structure() == root.structure()


def test_serialize_round_trip_with_spaces_and_orphans():
    text = "- orphan\nTop:\n    - a @na\n    Mid:\n        - b\n    - c\n"
    convention = OutlineConvention(indent_width=4)
    root = parse_outline(text, convention).root
    rendered = serialize_outline(root, indent="    ", convention=convention)
    assert parse_outline(rendered, convention).root.structure() == root.structure()


def test_detect_indent():
    assert detect_indent("Work:\n\t- a\n") == "\t"
    assert detect_indent("Work:\n    - a\n") == "    "
    assert detect_indent("Work:\n  - a\n", OutlineConvention(indent_width=2)) == "  "
    assert detect_indent("Work:\n") == "\t"
