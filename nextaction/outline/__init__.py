"""Project file discovery, parsing, matching and insertion."""

from .index import ActionIndex, Scope, query
from .insert import add_action, apply_insertion, atomic_write_text, resolve_insertion
from .loader import load_project_file
from .parser import OutlineConvention, parse_outline, serialize_outline
from .scanner import DirectoryScanner, scan, select_project_file
from .tags import Comparison, MatchQuery, TagPredicate, matches, parse_tag_expression
from .update import mark_done

__all__ = [
    "ActionIndex",
    "Comparison",
    "DirectoryScanner",
    "MatchQuery",
    "OutlineConvention",
    "Scope",
    "TagPredicate",
    "add_action",
    "apply_insertion",
    "atomic_write_text",
    "load_project_file",
    "mark_done",
    "matches",
    "parse_outline",
    "parse_tag_expression",
    "query",
    "resolve_insertion",
    "scan",
    "select_project_file",
    "serialize_outline",
]
