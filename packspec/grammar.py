"""
packspec/grammar.py — Feature Grammar Parser
============================================

Parses one raw entry of a declarative document into a feature::

    - Calculator                                # comment
    - (py|rb) Only for scripting languages      # comment gating the tests below
    - calc = Calculator: []                     # constructor call, assigned
    - calc.add: [2, 3, {==: 5}]                 # method call with expected result
    - calc.round: [2.345, {digits=: 2}, {==: 2.35}]   # keyword argument
    - calc.precision==: 2                       # property read (no call)
    - total =: {calc.last: null}                # pure assignment from a reference
    - calc.divide: [1, 0, {==: ERROR}]          # must raise

The key of a mapping entry (the *left* side) follows a small PEG grammar
compiled with parsimonious; the value (the *right* side) is interpreted
structurally.

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple, Union

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from packspec.errors import ErrorCodes, GrammarError
from packspec.model import EXTENSION_PREFIX, CallStyle, CommentFeature, TestFeature
from packspec.values import lift, lift_expected, render_literal

logger = logging.getLogger(__name__)

# Default skip tag of a Python run
DEFAULT_TARGET = "py"

RESULT_MARKER = "=="
PROPERTY_ONLY_MARKER = "=="
KEYWORD_SUFFIX = "="


# ═══════════════════════════════════════════════════════════════════
#  PART 1 — GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

FEATURE_GRAMMAR = Grammar(r'''
    # ─────────────────────────────────────────────────────────────
    # Comment entries:  "(tag|tag) Free text"
    # ─────────────────────────────────────────────────────────────

    comment             = skip_list? _ comment_text
    comment_text        = ~r".*"s

    # ─────────────────────────────────────────────────────────────
    # Mapping keys:  "(tag|tag) name = owner.member=="
    # ─────────────────────────────────────────────────────────────

    left                = skip_list? _ binding
    binding             = assigned_access / bare_assignment / path
    assigned_access     = target "=" _ path
    bare_assignment     = target "=" _ end

    target              = ~r"[^=]*"
    path                = ~r"[^=].*"s

    # ─────────────────────────────────────────────────────────────
    # Shared
    # ─────────────────────────────────────────────────────────────

    skip_list           = "(" tag_text ")"
    tag_text            = ~r"[^)]*"
    end                 = !~r"."s
    _                   = ~r"\s*"
''')


# ═══════════════════════════════════════════════════════════════════
#  PART 2 — PARSE TREE VISITOR
# ═══════════════════════════════════════════════════════════════════

Tags = Optional[Tuple[str, ...]]


class _FeatureVisitor(NodeVisitor):
    """Turns a parse tree of ``comment`` or ``left`` into plain tuples."""

    def generic_visit(self, node: Node, visited_children: list) -> Any:
        return visited_children or node

    @staticmethod
    def _optional(value: Any) -> Any:
        # an unmatched ``x?`` visits to the bare node
        if isinstance(value, list):
            return value[0]
        return None

    def visit_comment(self, node, visited_children) -> Tuple[Tags, str]:
        skip_list, _, text = visited_children
        return self._optional(skip_list), text

    def visit_comment_text(self, node, visited_children) -> str:
        return node.text.strip()

    def visit_left(self, node, visited_children) -> Tuple[Tags, Optional[str], Optional[str]]:
        skip_list, _, (assign, path) = visited_children
        return self._optional(skip_list), assign, path

    def visit_binding(self, node, visited_children):
        # a lone path is the alternative itself, not a wrapping node
        (child,) = visited_children
        if isinstance(child, str):
            return None, child
        return child

    def visit_assigned_access(self, node, visited_children):
        target, _, _, path = visited_children
        return target or None, path

    def visit_bare_assignment(self, node, visited_children):
        target = visited_children[0]
        return target or None, None

    def visit_target(self, node, visited_children) -> str:
        return node.text.strip()

    def visit_path(self, node, visited_children) -> str:
        return node.text.strip()

    def visit_skip_list(self, node, visited_children) -> Tuple[str, ...]:
        _, tags, _ = visited_children
        return tags

    def visit_tag_text(self, node, visited_children) -> Tuple[str, ...]:
        return tuple(tag.strip() for tag in node.text.split("|") if tag.strip())


_VISITOR = _FeatureVisitor()


def _parse_rule(rule: str, text: str) -> Any:
    return _VISITOR.visit(FEATURE_GRAMMAR[rule].parse(text))


# ═══════════════════════════════════════════════════════════════════
#  PART 3 — NAME NORMALISATION
# ═══════════════════════════════════════════════════════════════════

_LOWER_TO_UPPER = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_ACRONYM_END = re.compile(r"(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """``getValue`` → ``get_value``; ``getHTTPResponse`` → ``get_http_response``."""
    name = _LOWER_TO_UPPER.sub("_", name)
    name = _ACRONYM_END.sub("_", name)
    return name.lower()


def normalize_path(path: str) -> str:
    """Bring camelCase member names to the Python naming convention.

    Only segments whose first significant letter is lower-case are
    touched; class names and constants keep their spelling.
    """
    segments = []
    for segment in path.split("."):
        prefix = EXTENSION_PREFIX if segment.startswith(EXTENSION_PREFIX) else ""
        core = segment[len(prefix):]
        if core[:1].islower():
            core = snake_case(core)
        segments.append(prefix + core)
    return ".".join(segments)


# ═══════════════════════════════════════════════════════════════════
#  PART 4 — FEATURE CONSTRUCTION
# ═══════════════════════════════════════════════════════════════════

def _is_skipped(tags: Tags, target: str) -> bool:
    return bool(tags) and target not in tags


def parse_comment(entry: str, target: str = DEFAULT_TARGET) -> CommentFeature:
    """Parse a string entry into a :class:`CommentFeature`."""
    try:
        tags, text = _parse_rule("comment", entry)
    except (ParseError, VisitationError) as exc:
        raise GrammarError(f"Non-valid comment: {entry!r}", entry=entry) from exc
    return CommentFeature(comment=text, skip=_is_skipped(tags, target), tags=tags or ())


def parse_left(left: str) -> Tuple[Tags, Optional[str], Optional[str]]:
    """Split a mapping key into ``(tags, assign, property)``."""
    try:
        tags, assign, path = _parse_rule("left", left)
    except (ParseError, VisitationError) as exc:
        raise GrammarError(f"Non-valid feature: {left!r}", entry=left) from exc
    if not assign and not path:
        raise GrammarError(f"Non-valid feature: {left!r}", entry=left)
    return tags, assign, path


def _split_arguments(right: Any, left: str) -> Tuple[List[Any], Dict[str, Any], Any, bool]:
    if right is None:
        items: List[Any] = []
    elif isinstance(right, list):
        items = right
    else:
        raise GrammarError(
            f"Arguments of {left!r} must be a sequence, got {type(right).__name__}",
            entry=right,
            code=ErrorCodes.INVALID_ARGUMENTS,
            hint=f"write [{render_literal(right)}] or use '{left}{PROPERTY_ONLY_MARKER}' for a property",
        )

    args: List[Any] = []
    kwargs: Dict[str, Any] = {}
    result: Any = None
    has_result = False
    for item in items:
        if isinstance(item, Mapping) and len(item) == 1:
            key, value = next(iter(item.items()))
            if key == RESULT_MARKER:
                result = lift_expected(value, normalize_path)
                has_result = True
                continue
            if isinstance(key, str) and key.endswith(KEYWORD_SUFFIX):
                kwargs[snake_case(key[:-1].strip())] = lift(value, normalize_path)
                continue
        args.append(lift(item, normalize_path))
    return args, kwargs, result, has_result


def render_text(
    assign: Optional[str],
    prop: Optional[str],
    call: bool,
    args: List[Any],
    kwargs: Dict[str, Any],
    result: Any,
    has_result: bool,
) -> str:
    """Canonical display text of a test feature."""
    text = prop or ""
    if assign:
        text = f"{assign} = {prop if prop else render_literal(result)}"
    if call:
        items = [render_literal(arg) for arg in args]
        items.extend(f"{name}={render_literal(value)}" for name, value in kwargs.items())
        text = f"{text}({', '.join(items)})"
    if has_result and prop:
        text = f"{text} == {render_literal(result)}"
    return text


def parse_test(left: str, right: Any, target: str = DEFAULT_TARGET) -> TestFeature:
    """Parse a single-key mapping entry into a :class:`TestFeature`."""
    tags, assign, prop = parse_left(left)
    if assign:
        assign = normalize_path(assign)

    call = False
    call_style = None
    if prop:
        call = True
        if prop.endswith(PROPERTY_ONLY_MARKER):
            prop = prop[: -len(PROPERTY_ONLY_MARKER)].rstrip()
            call = False
        prop = normalize_path(prop)
        if call:
            call_style = CallStyle.for_member(prop.split(".")[-1])

    if call:
        args, kwargs, result, has_result = _split_arguments(right, left)
    else:
        args, kwargs = [], {}
        result = lift_expected(right, normalize_path) if prop else lift(right, normalize_path)
        has_result = right is not None

    text = render_text(assign, prop, call, args, kwargs, result, has_result)
    logger.debug("parsed feature %r", text)
    return TestFeature(
        text=text,
        skip=_is_skipped(tags, target),
        tags=tags or (),
        assign=assign,
        property=prop,
        call=call,
        call_style=call_style,
        args=args,
        kwargs=kwargs,
        result=result,
        has_result=has_result,
    )


def parse_feature(entry: Any, target: str = DEFAULT_TARGET) -> Union[CommentFeature, TestFeature]:
    """Parse one raw document entry.

    Strings are comments; single-key mappings are tests; anything else
    raises :class:`~packspec.errors.GrammarError`.
    """
    if isinstance(entry, str):
        return parse_comment(entry, target)
    if isinstance(entry, Mapping) and len(entry) == 1:
        left, right = next(iter(entry.items()))
        return parse_test(str(left), right, target)
    raise GrammarError(f"Non-valid feature: {entry!r}", entry=entry)
