"""packspec/snippets.py – line-attributed execution of native code blocks.

A :class:`~packspec.model.LineBlock` is compiled and executed once, as a
unit, in the spec's scope namespace.  When it raises, the failing line is
read from the traceback: the outermost frame whose ``co_filename`` is the
block's synthetic ``<packspec-block-N>`` name.  Lines before it passed,
lines after it never ran.

Lines of the form ``expr  # expected`` are rewritten before compilation
into an equality assertion, so documentation examples can state their
expected values inline::

    add(2, 3)  # 5
    ["a", "b"][::-1]  # ["b", "a"]
"""

from __future__ import annotations

import ast
import inspect
import io
import logging
import tokenize
import traceback
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from packspec.errors import AssertionMismatch, OperationError, PackspecError
from packspec.model import LineBlock, LineFeature, Status
from packspec.scope import Scope
from packspec.values import deep_equal

logger = logging.getLogger(__name__)

ASSERT_NAME = "__packspec_assert__"


# ═══════════════════════════════════════════════════════════════════════
#  Inline shorthand
# ═══════════════════════════════════════════════════════════════════════

def _is_expression(text: str) -> bool:
    try:
        ast.parse(text, mode="eval")
    except SyntaxError:
        return False
    return True


def _split_comment(code: str) -> Optional[tuple]:
    """Return ``(expr, comment)`` when *code* ends with a real comment token."""
    try:
        tokens = list(tokenize.generate_tokens(io.StringIO(code).readline))
    except (tokenize.TokenError, SyntaxError):
        return None
    for token in tokens:
        if token.type == tokenize.COMMENT:
            column = token.start[1]
            return code[:column].rstrip(), token.string[1:].strip()
    return None


def rewrite_line(line: str) -> str:
    """Rewrite ``expr  # expected`` into an assertion call; other lines pass through."""
    stripped = line.lstrip()
    if not stripped or stripped.startswith("#"):
        return line
    parts = _split_comment(stripped)
    if parts is None:
        return line
    expr, expected = parts
    if not expr or not expected:
        return line
    if expr.endswith(",") or expected.endswith(","):
        return line
    if not (_is_expression(expr) and _is_expression(expected)):
        return line
    indent = line[: len(line) - len(stripped)]
    text = f"{expr} != {expected}"
    return f"{indent}{ASSERT_NAME}({expr}, {expected}, {text!r})"


def statement_lines(lines: List[str]) -> Set[int]:
    """Numbers of the lines holding a whole expression statement by themselves.

    An empty set when the block does not parse; compiling it later reports
    the syntax error.
    """
    try:
        tree = compile("\n".join(lines), "<packspec-scan>", "exec", flags=ast.PyCF_ONLY_AST | ast.PyCF_ALLOW_TOP_LEVEL_AWAIT)
    except (SyntaxError, ValueError):
        return set()
    numbers = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Expr) and node.lineno == node.end_lineno:
            line = lines[node.lineno - 1]
            if node.col_offset == len(line) - len(line.lstrip()):
                numbers.add(node.lineno)
    return numbers


def rewrite_block(lines: List[str]) -> List[str]:
    statements = statement_lines(lines)
    return [rewrite_line(line) if number in statements else line for number, line in enumerate(lines, 1)]


def assert_equal(actual: Any, expected: Any, text: str = "") -> None:
    """Raise :class:`~packspec.errors.AssertionMismatch` unless deep-equal."""
    if not deep_equal(actual, expected):
        raise AssertionMismatch(actual, expected, hint=text)


# ═══════════════════════════════════════════════════════════════════════
#  Block execution
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BlockOutcome:
    """Result of running one block: no error, or the error and its line."""

    error: Optional[PackspecError] = None
    failing_line: Optional[int] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def status_for(self, line_number: int) -> Status:
        if self.failing_line is None:
            return Status.PASSED
        if line_number < self.failing_line:
            return Status.PASSED
        if line_number == self.failing_line:
            return Status.FAILED
        return Status.SKIPPED


def _as_packspec_error(exc: BaseException) -> PackspecError:
    if isinstance(exc, PackspecError):
        return exc
    return OperationError(exc)


def failing_line(exc: BaseException, filename: str) -> int:
    """Line of the outermost traceback frame compiled from *filename*."""
    for frame in traceback.extract_tb(exc.__traceback__):
        if frame.filename == filename and frame.lineno:
            return frame.lineno
    return 1


def attributable_line(block: LineBlock, line_number: int) -> int:
    """Nearest line at or above *line_number* that carries a line feature."""
    lines = block.lines
    candidates = list(range(min(line_number, len(lines)), 0, -1)) + list(range(line_number + 1, len(lines) + 1))
    for number in candidates:
        stripped = lines[number - 1].strip()
        if stripped and not stripped.startswith("#"):
            return number
    return line_number


async def run_block(block: LineBlock, scope: Scope) -> BlockOutcome:
    """Compile and execute *block* once in the namespace of *scope*."""
    source = "\n".join(rewrite_block(block.lines))
    try:
        code = compile(source, block.filename, "exec", flags=ast.PyCF_ALLOW_TOP_LEVEL_AWAIT)
    except SyntaxError as exc:
        logger.debug("%s does not compile: %s", block.filename, exc.msg)
        return BlockOutcome(OperationError(exc), attributable_line(block, exc.lineno or 1))

    namespace = scope.namespace
    namespace[ASSERT_NAME] = assert_equal
    logger.debug("running %s (%d lines)", block.filename, len(block.lines))
    try:
        outcome = eval(code, namespace)
        if code.co_flags & inspect.CO_COROUTINE:
            await outcome
    except Exception as exc:
        line = attributable_line(block, failing_line(exc, block.filename))
        logger.debug("%s failed at line %d: %s", block.filename, line, type(exc).__name__)
        return BlockOutcome(_as_packspec_error(exc), line)
    return BlockOutcome()


@dataclass
class LineResult:
    """Outcome of one line of a block."""

    feature: LineFeature
    status: Status
    error: Optional[PackspecError] = None

    @property
    def passed(self) -> bool:
        return self.status is Status.PASSED

    @property
    def failed(self) -> bool:
        return self.status is Status.FAILED


class BlockRunner:
    """Runs each block of a spec exactly once and answers per-line queries."""

    def __init__(self, scope: Scope) -> None:
        self.scope = scope
        self._outcomes: Dict[int, BlockOutcome] = {}

    async def outcome(self, block: LineBlock) -> BlockOutcome:
        if block.index not in self._outcomes:
            self._outcomes[block.index] = await run_block(block, self.scope)
        return self._outcomes[block.index]

    async def run_line(self, feature: LineFeature) -> LineResult:
        outcome = await self.outcome(feature.block)
        status = outcome.status_for(feature.line_number)
        error = outcome.error if status is Status.FAILED else None
        return LineResult(feature, status, error)
