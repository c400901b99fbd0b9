# packspec/errors.py
"""
packspec Error Types

This module provides the error taxonomy shared by the loader, the feature
grammar, the execution engine and the snippet runner.

Error Hierarchy:
────────────────
    PackspecError (base)
    ├── FormatError                 - Unrecognised document shape (fatal per document)
    ├── GrammarError                - Malformed feature entry (fatal per spec)
    ├── ConstantReassignmentError   - Upper-case scope entry reassigned (fatal per run)
    ├── ConfigError                 - Malformed packspec.yml (fatal per run)
    ├── OperationError              - Invocation raised (recovered as a failed test)
    └── AssertionMismatch           - Actual != expected (recovered as a failed test)

Error Codes:
────────────
Each error has a code following the pattern PSPEC-XXXX where XXXX falls in:
  - 1000-1999: Document format errors
  - 2000-2999: Feature grammar errors
  - 3000-3999: Scope errors
  - 4000-4999: Test outcome errors
  - 5000-5999: Configuration errors

Only fatal errors propagate to the caller; the two outcome errors are
converted into reported, non-fatal test results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Optional

from packspec.values import render_literal


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR PHASES
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorPhase(Enum):
    """Pipeline phase in which an error was raised."""

    LOADING = "loading"
    GRAMMAR = "grammar"
    SCOPE = "scope"
    EXECUTION = "execution"
    CONFIG = "config"


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code of the form ``PSPEC-NNNN``.

    ``fatal`` codes abort loading/running; the others describe test
    outcomes and never escape the engine.
    """

    __slots__ = ("prefix", "number", "phase", "fatal")

    def __init__(
        self,
        number: int,
        phase: ErrorPhase,
        fatal: bool = True,
        prefix: str = "PSPEC",
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase
        self.fatal = fatal

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.phase.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ErrorCodes:
    """Predefined error codes."""

    UNKNOWN_FORMAT = ErrorCode(1001, ErrorPhase.LOADING)
    INVALID_DOCUMENT = ErrorCode(1002, ErrorPhase.LOADING)

    INVALID_FEATURE = ErrorCode(2001, ErrorPhase.GRAMMAR)
    INVALID_ARGUMENTS = ErrorCode(2002, ErrorPhase.GRAMMAR)

    CONSTANT_REASSIGNMENT = ErrorCode(3001, ErrorPhase.SCOPE)

    OPERATION_FAILED = ErrorCode(4001, ErrorPhase.EXECUTION, fatal=False)
    ASSERTION_MISMATCH = ErrorCode(4002, ErrorPhase.EXECUTION, fatal=False)

    INVALID_CONFIG = ErrorCode(5001, ErrorPhase.CONFIG)


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE SPANS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """A position inside a specification document (1-based line)."""

    file: str = ""
    line: int = 0

    def __str__(self) -> str:
        if self.file and self.line:
            return f"{self.file}:{self.line}"
        if self.file:
            return self.file
        if self.line:
            return f"line {self.line}"
        return ""


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class PackspecError(Exception):
    """
    Base exception for all packspec errors.

    Carries a structured :class:`ErrorCode`, an optional :class:`SourceSpan`
    and an optional hint shown after the message.
    """

    default_code: ErrorCode = ErrorCodes.INVALID_DOCUMENT

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.span = span or SourceSpan()
        self.hint = hint

    @property
    def fatal(self) -> bool:
        return self.code.fatal

    def with_span(self, span: SourceSpan) -> "PackspecError":
        """Attach a source position, keeping the rest of the error."""
        self.span = span
        return self

    def __str__(self) -> str:
        location = str(self.span)
        text = f"{location}: {self.message}" if location else self.message
        if self.hint:
            text = f"{text} (hint: {self.hint})"
        return text


class FormatError(PackspecError):
    """No parser matches the document's suffix or shape."""

    default_code = ErrorCodes.UNKNOWN_FORMAT


class GrammarError(PackspecError):
    """A feature entry cannot be parsed."""

    default_code = ErrorCodes.INVALID_FEATURE

    def __init__(self, message: str, entry: Any = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.entry = entry


class ConstantReassignmentError(PackspecError):
    """An existing upper-case scope entry was about to be overwritten."""

    default_code = ErrorCodes.CONSTANT_REASSIGNMENT

    def __init__(self, name: str, **kwargs: Any) -> None:
        super().__init__(
            f"Can't update the constant {name}",
            hint="upper-case names are read-only once defined",
            **kwargs,
        )
        self.name = name


class ConfigError(PackspecError):
    """The run configuration file is malformed."""

    default_code = ErrorCodes.INVALID_CONFIG


class OperationError(PackspecError):
    """Wraps an exception raised by a declared property read or invocation."""

    default_code = ErrorCodes.OPERATION_FAILED

    def __init__(self, original: BaseException, **kwargs: Any) -> None:
        super().__init__(f"{type(original).__name__}: {original}", **kwargs)
        self.original = original


class AssertionMismatch(PackspecError, AssertionError):
    """Structural inequality between an actual and an expected value."""

    default_code = ErrorCodes.ASSERTION_MISMATCH

    def __init__(self, actual: Any, expected: Any, message: str = "", **kwargs: Any) -> None:
        super().__init__(
            message or f"{render_literal(actual)} != {render_literal(expected)}",
            **kwargs,
        )
        self.actual = actual
        self.expected = expected
