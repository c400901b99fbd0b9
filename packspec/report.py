"""
packspec/report.py
══════════════════

Console reporting and pass/fail bookkeeping.

    ┌──────────────┐   record()   ┌─────────────┐   summaries   ┌───────────┐
    │  runner      │ ───────────▶ │ SpecSummary │ ────────────▶ │ RunResult │
    └──────┬───────┘              └─────────────┘               └───────────┘
           │ header / comment / result / summary
           ▼
    ┌──────────────┐
    │  Reporter    │  ──▶  stdout (termcolor when enabled)
    └──────────────┘

Scoring per spec::

    numerator   = passed - comments - skipped
    denominator = tests - skipped

where ``passed`` counts passing tests, comments and features that were
declared skipped, and ``skipped`` is the number of declared skips.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import List, Optional, TextIO, Union

from termcolor import colored

from packspec.engine import FeatureResult
from packspec.errors import AssertionMismatch, PackspecError
from packspec.model import CommentFeature, LineFeature, Spec, SpecStats, Status
from packspec.scope import Scope
from packspec.snippets import LineResult
from packspec.values import render_literal

Result = Union[FeatureResult, LineResult]

MARKS = {
    Status.PASSED: ("✔", "green"),
    Status.FAILED: ("✘", "red"),
    Status.SKIPPED: ("−", "yellow"),
}

SCOPE_VALUE_WIDTH = 60


# ═════════════════════════════════════════════════════════════════════════
#  BOOKKEEPING
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class SpecSummary:
    """Counters of one spec run."""
    package: str
    path: str
    stats: SpecStats
    passed: int = 0
    failed: int = 0
    # lines never reached after a failure inside their block
    not_run: int = 0
    fatal: Optional[PackspecError] = None

    @classmethod
    def for_spec(cls, spec: Spec) -> "SpecSummary":
        return cls(package=spec.package, path=spec.path, stats=spec.stats)

    def record_comment(self) -> None:
        self.passed += 1

    def record(self, result: Result) -> None:
        if result.status is Status.PASSED:
            self.passed += 1
        elif result.status is Status.FAILED:
            self.failed += 1
        elif result.feature.skip:
            self.passed += 1
        else:
            self.not_run += 1

    @property
    def numerator(self) -> int:
        return self.passed - self.stats.comments - self.stats.skipped

    @property
    def denominator(self) -> int:
        return self.stats.tests - self.stats.skipped

    @property
    def success(self) -> bool:
        return self.numerator == self.denominator and self.fatal is None


@dataclass
class RunResult:
    """Aggregate of a whole run."""
    summaries: List[SpecSummary] = field(default_factory=list)
    errors: List[PackspecError] = field(default_factory=list)
    fatal: Optional[PackspecError] = None
    aborted: bool = False

    @property
    def success(self) -> bool:
        return (
            self.fatal is None
            and not self.errors
            and not self.aborted
            and all(summary.success for summary in self.summaries)
        )


# ═════════════════════════════════════════════════════════════════════════
#  CONSOLE REPORTER
# ═════════════════════════════════════════════════════════════════════════

def result_text(result: Result) -> str:
    """Display text of a declarative feature or a native line."""
    feature = result.feature
    if isinstance(feature, LineFeature):
        return feature.line.strip()
    return feature.text


def failure_detail(error: PackspecError) -> str:
    if isinstance(error, AssertionMismatch):
        return f"Assertion: {error.message}"
    return f"Exception: {error.message}"


def _safe_literal(value) -> str:
    try:
        return render_literal(value)
    except Exception as exc:
        return f"<unrenderable {type(value).__name__}: {type(exc).__name__}>"


class Reporter:
    """Writes the human-readable report of a run."""

    def __init__(self, stream: Optional[TextIO] = None, color: bool = True) -> None:
        self._stream = stream or sys.stdout
        self.color = color

    # ── helpers ──────────────────────────────────────────────────────

    def _paint(self, text: str, color: Optional[str] = None, attrs: Optional[List[str]] = None) -> str:
        if not self.color:
            return text
        return colored(text, color, attrs=attrs)

    def _write(self, text: str = "") -> None:
        self._stream.write(text + "\n")
        self._stream.flush()

    # ── public API ───────────────────────────────────────────────────

    def header(self, spec: Spec) -> None:
        source = f" ({spec.path})" if spec.path else ""
        self._write(self._paint(f"{spec.package}{source}", attrs=["bold"]))

    def comment(self, feature: CommentFeature) -> None:
        marker = "#" * max(feature.level, 1)
        text = f"{marker} {feature.comment}"
        if feature.tags:
            text = f"{text}  [{'|'.join(feature.tags)}]"
        self._write()
        self._write(self._paint(text, "cyan", attrs=["bold"]))

    def result(self, result: Result) -> None:
        mark, color = MARKS[result.status]
        text = result_text(result)
        attrs = ["dark"] if result.status is Status.SKIPPED else None
        self._write(f"  {self._paint(mark, color, attrs=['bold'])} {self._paint(text, attrs=attrs)}")
        if result.status is Status.FAILED and result.error is not None:
            self._write(self._paint(f"    {failure_detail(result.error)}", "red"))

    def scope_dump(self, scope: Scope) -> None:
        self._write(self._paint("Scope:", "magenta", attrs=["bold"]))
        for name in scope.names():
            value = _safe_literal(scope[name])
            if len(value) > SCOPE_VALUE_WIDTH:
                value = value[: SCOPE_VALUE_WIDTH - 3] + "..."
            self._write(f"  {name} = {value}")

    def summary(self, summary: SpecSummary) -> None:
        color = "green" if summary.success else "red"
        self._write()
        self._write(self._paint(f"{summary.package}: {summary.numerator}/{summary.denominator}", color, attrs=["bold"]))

    def error(self, error: PackspecError) -> None:
        self._write(self._paint(f"✘ {error.code}: {error}", "red", attrs=["bold"]))

    def separator(self) -> None:
        self._write(self._paint("─" * 40, attrs=["dark"]))
