"""packspec/model.py – parsed specification documents.

One :class:`Spec` per input document.  Declarative documents hold
:class:`CommentFeature` and :class:`TestFeature` entries; line-oriented
documents hold :class:`CommentFeature` and :class:`LineFeature` entries
pointing into shared :class:`LineBlock` objects.

Features are frozen; the loader derives the effective skip flag with
:func:`dataclasses.replace`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Union

if TYPE_CHECKING:
    from packspec.scope import Scope

# Leading character of extension names ($import, $helper, ...)
EXTENSION_PREFIX = "$"


class SpecKind(enum.Enum):
    """How a document's features are executed."""
    DECLARATIVE = "declarative"
    NATIVE = "native"


class Status(enum.Enum):
    """Terminal state of a feature or line."""
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class CallStyle(enum.Enum):
    """Invocation style of a called member, decided from its name."""
    CONSTRUCTOR = "constructor"
    METHOD = "method"

    @classmethod
    def for_member(cls, name: str) -> "CallStyle":
        """Upper-case first significant letter means a constructor.

        The extension prefix ``$`` is not significant.
        """
        significant = name[1:] if name.startswith(EXTENSION_PREFIX) else name
        if significant[:1].isupper():
            return cls.CONSTRUCTOR
        return cls.METHOD


# ═══════════════════════════════════════════════════════════════════════
#  Features
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CommentFeature:
    """A heading-like marker; with a tag list it gates the following tests."""

    comment: str
    skip: bool = False
    tags: Tuple[str, ...] = ()
    level: int = 1


@dataclass(frozen=True)
class TestFeature:
    """A single declarative assertion."""

    text: str
    skip: bool = False
    tags: Tuple[str, ...] = ()
    assign: Optional[str] = None
    property: Optional[str] = None
    call: bool = False
    call_style: Optional[CallStyle] = None
    args: List[Any] = field(default_factory=list)
    kwargs: Dict[str, Any] = field(default_factory=dict)
    result: Any = None
    has_result: bool = False

    # pytest would otherwise try to collect this class
    __test__ = False


@dataclass(frozen=True)
class LineBlock:
    """A code region executed once as a unit."""

    index: int
    source: str
    first_line: int = 1
    # document line of every block line, when the loader dropped lines
    origins: Tuple[int, ...] = ()

    @property
    def lines(self) -> List[str]:
        return self.source.split("\n")

    def origin(self, line_number: int) -> int:
        """Document line of block line *line_number*."""
        if self.origins and 0 < line_number <= len(self.origins):
            return self.origins[line_number - 1]
        return self.first_line + line_number - 1

    @property
    def filename(self) -> str:
        """Synthetic filename the block is compiled under."""
        return f"<packspec-block-{self.index}>"


@dataclass(frozen=True)
class LineFeature:
    """One non-blank line of a :class:`LineBlock` (1-based inside the block)."""

    line_number: int
    line: str
    block: LineBlock

    @property
    def skip(self) -> bool:
        return False


Feature = Union[CommentFeature, TestFeature, LineFeature]


# ═══════════════════════════════════════════════════════════════════════
#  Spec
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class SpecStats:
    features: int = 0
    comments: int = 0
    tests: int = 0
    skipped: int = 0

    @classmethod
    def from_features(cls, features: Sequence[Feature]) -> "SpecStats":
        stats = cls()
        for feature in features:
            stats.features += 1
            if isinstance(feature, CommentFeature):
                stats.comments += 1
                continue
            stats.tests += 1
            if feature.skip:
                stats.skipped += 1
        return stats


@dataclass
class Spec:
    """One fully parsed document."""

    kind: SpecKind
    package: str
    features: List[Feature]
    scope: "Scope"
    stats: SpecStats
    path: str = ""

    @property
    def blocks(self) -> List[LineBlock]:
        seen: Dict[int, LineBlock] = {}
        for feature in self.features:
            if isinstance(feature, LineFeature):
                seen.setdefault(feature.block.index, feature.block)
        return list(seen.values())
