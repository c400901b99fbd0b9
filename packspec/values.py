"""packspec/values.py – the value tree carried by declarative features.

Raw YAML values (scalars, lists, mappings) are *lifted* into a value tree
where symbolic back-references are explicit :class:`Reference` nodes
instead of the ``{name: null}`` shape they are written as.  The tree also
holds the :data:`ERROR` sentinel standing in for "the operation raised".

Public API
----------
``lift(raw)``
    Convert a raw YAML value into the value tree.
``lift_expected(raw)``
    Same, but the literal string ``"ERROR"`` becomes :data:`ERROR`.
``render_literal(value)``
    Textual literal form used in display texts and mismatch messages.
``deep_equal(actual, expected)``
    Structural comparison used by the engine and inline assertions.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Final, Optional, Tuple


# ═══════════════════════════════════════════════════════════════════════
#  Tree nodes
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Reference:
    """A dotted name path resolved against the scope at execution time."""

    path: str

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(self.path.split("."))

    def __str__(self) -> str:
        return self.path


class _ErrorSentinel:
    """Singleton result of an invocation that raised."""

    __slots__ = ()
    _instance = None

    def __new__(cls) -> "_ErrorSentinel":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ERROR"

    def __reduce__(self) -> str:
        return "ERROR"


ERROR: Final = _ErrorSentinel()

ERROR_LITERAL: Final[str] = "ERROR"


# ═══════════════════════════════════════════════════════════════════════
#  Lifting
# ═══════════════════════════════════════════════════════════════════════

def is_reference_shape(raw: Any) -> bool:
    """``True`` for a single-key mapping whose only value is ``None``."""
    return isinstance(raw, Mapping) and len(raw) == 1 and next(iter(raw.values())) is None


def lift(raw: Any, normalize: Optional[Callable[[str], str]] = None) -> Any:
    """*normalize* rewrites reference paths the same way assignment targets are."""
    if is_reference_shape(raw):
        path = str(next(iter(raw)))
        return Reference(normalize(path) if normalize else path)
    if isinstance(raw, Mapping):
        return {key: lift(item, normalize) for key, item in raw.items()}
    if isinstance(raw, (list, tuple)):
        return [lift(item, normalize) for item in raw]
    return raw


def lift_expected(raw: Any, normalize: Optional[Callable[[str], str]] = None) -> Any:
    if raw == ERROR_LITERAL:
        return ERROR
    return lift(raw, normalize)


def contains_reference(value: Any) -> bool:
    if isinstance(value, Reference):
        return True
    if isinstance(value, Mapping):
        return any(contains_reference(item) for item in value.values())
    if isinstance(value, (list, tuple)):
        return any(contains_reference(item) for item in value)
    return False


# ═══════════════════════════════════════════════════════════════════════
#  Rendering
# ═══════════════════════════════════════════════════════════════════════

def render_literal(value: Any) -> str:
    """Render *value* the way it is shown in feature texts.

    References render as their bare path and :data:`ERROR` unescaped;
    JSON-compatible scalars use their JSON spelling (``"text"``, ``true``,
    ``null``); containers are rendered recursively; anything else falls
    back to ``repr``.
    """
    if isinstance(value, Reference):
        return value.path
    if value is ERROR:
        return ERROR_LITERAL
    if isinstance(value, Mapping):
        items = ", ".join(
            f"{json.dumps(str(key))}: {render_literal(item)}" for key, item in value.items()
        )
        return "{" + items + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_literal(item) for item in value) + "]"
    if value is None or isinstance(value, (str, bool, int, float)):
        return json.dumps(value)
    return repr(value)


# ═══════════════════════════════════════════════════════════════════════
#  Comparison
# ═══════════════════════════════════════════════════════════════════════

def deep_equal(actual: Any, expected: Any) -> bool:
    """Structural equality.

    Sequences compare element-wise and in order, mappings compare by key
    set regardless of insertion order, booleans never equal numbers, and
    NaN equals NaN so that every value equals itself.
    """
    if actual is expected:
        return True
    if actual is ERROR or expected is ERROR:
        return False
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    if isinstance(actual, float) and isinstance(expected, float):
        if math.isnan(actual) and math.isnan(expected):
            return True
    if isinstance(actual, Mapping) and isinstance(expected, Mapping):
        if set(actual.keys()) != set(expected.keys()):
            return False
        return all(deep_equal(actual[key], expected[key]) for key in actual)
    if _is_sequence(actual) and _is_sequence(expected):
        if len(actual) != len(expected):
            return False
        return all(deep_equal(a, e) for a, e in zip(actual, expected))
    return bool(actual == expected)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))
