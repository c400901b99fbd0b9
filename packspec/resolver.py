"""packspec/resolver.py – dereference symbolic back-references.

Specifications refer to earlier results or imported symbols by name:
``{"x": null}`` in YAML, lifted to ``Reference("x")``.  Before a feature
executes, its arguments, keyword arguments and expected result are
rewritten with the current scope values.  Lookups are never cached, so a
later feature always sees the latest binding.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, List, Tuple

from packspec.model import TestFeature
from packspec.scope import Scope
from packspec.values import Reference


def dereference(value: Any, scope: Scope) -> Any:
    """Return a copy of *value* with every :class:`Reference` resolved."""
    if isinstance(value, Reference):
        return scope.resolve(value.path)
    if isinstance(value, Mapping):
        return {key: dereference(item, scope) for key, item in value.items()}
    if isinstance(value, list):
        return [dereference(item, scope) for item in value]
    if isinstance(value, tuple):
        return tuple(dereference(item, scope) for item in value)
    return value


def dereference_feature(feature: TestFeature, scope: Scope) -> Tuple[List[Any], Dict[str, Any], Any]:
    """Resolve ``(args, kwargs, result)`` of *feature* without mutating it."""
    args: List[Any] = []
    kwargs: Dict[str, Any] = {}
    if feature.call:
        args = dereference(feature.args, scope)
        kwargs = dereference(feature.kwargs, scope)
    result = dereference(feature.result, scope)
    return args, kwargs, result
