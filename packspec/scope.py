"""packspec/scope.py – the live mapping a spec executes against.

A :class:`Scope` is owned by exactly one :class:`~packspec.model.Spec`.
Declarative features read and write it through dotted paths; native
blocks use :attr:`Scope.namespace` directly as their globals.

Path segments are looked up as mapping keys on mappings, as indices on
sequences (digit segments) and as attributes on everything else.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any, Dict, Iterator, List, Optional, Tuple

from packspec.errors import ConstantReassignmentError
from packspec.model import EXTENSION_PREFIX

logger = logging.getLogger(__name__)

IMPORT_NAME = f"{EXTENSION_PREFIX}import"


# ═══════════════════════════════════════════════════════════════════════
#  Member access
# ═══════════════════════════════════════════════════════════════════════

def _is_index(owner: Any, name: str) -> bool:
    return (
        isinstance(owner, Sequence)
        and not isinstance(owner, (str, bytes))
        and name.lstrip("-").isdigit()
    )


def get_member(owner: Any, name: str) -> Any:
    """Read *name* from *owner*; raises ``KeyError``/``IndexError``/``AttributeError``."""
    if isinstance(owner, Mapping):
        return owner[name]
    if _is_index(owner, name):
        return owner[int(name)]
    return getattr(owner, name)


def has_member(owner: Any, name: str) -> bool:
    if isinstance(owner, Mapping):
        return name in owner
    if _is_index(owner, name):
        return -len(owner) <= int(name) < len(owner)
    return hasattr(owner, name)


def set_member(owner: Any, name: str, value: Any) -> None:
    if isinstance(owner, MutableMapping):
        owner[name] = value
    elif _is_index(owner, name):
        owner[int(name)] = value
    else:
        setattr(owner, name, value)


def is_constant(name: str) -> bool:
    """Upper-case names (``PI``, ``MAX_SIZE``, ``$VERSION``) are constants."""
    return name.isupper()


# ═══════════════════════════════════════════════════════════════════════
#  Scope
# ═══════════════════════════════════════════════════════════════════════

class Scope(MutableMapping):
    """Mutable name → value mapping with dotted-path helpers."""

    def __init__(self, initial: Optional[Mapping[str, Any]] = None, *, with_import: bool = True) -> None:
        self._data: Dict[str, Any] = {}
        if with_import:
            self._data[IMPORT_NAME] = importlib.import_module
        if initial:
            self._data.update(initial)

    # -- mapping protocol -------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Scope({self.names()!r})"

    @property
    def namespace(self) -> Dict[str, Any]:
        """The backing dict, usable as ``globals`` for ``exec``."""
        return self._data

    def names(self) -> List[str]:
        """Visible names, without interpreter dunders."""
        return [name for name in self._data if not (name.startswith("__") and name.endswith("__"))]

    # -- paths ------------------------------------------------------------

    def resolve(self, path: str) -> Any:
        """Walk every segment of *path* starting at the scope root."""
        value: Any = self
        for name in path.split("."):
            value = get_member(value, name)
        return value

    def resolve_owner(self, path: str) -> Tuple[Any, str]:
        """Walk all but the last segment; return ``(owner, last_segment)``."""
        *parents, last = path.split(".")
        owner: Any = self
        for name in parents:
            owner = get_member(owner, name)
        return owner, last

    def assign(self, path: str, value: Any) -> None:
        """Bind *value* at *path*, refusing to overwrite constants."""
        owner, name = self.resolve_owner(path)
        if is_constant(name) and has_member(owner, name):
            raise ConstantReassignmentError(name)
        logger.debug("assign %s", path)
        set_member(owner, name, value)

    def extend(self, bindings: Mapping[str, Any], prefix: str = EXTENSION_PREFIX) -> None:
        """Expose every non-dunder binding under ``prefix + name``."""
        for name, value in bindings.items():
            if name.startswith("__"):
                continue
            self._data[f"{prefix}{name}"] = value
