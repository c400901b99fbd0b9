"""packspec/engine.py – execution of declarative test features.

A :class:`~packspec.model.TestFeature` goes through a fixed sequence::

    SKIPPED?  ──yes──▶ done
       │no
       ▼
    dereference ─▶ owner lookup ─▶ read / invoke (awaited) ─▶ assign ─▶ compare

Everything that can go wrong while resolving or invoking is captured as an
:class:`~packspec.errors.OperationError` and turns the outcome into
``Status.FAILED`` with :data:`~packspec.values.ERROR` as the result.  The
only error that escapes is :class:`~packspec.errors.ConstantReassignmentError`.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Optional

from packspec.errors import AssertionMismatch, ConstantReassignmentError, OperationError, PackspecError
from packspec.model import CallStyle, Status, TestFeature
from packspec.resolver import dereference_feature
from packspec.scope import Scope, get_member
from packspec.values import ERROR, deep_equal

logger = logging.getLogger(__name__)


@dataclass
class FeatureResult:
    """Outcome of one executed (or skipped) feature."""

    feature: TestFeature
    status: Status
    result: Any = None
    error: Optional[PackspecError] = None

    @property
    def passed(self) -> bool:
        return self.status is Status.PASSED

    @property
    def failed(self) -> bool:
        return self.status is Status.FAILED


async def _invoke(feature: TestFeature, scope: Scope, args: list, kwargs: dict) -> Any:
    """Read or call the member named by ``feature.property``."""
    owner, name = scope.resolve_owner(feature.property)
    member = get_member(owner, name)
    if not feature.call:
        return member

    if feature.call_style is CallStyle.CONSTRUCTOR and not callable(member):
        raise TypeError(f"{feature.property} is not a constructor")
    logger.debug("invoke %s(%d args, %d kwargs)", feature.property, len(args), len(kwargs))
    outcome = member(*args, **kwargs)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return outcome


async def execute_feature(feature: TestFeature, scope: Scope) -> FeatureResult:
    """Run *feature* against *scope*.

    Raises :class:`~packspec.errors.ConstantReassignmentError` when the
    feature assigns an existing upper-case name.
    """
    if feature.skip:
        return FeatureResult(feature, Status.SKIPPED)

    error: Optional[PackspecError] = None
    expected: Any = None
    try:
        args, kwargs, expected = dereference_feature(feature, scope)
        if feature.property:
            result = await _invoke(feature, scope, args, kwargs)
        else:
            result = expected
    except Exception as exc:
        logger.debug("%s raised %s", feature.text, type(exc).__name__)
        error = OperationError(exc)
        result = ERROR

    if feature.assign:
        try:
            scope.assign(feature.assign, result)
        except ConstantReassignmentError:
            raise
        except Exception as exc:
            logger.debug("assigning %s raised %s", feature.assign, type(exc).__name__)
            error = error or OperationError(exc)

    if error is not None:
        # a declared ERROR expectation turns the captured error into a pass
        if feature.has_result and feature.property and feature.result is ERROR:
            return FeatureResult(feature, Status.PASSED, result)
        return FeatureResult(feature, Status.FAILED, result, error)

    if feature.has_result and feature.property:
        if deep_equal(result, expected):
            return FeatureResult(feature, Status.PASSED, result)
        return FeatureResult(feature, Status.FAILED, result, AssertionMismatch(result, expected))

    return FeatureResult(feature, Status.PASSED, result)
