# tests/test_resolver.py
"""
Tests for dereferencing symbolic back-references against a scope.
"""

from packspec.grammar import parse_feature
from packspec.resolver import dereference, dereference_feature
from packspec.scope import Scope
from packspec.values import Reference


class TestDereference:

    def test_scalars_pass_through(self):
        scope = Scope()
        for value in (1, "a", None, 2.5, True):
            assert dereference(value, scope) == value

    def test_nested_structures(self):
        scope = Scope({"ref": 42, "calc": {"last": 7}})
        value = [Reference("ref"), {"obj": Reference("ref"), "n": [Reference("calc.last")]}]
        assert dereference(value, scope) == [42, {"obj": 42, "n": [7]}]

    def test_tuples_keep_their_type(self):
        scope = Scope({"x": 1})
        assert dereference((Reference("x"), 2), scope) == (1, 2)

    def test_idempotent_without_references(self):
        scope = Scope()
        value = {"a": [1, {"b": 2}]}
        once = dereference(value, scope)
        assert dereference(once, scope) == once == value

    def test_lookups_are_not_cached(self):
        scope = Scope({"x": 1})
        ref = Reference("x")
        assert dereference(ref, scope) == 1
        scope["x"] = 2
        assert dereference(ref, scope) == 2


class TestDereferenceFeature:

    def test_resolves_arguments_and_expected(self):
        scope = Scope({"a": 1, "b": 2, "want": 3})
        feature = parse_feature({"Math.add": [{"a": None}, {"n=": {"b": None}}, {"==": {"want": None}}]})
        args, kwargs, result = dereference_feature(feature, scope)
        assert args == [1]
        assert kwargs == {"n": 2}
        assert result == 3

    def test_feature_not_mutated(self):
        scope = Scope({"ref": 42})
        feature = parse_feature({"Math.identity": [{"ref": None}]})
        dereference_feature(feature, scope)
        assert feature.args == [Reference("ref")]

    def test_non_call_ignores_arguments(self):
        scope = Scope()
        feature = parse_feature({"calc.last==": 5})
        assert dereference_feature(feature, scope) == ([], {}, 5)
