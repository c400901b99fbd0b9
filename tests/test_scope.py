# tests/test_scope.py
"""
Tests for Scope path resolution and assignment.
"""

import types

import pytest

from packspec.errors import ConstantReassignmentError
from packspec.scope import IMPORT_NAME, Scope, get_member, has_member


class TestMemberAccess:

    def test_mapping_item(self):
        assert get_member({"a": 1}, "a") == 1

    def test_sequence_index(self):
        assert get_member([10, 20], "1") == 20
        assert get_member([10, 20], "-1") == 20

    def test_attribute(self):
        assert get_member(types.SimpleNamespace(x=3), "x") == 3

    def test_strings_are_not_indexed(self):
        with pytest.raises(AttributeError):
            get_member("abc", "0")

    def test_has_member(self):
        assert has_member({"a": 1}, "a")
        assert not has_member([1], "3")
        assert has_member(types.SimpleNamespace(x=1), "x")


class TestScope:

    def test_import_capability(self):
        scope = Scope()
        assert scope[IMPORT_NAME]("math").sqrt(9) == 3

    def test_without_import(self):
        assert IMPORT_NAME not in Scope(with_import=False)

    def test_resolve_dotted(self, scope):
        scope["data"] = {"items": [{"name": "a"}]}
        assert scope.resolve("data.items.0.name") == "a"
        assert scope.resolve("Math.PI") == 3.14

    def test_resolve_missing(self, scope):
        with pytest.raises(KeyError):
            scope.resolve("missing.name")

    def test_assign_nested(self, scope):
        scope["obj"] = types.SimpleNamespace(value=1)
        scope.assign("obj.value", 2)
        assert scope["obj"].value == 2

    def test_assign_new_constant(self):
        scope = Scope()
        scope.assign("LIMIT", 1)
        assert scope["LIMIT"] == 1

    def test_reassign_constant_raises(self):
        scope = Scope({"LIMIT": 1})
        with pytest.raises(ConstantReassignmentError) as excinfo:
            scope.assign("LIMIT", 2)
        assert excinfo.value.fatal
        assert "LIMIT" in str(excinfo.value)
        assert scope["LIMIT"] == 1

    def test_reassign_nested_constant_raises(self, scope):
        with pytest.raises(ConstantReassignmentError):
            scope.assign("Math.PI", 3)

    def test_lowercase_reassign_allowed(self):
        scope = Scope({"limit": 1})
        scope.assign("limit", 2)
        assert scope["limit"] == 2

    def test_extend_with_prefix(self):
        scope = Scope()
        scope.extend({"helper": len, "__builtins__": {}})
        assert scope["$helper"] is len
        assert "$__builtins__" not in scope

    def test_names_hide_dunders(self):
        scope = Scope({"__packspec_assert__": print, "x": 1})
        assert "x" in scope.names()
        assert "__packspec_assert__" not in scope.names()
