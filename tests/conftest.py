# tests/conftest.py
"""
Shared fixtures and sample documents for the packspec test-suite.
"""

import asyncio
import textwrap

import pytest

from packspec.scope import Scope


# ─────────────────────────────────────────────────────────────────────────
#  Objects exercised by the specs
# ─────────────────────────────────────────────────────────────────────────

class Math:
    PI = 3.14

    @staticmethod
    def add(a, b):
        return a + b

    @staticmethod
    def divide(a, b):
        return a / b

    @staticmethod
    def identity(value):
        return value

    @staticmethod
    def describe(name, greeting="hello"):
        return f"{greeting} {name}"


class Calculator:

    def __init__(self, start=0):
        self.last = start

    def add(self, a, b):
        self.last = a + b
        return self.last

    def get_last(self):
        return self.last

    async def fetch(self, value):
        await asyncio.sleep(0)
        return value


def run_async(coro):
    """Drive a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


def dedent(text):
    return textwrap.dedent(text).lstrip("\n")


# ─────────────────────────────────────────────────────────────────────────
#  Sample documents
# ─────────────────────────────────────────────────────────────────────────

YAML_SPEC = dedent("""
    - Calculator
    - "calc = $Calculator": [10]
    - "calc.last==": 10
    - "calc.add": [2, 3, {"==": 5}]
    - "total = calc.getLast": [{"==": 5}]
    - (js) Only for JavaScript
    - "calc.add": [1, 1, {"==": 3}]
    - Back to everyone
    - "calc.add": [{"total": null}, 1, {"==": 6}]
    ---
    py: |
      class Calculator:
          def __init__(self, start=0):
              self.last = start

          def add(self, a, b):
              self.last = a + b
              return self.last

          def get_last(self):
              return self.last
""")

FAILING_YAML_SPEC = dedent("""
    - Failing
    - "mathlib = $import": ["math"]
    - "mathlib.sqrt": [16, {"==": 5.0}]
    - "mathlib.sqrt": [-1, {"==": 1}]
    - "mathlib.floor": [2.5, {"==": 2}]
""")

JS_ONLY_YAML_SPEC = dedent("""
    - (js) JavaScript package
    - "x = Foo": []
""")

CONSTANT_YAML_SPEC = dedent("""
    - Constants
    - "LIMIT =": 1
    - "LIMIT =": 2
    - "after =": 3
""")

MARKDOWN_SPEC = dedent('''
    # Calculator

    Some prose about the package.

    ## Adding

    ```python
    total = 2 + 3
    total  # 5
    ```

    ```text
    # not a heading
    ```

    ## Subtracting

    ```py
    # a comment line inside code
    diff = total - 1
    diff  # 4
    ```
''')

PY_SECTION_YAML_SPEC = dedent("""
    - Sections
    - "x =": 1
    - (py) Only for Python
    - "y =": 2
    - "x==": 5
    - Back to everyone
    - "x==": 1
""")

FAILING_MARKDOWN_SPEC = dedent('''
    # Calculator

    ```python
    total = 2 + 3
    total  # 6
    total += 1
    ```

    ```python
    after = total
    ```
''')

LISTING_SPEC = dedent("""
    # Calculator
    # Adding numbers
    total = 2 + 3
    total  # 5

    # Failing
    total  # 6
    total += 1
""")


# ─────────────────────────────────────────────────────────────────────────
#  Fixtures
# ─────────────────────────────────────────────────────────────────────────

@pytest.fixture
def scope():
    """A scope pre-seeded with the test objects."""
    return Scope({"Math": Math, "Calculator": Calculator})


@pytest.fixture
def write_doc(tmp_path):
    """Write a document into ``tmp_path`` and return its path."""
    def _write(name, text):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write
