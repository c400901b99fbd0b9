# tests/test_snippets.py
"""
Tests for the line-attributed snippet runner and the inline shorthand.
"""

import pytest

from packspec.errors import AssertionMismatch, OperationError
from packspec.model import LineBlock, LineFeature, Status
from packspec.scope import Scope
from packspec.snippets import (
    ASSERT_NAME,
    BlockOutcome,
    BlockRunner,
    assert_equal,
    rewrite_block,
    rewrite_line,
    run_block,
)
from tests.conftest import dedent, run_async


def make_block(source, index=1):
    return LineBlock(index=index, source=dedent(source).rstrip("\n"))


def line_features(block):
    return [
        LineFeature(line_number=n, line=line, block=block)
        for n, line in enumerate(block.lines, 1)
        if line.strip() and not line.strip().startswith("#")
    ]


class TestRewrite:

    def test_shorthand_becomes_assertion(self):
        assert rewrite_line("add(2, 3)  # 5") == f"{ASSERT_NAME}(add(2, 3), 5, 'add(2, 3) != 5')"

    def test_indentation_preserved(self):
        rewritten = rewrite_line("    total  # [1, 2]")
        assert rewritten.startswith(f"    {ASSERT_NAME}(total, [1, 2],")

    @pytest.mark.parametrize("line", [
        "x = 1  # one",
        "total  # the running total",
        "# only a comment",
        's = "a # b"',
        "if ready:  # True",
        "",
        "call(",
    ])
    def test_other_lines_untouched(self, line):
        assert rewrite_line(line) == line

    def test_line_count_preserved(self):
        lines = ["a = 1", "a  # 1", "", "b = a  # note"]
        assert len(rewrite_block(lines)) == len(lines)

    def test_continuation_lines_untouched(self):
        lines = ["letters = [", "    \"a\",  # a", "    \"b\",", "]", "letters  # [\"a\", \"b\"]"]
        rewritten = rewrite_block(lines)
        assert rewritten[:4] == lines[:4]
        assert rewritten[4].startswith(f"{ASSERT_NAME}(letters, ")

    def test_nested_statements_rewritten(self):
        lines = ["for n in range(2):", "    n  # n"]
        assert rewrite_block(lines)[1].startswith(f"    {ASSERT_NAME}(n, n,")

    def test_trailing_comma_untouched(self):
        assert rewrite_line("x,  # (1,)") == "x,  # (1,)"

    def test_assert_equal(self):
        assert_equal({"a": [1]}, {"a": [1]})
        with pytest.raises(AssertionMismatch) as excinfo:
            assert_equal(5, 6, "add(2, 3) != 6")
        assert excinfo.value.message == "5 != 6"
        assert excinfo.value.hint == "add(2, 3) != 6"


class TestBlockOutcome:

    def test_no_error_all_passed(self):
        outcome = BlockOutcome()
        assert [outcome.status_for(n) for n in (1, 2, 3)] == [Status.PASSED] * 3

    def test_statuses_around_failing_line(self):
        outcome = BlockOutcome(OperationError(ValueError("x")), failing_line=2)
        assert [outcome.status_for(n) for n in (1, 2, 3)] == [
            Status.PASSED, Status.FAILED, Status.SKIPPED,
        ]


class TestRunBlock:

    def test_runtime_error_attributed_to_line(self):
        calls = []
        scope = Scope({"calls": calls})
        block = make_block("""
            calls.append(1)
            raise ValueError("boom")
            calls.append(3)
        """)
        runner = BlockRunner(scope)
        results = [run_async(runner.run_line(f)) for f in line_features(block)]
        assert [r.status for r in results] == [Status.PASSED, Status.FAILED, Status.SKIPPED]
        assert calls == [1]
        assert isinstance(results[1].error, OperationError)
        assert results[1].error.message == "ValueError: boom"
        assert results[0].error is None and results[2].error is None

    def test_block_runs_once(self):
        calls = []
        scope = Scope({"calls": calls})
        block = make_block("""
            calls.append(1)
            x = 2
            y = 3
        """)

        async def all_lines():
            runner = BlockRunner(scope)
            return [await runner.run_line(f) for f in line_features(block)]

        results = run_async(all_lines())
        assert all(r.passed for r in results)
        assert calls == [1]
        assert scope["y"] == 3

    def test_error_inside_function_reports_call_site(self):
        block = make_block("""
            def explode():
                return 1 / 0

            value = 1
            explode()
            after = 2
        """)
        outcome = run_async(run_block(block, Scope()))
        assert outcome.failing_line == 5
        assert isinstance(outcome.error.original, ZeroDivisionError)

    def test_failed_shorthand(self):
        block = make_block("""
            total = 2 + 3
            total  # 6
        """)
        outcome = run_async(run_block(block, Scope()))
        assert outcome.failing_line == 2
        assert isinstance(outcome.error, AssertionMismatch)
        assert outcome.error.message == "5 != 6"

    def test_passing_shorthand(self):
        scope = Scope()
        block = make_block("""
            items = [3, 1, 2]
            sorted(items)  # [1, 2, 3]
            {"k": items[0]}  # {"k": 3}
        """)
        outcome = run_async(run_block(block, scope))
        assert not outcome.failed

    def test_multiline_literal_with_comments(self):
        block = make_block("""
            letters = [
                "a",  # a
                "b",
            ]
            letters  # ["a", "b"]
        """)
        outcome = run_async(run_block(block, Scope()))
        assert not outcome.failed

    def test_syntax_error_line(self):
        block = make_block("""
            a = 1
            b = = 2
            c = 3
        """)
        outcome = run_async(run_block(block, Scope()))
        assert outcome.failing_line == 2
        assert isinstance(outcome.error.original, SyntaxError)

    def test_top_level_await(self):
        scope = Scope()
        block = make_block("""
            import asyncio

            async def double(x):
                await asyncio.sleep(0)
                return x * 2

            result = await double(21)
            result  # 42
        """)
        outcome = run_async(run_block(block, scope))
        assert not outcome.failed
        assert scope["result"] == 42

    def test_blocks_share_the_scope(self):
        scope = Scope()
        first = make_block("shared = 10", index=1)
        second = make_block("shared * 2  # 20", index=2)
        runner = BlockRunner(scope)
        assert not run_async(runner.outcome(first)).failed
        assert not run_async(runner.outcome(second)).failed
