"""packspec — executable package specifications.

Turns specification documents (tagged YAML, annotated Markdown,
commented Python listings) into assertions executed against the live
package, and reports pass/fail/skip per feature or per source line.

Submodules
----------
errors
    Exception hierarchy with structured ``PSPEC-XXXX`` codes and
    ``SourceSpan`` positions.

values / model / scope
    The value tree (``Reference``, ``ERROR``), the parsed document model
    and the mutable ``Scope`` features execute against.

grammar
    parsimonious PEG grammar for declarative feature entries.

loader
    Format detection and the YAML / Markdown / listing parsers.

resolver / engine
    Back-reference resolution and execution of declarative features.

snippets
    Line-attributed execution of native code blocks.

report / runner / main
    Console report, orchestration and the ``packspec`` CLI.

Usage
-----
Command-line::

    python -m packspec README.md docs/
    python -m packspec specs/calculator.yml --tag py --exit-first

Programmatic::

    from packspec.config import RunConfig
    from packspec.runner import run

    result = run(["README.md"], RunConfig(exit_first=True))
    assert result.success
"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "__version__",
    "errors",
    "loader",
    "runner",
    "__main__",
]
