"""packspec/runner.py – run specs and collect their summaries.

Specs run one after the other, and so do the features inside a spec.
Error handling is tiered:

* ``FormatError`` / ``GrammarError`` while loading a document are reported,
  the run is marked failed and the next document is loaded.
* ``ConstantReassignmentError`` ends the whole run.
* With ``exit_first`` the run stops right after the first failing feature
  or line is reported, followed by a dump of the spec's scope.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from packspec.config import RunConfig
from packspec.engine import execute_feature
from packspec.errors import ErrorCodes, FormatError, GrammarError, PackspecError, SourceSpan
from packspec.loader import is_supported, load_spec
from packspec.model import CommentFeature, LineFeature, Spec
from packspec.report import Reporter, RunResult, SpecSummary
from packspec.snippets import BlockRunner

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT = "README.md"

PathLike = Union[str, Path]


def expand_paths(paths: Sequence[PathLike], config: Optional[RunConfig] = None) -> List[Path]:
    """Turn command-line paths into the ordered list of documents to run.

    Directories contribute their direct children with a supported suffix,
    sorted by name.  Without paths the configured documents are used, and
    without those ``README.md``.
    """
    config = config or RunConfig()
    if not paths:
        paths = [entry.main for entry in config.documents] or [DEFAULT_DOCUMENT]

    documents: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            children = sorted(child for child in path.iterdir() if child.is_file() and is_supported(child))
            logger.debug("%s: %d document(s)", path, len(children))
            documents.extend(children)
        else:
            documents.append(path)
    return documents


async def test_spec(spec: Spec, config: RunConfig, reporter: Reporter) -> SpecSummary:
    """Execute every feature of *spec* in order and report as we go."""
    reporter.header(spec)
    summary = SpecSummary.for_spec(spec)
    blocks = BlockRunner(spec.scope)

    try:
        for feature in spec.features:
            if isinstance(feature, CommentFeature):
                summary.record_comment()
                reporter.comment(feature)
                continue
            if isinstance(feature, LineFeature):
                result = await blocks.run_line(feature)
            else:
                result = await execute_feature(feature, spec.scope)
            summary.record(result)
            reporter.result(result)
            if result.failed and config.exit_first:
                reporter.scope_dump(spec.scope)
                break
    except PackspecError as exc:
        if not exc.fatal:
            raise
        logger.debug("%s: aborted by %s", spec.package, exc.code)
        if not exc.span.file:
            exc.with_span(SourceSpan(file=spec.path))
        summary.fatal = exc
        reporter.error(exc)

    reporter.summary(summary)
    return summary


# pytest must not collect the runner entry points
test_spec.__test__ = False  # type: ignore[attr-defined]


def _load(path: Path, config: RunConfig) -> Optional[Spec]:
    try:
        return load_spec(path, config)
    except OSError as exc:
        raise FormatError(
            f"Cannot read document: {exc.strerror or exc}",
            code=ErrorCodes.INVALID_DOCUMENT,
            span=SourceSpan(file=str(path)),
        ) from exc


async def test_specs(paths: Iterable[PathLike], config: RunConfig, reporter: Reporter) -> RunResult:
    """Load and run every document in *paths*."""
    run_result = RunResult()
    for raw in paths:
        path = Path(raw)
        try:
            spec = _load(path, config)
        except (FormatError, GrammarError) as exc:
            logger.debug("%s: not loaded (%s)", path, exc.code)
            reporter.error(exc)
            run_result.errors.append(exc)
            continue
        if spec is None:
            logger.warning("%s does not target %r, skipped", path, config.target)
            continue

        summary = await test_spec(spec, config, reporter)
        run_result.summaries.append(summary)
        if summary.fatal is not None:
            run_result.fatal = summary.fatal
            break
        if config.exit_first and summary.failed:
            run_result.aborted = True
            break
    return run_result


test_specs.__test__ = False  # type: ignore[attr-defined]


def run(paths: Sequence[PathLike], config: Optional[RunConfig] = None, reporter: Optional[Reporter] = None) -> RunResult:
    """Synchronous entry point: expand *paths* and run them on a fresh event loop."""
    config = config or RunConfig()
    reporter = reporter or Reporter(color=config.color)
    documents = expand_paths(paths, config)
    logger.info("running %d document(s) for target %r", len(documents), config.target)
    return asyncio.run(test_specs(documents, config, reporter))
