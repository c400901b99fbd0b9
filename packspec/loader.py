"""
packspec/loader.py
══════════════════

Spec Loader: detects a document's format and parses it into a
:class:`~packspec.model.Spec`.

Formats
───────
  • YAML       (``.yml`` / ``.yaml``)   declarative features, optional setup document
  • Markdown   (``.md`` / ``.markdown``) headings + fenced ``python`` blocks
  • Listing    (``.py``)                 ``#`` comment lines + code regions

Declarative documents go through :mod:`packspec.grammar`; line-oriented
documents are split into :class:`~packspec.model.LineBlock` objects whose
non-blank lines become :class:`~packspec.model.LineFeature` entries.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import yaml

from packspec.config import RunConfig
from packspec.errors import ErrorCodes, FormatError, GrammarError, SourceSpan
from packspec.grammar import parse_feature
from packspec.model import (
    CommentFeature,
    Feature,
    LineBlock,
    LineFeature,
    Spec,
    SpecKind,
    SpecStats,
)
from packspec.scope import Scope

logger = logging.getLogger(__name__)

FENCE = "```"
PYTHON_FENCE_LANGS = frozenset({"python", "py", "python3"})
COMMENT_MARKER = "#"


class DocumentFormat(enum.Enum):
    YAML = "yaml"
    MARKDOWN = "markdown"
    LISTING = "listing"


SUFFIXES: Dict[str, DocumentFormat] = {
    ".yml": DocumentFormat.YAML,
    ".yaml": DocumentFormat.YAML,
    ".md": DocumentFormat.MARKDOWN,
    ".markdown": DocumentFormat.MARKDOWN,
    ".py": DocumentFormat.LISTING,
}


def detect_format(path: Union[str, Path]) -> DocumentFormat:
    """Pick a parser from the document suffix."""
    suffix = Path(path).suffix.lower()
    try:
        return SUFFIXES[suffix]
    except KeyError:
        raise FormatError(
            f"No parser for {suffix or 'suffix-less'} documents",
            span=SourceSpan(file=str(path)),
            hint=f"supported suffixes: {', '.join(sorted(SUFFIXES))}",
        ) from None


def is_supported(path: Union[str, Path]) -> bool:
    return Path(path).suffix.lower() in SUFFIXES


def read_document(path: Union[str, Path]) -> str:
    return Path(path).read_text(encoding="utf-8")


# ═════════════════════════════════════════════════════════════════════════
#  YAML (declarative)
# ═════════════════════════════════════════════════════════════════════════

def run_setup_code(code: str, scope: Scope, filename: str = "<packspec-setup>") -> None:
    """Execute setup *code* once and expose its bindings as ``$name``."""
    namespace: Dict[str, Any] = {"__name__": "packspec_setup"}
    try:
        exec(compile(code, filename, "exec"), namespace)
    except Exception as exc:
        raise FormatError(
            f"Setup code failed: {type(exc).__name__}: {exc}",
            code=ErrorCodes.INVALID_DOCUMENT,
            span=SourceSpan(file=filename),
        ) from exc
    scope.extend(namespace)
    logger.debug("setup code exposed %d binding(s)", len(scope) - 1)


def parse_yaml_spec(text: str, config: Optional[RunConfig] = None, path: str = "") -> Optional[Spec]:
    """Parse a declarative YAML document.

    Returns ``None`` when the package comment is tagged for other targets.
    """
    config = config or RunConfig()
    span = SourceSpan(file=path)
    try:
        documents = list(yaml.safe_load_all(text))
    except yaml.YAMLError as exc:
        raise FormatError(f"Malformed YAML: {exc}", code=ErrorCodes.INVALID_DOCUMENT, span=span) from exc

    entries = documents[0] if documents else None
    if not isinstance(entries, list) or not entries:
        raise FormatError(
            "The first YAML document must be a non-empty sequence of features",
            code=ErrorCodes.INVALID_DOCUMENT,
            span=span,
        )

    features: List[Feature] = []
    skip = False
    for index, entry in enumerate(entries):
        try:
            feature = parse_feature(entry, config.target)
        except GrammarError as exc:
            exc.message = f"entry #{index + 1}: {exc.message}"
            raise exc.with_span(span)
        if isinstance(feature, CommentFeature):
            skip = feature.skip
        else:
            feature = replace(feature, skip=skip or feature.skip)
        features.append(feature)

    first = features[0]
    if not isinstance(first, CommentFeature):
        raise FormatError(
            "The first feature must be a comment naming the package",
            code=ErrorCodes.INVALID_DOCUMENT,
            span=span,
        )
    if first.skip:
        logger.info("skipping %s: package is tagged %s", path or "<yaml>", "|".join(first.tags))
        return None

    scope = Scope()
    if len(documents) > 1 and isinstance(documents[1], Mapping):
        code = documents[1].get(config.setup_key)
        if code:
            run_setup_code(str(code), scope, filename=f"{path or '<yaml>'}:{config.setup_key}")

    return Spec(
        kind=SpecKind.DECLARATIVE,
        package=first.comment,
        features=features,
        scope=scope,
        stats=SpecStats.from_features(features),
        path=path,
    )


# ═════════════════════════════════════════════════════════════════════════
#  Line-oriented documents
# ═════════════════════════════════════════════════════════════════════════

# A region is ("comment", text, level) or ("code", [(doc_line, text), ...])
Region = Tuple[Any, ...]


def _line_features(regions: List[Region]) -> List[Feature]:
    features: List[Feature] = []
    index = 0
    for region in regions:
        if region[0] == "comment":
            _, text, level = region
            features.append(CommentFeature(comment=text, level=level))
            continue
        numbered = region[1]
        if not numbered:
            continue
        index += 1
        block = LineBlock(
            index=index,
            source="\n".join(line for _, line in numbered),
            first_line=numbered[0][0],
            origins=tuple(number for number, _ in numbered),
        )
        for line_number, line in enumerate(block.lines, 1):
            stripped = line.strip()
            if not stripped or stripped.startswith(COMMENT_MARKER):
                continue
            features.append(LineFeature(line_number=line_number, line=line, block=block))
    return features


def _native_spec(package: str, regions: List[Region], path: str) -> Spec:
    features = _line_features(regions)
    return Spec(
        kind=SpecKind.NATIVE,
        package=package,
        features=features,
        scope=Scope(),
        stats=SpecStats.from_features(features),
        path=path,
    )


def _fence_words(info: str) -> List[str]:
    return info.replace(",", " ").split()


def _captures_fence(info: str, flag: Optional[str]) -> bool:
    words = _fence_words(info)
    if not words or words[0].lower() not in PYTHON_FENCE_LANGS:
        return False
    return flag is None or flag in words[1:]


def parse_markdown_spec(text: str, config: Optional[RunConfig] = None, path: str = "") -> Spec:
    """Parse a Markdown document: headings and fenced Python blocks."""
    config = config or RunConfig()
    lines = text.split("\n")
    package = lines[0].lstrip(COMMENT_MARKER).strip()

    regions: List[Region] = []
    fence: Optional[str] = None
    numbered: List[Tuple[int, str]] = []
    for number, line in enumerate(lines, 1):
        if line.startswith(FENCE):
            if fence is None:
                fence = "code" if _captures_fence(line[len(FENCE):].strip(), config.markdown_flag) else "other"
                numbered = []
            else:
                if fence == "code":
                    regions.append(("code", numbered))
                fence = None
            continue
        if fence == "code":
            numbered.append((number, line))
            continue
        if fence is None and line.startswith(COMMENT_MARKER):
            level = len(line) - len(line.lstrip(COMMENT_MARKER))
            regions.append(("comment", line.strip(COMMENT_MARKER + " \t"), level))

    if fence == "code":
        logger.warning("%s: unterminated code fence", path or "<markdown>")
        regions.append(("code", numbered))
    return _native_spec(package, regions, path)


def parse_listing_spec(text: str, config: Optional[RunConfig] = None, path: str = "") -> Spec:
    """Parse a comment-annotated Python listing."""
    lines = text.split("\n")
    package = lines[0][len(COMMENT_MARKER):].strip() if lines[0].startswith(COMMENT_MARKER) else lines[0].strip()

    regions: List[Region] = []
    numbered: List[Tuple[int, str]] = []
    for number, line in enumerate(lines, 1):
        if not line.strip():
            continue
        if line.startswith(COMMENT_MARKER):
            if numbered:
                regions.append(("code", numbered))
                numbered = []
            regions.append(("comment", line[len(COMMENT_MARKER):].strip(), 1))
            continue
        numbered.append((number, line))
    if numbered:
        regions.append(("code", numbered))
    return _native_spec(package, regions, path)


# ═════════════════════════════════════════════════════════════════════════
#  Entry point
# ═════════════════════════════════════════════════════════════════════════

_PARSERS: Dict[DocumentFormat, Callable[..., Optional[Spec]]] = {
    DocumentFormat.YAML: parse_yaml_spec,
    DocumentFormat.MARKDOWN: parse_markdown_spec,
    DocumentFormat.LISTING: parse_listing_spec,
}


def load_spec(path: Union[str, Path], config: Optional[RunConfig] = None) -> Optional[Spec]:
    """Load one document; ``None`` means it does not apply to this run."""
    document_format = detect_format(path)
    logger.debug("loading %s as %s", path, document_format.value)
    text = read_document(path)
    return _PARSERS[document_format](text, config or RunConfig(), path=str(path))
