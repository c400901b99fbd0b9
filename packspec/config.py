"""packspec/config.py – run configuration.

A run is configured from (lowest to highest precedence) the
:class:`RunConfig` defaults, an optional ``packspec.yml`` in the working
directory, and command-line flags::

    # packspec.yml
    target: py
    exit_first: false
    markdown_flag: packspec
    documents:
      - README.md
      - main: docs/spec.yml
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from packspec.errors import ConfigError, SourceSpan

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "packspec.yml"


@dataclass(frozen=True)
class DocumentEntry:
    """One configured document."""
    main: str


@dataclass
class RunConfig:
    """Tuning knobs for a packspec run."""
    target: str = "py"
    exit_first: bool = False
    color: bool = True
    setup_key: str = "py"
    markdown_flag: Optional[str] = None
    documents: List[DocumentEntry] = field(default_factory=list)

    def validate(self) -> List[str]:
        """Return a list of validation problems (empty if valid)."""
        problems: List[str] = []
        if not self.target:
            problems.append("target must be a non-empty tag")
        if not self.setup_key:
            problems.append("setup_key must be a non-empty key")
        return problems

    def with_overrides(self, **overrides: Any) -> "RunConfig":
        """Copy with every non-``None`` override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _document_entry(raw: Any, index: int, source: str) -> DocumentEntry:
    if isinstance(raw, str):
        return DocumentEntry(main=raw)
    if isinstance(raw, Mapping):
        if not raw.get("main"):
            raise ConfigError(
                f'Document #{index + 1} requires "main" property',
                span=SourceSpan(file=source),
            )
        return DocumentEntry(main=str(raw["main"]))
    raise ConfigError(
        f"Document #{index + 1} must be a path or a mapping, got {type(raw).__name__}",
        span=SourceSpan(file=source),
    )


def config_from_mapping(data: Mapping[str, Any], source: str = "") -> RunConfig:
    """Build a :class:`RunConfig` from an already parsed mapping."""
    known = {f.name for f in fields(RunConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}", span=SourceSpan(file=source))

    values: Dict[str, Any] = {key: value for key, value in data.items() if key != "documents"}
    documents = data.get("documents") or []
    if not isinstance(documents, list):
        raise ConfigError('"documents" must be a list', span=SourceSpan(file=source))
    values["documents"] = [_document_entry(raw, i, source) for i, raw in enumerate(documents)]

    config = RunConfig(**values)
    problems = config.validate()
    if problems:
        raise ConfigError("; ".join(problems), span=SourceSpan(file=source))
    return config


def load_config(path: Union[str, Path, None] = None) -> RunConfig:
    """Load ``packspec.yml``.

    With *path* ``None`` the file is looked up in the working directory and
    its absence yields the defaults; an explicit *path* must exist.
    """
    explicit = path is not None
    config_path = Path(path) if explicit else Path(CONFIG_FILENAME)

    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Configuration file not found: {config_path}")
        return RunConfig()

    logger.debug("loading configuration from %s", config_path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed configuration: {exc}", span=SourceSpan(file=str(config_path))) from exc

    if data is None:
        return RunConfig()
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration must be a mapping", span=SourceSpan(file=str(config_path)))
    return config_from_mapping(data, source=str(config_path))
