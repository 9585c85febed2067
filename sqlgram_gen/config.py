from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .constants import ADDR_DEFAULT, FILTER_DEFAULT, MAX_WORKERS_DEFAULT
from .exceptions import ConfigError
from .preprocess import PreprocessRules
from .spec_model import Filter


def default_filter() -> Filter:
    return Filter.compile(FILTER_DEFAULT)


@dataclass(frozen=True)
class BnfConfig:
    """Settings for one extraction run (`sqlgram bnf`)."""

    bnf_dir: Path
    addr: str = ADDR_DEFAULT
    spec: str = ""
    rules: PreprocessRules = field(default_factory=PreprocessRules)
    filter: Filter = field(default_factory=default_filter)
    quiet: bool = False


@dataclass(frozen=True)
class SvgConfig:
    """Settings for one diagram run (`sqlgram svg`)."""

    bnf_dir: Path
    svg_dir: Path
    spec: str = ""
    max_workers: int = MAX_WORKERS_DEFAULT
    filter: Filter = field(default_factory=default_filter)
    quiet: bool = False

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ConfigError(f"max workers must be at least 1, got {self.max_workers}")
