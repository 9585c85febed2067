from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .exceptions import ConfigError


@dataclass(frozen=True)
class Filter:
    """Name selector shared by extraction and rendering.

    A name is selected iff the pattern matches somewhere in it, XOR invert.
    """

    pattern: re.Pattern[str]
    invert: bool = False

    @classmethod
    def compile(cls, expr: str, invert: bool = False) -> Filter:
        try:
            pattern = re.compile(expr)
        except re.error as e:
            raise ConfigError(f"invalid filter {expr!r}: {e}") from e
        return cls(pattern=pattern, invert=invert)

    def selects(self, name: str) -> bool:
        return bool(self.pattern.search(name)) != self.invert


@dataclass(frozen=True)
class StmtSpec:
    """One extraction/rendering rule for a named statement."""

    name: str
    stmt: str = ""
    inline: tuple[str, ...] = ()
    replace: Mapping[str, str] = field(default_factory=dict)
    regreplace: Mapping[str, str] = field(default_factory=dict)
    match: tuple[re.Pattern[str], ...] = ()
    exclude: tuple[re.Pattern[str], ...] = ()
    unlink: tuple[str, ...] = ()
    relink: Mapping[str, str] = field(default_factory=dict)
    nosplit: bool = False

    @property
    def target(self) -> str:
        """Grammar production to extract (defaults to the statement name)."""
        return self.stmt or self.name

    def sorted_replace(self) -> list[tuple[str, str]]:
        return [(k, self.replace[k]) for k in sorted(self.replace)]

    def sorted_regreplace(self) -> list[tuple[re.Pattern[str], str]]:
        return [(re.compile(k), self.regreplace[k]) for k in sorted(self.regreplace)]


def index_specs(specs: Iterable[StmtSpec]) -> dict[str, StmtSpec]:
    """Index specs by name, rejecting duplicates."""
    index: dict[str, StmtSpec] = {}
    for spec in specs:
        if spec.name in index:
            raise ConfigError(f"duplicate spec name {spec.name!r}")
        index[spec.name] = spec
    return index
