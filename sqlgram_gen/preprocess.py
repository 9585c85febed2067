from __future__ import annotations

import os
import re
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

from .constants import (
    CLEANUP_SUBSTITUTIONS,
    QUOTE_OPERATOR_SUBSTITUTIONS,
    SCRATCH_PREFIX,
    SCRATCH_SUFFIX,
    START_MARKER,
)
from .exceptions import FormatError, ParseError

Table = tuple[tuple[str, str], ...]


def _table_from_document(doc: dict[str, Any], key: str, default: Table) -> Table:
    value = doc.get(key)
    if value is None:
        return default
    if not isinstance(value, list):
        raise ParseError(f"preprocess rules: {key!r} must be a list of [from, to] pairs")

    pairs: list[tuple[str, str]] = []
    for i, pair in enumerate(value):
        if (
            not isinstance(pair, list)
            or len(pair) != 2
            or not all(isinstance(p, str) for p in pair)
        ):
            raise ParseError(f"preprocess rules: {key}[{i}] must be a [from, to] pair of strings")
        if not pair[0]:
            raise ParseError(f"preprocess rules: {key}[{i}] has an empty 'from' string")
        pairs.append((pair[0], pair[1]))
    return tuple(pairs)


@dataclass(frozen=True)
class PreprocessRules:
    """Dialect workarounds applied to the grammar source before parsing."""

    marker: str = START_MARKER
    quote_operators: Table = QUOTE_OPERATOR_SUBSTITUTIONS
    cleanup: Table = CLEANUP_SUBSTITUTIONS

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> PreprocessRules:
        marker = doc.get("marker", START_MARKER)
        if not isinstance(marker, str) or not marker:
            raise ParseError("preprocess rules: 'marker' must be a non-empty string")
        return cls(
            marker=marker,
            quote_operators=_table_from_document(doc, "quote_operators", QUOTE_OPERATOR_SUBSTITUTIONS),
            cleanup=_table_from_document(doc, "cleanup", CLEANUP_SUBSTITUTIONS),
        )


def replace_all(text: str, table: Table) -> str:
    """Apply a substitution table in one left-to-right pass.

    Replaced text is never rescanned; at any position the earliest-listed key
    that matches wins.
    """
    if not table:
        return text
    mapping = dict(reversed(table))
    pattern = re.compile("|".join(re.escape(old) for old, _ in table))
    return pattern.sub(lambda m: mapping[m.group(0)], text)


def preprocess(raw: str, rules: PreprocessRules = PreprocessRules()) -> str:
    """Normalize grammar source text for the grammar parser."""
    start = raw.find(rules.marker)
    if start < 0:
        raise FormatError(f"grammar source has no {rules.marker!r} marker")

    text = raw[start:]
    text = replace_all(text, rules.quote_operators)
    text = replace_all(text, rules.cleanup)
    return text


@contextmanager
def scratch_grammar(text: str) -> Iterator[Path]:
    """Persist preprocessed grammar to a temp file removed on exit."""
    fd, name = tempfile.mkstemp(prefix=SCRATCH_PREFIX, suffix=SCRATCH_SUFFIX)
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        yield path
    finally:
        path.unlink(missing_ok=True)
