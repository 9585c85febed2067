"""Spec-driven extraction of per-statement BNF fragments."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from .config import BnfConfig
from .constants import BNF_SUFFIX, PLACEHOLDER_SUBSTITUTIONS, TOP_STMT
from .exceptions import ExtractionError, ParseError
from .grammar.ebnf import Grammar, parse_grammar
from .grammar.yacc import generate_bnf
from .io import load_resource, load_specs
from .preprocess import preprocess, scratch_grammar
from .spec_model import Filter, StmtSpec
from .writer import write_text


@dataclass(frozen=True)
class GrammarBackend:
    """Grammar collaborator used by the pipeline; swappable in tests."""

    generate_bnf: Callable[[Path], str] = generate_bnf
    parse_grammar: Callable[[str], Grammar] = parse_grammar


def apply_placeholders(text: str) -> str:
    for old, new in PLACEHOLDER_SUBSTITUTIONS:
        text = text.replace(old, new)
    return text


def apply_rewrites(text: str, spec: StmtSpec, quiet: bool = True) -> str:
    """Apply a spec's literal then regex replacements, each in sorted key order."""
    for old, new in spec.sorted_replace():
        if not quiet:
            print(f"replacing: {old!r} -> {new!r}")
        text = text.replace(old, new)

    for pattern, template in spec.sorted_regreplace():
        if not quiet:
            print(f"replacing re: {pattern.pattern!r} -> {template!r}")
        text = pattern.sub(template, text)

    return text


def run_parse(
    bnf: str,
    name: str,
    *,
    inline: Sequence[str] = (),
    descend: bool = False,
    nosplit: bool = False,
    match: Sequence[re.Pattern[str]] = (),
    exclude: Sequence[re.Pattern[str]] = (),
    backend: GrammarBackend = GrammarBackend(),
) -> str:
    """Extract one production from a fresh parse of `bnf`."""
    try:
        grammar = backend.parse_grammar(bnf)
    except ParseError as e:
        raise ExtractionError(name, f"parse grammar: {e}") from e
    try:
        grammar.inline(*inline)
    except ExtractionError as e:
        raise ExtractionError(name, f"inline: {e}") from e

    text = grammar.extract_production(name, descend, nosplit, match, exclude)
    return apply_placeholders(text)


def extract_all(
    bnf: str,
    specs: Sequence[StmtSpec],
    bnf_dir: Path,
    filter: Filter,
    quiet: bool = False,
    backend: GrammarBackend = GrammarBackend(),
) -> list[Path]:
    """Write `<bnf_dir>/<name>.bnf` for the top-level production and each selected spec.

    Runs sequentially and stops at the first failure.
    """
    written: list[Path] = []

    if filter.selects(TOP_STMT):
        if not quiet:
            print("processing", TOP_STMT)
        text = run_parse(bnf, TOP_STMT, descend=True, nosplit=True, backend=backend)
        path = bnf_dir / f"{TOP_STMT}{BNF_SUFFIX}"
        write_text(path, text)
        written.append(path)

    for spec in specs:
        if not filter.selects(spec.name):
            continue
        if spec.name == TOP_STMT:
            print(
                f"warning: spec {TOP_STMT!r} ignored; the top-level production "
                "is always extracted whole",
                file=sys.stderr,
            )
            continue
        if not quiet:
            print("processing", spec.name)

        try:
            text = run_parse(
                bnf,
                spec.target,
                inline=spec.inline,
                descend=False,
                nosplit=spec.nosplit,
                match=spec.match,
                exclude=spec.exclude,
                backend=backend,
            )
        except ExtractionError as e:
            raise ExtractionError(spec.name, str(e)) from e
        if not quiet:
            print(f"raw data:\n{text}")

        text = apply_rewrites(text, spec, quiet=quiet)
        if not quiet:
            print(f"result:\n{text}")

        path = bnf_dir / f"{spec.name}{BNF_SUFFIX}"
        write_text(path, text)
        written.append(path)

    return written


def run_bnf(cfg: BnfConfig, backend: GrammarBackend = GrammarBackend()) -> list[Path]:
    """Load specs and grammar, preprocess, and extract every selected fragment."""
    specs = load_specs(cfg.spec)

    raw = load_resource(cfg.addr)
    try:
        source = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"grammar source {cfg.addr} is not UTF-8: {e}") from e

    text = preprocess(source, cfg.rules)
    with scratch_grammar(text) as scratch:
        bnf = backend.generate_bnf(scratch)
        return extract_all(bnf, specs, cfg.bnf_dir, cfg.filter, quiet=cfg.quiet, backend=backend)
