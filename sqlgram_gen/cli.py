# sqlgram_gen/cli.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import BnfConfig, SvgConfig
from .constants import ADDR_DEFAULT, FILTER_DEFAULT, MAX_WORKERS_DEFAULT
from .exceptions import SqlgramError
from .extract import run_bnf
from .io import load_preprocess_document
from .preprocess import PreprocessRules
from .render import run_svg
from .spec_model import Filter

FATAL_EXIT_CODE = 1


def _add_filter_options(parser: argparse.ArgumentParser, root: bool) -> None:
    """Filter options live on the root command and may be repeated after a subcommand.

    Subcommand copies default to SUPPRESS so they never overwrite a root value.
    """
    parser.add_argument(
        "--filter",
        default=FILTER_DEFAULT if root else argparse.SUPPRESS,
        help="Regular expression selecting which statement names to process.",
    )
    parser.add_argument(
        "--invert-match",
        action="store_true",
        default=False if root else argparse.SUPPRESS,
        help="Process the names the filter does NOT match.",
    )


def _common_options() -> argparse.ArgumentParser:
    """Options accepted by every subcommand."""
    common = argparse.ArgumentParser(add_help=False)
    _add_filter_options(common, root=False)
    common.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress output where possible.",
    )
    common.add_argument(
        "--spec",
        default="",
        help="Location of the spec document (YAML or JSON). Can also be an http address.",
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog="sqlgram",
        description="Generate per-statement BNF fragments and railroad diagrams from a SQL grammar.",
    )
    _add_filter_options(parser, root=True)
    sub = parser.add_subparsers(dest="command", required=True)

    bnf = sub.add_parser("bnf", parents=[common], help="Generate EBNF fragments from the yacc grammar.")
    bnf.add_argument("bnf_dir", type=Path, help="Output directory for <name>.bnf files")
    bnf.add_argument(
        "--addr",
        default=ADDR_DEFAULT,
        help="Location of the yacc grammar file. Can also be an http address.",
    )
    bnf.add_argument(
        "--rules",
        default="",
        help=(
            "Location of a YAML document overriding the preprocessing tables "
            "(marker, quote_operators, cleanup)."
        ),
    )

    svg = sub.add_parser(
        "svg",
        parents=[common],
        help="Generate HTML railroad diagrams from previously extracted fragments.",
    )
    svg.add_argument("bnf_dir", type=Path, help="Directory holding <name>.bnf files")
    svg.add_argument("svg_dir", type=Path, help="Output directory for <name>.html files")
    svg.add_argument(
        "--max-workers",
        type=int,
        default=MAX_WORKERS_DEFAULT,
        help="Maximum number of concurrent render jobs.",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> BnfConfig | SvgConfig:
    flt = Filter.compile(args.filter, invert=args.invert_match)
    if args.command == "bnf":
        rules = PreprocessRules()
        if args.rules:
            rules = PreprocessRules.from_document(load_preprocess_document(args.rules))
        return BnfConfig(
            bnf_dir=args.bnf_dir,
            addr=args.addr,
            spec=args.spec,
            rules=rules,
            filter=flt,
            quiet=args.quiet,
        )
    return SvgConfig(
        bnf_dir=args.bnf_dir,
        svg_dir=args.svg_dir,
        spec=args.spec,
        max_workers=args.max_workers,
        filter=flt,
        quiet=args.quiet,
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entrypoint."""
    args = build_parser().parse_args(argv)

    try:
        cfg = config_from_args(args)
        if isinstance(cfg, BnfConfig):
            run_bnf(cfg)
        else:
            run_svg(cfg)
    except SqlgramError as e:
        print(f"error: {e}", file=sys.stderr)
        raise SystemExit(FATAL_EXIT_CODE) from e


if __name__ == "__main__":
    main()
