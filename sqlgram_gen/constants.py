# sqlgram_gen/constants.py
from __future__ import annotations

# Reserved entry-point production; always extracted first.
TOP_STMT = "Start"
START_MARKER = "Start:"

ADDR_DEFAULT = "./parser/parser.y"
MAX_WORKERS_DEFAULT = 1
FILTER_DEFAULT = "."

BNF_SUFFIX = ".bnf"
HTML_SUFFIX = ".html"

# Rendered self-links (#name) are retargeted at this document.
GRAMMAR_REFERENCE_DOC = "sql-grammar.html"

ATTRIBUTION_FOOTER = (
    '<p>generated by <a href="https://github.com/tabatkins/railroad-diagrams" '
    "data-proofer-ignore>Railroad Diagram Generator</a></p>"
)

# Applied to every extraction before the per-statement rewrites.
PLACEHOLDER_SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ("IDENT", "identifier"),
    ("_LA", ""),
)

# 1st preprocessing pass: double-quoted operators become single-quoted literals.
QUOTE_OPERATOR_SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ('"="', "'='"),
    ('">="', "'>='"),
    ('"<="', "'<='"),
    ('"<>"', "'<>'"),
    ('"<=>"', "'<=>'"),
    ('"<<"', "'<<'"),
    ('">>"', "'>>'"),
    ('"!="', "'!='"),
    ("&&", "'&&'"),
)

# 2nd preprocessing pass: strip remaining double quotes and known workaround
# fragments of the reference grammar.
CLEANUP_SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ('"', ""),
    ("GeneratedAlways:\n\n|", "GeneratedAlways: "),
    (
        "EnforcedOrNotOrNotNullOpt:\n\t//\t This branch is needed to workaround the need of a "
        "lookahead of 2 for the grammar:\n\t//\n\t//\t  { [NOT] NULL | CHECK(...) [NOT] ENFORCED } ...",
        "EnforcedOrNotOrNotNullOpt:",
    ),
    ("| CHECK", "CHECK"),
)

SCRATCH_PREFIX = "sqlgram."
SCRATCH_SUFFIX = ".tmp.bnf"

HTTP_TIMEOUT_SECONDS = 30

# Alternatives longer than this are wrapped unless nosplit is set.
WRAP_WIDTH = 72
