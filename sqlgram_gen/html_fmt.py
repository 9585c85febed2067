from __future__ import annotations

import re

from .constants import ATTRIBUTION_FOOTER, GRAMMAR_REFERENCE_DOC
from .grammar.markup import extract_inner_tag, extract_tag
from .spec_model import StmtSpec

# Blank lines and indentation runs collapse to one newline.
STRIP_RE = re.compile(r"\n(\n| )+")

HR_MARKER = "<hr/>"


def link_open(target: str, doc: str = GRAMMAR_REFERENCE_DOC) -> str:
    """Opening anchor tag of a rendered cross-reference to `target`."""
    return f'<a xlink:href="{doc}#{target}" xlink:title="{target}">'


def retarget_self_links(body: str, doc: str = GRAMMAR_REFERENCE_DOC) -> str:
    return body.replace('<a xlink:href="#', f'<a xlink:href="{doc}#')


def unlink(body: str, name: str, doc: str = GRAMMAR_REFERENCE_DOC) -> str:
    """Drop the anchor around links to `name`, keeping the link text."""
    pattern = re.compile(re.escape(link_open(name, doc)) + r"(.*?)</a>", re.DOTALL)
    return pattern.sub(r"\1", body)


def relink(body: str, src: str, dst: str, doc: str = GRAMMAR_REFERENCE_DOC) -> str:
    return body.replace(link_open(src, doc), link_open(dst, doc))


def wrap_div(body: str) -> str:
    return f"<div>{body}</div>"


def collapse_blank_runs(body: str) -> str:
    return STRIP_RE.sub("\n", body) + "\n"


def top_level_body(doc: str) -> str:
    """Page for the top-level production: every diagram, then the footer."""
    body = extract_inner_tag(doc, "body")
    body = body.split(HR_MARKER, 1)[0]
    body += ATTRIBUTION_FOOTER
    return wrap_div(body)


def statement_body(doc: str, spec: StmtSpec) -> str:
    """Single statement diagram with links rewritten per its spec."""
    body = extract_tag(doc, "svg")
    body = retarget_self_links(body)
    for name in spec.unlink:
        body = unlink(body, name)
    for src in sorted(spec.relink):
        body = relink(body, src, spec.relink[src])
    body = wrap_div(body)
    return collapse_blank_runs(body)
