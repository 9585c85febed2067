from __future__ import annotations

import re

from ..exceptions import ParseError

VOID_ELEMENTS = ("br", "hr", "meta", "img", "link", "input")

_PROLOGUE_RE = re.compile(r"\A\s*<\?xml[^>]*\?>\s*")
_HTML_OPEN_RE = re.compile(r"<html\b[^>]*>")
_VOID_RE = re.compile(
    r"<(%s)\b([^>]*?)\s*(?:/>|>\s*</\1>)" % "|".join(VOID_ELEMENTS)
)
_LINK_RE = re.compile(r'<a\s+(?:xlink:)?href="#([^"]*)"[^>]*>')
_SVG_OPEN_RE = re.compile(r"<svg\b[^>]*>")


def _ensure_svg_namespace(m: re.Match[str]) -> str:
    tag = m.group(0)
    attrs = ""
    if "xmlns=" not in tag:
        attrs += ' xmlns="http://www.w3.org/2000/svg"'
    if "xmlns:xlink" not in tag:
        attrs += ' xmlns:xlink="http://www.w3.org/1999/xlink"'
    if not attrs:
        return tag
    return tag[:-1] + attrs + ">"


def normalize_to_html(doc: str) -> str:
    """Turn a rendered XHTML document into stable HTML.

    Every in-document link becomes `<a xlink:href="#X" xlink:title="X">` so
    later link rewrites can rely on one form.
    """
    doc = _PROLOGUE_RE.sub("", doc)
    doc = _HTML_OPEN_RE.sub("<html>", doc, count=1)
    doc = _VOID_RE.sub(r"<\1\2/>", doc)
    doc = _LINK_RE.sub(r'<a xlink:href="#\1" xlink:title="\1">', doc)
    doc = _SVG_OPEN_RE.sub(_ensure_svg_namespace, doc)
    if not doc.lstrip().lower().startswith("<!doctype"):
        doc = "<!DOCTYPE html>\n" + doc
    return doc


def _element_re(tag: str) -> re.Pattern[str]:
    name = re.escape(tag)
    return re.compile(rf"<{name}\b[^>]*>(.*?)</{name}\s*>", re.DOTALL | re.IGNORECASE)


def extract_tag(doc: str, tag: str) -> str:
    """Outer markup of the first `tag` element."""
    m = _element_re(tag).search(doc)
    if not m:
        raise ParseError(f"no <{tag}> element found")
    return m.group(0)


def extract_inner_tag(doc: str, tag: str) -> str:
    """Inner markup of the first `tag` element."""
    m = _element_re(tag).search(doc)
    if not m:
        raise ParseError(f"no <{tag}> element found")
    return m.group(1)
