from __future__ import annotations

import html
import io
import re
from typing import Any, Sequence

import railroad

from .ebnf import Alternative, Group, Item, Symbol, parse_grammar

KEYWORD_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")

STYLE = """<style>
.railroad-diagram path { stroke: #333; stroke-width: 2; fill: none; }
.railroad-diagram text { fill: #111; font: 14px monospace; text-anchor: middle; }
.railroad-diagram rect { fill: #fdfdfd; stroke: #333; }
.railroad-diagram .terminal rect { fill: #e8f2ea; }
.railroad-diagram .non-terminal rect { fill: #f2f2f2; }
</style>"""

GENERATOR_NOTE = "<p>generated by railroad-diagrams</p>"


def is_terminal(sym: Symbol) -> bool:
    """Literals and ALL-CAPS keywords are terminals; anything else links."""
    return sym.literal or bool(KEYWORD_RE.match(sym.name))


def _apply_suffix(element: Any, suffix: str) -> Any:
    if suffix == "?":
        return railroad.Optional(element)
    if suffix == "*":
        return railroad.ZeroOrMore(element)
    if suffix == "+":
        return railroad.OneOrMore(element)
    return element


def _item_element(item: Item) -> Any:
    if isinstance(item, Symbol):
        if is_terminal(item):
            element = railroad.Terminal(item.name)
        else:
            element = railroad.NonTerminal(item.name, href=f"#{item.name}")
        return _apply_suffix(element, item.suffix)
    return _apply_suffix(_choice_element(item.alternatives), item.suffix)


def _sequence_element(alt: Alternative) -> Any:
    if not alt:
        return railroad.Skip()
    if len(alt) == 1:
        return _item_element(alt[0])
    return railroad.Sequence(*(_item_element(item) for item in alt))


def _choice_element(alternatives: Sequence[Alternative]) -> Any:
    non_empty = [alt for alt in alternatives if alt]
    if not non_empty:
        return railroad.Skip()

    if len(non_empty) == 1:
        element = _sequence_element(non_empty[0])
    else:
        element = railroad.Choice(0, *(_sequence_element(alt) for alt in non_empty))
    if len(non_empty) < len(alternatives):
        return railroad.Optional(element)
    return element


def render_svg(alternatives: Sequence[Alternative]) -> str:
    diagram = railroad.Diagram(_choice_element(alternatives), type="simple")
    buf = io.StringIO()
    diagram.writeSvg(buf.write)
    return buf.getvalue()


def generate_diagram(ebnf: str) -> str:
    """Render every production of an EBNF text into one XHTML document."""
    grammar = parse_grammar(ebnf)

    parts: list[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<html xmlns="http://www.w3.org/1999/xhtml">',
        "<head>",
        '<meta http-equiv="Content-Type" content="text/html; charset=UTF-8"></meta>',
        STYLE,
        "</head>",
        "<body>",
    ]
    for name, alternatives in grammar.productions.items():
        label = html.escape(name)
        parts.append(
            f'<p style="font-size: 14px; font-weight:bold"><a name="{label}">{label}:</a></p>'
        )
        parts.append(render_svg(alternatives))
        parts.append("<br></br>")
    parts.append("<hr></hr>")
    parts.append(GENERATOR_NOTE)
    parts.append("</body>")
    parts.append("</html>")
    return "\n".join(parts) + "\n"
