import pytest

from sqlgram_gen.constants import ATTRIBUTION_FOOTER
from sqlgram_gen.exceptions import ParseError
from sqlgram_gen.grammar.markup import extract_inner_tag, extract_tag, normalize_to_html
from sqlgram_gen.html_fmt import collapse_blank_runs, statement_body, top_level_body
from sqlgram_gen.spec_model import StmtSpec

SVG = (
    '<svg class="railroad-diagram">'
    '<a xlink:href="#table_name" xlink:title="table_name"><text>table_name</text></a>'
    '<a xlink:href="#expr" xlink:title="expr"><text>expr</text></a>'
    "</svg>"
)
DOC = f"<html><body><p>x</p>\n{SVG}\n<hr/><p>note</p></body></html>"


def retargeted(svg: str) -> str:
    return svg.replace('xlink:href="#', 'xlink:href="sql-grammar.html#')


def test_statement_body_unlinks_and_relinks():
    spec = StmtSpec(name="s", unlink=("table_name",), relink={"expr": "a_expr"})
    assert statement_body(DOC, spec) == (
        '<div><svg class="railroad-diagram">'
        "<text>table_name</text>"
        '<a xlink:href="sql-grammar.html#a_expr" xlink:title="a_expr"><text>expr</text></a>'
        "</svg></div>\n"
    )


def test_statement_body_without_matching_rules_only_retargets():
    spec = StmtSpec(name="s", unlink=("other",), relink={"missing": "elsewhere"})
    assert statement_body(DOC, spec) == f"<div>{retargeted(SVG)}</div>\n"


def test_unlink_requires_matching_title():
    svg = '<svg><a xlink:href="#expr" xlink:title="other"><text>expr</text></a></svg>'
    spec = StmtSpec(name="s", unlink=("expr",))
    assert statement_body(f"<body>{svg}</body>", spec) == f"<div>{retargeted(svg)}</div>\n"


def test_top_level_body_truncates_at_rule_and_appends_footer():
    assert top_level_body(DOC) == f"<div><p>x</p>\n{SVG}\n{ATTRIBUTION_FOOTER}</div>"


def test_collapse_blank_runs():
    assert collapse_blank_runs("<div>a\n\n  \nb</div>") == "<div>a\nb</div>\n"


def test_normalize_to_html():
    doc = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<html xmlns="http://www.w3.org/1999/xhtml"><body><br></br>'
        '<svg class="d"><a href="#x"><text>x</text></a></svg><hr></hr></body></html>'
    )
    assert normalize_to_html(doc) == (
        "<!DOCTYPE html>\n"
        "<html><body><br/>"
        '<svg class="d" xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink">'
        '<a xlink:href="#x" xlink:title="x"><text>x</text></a></svg><hr/></body></html>'
    )


def test_normalize_keeps_existing_titles_consistent():
    doc = '<svg><a xlink:href="#y" xlink:title="ignored"><text>y</text></a></svg>'
    assert '<a xlink:href="#y" xlink:title="y">' in normalize_to_html(doc)


def test_extract_tag_and_inner_tag():
    doc = "<html><body><p><svg a='1'>in</svg><svg>2</svg></p></body></html>"
    assert extract_tag(doc, "svg") == "<svg a='1'>in</svg>"
    assert extract_inner_tag(doc, "body") == "<p><svg a='1'>in</svg><svg>2</svg></p>"
    with pytest.raises(ParseError):
        extract_tag(doc, "table")
    with pytest.raises(ParseError):
        extract_inner_tag(doc, "head")
