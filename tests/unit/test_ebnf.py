import re

import pytest

from sqlgram_gen.exceptions import ExtractionError, ParseError
from sqlgram_gen.grammar.ebnf import Group, Symbol, parse_grammar

GRAMMAR = """
a ::= b 'x' | c
b ::= 'y' ( c | 'z' )*
c ::= 'w'?
"""


def test_parse_grammar_builds_productions():
    g = parse_grammar(GRAMMAR)
    assert list(g.productions) == ["a", "b", "c"]
    assert g.productions["a"] == [(Symbol("b"), Symbol("x", literal=True)), (Symbol("c"),)]
    assert g.productions["b"] == [
        (
            Symbol("y", literal=True),
            Group(((Symbol("c"),), (Symbol("z", literal=True),)), suffix="*"),
        )
    ]
    assert g.productions["c"] == [(Symbol("w", literal=True, suffix="?"),)]


def test_parse_grammar_accepts_empty_alternatives():
    g = parse_grammar("opt ::= | 'K'\nnext ::=\n")
    assert g.productions["opt"] == [(), (Symbol("K", literal=True),)]
    assert g.productions["next"] == [()]


@pytest.mark.parametrize("text", ["a ::= ( b", "a b", "a ::= b ) c", "a ::= b ? ?", "a ::= @"])
def test_parse_grammar_rejects_malformed_text(text):
    with pytest.raises(ParseError):
        parse_grammar(text)


def test_extract_single_production():
    g = parse_grammar(GRAMMAR)
    assert g.extract_production("a") == "a ::=\n\tb 'x'\n\t| c\n"


def test_extract_descends_breadth_first():
    g = parse_grammar(GRAMMAR)
    assert g.extract_production("a", descend=True) == (
        "a ::=\n\tb 'x'\n\t| c\n"
        "\n"
        "b ::=\n\t'y' ( c | 'z' )*\n"
        "\n"
        "c ::=\n\t'w'?\n"
    )


def test_extract_skips_undefined_symbols_when_descending():
    g = parse_grammar("Start ::= stmt\nstmt ::= select_stmt | insert_stmt\nselect_stmt ::= SELECT IDENT\n")
    out = g.extract_production("Start", descend=True, nosplit=True)
    assert "insert_stmt ::=" not in out
    assert out.count("::=") == 3


def test_extract_unknown_production():
    g = parse_grammar(GRAMMAR)
    with pytest.raises(ExtractionError, match="couldn't find"):
        g.extract_production("missing")


def test_extract_match_and_exclude():
    g = parse_grammar("s ::= 'A' x | 'B' y | 'C' z")
    assert g.extract_production("s", match=[re.compile("'B'")]) == "s ::=\n\t'B' y\n"
    assert g.extract_production("s", exclude=[re.compile("y")]) == "s ::=\n\t'A' x\n\t| 'C' z\n"
    with pytest.raises(ExtractionError):
        g.extract_production("s", match=[re.compile("nothing")])


def test_long_alternatives_wrap_unless_nosplit():
    words = " ".join(f"tok{i:02d}" for i in range(20))
    g = parse_grammar(f"s ::= {words}")

    unsplit = g.extract_production("s", nosplit=True).splitlines()
    assert unsplit == ["s ::=", f"\t{words}"]

    split = g.extract_production("s").splitlines()
    assert len(split) > 2
    assert all(line.startswith("\t\t") for line in split[2:])
    assert " ".join(line.strip() for line in split[1:]) == words


def test_inline_single_alternative_splices():
    g = parse_grammar(GRAMMAR)
    g.inline("b")
    assert "b" not in g
    assert g.extract_production("a") == "a ::=\n\t'y' ( c | 'z' )* 'x'\n\t| c\n"


def test_inline_multiple_alternatives_groups():
    g = parse_grammar("s ::= x t\nt ::= 'A' | 'B'")
    g.inline("t")
    assert g.extract_production("s") == "s ::=\n\tx ( 'A' | 'B' )\n"


def test_inline_with_empty_alternative_becomes_optional():
    g = parse_grammar("s ::= x opt more*\nopt ::= | 'K' 'L'\nmore ::= | 'M'")
    g.inline("opt", "more")
    assert g.extract_production("s") == "s ::=\n\tx ( 'K' 'L' )? 'M'*\n"


def test_inline_unknown_production():
    g = parse_grammar(GRAMMAR)
    with pytest.raises(ExtractionError):
        g.inline("nope")
