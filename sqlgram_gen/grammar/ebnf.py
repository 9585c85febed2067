"""EBNF grammar model: parsing, inlining and production extraction.

Text form accepted and produced:

    name ::=
        alt_one
        | alt_two ( a | b )* 'lit'?

Bare symbols are production references (or terminals when nothing defines
them); quoted symbols are literals.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Iterator, Optional, Sequence, Union

from ..constants import WRAP_WIDTH
from ..exceptions import ExtractionError, ParseError

SUFFIXES = ("?", "*", "+")

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<comment>/\*.*?\*/)
  | (?P<define>::=)
  | (?P<lit>'[^'\n]*'|"[^"\n]*")
  | (?P<ident>[A-Za-z_][A-Za-z0-9_.$]*)
  | (?P<op>[|()?*+])
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass(frozen=True)
class Symbol:
    name: str
    literal: bool = False
    suffix: str = ""


@dataclass(frozen=True)
class Group:
    alternatives: tuple[tuple["Item", ...], ...]
    suffix: str = ""


Item = Union[Symbol, Group]
Alternative = tuple[Item, ...]


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    pos: int


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m:
            line = text.count("\n", 0, pos) + 1
            raise ParseError(f"line {line}: unexpected character {text[pos]!r}")
        kind = m.lastgroup or ""
        if kind not in ("ws", "comment"):
            tokens.append(_Token(kind, m.group(0), pos))
        pos = m.end()
    return tokens


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = _tokenize(text)
        self.i = 0

    def peek(self, offset: int = 0) -> Optional[_Token]:
        j = self.i + offset
        return self.tokens[j] if j < len(self.tokens) else None

    def error(self, message: str) -> ParseError:
        tok = self.peek()
        pos = tok.pos if tok else len(self.text)
        line = self.text.count("\n", 0, pos) + 1
        return ParseError(f"line {line}: {message}")

    def at_production_start(self) -> bool:
        tok, nxt = self.peek(), self.peek(1)
        return (
            tok is not None
            and tok.kind == "ident"
            and nxt is not None
            and nxt.kind == "define"
        )

    def parse(self) -> dict[str, list[Alternative]]:
        productions: dict[str, list[Alternative]] = {}
        while self.peek() is not None:
            if not self.at_production_start():
                raise self.error("expected `name ::=`")
            name = self.tokens[self.i].text
            self.i += 2
            alternatives = self.parse_choice()
            productions.setdefault(name, []).extend(alternatives)
        return productions

    def parse_choice(self) -> list[Alternative]:
        alternatives = [self.parse_sequence()]
        while (tok := self.peek()) is not None and tok.text == "|":
            self.i += 1
            alternatives.append(self.parse_sequence())
        return alternatives

    def parse_sequence(self) -> Alternative:
        items: list[Item] = []
        while True:
            tok = self.peek()
            if tok is None or tok.text in ("|", ")") or self.at_production_start():
                return tuple(items)
            self.i += 1
            if tok.kind == "ident":
                item: Item = Symbol(tok.text)
            elif tok.kind == "lit":
                item = Symbol(tok.text[1:-1], literal=True)
            elif tok.text == "(":
                alternatives = self.parse_choice()
                closing = self.peek()
                if closing is None or closing.text != ")":
                    raise self.error("unbalanced parenthesis")
                self.i += 1
                item = Group(tuple(alternatives))
            else:
                self.i -= 1
                raise self.error(f"unexpected {tok.text!r}")

            suffix = self.peek()
            if suffix is not None and suffix.text in SUFFIXES:
                self.i += 1
                item = replace(item, suffix=suffix.text)
            items.append(item)


def format_item(item: Item) -> str:
    if isinstance(item, Symbol):
        if item.literal:
            quote = '"' if "'" in item.name else "'"
            return f"{quote}{item.name}{quote}{item.suffix}"
        return f"{item.name}{item.suffix}"
    inner = " | ".join(format_alternative(alt) for alt in item.alternatives)
    return f"( {inner} ){item.suffix}"


def format_alternative(alt: Alternative) -> str:
    return " ".join(format_item(item) for item in alt)


def _wrap(words: list[str], width: int) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in words:
        if current and len(current) + 1 + len(word) > width:
            lines.append(current)
            current = word
        else:
            current = f"{current} {word}" if current else word
    lines.append(current)
    return lines


def format_production(name: str, alternatives: Sequence[Alternative], nosplit: bool) -> str:
    lines = [f"{name} ::="]
    for i, alt in enumerate(alternatives):
        lead = "\t" if i == 0 else "\t| "
        if nosplit:
            lines.append((lead + format_alternative(alt)).rstrip())
            continue
        wrapped = _wrap([format_item(item) for item in alt], WRAP_WIDTH)
        lines.append((lead + wrapped[0]).rstrip())
        lines.extend("\t\t" + cont for cont in wrapped[1:])
    return "\n".join(lines) + "\n"


def iter_symbols(alternatives: Sequence[Alternative]) -> Iterator[Symbol]:
    """Yield every symbol, depth first, in textual order."""
    for alt in alternatives:
        for item in alt:
            if isinstance(item, Symbol):
                yield item
            else:
                yield from iter_symbols(item.alternatives)


def _merge_suffix(ref_suffix: str, has_empty: bool) -> str:
    if not has_empty:
        return ref_suffix
    if ref_suffix in ("*", "+"):
        return "*"
    return "?"


def _expansion(ref: Symbol, body: list[Alternative]) -> list[Item]:
    non_empty = tuple(alt for alt in body if alt)
    has_empty = len(non_empty) < len(body)
    if not non_empty:
        return []
    if len(non_empty) == 1 and not has_empty and not ref.suffix:
        return list(non_empty[0])
    suffix = _merge_suffix(ref.suffix, has_empty)
    if len(non_empty) == 1 and len(non_empty[0]) == 1 and not non_empty[0][0].suffix:
        return [replace(non_empty[0][0], suffix=suffix)]
    return [Group(non_empty, suffix=suffix)]


def _substitute(alt: Alternative, name: str, body: list[Alternative]) -> Alternative:
    out: list[Item] = []
    for item in alt:
        if isinstance(item, Symbol):
            if not item.literal and item.name == name:
                out.extend(_expansion(item, body))
            else:
                out.append(item)
        else:
            alternatives = tuple(_substitute(a, name, body) for a in item.alternatives)
            out.append(Group(alternatives, item.suffix))
    return tuple(out)


@dataclass
class Grammar:
    productions: dict[str, list[Alternative]] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.productions

    def inline(self, *names: str) -> None:
        """Replace every reference to each named production by its body."""
        for name in names:
            if name not in self.productions:
                raise ExtractionError(name, "cannot inline unknown production")

        for name in names:
            body = self.productions.pop(name)
            for other, alternatives in self.productions.items():
                self.productions[other] = [_substitute(alt, name, body) for alt in alternatives]

    def extract_production(
        self,
        name: str,
        descend: bool = False,
        nosplit: bool = False,
        match: Sequence[re.Pattern[str]] = (),
        exclude: Sequence[re.Pattern[str]] = (),
    ) -> str:
        """Return EBNF text for `name`, plus everything it reaches if descending."""
        if name not in self.productions:
            raise ExtractionError(name, "couldn't find production")

        names = [name]
        done = {name}
        chunks: list[str] = []
        for current in names:
            alternatives = self.productions[current]
            if current == name:
                alternatives = self._select(name, alternatives, match, exclude)

            if descend:
                for sym in iter_symbols(alternatives):
                    if not sym.literal and sym.name in self.productions and sym.name not in done:
                        names.append(sym.name)
                        done.add(sym.name)

            chunks.append(format_production(current, alternatives, nosplit))

        return "\n".join(chunks)

    @staticmethod
    def _select(
        name: str,
        alternatives: list[Alternative],
        match: Sequence[re.Pattern[str]],
        exclude: Sequence[re.Pattern[str]],
    ) -> list[Alternative]:
        if not match and not exclude:
            return alternatives

        selected: list[Alternative] = []
        for alt in alternatives:
            text = format_alternative(alt)
            if match and not any(p.search(text) for p in match):
                continue
            if any(p.search(text) for p in exclude):
                continue
            selected.append(alt)

        if not selected:
            raise ExtractionError(name, "no alternatives left after match/exclude")
        return selected


def parse_grammar(text: str) -> Grammar:
    """Parse EBNF text into a Grammar."""
    return Grammar(_Parser(text).parse())
