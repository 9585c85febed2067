"""Convert a yacc-style grammar into BNF text understood by `parse_grammar`."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from ..exceptions import LoadError, ParseError

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")
# Character literal inside an action, e.g. '}' or '\n'.
_RUNE_RE = re.compile(r"'(?:[^'\\\n]|\\[^\n][^'\n]{0,8})'")


class _Scanner:
    """Token scanner that skips comments, action blocks and precedence tags."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def error(self, message: str) -> ParseError:
        line = self.text.count("\n", 0, self.pos) + 1
        return ParseError(f"grammar line {line}: {message}")

    def _skip_quoted(self, quote: str) -> None:
        self.pos += 1
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "\\":
                self.pos += 2
                continue
            self.pos += 1
            if ch == quote:
                return
        raise self.error("unterminated quoted text")

    def _skip_action(self) -> None:
        depth = 0
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if self.text.startswith("/*", self.pos) or self.text.startswith("//", self.pos):
                self._skip_comment()
                continue
            if ch in "\"`":
                self._skip_quoted(ch)
                continue
            if ch == "'":
                m = _RUNE_RE.match(self.text, self.pos)
                # A lone apostrophe is prose whose double quotes were stripped.
                self.pos = m.end() if m else self.pos + 1
                continue
            self.pos += 1
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return
        raise self.error("unterminated action block")

    def _skip_comment(self) -> None:
        if self.text.startswith("//", self.pos):
            end = self.text.find("\n", self.pos)
            self.pos = len(self.text) if end < 0 else end
            return
        end = self.text.find("*/", self.pos + 2)
        if end < 0:
            raise self.error("unterminated comment")
        self.pos = end + 2

    def _literal(self) -> str:
        quote = self.text[self.pos]
        start = self.pos
        self._skip_quoted(quote)
        raw = self.text[start + 1 : self.pos - 1]
        return re.sub(r"\\(.)", r"\1", raw)

    def next(self) -> Optional[tuple[str, str]]:
        """Return (kind, text) of the next significant token, or None at end."""
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch.isspace():
                self.pos += 1
            elif self.text.startswith("/*", self.pos) or self.text.startswith("//", self.pos):
                self._skip_comment()
            elif ch == "{":
                self._skip_action()
            elif self.text.startswith("%%", self.pos):
                # Start of the trailing code section.
                self.pos = len(self.text)
            elif ch == "%":
                m = _IDENT_RE.match(self.text, self.pos + 1)
                if not m:
                    raise self.error("bad directive")
                self.pos = m.end()
                if m.group(0) == "prec":
                    tok = self.next()
                    if tok is None or tok[0] not in ("ident", "lit"):
                        raise self.error("%prec without a symbol")
            elif ch in ":|;":
                self.pos += 1
                return ("op", ch)
            elif ch == "'":
                return ("lit", self._literal())
            else:
                m = _IDENT_RE.match(self.text, self.pos)
                if not m:
                    raise self.error(f"unexpected character {ch!r}")
                self.pos = m.end()
                return ("ident", m.group(0))
        return None


def yacc_to_bnf(text: str) -> str:
    """Translate yacc rules (`name: alt | alt [;]`) into `name ::= ...` lines."""
    tokens: list[tuple[str, str]] = []
    scanner = _Scanner(text)
    while (tok := scanner.next()) is not None:
        tokens.append(tok)

    rules: dict[str, list[list[str]]] = {}
    current: Optional[list[list[str]]] = None
    i = 0
    while i < len(tokens):
        kind, value = tokens[i]
        if kind == "ident" and i + 1 < len(tokens) and tokens[i + 1] == ("op", ":"):
            current = rules.setdefault(value, [])
            current.append([])
            i += 2
            continue
        if current is None:
            raise ParseError(f"grammar: symbol {value!r} outside of a rule")
        if kind == "op":
            if value == "|":
                current.append([])
            elif value == ";":
                current = None
            else:
                raise ParseError("grammar: unexpected ':'")
        elif kind == "lit":
            quote = '"' if "'" in value else "'"
            current[-1].append(f"{quote}{value}{quote}")
        else:
            current[-1].append(value)
        i += 1

    if not rules:
        raise ParseError("grammar: no rules found")

    lines = [
        f"{name} ::= " + " | ".join(" ".join(alt) for alt in alternatives)
        for name, alternatives in rules.items()
    ]
    return "\n\n".join(line.rstrip() for line in lines) + "\n"


def generate_bnf(path: Path) -> str:
    """Read a preprocessed yacc grammar file and return its BNF text."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(f"failed to read {path}: {e}") from e
    return yacc_to_bnf(text)
