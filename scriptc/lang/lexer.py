"""Lexer producing a lazy token stream from script source.

Tokenisation is driven by the terminals of ``grammar.lark`` through Lark's
basic lexer, so the lexer and the parser can never disagree about what a
token is.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterator

from lark import Lark
from lark.exceptions import UnexpectedCharacters
from lark.lark import PostLex

from ..core.errors import LexError, Position


logger = logging.getLogger(__name__)

GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"

END_OF_INPUT = "$END"


class TokenKind(str, Enum):
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    LITERAL = "literal"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    END_OF_INPUT = "end-of-input"


KEYWORDS = {
    "FN": "fn",
    "LET": "let",
    "IF": "if",
    "_ELSE": "else",
    "WHILE": "while",
    "FOR": "for",
    "_IN": "in",
    "RETURN": "return",
    "BREAK": "break",
    "CONTINUE": "continue",
    "ECHO": "echo",
    "TRUE": "true",
    "FALSE": "false",
    "NULL": "null",
}

OPERATORS = {"OR", "AND", "EQ_OP", "CMP_OP", "ADD_OP", "MUL_OP", "BANG", "_ASSIGN", "_ARROW", "ELLIPSIS"}

PUNCTUATION = {
    "_LPAR": "(",
    "_RPAR": ")",
    "LBRACE": "{",
    "_RBRACE": "}",
    "LBRACK": "[",
    "_RBRACK": "]",
    "_COMMA": ",",
    "_SEMI": ";",
}

LITERALS = {"INT", "FLOAT", "STRING"}

ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    '"': '"',
}


@dataclass(frozen=True)
class Token:
    """A single lexical token with its source span."""
    kind: TokenKind
    type: str
    text: str
    value: Any
    line: int
    column: int
    end_line: int
    end_column: int
    offset: int = 0

    @property
    def position(self) -> Position:
        return Position(self.line, self.column)

    def describe(self) -> str:
        if self.kind == TokenKind.END_OF_INPUT:
            return "end of input"
        return f"{self.kind.value} '{self.text}'"


class UnterminatedGuard(PostLex):
    """Rejects the catch-all terminals for unclosed strings and comments."""

    always_accept = ("UNTERMINATED_STRING", "UNTERMINATED_COMMENT")

    def process(self, stream):
        for token in stream:
            if token.type == "UNTERMINATED_STRING":
                raise LexError("unterminated string literal", Position(token.line, token.column))
            if token.type == "UNTERMINATED_COMMENT":
                raise LexError("unterminated block comment", Position(token.line, token.column))
            yield token


def build_lark(transformer=None) -> Lark:
    """Build a Lark instance for the script grammar.

    With a transformer, nodes are built during the LALR reductions instead
    of from a finished parse tree.
    """
    with open(GRAMMAR_PATH) as f:
        grammar = f.read()
    return Lark(
        grammar,
        parser="lalr",
        lexer="basic",
        postlex=UnterminatedGuard(),
        maybe_placeholders=True,
        transformer=transformer,
    )


@lru_cache(maxsize=1)
def load_grammar() -> Lark:
    """Shared Lark instance used for lexing."""
    return build_lark()


def _classify(token_type: str) -> TokenKind:
    if token_type == "NAME":
        return TokenKind.IDENTIFIER
    if token_type in KEYWORDS:
        return TokenKind.KEYWORD
    if token_type in LITERALS:
        return TokenKind.LITERAL
    if token_type in OPERATORS:
        return TokenKind.OPERATOR
    if token_type in PUNCTUATION:
        return TokenKind.PUNCTUATION
    raise LexError(f"unclassified token type {token_type}")


def decode_string(text: str, position: Position) -> str:
    """Decode the body of a quoted string literal."""
    out = []
    chars = iter(enumerate(text[1:-1]))
    for index, ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        _, escaped = next(chars)
        if escaped not in ESCAPES:
            raise LexError(
                f"unknown escape sequence '\\{escaped}'",
                Position(position.line, position.column + index + 1),
            )
        out.append(ESCAPES[escaped])
    return "".join(out)


def _value(token_type: str, text: str, position: Position) -> Any:
    if token_type == "INT":
        return int(text)
    if token_type == "FLOAT":
        return float(text)
    if token_type == "STRING":
        return decode_string(text, position)
    if token_type == "TRUE":
        return True
    if token_type == "FALSE":
        return False
    if token_type == "NULL":
        return None
    return text


def tokenize(source: str) -> Iterator[Token]:
    """Lazily convert source text into tokens, ending with end-of-input."""
    lark = load_grammar()
    try:
        for raw in lark.lex(source):
            position = Position(raw.line, raw.column)
            yield Token(
                kind=_classify(raw.type),
                type=raw.type,
                text=str(raw),
                value=_value(raw.type, str(raw), position),
                line=raw.line,
                column=raw.column,
                end_line=raw.end_line,
                end_column=raw.end_column,
                offset=raw.start_pos,
            )
    except UnexpectedCharacters as e:
        raise LexError(f"unexpected character {e.char!r}", Position(e.line, e.column)) from None

    line, column, offset = _end_of(source)
    logger.debug("lexed %d characters", offset)
    yield Token(
        kind=TokenKind.END_OF_INPUT,
        type=END_OF_INPUT,
        text="",
        value=None,
        line=line,
        column=column,
        end_line=line,
        end_column=column,
        offset=offset,
    )


def _end_of(source: str) -> tuple[int, int, int]:
    line = source.count("\n") + 1
    last_newline = source.rfind("\n")
    column = len(source) - last_newline
    return line, column, len(source)
