"""Parser turning a token stream into a Program using the Lark LALR engine."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterable

from lark import Lark, Token as LarkToken, Transformer, v_args
from lark.exceptions import UnexpectedToken

from ..core.errors import ParseError, Position
from .ast import (
    Assign,
    Binary,
    Block,
    BoolLiteral,
    Break,
    Call,
    Continue,
    Echo,
    ExprStatement,
    FloatLiteral,
    ForIn,
    Function,
    If,
    Index,
    IntLiteral,
    Let,
    ListLiteral,
    MapEntry,
    MapLiteral,
    Name,
    NullLiteral,
    Param,
    Program,
    Return,
    StringLiteral,
    Unary,
    While,
)
from .lexer import (
    END_OF_INPUT,
    KEYWORDS,
    PUNCTUATION,
    Token,
    TokenKind,
    build_lark,
    decode_string,
    tokenize,
)


logger = logging.getLogger(__name__)

EXPECTED_NAMES = {
    "NAME": "identifier",
    "INT": "integer literal",
    "FLOAT": "float literal",
    "STRING": "string literal",
    "OR": "'||'",
    "AND": "'&&'",
    "EQ_OP": "'==' or '!='",
    "CMP_OP": "comparison operator",
    "ADD_OP": "'+' or '-'",
    "MUL_OP": "'*', '/' or '%'",
    "BANG": "'!'",
    "_ASSIGN": "'='",
    "_ARROW": "'=>'",
    "ELLIPSIS": "'...'",
    END_OF_INPUT: "end of input",
    **{name: f"'{text}'" for name, text in PUNCTUATION.items()},
    **{name: f"'{text}'" for name, text in KEYWORDS.items()},
}

EXPRESSION_START = frozenset({
    "NAME", "INT", "FLOAT", "STRING", "TRUE", "FALSE", "NULL",
    "_LPAR", "LBRACK", "BANG", "ADD_OP",
})

STATEMENT_START = EXPRESSION_START | {
    "LET", "ECHO", "IF", "WHILE", "FOR", "RETURN", "BREAK", "CONTINUE", "LBRACE",
}


def describe_expected(expected: Iterable[str]) -> str:
    """Summarise a set of acceptable terminals as grammar constructs."""
    remaining = set(expected)
    labels = []
    if STATEMENT_START <= remaining:
        remaining -= STATEMENT_START
        if "FN" in remaining:
            remaining.discard("FN")
            labels.append("declaration")
        else:
            labels.append("statement")
    elif EXPRESSION_START <= remaining:
        remaining -= EXPRESSION_START
        labels.append("expression")
    labels.extend(sorted(EXPECTED_NAMES.get(name, name) for name in remaining))
    if not labels:
        return "nothing"
    if len(labels) == 1:
        return labels[0]
    return ", ".join(labels[:-1]) + " or " + labels[-1]


def _token_pos(token) -> Position:
    return Position(token.line, token.column)


class ASTBuilder(Transformer):
    """Build AST nodes from the children of each reduced rule.

    Passed to Lark as its transformer, so every callback runs during the
    LALR reductions and receives children that are already nodes. Keyword
    and opening-bracket tokens are kept in the grammar to supply positions.
    """

    def start(self, declarations):
        return Program(declarations=list(declarations), pos=Position(1, 1))

    def function(self, items):
        keyword, name, params, body = items
        return Function(name=str(name), params=params or [], body=body, pos=_token_pos(keyword))

    def params(self, items):
        return list(items)

    def param(self, items):
        name, default = items
        return Param(name=str(name), default=default, pos=_token_pos(name))

    def variadic_param(self, items):
        ellipsis, name = items
        return Param(name=str(name), variadic=True, pos=_token_pos(ellipsis))

    def block(self, items):
        brace, *statements = items
        return Block(statements=statements, pos=_token_pos(brace))

    def let_stmt(self, items):
        keyword, name, value = items
        return Let(name=str(name), value=value, pos=_token_pos(keyword))

    def assign_stmt(self, items):
        target, value = items
        return Assign(target=target, value=value, pos=target.pos)

    def expr_stmt(self, items):
        return ExprStatement(expr=items[0], pos=items[0].pos)

    def echo_stmt(self, items):
        keyword, *values = items
        return Echo(values=values, pos=_token_pos(keyword))

    def if_stmt(self, items):
        keyword, condition, then, *rest = items
        otherwise = rest[0] if rest else None
        return If(condition=condition, then=then, otherwise=otherwise, pos=_token_pos(keyword))

    def while_stmt(self, items):
        keyword, condition, body = items
        return While(condition=condition, body=body, pos=_token_pos(keyword))

    def for_stmt(self, items):
        keyword, name, iterable, body = items
        return ForIn(name=str(name), iterable=iterable, body=body, pos=_token_pos(keyword))

    def return_stmt(self, items):
        keyword, value = items
        return Return(value=value, pos=_token_pos(keyword))

    def break_stmt(self, items):
        return Break(pos=_token_pos(items[0]))

    def continue_stmt(self, items):
        return Continue(pos=_token_pos(items[0]))

    def binary(self, items):
        left, op, right = items
        return Binary(op=str(op), left=left, right=right, pos=left.pos)

    def unary_op(self, items):
        op, operand = items
        return Unary(op=str(op), operand=operand, pos=_token_pos(op))

    def call(self, items):
        callee, args = items
        return Call(callee=callee, args=args or [], pos=callee.pos)

    def index(self, items):
        target, _, index = items
        return Index(target=target, index=index, pos=target.pos)

    def args(self, items):
        return list(items)

    def items(self, items):
        return list(items)

    def item(self, items):
        first, second = items
        if second is None:
            return first
        return MapEntry(key=first, value=second, pos=first.pos)

    @v_args(inline=True)
    def int_literal(self, token):
        return IntLiteral(value=int(token), pos=_token_pos(token))

    @v_args(inline=True)
    def float_literal(self, token):
        return FloatLiteral(value=float(token), text=str(token), pos=_token_pos(token))

    @v_args(inline=True)
    def string_literal(self, token):
        position = _token_pos(token)
        return StringLiteral(value=decode_string(str(token), position), pos=position)

    @v_args(inline=True)
    def true_literal(self, token):
        return BoolLiteral(value=True, pos=_token_pos(token))

    @v_args(inline=True)
    def false_literal(self, token):
        return BoolLiteral(value=False, pos=_token_pos(token))

    @v_args(inline=True)
    def null_literal(self, token):
        return NullLiteral(pos=_token_pos(token))

    @v_args(inline=True)
    def name(self, token):
        return Name(name=str(token), pos=_token_pos(token))

    def list_literal(self, items):
        bracket, entries = items
        entries = entries or []
        position = _token_pos(bracket)
        if not any(isinstance(entry, MapEntry) for entry in entries):
            return ListLiteral(items=entries, pos=position)
        for entry in entries:
            if not isinstance(entry, MapEntry):
                raise ParseError("key '=>' value", "item without a key", entry.pos)
        return MapLiteral(entries=entries, pos=position)


@lru_cache(maxsize=1)
def load_parser() -> Lark:
    """Lark instance that builds the AST while it parses."""
    return build_lark(transformer=ASTBuilder())


def _to_lark(token: Token) -> LarkToken:
    return LarkToken(
        token.type,
        token.text,
        token.offset,
        token.line,
        token.column,
        token.end_line,
        token.end_column,
        token.offset + len(token.text),
    )


def _end_after(token: Token | None) -> Token:
    line = token.end_line if token else 1
    column = token.end_column if token else 1
    offset = token.offset + len(token.text) if token else 0
    return Token(
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


class ScriptParser:
    """Parser for script source files."""

    def __init__(self):
        self.lark = load_parser()

    def parse_tokens(self, tokens: Iterable[Token]) -> Program:
        """Consume tokens one at a time and return the Program they spell."""
        interactive = self.lark.parse_interactive("")
        program = None
        last = None
        for token in tokens:
            if token.type == END_OF_INPUT:
                program = self._feed(interactive, token)
                break
            self._feed(interactive, token)
            last = token
        else:
            program = self._feed(interactive, _end_after(last))

        logger.debug("parsed %d top-level declarations", len(program.declarations))
        return program

    def _feed(self, interactive, token: Token):
        try:
            return interactive.feed_token(_to_lark(token))
        except UnexpectedToken as e:
            raise ParseError(describe_expected(e.expected), token.describe(), token.position) from None

    def parse(self, source: str) -> Program:
        """Parse script source text and return AST."""
        return self.parse_tokens(tokenize(source))

    def parse_file(self, path: Path) -> Program:
        """Parse script file and return AST."""
        with open(path, encoding="utf-8") as f:
            content = f.read()
        return self.parse(content)


def parse(tokens: Iterable[Token]) -> Program:
    """Parse a token stream into a Program."""
    return ScriptParser().parse_tokens(tokens)
