"""Tests for parsing token streams into programs."""

import pytest

from scriptc.core.errors import ParseError, Position
from scriptc.lang.ast import (
    Assign,
    Binary,
    Block,
    BoolLiteral,
    Call,
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
from scriptc.lang.lexer import END_OF_INPUT, tokenize
from scriptc.lang.parser import ScriptParser, describe_expected, parse


def expr_of(source: str):
    program = parse(tokenize(source))
    return program.declarations[0].expr


@pytest.fixture
def parser():
    return ScriptParser()


def test_let_statement(parser):
    """Test the smallest complete program."""
    program = parser.parse("let x = 1 + 2;")

    assert program == Program([
        Let("x", Binary("+", IntLiteral(1), IntLiteral(2))),
    ])
    assert program.declarations[0].pos == Position(1, 1)


def test_empty_program(parser):
    assert parser.parse("") == Program([])
    assert parser.parse("// only a comment\n") == Program([])


def test_multiplication_binds_tighter():
    assert expr_of("1 + 2 * 3;") == Binary(
        "+", IntLiteral(1), Binary("*", IntLiteral(2), IntLiteral(3))
    )


def test_binary_operators_are_left_associative():
    assert expr_of("a - b - c;") == Binary(
        "-", Binary("-", Name("a"), Name("b")), Name("c")
    )


def test_precedence_ladder():
    """Test every level from || down to postfix in one expression."""
    expr = expr_of("a || b && c == d < e + f * -g[0];")

    assert expr == Binary(
        "||",
        Name("a"),
        Binary(
            "&&",
            Name("b"),
            Binary(
                "==",
                Name("c"),
                Binary(
                    "<",
                    Name("d"),
                    Binary(
                        "+",
                        Name("e"),
                        Binary("*", Name("f"), Unary("-", Index(Name("g"), IntLiteral(0)))),
                    ),
                ),
            ),
        ),
    )


def test_unary_binds_tighter_than_equality():
    assert expr_of("!a == b;") == Binary("==", Unary("!", Name("a")), Name("b"))


def test_parentheses_override_precedence():
    assert expr_of("(1 + 2) * 3;") == Binary(
        "*", Binary("+", IntLiteral(1), IntLiteral(2)), IntLiteral(3)
    )


def test_postfix_chain():
    assert expr_of("f(1, x)[2](y);") == Call(
        Index(Call(Name("f"), [IntLiteral(1), Name("x")]), IntLiteral(2)),
        [Name("y")],
    )


def test_literals():
    expr = expr_of('[1, 2.5, "s", true, false, null, []];')

    assert expr == ListLiteral([
        IntLiteral(1),
        FloatLiteral(2.5, "2.5"),
        StringLiteral("s"),
        BoolLiteral(True),
        BoolLiteral(False),
        NullLiteral(),
        ListLiteral([]),
    ])


def test_keyed_items_make_a_map():
    expr = expr_of('["a" => 1, 2 => [3]];')

    assert expr == MapLiteral([
        MapEntry(StringLiteral("a"), IntLiteral(1)),
        MapEntry(IntLiteral(2), ListLiteral([IntLiteral(3)])),
    ])
    assert expr.pos == Position(1, 1)


def test_keys_are_all_or_nothing(parser):
    with pytest.raises(ParseError) as err:
        parser.parse('let m = ["a" => 1, 2];')

    assert err.value.position == Position(1, 20)
    assert err.value.found == "item without a key"


def test_function_declaration(parser):
    """Test parameters with and without literal defaults."""
    program = parser.parse('fn greet(name, greeting = "hi") { return greeting + name; }')

    assert program.functions == [
        Function(
            "greet",
            [Param("name"), Param("greeting", StringLiteral("hi"))],
            Block([Return(Binary("+", Name("greeting"), Name("name")))]),
        )
    ]
    assert program.statements == []
    assert program.functions[0].pos == Position(1, 1)


def test_variadic_parameter(parser):
    program = parser.parse("fn f(a, ...rest) { return rest; }")
    params = program.functions[0].params

    assert params == [Param("a"), Param("rest", variadic=True)]
    assert params[1].pos == Position(1, 9)


def test_control_flow(parser):
    source = """
    while i < 3 { i = i + 1; }
    for item in items { echo item, ","; }
    if a { b(); } else if c { d(); } else { return; }
    """
    program = parser.parse(source)
    loop, each, branch = program.statements

    assert loop == While(
        Binary("<", Name("i"), IntLiteral(3)),
        Block([Assign(Name("i"), Binary("+", Name("i"), IntLiteral(1)))]),
    )
    assert each == ForIn("item", Name("items"), Block([Echo([Name("item"), StringLiteral(",")])]))
    assert branch == If(
        Name("a"),
        Block([ExprStatement(Call(Name("b"), []))]),
        If(
            Name("c"),
            Block([ExprStatement(Call(Name("d"), []))]),
            Block([Return(None)]),
        ),
    )
    assert loop.pos == Position(2, 5)


def test_index_assignment(parser):
    program = parser.parse("xs[0] = 1;")

    assert program.statements == [Assign(Index(Name("xs"), IntLiteral(0)), IntLiteral(1))]


def test_parse_is_deterministic(parser, examples_path):
    """Test that parsing the same text twice yields equal trees."""
    for path in sorted(examples_path.glob("*.sc")):
        text = path.read_text()
        assert parser.parse(text) == parser.parse(text)


def test_missing_expression_reports_position(parser):
    with pytest.raises(ParseError) as err:
        parser.parse("let x = ;")

    assert err.value.position == Position(1, 9)
    assert err.value.expected == "expression"
    assert err.value.found == "punctuation ';'"


def test_missing_semicolon_at_end(parser):
    with pytest.raises(ParseError) as err:
        parser.parse("let x = 1")

    assert err.value.found == "end of input"
    assert "';'" in err.value.expected


def test_trailing_tokens_rejected(parser):
    with pytest.raises(ParseError) as err:
        parser.parse("let x = 1; )")

    assert err.value.position == Position(1, 12)
    assert err.value.found == "punctuation ')'"


def test_nested_function_rejected(parser):
    with pytest.raises(ParseError) as err:
        parser.parse("fn f() { fn g() {} }")

    assert err.value.found == "keyword 'fn'"


def test_stream_without_end_token():
    """Test that a stream missing its end token is still parsed."""
    tokens = [t for t in tokenize("x;") if t.type != END_OF_INPUT]

    assert parse(iter(tokens)) == Program([ExprStatement(Name("x"))])


def test_describe_expected():
    assert describe_expected({"_SEMI"}) == "';'"
    assert describe_expected({"_SEMI", "_RPAR"}) == "')' or ';'"
    assert describe_expected(set()) == "nothing"


def test_long_operator_chain(parser):
    """Test that a long left-associative chain parses without deep recursion."""
    program = parser.parse("let x = " + " + ".join(["1"] * 2000) + ";")

    depth = 0
    node = program.declarations[0].value
    while isinstance(node, Binary):
        depth += 1
        node = node.left
    assert depth == 1999
    assert node.pos == Position(1, 9)


def test_statement_positions(parser):
    program = parser.parse("x = 1;\n  f(2);\n{ }")
    assign, call, block = program.statements

    assert assign.pos == Position(1, 1)
    assert call.pos == Position(2, 3)
    assert block.pos == Position(3, 1)
