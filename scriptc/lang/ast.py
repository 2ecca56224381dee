"""AST node definitions for script programs.

The node set is closed: the compiler dispatches on these classes with
``match`` and treats anything else as an internal error.
"""

from dataclasses import dataclass, field
from typing import Union

from ..core.errors import Position


NOWHERE = Position(0, 0)


# Expressions

@dataclass
class IntLiteral:
    value: int
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class FloatLiteral:
    value: float
    text: str
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class StringLiteral:
    value: str
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class BoolLiteral:
    value: bool
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class NullLiteral:
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Name:
    name: str
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class ListLiteral:
    items: list["Expression"] = field(default_factory=list)
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class MapEntry:
    key: "Expression"
    value: "Expression"
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class MapLiteral:
    """Keyed literal such as `["a" => 1]`; entries keep source order."""
    entries: list[MapEntry] = field(default_factory=list)
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Index:
    target: "Expression"
    index: "Expression"
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Call:
    callee: "Expression"
    args: list["Expression"] = field(default_factory=list)
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Unary:
    op: str
    operand: "Expression"
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Binary:
    op: str
    left: "Expression"
    right: "Expression"
    pos: Position = field(default=NOWHERE, compare=False)


Expression = Union[
    IntLiteral, FloatLiteral, StringLiteral, BoolLiteral, NullLiteral,
    Name, ListLiteral, MapLiteral, Index, Call, Unary, Binary,
]


# Statements

@dataclass
class Block:
    statements: list["Statement"] = field(default_factory=list)
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Let:
    name: str
    value: Expression
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Assign:
    target: Expression
    value: Expression
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class ExprStatement:
    expr: Expression
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Echo:
    values: list[Expression] = field(default_factory=list)
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class If:
    condition: Expression
    then: Block
    otherwise: Union[Block, "If", None] = None
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class While:
    condition: Expression
    body: Block
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class ForIn:
    name: str
    iterable: Expression
    body: Block
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Return:
    value: Expression | None = None
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Break:
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Continue:
    pos: Position = field(default=NOWHERE, compare=False)


Statement = Union[Block, Let, Assign, ExprStatement, Echo, If, While, ForIn, Return, Break, Continue]


# Declarations

@dataclass
class Param:
    name: str
    default: Expression | None = None
    variadic: bool = False
    pos: Position = field(default=NOWHERE, compare=False)


@dataclass
class Function:
    name: str
    params: list[Param] = field(default_factory=list)
    body: Block = field(default_factory=Block)
    pos: Position = field(default=NOWHERE, compare=False)


Declaration = Union[Function, Statement]


@dataclass
class Program:
    """Root node: top-level declarations in source order."""
    declarations: list[Declaration] = field(default_factory=list)
    pos: Position = field(default=NOWHERE, compare=False)

    @property
    def functions(self) -> list[Function]:
        return [d for d in self.declarations if isinstance(d, Function)]

    @property
    def statements(self) -> list[Statement]:
        return [d for d in self.declarations if not isinstance(d, Function)]
