"""Resolution pass: bind names, assign Go names, check static rules."""

import logging
from dataclasses import dataclass, field

from ..core.errors import ResolutionError
from ..lang import ast
from .builtins import BUILTIN_REGISTRY
from .golang import float_underflows, go_identifier, int_fits
from .symbols import Symbol, SymbolKind, SymbolTable


logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """Side table mapping AST nodes (by identity) to their symbols."""
    uses: dict[int, Symbol] = field(default_factory=dict)
    declarations: dict[int, Symbol] = field(default_factory=dict)

    def use(self, node: ast.Name) -> Symbol:
        return self.uses[id(node)]

    def declared(self, node) -> Symbol:
        return self.declarations[id(node)]


class Resolver:
    """Walks a Program maintaining the symbol table.

    Scope layout while resolving:

    - frame 0: builtins
    - frame 1: top-level functions (hoisted, visible everywhere)
    - frame 2: either one function's parameters and body, or the
      top-level statements that make up the entry point
    - deeper frames: nested blocks and loop variables
    """

    def __init__(self):
        self.table = SymbolTable()
        self.resolution = Resolution()
        self.loop_depth = 0
        self.in_function = False

    def resolve(self, program: ast.Program) -> Resolution:
        self.table.push()
        for builtin in BUILTIN_REGISTRY.values():
            self.table.declare(
                builtin.name,
                SymbolKind.BUILTIN,
                builtin.target,
                min_args=builtin.min_args,
                max_args=builtin.max_args,
            )

        self.table.push()
        for function in program.functions:
            self._declare_function(function)

        for function in program.functions:
            self._function(function)

        with self.table.scope():
            for statement in program.statements:
                self._statement(statement)

        self.table.pop()
        self.table.pop()
        logger.debug(
            "resolved %d names across %d functions",
            len(self.resolution.uses),
            len(program.functions),
        )
        return self.resolution

    # Declarations

    def _declare_function(self, function: ast.Function) -> None:
        required = 0
        seen_default = False
        for position, param in enumerate(function.params, start=1):
            if param.variadic:
                if position != len(function.params):
                    raise ResolutionError(
                        f"variadic parameter '{param.name}' must be the last parameter",
                        param.pos,
                        name=param.name,
                    )
            elif param.default is None:
                if seen_default:
                    raise ResolutionError(
                        f"required parameter '{param.name}' follows a parameter with a default",
                        param.pos,
                        name=param.name,
                    )
                required += 1
            else:
                seen_default = True
        symbol = self.table.declare(
            function.name,
            SymbolKind.FUNCTION,
            go_identifier(function.name),
            pos=function.pos,
            min_args=required,
            max_args=None if function.params and function.params[-1].variadic else len(function.params),
            node=function,
        )
        self.resolution.declarations[id(function)] = symbol

    def _function(self, function: ast.Function) -> None:
        self.in_function = True
        self.loop_depth = 0
        with self.table.scope():
            for param in function.params:
                if param.default is not None:
                    self._default(param)
                symbol = self.table.declare(
                    param.name,
                    SymbolKind.PARAMETER,
                    go_identifier(param.name),
                    pos=param.pos,
                )
                self.resolution.declarations[id(param)] = symbol
            # Parameters and the outermost body statements share one scope.
            for statement in function.body.statements:
                self._statement(statement)
        self.in_function = False

    def _default(self, param: ast.Param) -> None:
        value = param.default
        if isinstance(value, ast.Unary) and value.op in ("-", "+"):
            value = value.operand
            if not isinstance(value, (ast.IntLiteral, ast.FloatLiteral)):
                value = None
        if not isinstance(value, (
            ast.IntLiteral, ast.FloatLiteral, ast.StringLiteral, ast.BoolLiteral, ast.NullLiteral,
        )):
            raise ResolutionError(
                f"default value of parameter '{param.name}' must be a literal",
                param.pos,
                name=param.name,
            )
        self._expression(param.default)

    # Statements

    def _block(self, block: ast.Block) -> None:
        with self.table.scope():
            for statement in block.statements:
                self._statement(statement)

    def _loop_body(self, block: ast.Block) -> None:
        self.loop_depth += 1
        try:
            self._block(block)
        finally:
            self.loop_depth -= 1

    def _statement(self, node) -> None:
        match node:
            case ast.Let(name=name, value=value):
                self._expression(value)
                symbol = self.table.declare(name, SymbolKind.VARIABLE, go_identifier(name), pos=node.pos)
                self.resolution.declarations[id(node)] = symbol
            case ast.Assign(target=target, value=value):
                self._assign_target(target)
                self._expression(value)
            case ast.ExprStatement(expr=expr):
                self._expression(expr)
            case ast.Echo(values=values):
                for value in values:
                    self._expression(value)
            case ast.If(condition=condition, then=then, otherwise=otherwise):
                self._expression(condition)
                self._block(then)
                if isinstance(otherwise, ast.Block):
                    self._block(otherwise)
                elif otherwise is not None:
                    self._statement(otherwise)
            case ast.While(condition=condition, body=body):
                self._expression(condition)
                self._loop_body(body)
            case ast.ForIn(name=name, iterable=iterable, body=body):
                self._expression(iterable)
                with self.table.scope():
                    symbol = self.table.declare(name, SymbolKind.VARIABLE, go_identifier(name), pos=node.pos)
                    self.resolution.declarations[id(node)] = symbol
                    self._loop_body(body)
            case ast.Return(value=value):
                if not self.in_function:
                    raise ResolutionError("'return' outside of a function", node.pos)
                if value is not None:
                    self._expression(value)
            case ast.Break():
                if self.loop_depth == 0:
                    raise ResolutionError("'break' outside of a loop", node.pos)
            case ast.Continue():
                if self.loop_depth == 0:
                    raise ResolutionError("'continue' outside of a loop", node.pos)
            case ast.Block():
                self._block(node)
            case _:
                raise TypeError(f"unknown statement node {type(node).__name__}")

    def _assign_target(self, target) -> None:
        match target:
            case ast.Name(name=name):
                symbol = self.table.lookup(name, target.pos)
                if symbol.callable:
                    raise ResolutionError(f"cannot assign to {symbol.kind.value} '{name}'", target.pos, name=name)
                self.resolution.uses[id(target)] = symbol
            case ast.Index(target=container, index=index):
                self._expression(container)
                self._expression(index)
            case _:
                raise ResolutionError("invalid assignment target", target.pos)

    # Expressions

    def _expression(self, root) -> None:
        """Check an expression tree left to right, depth first.

        Uses an explicit stack so operator chains of any length resolve.
        """
        pending = [root]
        while pending:
            node = pending.pop()
            pending.extend(reversed(self._check(node)))

    def _check(self, node) -> list:
        """Check one node and return its operands."""
        match node:
            case ast.IntLiteral(value=value):
                if not int_fits(value):
                    raise ResolutionError(f"integer literal {value} does not fit in 64 bits", node.pos)
            case ast.FloatLiteral(value=value, text=text):
                if value in (float("inf"), float("-inf")):
                    raise ResolutionError(f"float literal {text} overflows a 64-bit float", node.pos)
                if float_underflows(value, text):
                    raise ResolutionError(f"float literal {text} underflows to zero", node.pos)
            case ast.StringLiteral() | ast.BoolLiteral() | ast.NullLiteral():
                pass
            case ast.Name(name=name):
                symbol = self.table.lookup(name, node.pos)
                if symbol.callable:
                    raise ResolutionError(
                        f"{symbol.kind.value} '{name}' cannot be used as a value", node.pos, name=name
                    )
                self.resolution.uses[id(node)] = symbol
            case ast.ListLiteral(items=items):
                return items
            case ast.MapLiteral(entries=entries):
                return [part for entry in entries for part in (entry.key, entry.value)]
            case ast.Index(target=target, index=index):
                return [target, index]
            case ast.Call(callee=callee, args=args):
                self._call(node, callee, args)
                return args
            case ast.Unary(operand=operand):
                return [operand]
            case ast.Binary(left=left, right=right):
                return [left, right]
            case _:
                raise TypeError(f"unknown expression node {type(node).__name__}")
        return []

    def _call(self, node: ast.Call, callee, args) -> None:
        if not isinstance(callee, ast.Name):
            raise ResolutionError("only named functions can be called", node.pos)
        symbol = self.table.lookup(callee.name, callee.pos)
        if not symbol.callable:
            raise ResolutionError(
                f"{symbol.kind.value} '{callee.name}' is not a function", callee.pos, name=callee.name
            )
        if not symbol.accepts(len(args)):
            raise ResolutionError(
                f"'{callee.name}' expects {symbol.arity()} argument(s), got {len(args)}",
                node.pos,
                name=callee.name,
            )
        self.resolution.uses[id(callee)] = symbol
