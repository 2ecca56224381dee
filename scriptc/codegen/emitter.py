"""Emission pass: lower a resolved Program to Go source text."""

import logging

from ..core.types import RUNTIME_ALIAS
from ..lang import ast
from .golang import go_float, go_string
from .resolver import Resolution
from .symbols import SymbolKind


logger = logging.getLogger(__name__)

BINARY_OPS = {
    "+": "Add",
    "-": "Sub",
    "*": "Mul",
    "/": "Div",
    "%": "Mod",
    "==": "Eq",
    "!=": "Ne",
    "<": "Lt",
    "<=": "Le",
    ">": "Gt",
    ">=": "Ge",
}

UNARY_OPS = {
    "!": "Not",
    "-": "Neg",
    "+": "Pos",
}

INDENT = "\t"


class GoEmitter:
    """Emits one gofmt-style Go file for a resolved program."""

    def __init__(self, resolution: Resolution, runtime_import: str):
        self.resolution = resolution
        self.runtime_import = runtime_import
        self.lines: list[str] = []
        self.level = 0
        self.uses_runtime = False

    def emit(self, program: ast.Program, source_name: str | None = None) -> str:
        body: list[str] = []
        for function in program.functions:
            self._function(function)
            body.extend(self._take())
            body.append("")

        self._line("func main() {")
        self._indented(program.statements)
        self._line("}")
        body.extend(self._take())

        origin = f" from {source_name}" if source_name else ""
        header = [f"// Code generated by scriptc{origin}. DO NOT EDIT.", "", "package main", ""]
        if self.uses_runtime:
            header.extend([f'import {RUNTIME_ALIAS} "{self.runtime_import}"', ""])
        text = "\n".join(header + body) + "\n"
        logger.debug("emitted %d lines of Go", text.count("\n"))
        return text

    # Output helpers

    def _line(self, text: str) -> None:
        self.lines.append(INDENT * self.level + text)

    def _take(self) -> list[str]:
        lines, self.lines = self.lines, []
        return lines

    def _indented(self, statements) -> None:
        self.level += 1
        for statement in statements:
            self._statement(statement)
        self.level -= 1

    def _rt(self, name: str) -> str:
        self.uses_runtime = True
        return f"{RUNTIME_ALIAS}.{name}"

    # Declarations

    def _function(self, function: ast.Function) -> None:
        symbol = self.resolution.declared(function)
        params = ", ".join(
            f"{self.resolution.declared(param).target} {self._rt('Value')}" for param in function.params
        )
        self._line(f"func {symbol.target}({params}) {self._rt('Value')} {{")
        statements = function.body.statements
        self._indented(statements)
        if not statements or not isinstance(statements[-1], ast.Return):
            self.level += 1
            self._line(f"return {self._rt('Null')}()")
            self.level -= 1
        self._line("}")

    # Statements

    def _statement(self, node) -> None:
        match node:
            case ast.Let(value=value):
                target = self.resolution.declared(node).target
                self._line(f"{target} := {self._expression(value)}")
                self._line(f"_ = {target}")
            case ast.Assign(target=ast.Name() as name, value=value):
                self._line(f"{self.resolution.use(name).target} = {self._expression(value)}")
            case ast.Assign(target=ast.Index(target=container, index=index), value=value):
                args = ", ".join(self._expression(e) for e in (container, index, value))
                self._line(f"{self._rt('SetIndex')}({args})")
            case ast.ExprStatement(expr=ast.Call() as call):
                self._line(self._expression(call))
            case ast.ExprStatement(expr=expr):
                self._line(f"_ = {self._expression(expr)}")
            case ast.Echo(values=values):
                self._line(f"{self._rt('Echo')}({', '.join(self._expression(v) for v in values)})")
            case ast.If():
                self._if(node, prefix="")
                self._line("}")
            case ast.While(condition=condition, body=body):
                self._line(f"for {self._truthy(condition)} {{")
                self._indented(body.statements)
                self._line("}")
            case ast.ForIn(iterable=iterable, body=body):
                target = self.resolution.declared(node).target
                self._line(f"for _, {target} := range {self._rt('Iter')}({self._expression(iterable)}) {{")
                self.level += 1
                self._line(f"_ = {target}")
                self.level -= 1
                self._indented(body.statements)
                self._line("}")
            case ast.Return(value=None):
                self._line(f"return {self._rt('Null')}()")
            case ast.Return(value=value):
                self._line(f"return {self._expression(value)}")
            case ast.Break():
                self._line("break")
            case ast.Continue():
                self._line("continue")
            case ast.Block(statements=statements):
                self._line("{")
                self._indented(statements)
                self._line("}")
            case _:
                raise TypeError(f"cannot emit statement {type(node).__name__}")

    def _if(self, node: ast.If, prefix: str) -> None:
        """Emit an if/else-if chain; the caller closes the final brace."""
        self._line(f"{prefix}if {self._truthy(node.condition)} {{")
        self._indented(node.then.statements)
        match node.otherwise:
            case None:
                pass
            case ast.If() as chained:
                self._if(chained, prefix="} else ")
            case ast.Block(statements=statements):
                self._line("} else {")
                self._indented(statements)

    # Expressions

    def _truthy(self, node) -> str:
        return f"{self._rt('Truthy')}({self._expression(node)})"

    def _expression(self, root) -> str:
        """Render an expression bottom-up with an explicit stack.

        Each node is visited twice: first to queue its operands, then to
        combine their rendered text.
        """
        rendered: list[str] = []
        stack = [(root, False)]
        while stack:
            node, expanded = stack.pop()
            operands = self._operands(node)
            if operands and not expanded:
                stack.append((node, True))
                stack.extend((operand, False) for operand in reversed(operands))
                continue
            split = len(rendered) - len(operands)
            parts = rendered[split:]
            del rendered[split:]
            rendered.append(self._render(node, parts))
        return rendered[0]

    def _operands(self, node) -> list:
        match node:
            case ast.ListLiteral(items=items):
                return items
            case ast.MapLiteral(entries=entries):
                return [part for entry in entries for part in (entry.key, entry.value)]
            case ast.Index(target=target, index=index):
                return [target, index]
            case ast.Call(callee=callee, args=args):
                symbol = self.resolution.use(callee)
                if symbol.kind == SymbolKind.BUILTIN:
                    return args
                # Omitted trailing arguments take the declared literal defaults.
                fixed = [param for param in symbol.node.params if not param.variadic]
                return args + [param.default for param in fixed[len(args):]]
            case ast.Unary(operand=operand):
                return [operand]
            case ast.Binary(left=left, right=right):
                return [left, right]
        return []

    def _render(self, node, parts: list[str]) -> str:
        match node:
            case ast.IntLiteral(value=value):
                return f"{self._rt('Int')}({value})"
            case ast.FloatLiteral(value=value):
                return f"{self._rt('Float')}({go_float(value)})"
            case ast.StringLiteral(value=value):
                return f"{self._rt('String')}({go_string(value)})"
            case ast.BoolLiteral(value=value):
                return f"{self._rt('Bool')}({'true' if value else 'false'})"
            case ast.NullLiteral():
                return f"{self._rt('Null')}()"
            case ast.Name():
                return self.resolution.use(node).target
            case ast.ListLiteral():
                return f"{self._rt('List')}({', '.join(parts)})"
            case ast.MapLiteral():
                return f"{self._rt('Map')}({', '.join(parts)})"
            case ast.Index():
                return f"{self._rt('Index')}({parts[0]}, {parts[1]})"
            case ast.Call(callee=callee):
                return self._call(self.resolution.use(callee), parts)
            case ast.Unary(op=op):
                return f"{self._rt(UNARY_OPS[op])}({parts[0]})"
            case ast.Binary(op="&&" | "||" as op):
                truthy = self._rt("Truthy")
                return f"{self._rt('Bool')}({truthy}({parts[0]}) {op} {truthy}({parts[1]}))"
            case ast.Binary(op=op):
                return f"{self._rt(BINARY_OPS[op])}({parts[0]}, {parts[1]})"
            case _:
                raise TypeError(f"cannot emit expression {type(node).__name__}")

    def _call(self, symbol, parts: list[str]) -> str:
        if symbol.kind == SymbolKind.BUILTIN:
            return f"{self._rt(symbol.target)}({', '.join(parts)})"
        params = symbol.node.params
        if params and params[-1].variadic:
            # Arguments past the fixed parameters travel as one list.
            fixed = len(params) - 1
            parts = parts[:fixed] + [f"{self._rt('List')}({', '.join(parts[fixed:])})"]
        return f"{symbol.target}({', '.join(parts)})"
