"""Scoped symbol table used by the resolution pass."""

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..core.errors import Position, ResolutionError


class SymbolKind(str, Enum):
    BUILTIN = "builtin"
    FUNCTION = "function"
    PARAMETER = "parameter"
    VARIABLE = "variable"


@dataclass
class Symbol:
    """Binding metadata for one declared name."""
    name: str
    kind: SymbolKind
    target: str
    depth: int
    min_args: int = 0
    max_args: int | None = 0
    pos: Position | None = None
    node: Any = None

    @property
    def callable(self) -> bool:
        return self.kind in (SymbolKind.BUILTIN, SymbolKind.FUNCTION)

    def accepts(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def arity(self) -> str:
        if self.max_args is None:
            return f"at least {self.min_args}"
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args} to {self.max_args}"


class SymbolTable:
    """Stack of scope frames; index 0 is the outermost scope."""

    def __init__(self):
        self.frames: list[dict[str, Symbol]] = []

    @property
    def depth(self) -> int:
        return len(self.frames) - 1

    def push(self) -> None:
        self.frames.append({})

    def pop(self) -> dict[str, Symbol]:
        if not self.frames:
            raise RuntimeError("pop from empty symbol table")
        return self.frames.pop()

    @contextmanager
    def scope(self):
        self.push()
        try:
            yield self.frames[-1]
        finally:
            self.pop()

    def declare(
        self,
        name: str,
        kind: SymbolKind,
        target: str,
        pos: Position | None = None,
        min_args: int = 0,
        max_args: int | None = 0,
        node: Any = None,
    ) -> Symbol:
        frame = self.frames[-1]
        if name in frame:
            previous = frame[name]
            where = f" (previously declared at {previous.pos})" if previous.pos else ""
            raise ResolutionError(f"duplicate declaration of '{name}'{where}", pos, name=name)
        symbol = Symbol(
            name=name,
            kind=kind,
            target=target,
            depth=self.depth,
            min_args=min_args,
            max_args=max_args,
            pos=pos,
            node=node,
        )
        frame[name] = symbol
        return symbol

    def find(self, name: str) -> Symbol | None:
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]
        return None

    def lookup(self, name: str, pos: Position | None = None) -> Symbol:
        symbol = self.find(name)
        if symbol is None:
            raise ResolutionError(f"unresolved name '{name}'", pos, name=name)
        return symbol
