"""Error taxonomy shared by every pipeline stage."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    """1-based line/column location in script source."""
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class ScriptcError(Exception):
    """Base class for pipeline failures.

    Every error names the stage that raised it so the CLI can report a single
    diagnostic without inspecting the concrete type.
    """

    stage = "scriptc"

    def __init__(self, message: str, position: Position | None = None):
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is not None:
            return f"{type(self).__name__} at {self.position}: {self.message}"
        return f"{type(self).__name__}: {self.message}"


class LexError(ScriptcError):
    """A character sequence matches no token rule."""

    stage = "lex"


class ParseError(ScriptcError):
    """The token stream does not match the grammar."""

    stage = "parse"

    def __init__(self, expected: str, found: str, position: Position | None = None):
        super().__init__(f"expected {expected}, found {found}", position)
        self.expected = expected
        self.found = found


class ResolutionError(ScriptcError):
    """Name binding or semantic check failed during compilation."""

    stage = "resolve"

    def __init__(self, message: str, position: Position | None = None, name: str | None = None):
        super().__init__(message, position)
        self.name = name


class BuildEnvironmentError(ScriptcError):
    """Destination setup or a toolchain command failed."""

    stage = "assemble"

    def __init__(self, message: str, step: str | None = None, command: list[str] | None = None, output: str = ""):
        super().__init__(message)
        self.step = step
        self.command = command or []
        self.output = output

    def __str__(self) -> str:
        parts = [f"{type(self).__name__}: {self.message}"]
        if self.command:
            parts.append(f"  command: {' '.join(self.command)}")
        if self.output.strip():
            parts.append(f"  output: {self.output.strip()}")
        return "\n".join(parts)


class ToolchainTimeoutError(BuildEnvironmentError, TimeoutError):
    """A toolchain command did not finish within the configured timeout."""
