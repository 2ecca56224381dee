"""Compiler that lowers a script Program to a Go compilation unit."""

from pathlib import Path

from ..codegen.emitter import GoEmitter
from ..codegen.resolver import Resolver
from ..core.errors import ResolutionError
from ..core.types import RUNTIME_IMPORT_PATH, CompiledUnit
from .ast import Program
from .parser import ScriptParser


class Compiler:
    """Compiles script ASTs to Go source."""

    def __init__(self, runtime_import_path: str = RUNTIME_IMPORT_PATH):
        self.parser = ScriptParser()
        self.runtime_import_path = runtime_import_path

    def compile(self, program: Program, source_name: str | None = None) -> CompiledUnit:
        """Resolve and emit a Program.

        Either a complete unit is returned or an error propagates; no
        partial text escapes.
        """
        try:
            resolution = Resolver().resolve(program)
            emitter = GoEmitter(resolution, self.runtime_import_path)
            text = emitter.emit(program, source_name)
        except RecursionError:
            raise ResolutionError("blocks nest too deeply to compile", program.pos) from None
        return CompiledUnit(
            text=text,
            imports=[self.runtime_import_path] if emitter.uses_runtime else [],
            source_name=source_name,
        )

    def compile_file(self, path: Path) -> CompiledUnit:
        """Parse and compile a script file."""
        program = self.parser.parse_file(path)
        return self.compile(program, source_name=Path(path).name)

    def compile_string(self, source: str, source_name: str | None = None) -> CompiledUnit:
        """Parse and compile script source from a string."""
        program = self.parser.parse(source)
        return self.compile(program, source_name=source_name)
