"""CLI for the scriptc compiler."""

from pathlib import Path
import typer
from rich.console import Console
from rich.table import Table
from rich.syntax import Syntax
from rich.pretty import pprint
from rich.markup import escape

from .build.assembler import BuildEnvironmentAssembler
from .core.errors import ScriptcError
from .core.log import configure_logging
from .core.types import BUNDLED_RUNTIME, RUNTIME_IMPORT_PATH, BuildSettings
from .lang.compiler import Compiler
from .lang.lexer import tokenize
from .lang.parser import ScriptParser

app = typer.Typer(
    name="scriptc",
    help="scriptc - compile scripts to Go and assemble a buildable module",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

# Deeper subtrees of the ast listing print as an ellipsis.
AST_MAX_DEPTH = 48


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every pipeline step"),
):
    """Compile scriptc programs to Go."""
    configure_logging(verbose, err_console)


def read_source(path: Path) -> str:
    """Read script source, exiting with a diagnostic on failure."""
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        err_console.print(f"[red]io error:[/red] {escape(f'cannot read {path}: {e}')}", highlight=False)
        raise typer.Exit(1)


def fail(error: ScriptcError) -> None:
    err_console.print(f"[red]{error.stage} error:[/red] {escape(str(error))}", highlight=False)
    raise typer.Exit(1)


@app.command("build")
def build_command(
    source: Path = typer.Argument(..., help="Path to script source file"),
    out: Path = typer.Option(Path("build"), "--out", "-o", help="Destination directory for the Go module"),
    binary: bool = typer.Option(False, "--binary", help="Also run 'go build' in the destination"),
    module_name: str = typer.Option("main", "--module", help="Go module name", envvar="SCRIPTC_MODULE"),
    runtime_import: str = typer.Option(
        RUNTIME_IMPORT_PATH, "--runtime-import", help="Import path of the runtime package", envvar="SCRIPTC_RUNTIME_IMPORT"
    ),
    runtime_path: Path = typer.Option(
        BUNDLED_RUNTIME, "--runtime-path", help="Local runtime checkout used as replace target", envvar="SCRIPTC_RUNTIME_PATH"
    ),
    go: str = typer.Option("go", "--go", help="Go executable", envvar="SCRIPTC_GO"),
    timeout: float = typer.Option(120.0, "--timeout", help="Seconds to wait for each go command", envvar="SCRIPTC_TIMEOUT"),
):
    """Compile a script and assemble a buildable Go module."""
    text = read_source(source)
    settings = BuildSettings(
        module_name=module_name,
        runtime_import_path=runtime_import,
        runtime_local_path=runtime_path,
        go_executable=go,
        command_timeout=timeout,
    )

    try:
        unit = Compiler(runtime_import_path=runtime_import).compile_string(text, source_name=source.name)
        assembler = BuildEnvironmentAssembler(settings)
        environment = assembler.assemble(unit, out)
        executable = assembler.build(environment) if binary else None
    except ScriptcError as e:
        fail(e)

    table = Table(title="Build Environment")
    table.add_column("Item", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Destination", str(environment.destination))
    table.add_row("Module", environment.module_name)
    table.add_row("Dependency", environment.dependency.requirement)
    table.add_row("Override", str(environment.override.local_path) if environment.override else "-")
    table.add_row("Generated", str(environment.generated_path))
    if executable is not None:
        table.add_row("Executable", str(executable))
    console.print(table)


@app.command("compile")
def compile_command(
    source: Path = typer.Argument(..., help="Path to script source file"),
    out: Path = typer.Option(None, "--out", "-o", help="Write Go source to this file"),
    runtime_import: str = typer.Option(
        RUNTIME_IMPORT_PATH, "--runtime-import", help="Import path of the runtime package", envvar="SCRIPTC_RUNTIME_IMPORT"
    ),
):
    """Compile a script and print or write the generated Go."""
    text = read_source(source)
    try:
        unit = Compiler(runtime_import_path=runtime_import).compile_string(text, source_name=source.name)
    except ScriptcError as e:
        fail(e)

    if out:
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            with open(out, "w", encoding="utf-8") as f:
                f.write(unit.text)
        except OSError as e:
            err_console.print(f"[red]io error:[/red] {escape(f'cannot write {out}: {e}')}", highlight=False)
            raise typer.Exit(1)
        console.print(f"[green]Wrote {escape(str(out))}[/green]")
    else:
        console.print(Syntax(unit.text, "go", line_numbers=False))


@app.command("tokens")
def tokens_command(
    source: Path = typer.Argument(..., help="Path to script source file"),
):
    """List the tokens of a script."""
    text = read_source(source)
    table = Table(title=f"Tokens: {source.name}")
    table.add_column("Position", style="dim")
    table.add_column("Kind", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Text", style="white")

    try:
        for token in tokenize(text):
            table.add_row(str(token.position), token.kind.value, token.type, escape(token.text))
    except ScriptcError as e:
        fail(e)
    console.print(table)


@app.command("ast")
def ast_command(
    source: Path = typer.Argument(..., help="Path to script source file"),
):
    """Pretty-print the syntax tree of a script."""
    text = read_source(source)
    try:
        program = ScriptParser().parse(text)
    except ScriptcError as e:
        fail(e)
    pprint(program, console=console, max_depth=AST_MAX_DEPTH)


if __name__ == "__main__":
    app()
