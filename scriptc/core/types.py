"""Core type definitions for the scriptc pipeline."""

from enum import Enum
from pathlib import Path
from pydantic import BaseModel, Field


RUNTIME_IMPORT_PATH = "github.com/scriptc-lang/runtime"
RUNTIME_ALIAS = "rt"
BUNDLED_RUNTIME = Path(__file__).resolve().parent.parent / "build" / "runtime"


class BuildStep(str, Enum):
    PREPARE = "prepare"
    INIT_MODULE = "init_module"
    GET_DEPENDENCY = "get_dependency"
    SET_LOCAL_OVERRIDE = "set_local_override"
    WRITE_UNIT = "write_unit"
    BUILD = "build"


class CompiledUnit(BaseModel):
    """Generated Go source for one script program."""
    text: str
    imports: list[str] = Field(default_factory=list)
    package: str = "main"
    has_entry_point: bool = True
    source_name: str | None = None


class DependencySpec(BaseModel):
    """A module requirement registered in the module descriptor."""
    import_path: str = RUNTIME_IMPORT_PATH
    version: str = "v0.0.0"

    @property
    def requirement(self) -> str:
        return f"{self.import_path}@{self.version}"


class LocalOverride(BaseModel):
    """Replace directive redirecting a dependency to a local directory."""
    import_path: str
    local_path: Path

    @property
    def directive(self) -> str:
        return f"{self.import_path}={self.local_path}"


class BuildSettings(BaseModel):
    """Configuration for assembling a build environment."""
    module_name: str = "main"
    runtime_import_path: str = RUNTIME_IMPORT_PATH
    runtime_version: str = "v0.0.0"
    runtime_local_path: Path | None = BUNDLED_RUNTIME
    generated_file: str = "main.go"
    go_executable: str = "go"
    command_timeout: float = Field(default=120.0, gt=0)

    def dependency(self) -> DependencySpec:
        return DependencySpec(import_path=self.runtime_import_path, version=self.runtime_version)

    def override(self) -> LocalOverride | None:
        if self.runtime_local_path is None:
            return None
        return LocalOverride(
            import_path=self.runtime_import_path,
            local_path=self.runtime_local_path.resolve(),
        )


class BuildEnvironment(BaseModel):
    """An assembled, buildable Go module on disk."""
    destination: Path
    module_name: str
    dependency: DependencySpec
    override: LocalOverride | None = None
    descriptor_path: Path
    generated_path: Path


class CommandResult(BaseModel):
    """Outcome of one blocking toolchain command."""
    step: BuildStep
    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stderr.strip(), self.stdout.strip()) if part)
