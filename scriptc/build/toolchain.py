"""Go toolchain collaborator: blocking module-management commands."""

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from ..core.errors import BuildEnvironmentError, ToolchainTimeoutError
from ..core.types import BuildStep, CommandResult


logger = logging.getLogger(__name__)


class Toolchain(Protocol):
    """Operations the assembler needs from the target toolchain."""

    def init_module(self, destination: Path, name: str) -> CommandResult: ...

    def get_dependency(self, destination: Path, import_path: str, version: str) -> CommandResult: ...

    def set_local_override(self, destination: Path, import_path: str, local_path: Path) -> CommandResult: ...

    def build(self, destination: Path, output: str) -> CommandResult: ...


class GoToolchain:
    """Runs the ``go`` command with a bounded wait."""

    def __init__(self, executable: str = "go", timeout: float = 120.0):
        self.executable = executable
        self.timeout = timeout

    def init_module(self, destination: Path, name: str) -> CommandResult:
        return self._run(BuildStep.INIT_MODULE, destination, ["mod", "init", name])

    def get_dependency(self, destination: Path, import_path: str, version: str) -> CommandResult:
        # Recorded offline; resolution happens through the replace directive.
        return self._run(
            BuildStep.GET_DEPENDENCY,
            destination,
            ["mod", "edit", f"-require={import_path}@{version}"],
        )

    def set_local_override(self, destination: Path, import_path: str, local_path: Path) -> CommandResult:
        return self._run(
            BuildStep.SET_LOCAL_OVERRIDE,
            destination,
            ["mod", "edit", f"-replace={import_path}={local_path}"],
        )

    def build(self, destination: Path, output: str) -> CommandResult:
        return self._run(BuildStep.BUILD, destination, ["build", "-o", output, "."])

    def _run(self, step: BuildStep, destination: Path, args: list[str]) -> CommandResult:
        command = [self.executable, *args]
        logger.debug("running %s in %s", " ".join(command), destination)
        try:
            completed = subprocess.run(
                command,
                cwd=destination,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ToolchainTimeoutError(
                f"{step.value} did not finish within {self.timeout:g}s",
                step=step.value,
                command=command,
                output=_decode(e.stderr) or _decode(e.output),
            ) from e
        except FileNotFoundError as e:
            raise BuildEnvironmentError(
                f"{step.value} failed: executable '{self.executable}' not found",
                step=step.value,
                command=command,
            ) from e
        return CommandResult(
            step=step,
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


def _decode(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
