"""Shared fixtures for scriptc tests."""

from pathlib import Path

import pytest

from scriptc.core.errors import ToolchainTimeoutError
from scriptc.core.types import BuildStep, CommandResult


EXAMPLES_PATH = Path(__file__).parent.parent / "scriptc" / "lang" / "examples"


class FakeToolchain:
    """In-process stand-in for the go command.

    Writes a deterministic go.mod and refuses to initialise over an
    existing one, like ``go mod init`` does.
    """

    def __init__(self, fail_step: BuildStep | None = None, timeout_step: BuildStep | None = None):
        self.calls: list[tuple[BuildStep, Path]] = []
        self.fail_step = fail_step
        self.timeout_step = timeout_step

    def _result(self, step: BuildStep, destination: Path, command: list[str]) -> CommandResult | None:
        self.calls.append((step, destination))
        if step == self.timeout_step:
            raise ToolchainTimeoutError(f"{step.value} did not finish within 1s", step=step.value, command=command)
        if step == self.fail_step:
            return CommandResult(step=step, command=command, returncode=1, stderr=f"{step.value} exploded")
        return None

    def init_module(self, destination: Path, name: str) -> CommandResult:
        command = ["go", "mod", "init", name]
        failed = self._result(BuildStep.INIT_MODULE, destination, command)
        if failed:
            return failed
        descriptor = destination / "go.mod"
        if descriptor.exists():
            return CommandResult(
                step=BuildStep.INIT_MODULE,
                command=command,
                returncode=1,
                stderr="go: go.mod already exists",
            )
        descriptor.write_text(f"module {name}\n\ngo 1.21\n")
        return CommandResult(step=BuildStep.INIT_MODULE, command=command, returncode=0)

    def get_dependency(self, destination: Path, import_path: str, version: str) -> CommandResult:
        command = ["go", "mod", "edit", f"-require={import_path}@{version}"]
        failed = self._result(BuildStep.GET_DEPENDENCY, destination, command)
        if failed:
            return failed
        with open(destination / "go.mod", "a") as f:
            f.write(f"\nrequire {import_path} {version}\n")
        return CommandResult(step=BuildStep.GET_DEPENDENCY, command=command, returncode=0)

    def set_local_override(self, destination: Path, import_path: str, local_path: Path) -> CommandResult:
        command = ["go", "mod", "edit", f"-replace={import_path}={local_path}"]
        failed = self._result(BuildStep.SET_LOCAL_OVERRIDE, destination, command)
        if failed:
            return failed
        with open(destination / "go.mod", "a") as f:
            f.write(f"\nreplace {import_path} => {local_path}\n")
        return CommandResult(step=BuildStep.SET_LOCAL_OVERRIDE, command=command, returncode=0)

    def build(self, destination: Path, output: str) -> CommandResult:
        command = ["go", "build", "-o", output, "."]
        failed = self._result(BuildStep.BUILD, destination, command)
        if failed:
            return failed
        (destination / output).write_text("binary")
        return CommandResult(step=BuildStep.BUILD, command=command, returncode=0)


@pytest.fixture
def fake_toolchain():
    """Fake toolchain that records every call."""
    return FakeToolchain()


@pytest.fixture
def examples_path():
    """Directory holding the bundled example scripts."""
    return EXAMPLES_PATH


@pytest.fixture
def write_script(tmp_path):
    """Write script source to a file and return its path."""
    def _write(source: str, name: str = "program.sc") -> Path:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def toolchain_factory():
    """Build fake toolchains that fail or time out at a chosen step."""
    return FakeToolchain
