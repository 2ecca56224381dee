"""Assembles a buildable Go module around a compiled unit."""

import logging
import os
import stat
import tempfile
from pathlib import Path

from ..core.errors import BuildEnvironmentError
from ..core.types import (
    BuildEnvironment,
    BuildSettings,
    BuildStep,
    CommandResult,
    CompiledUnit,
)
from .toolchain import GoToolchain, Toolchain


logger = logging.getLogger(__name__)

DESCRIPTOR_NAME = "go.mod"
CHECKSUM_NAME = "go.sum"


class BuildEnvironmentAssembler:
    """Provisions a Go module in a destination directory.

    Every step is safe to re-run: the module descriptor is always deleted
    and recreated, and the generated file is replaced atomically. The
    destination is passed explicitly to each toolchain call; the process
    working directory is never changed.
    """

    def __init__(self, settings: BuildSettings | None = None, toolchain: Toolchain | None = None):
        self.settings = settings or BuildSettings()
        self.toolchain = toolchain or GoToolchain(
            executable=self.settings.go_executable,
            timeout=self.settings.command_timeout,
        )

    def assemble(self, unit: CompiledUnit, destination: Path) -> BuildEnvironment:
        destination = Path(destination).resolve()
        dependency = self.settings.dependency()
        override = self.settings.override()

        self._prepare(destination)
        self._check(self.toolchain.init_module(destination, self.settings.module_name))
        self._check(self.toolchain.get_dependency(destination, dependency.import_path, dependency.version))
        if override is not None:
            self._check(self.toolchain.set_local_override(destination, override.import_path, override.local_path))

        generated = destination / self.settings.generated_file
        try:
            write_atomic(generated, unit.text)
        except OSError as e:
            raise BuildEnvironmentError(
                f"cannot write {generated}: {e}",
                step=BuildStep.WRITE_UNIT.value,
            ) from e
        logger.info("assembled module '%s' in %s", self.settings.module_name, destination)

        return BuildEnvironment(
            destination=destination,
            module_name=self.settings.module_name,
            dependency=dependency,
            override=override,
            descriptor_path=destination / DESCRIPTOR_NAME,
            generated_path=generated,
        )

    def build(self, environment: BuildEnvironment, output: str | None = None) -> Path:
        """Compile the assembled module into an executable."""
        output = output or environment.module_name
        self._check(self.toolchain.build(environment.destination, output))
        return environment.destination / output

    def _prepare(self, destination: Path) -> None:
        try:
            destination.mkdir(parents=True, exist_ok=True)
            for name in (DESCRIPTOR_NAME, CHECKSUM_NAME):
                stale = destination / name
                if stale.exists():
                    logger.debug("removing existing %s", stale)
                    stale.unlink()
        except OSError as e:
            raise BuildEnvironmentError(
                f"cannot prepare destination {destination}: {e}",
                step=BuildStep.PREPARE.value,
            ) from e

    def _check(self, result: CommandResult) -> CommandResult:
        if not result.ok:
            raise BuildEnvironmentError(
                f"{result.step.value} failed with exit status {result.returncode}",
                step=result.step.value,
                command=result.command,
                output=result.output,
            )
        logger.debug("%s ok", result.step.value)
        return result


def write_atomic(path: Path, text: str) -> None:
    """Write text to path so readers see either the old or the new content."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates the file 0600; give it the mode a plain open would.
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def _target_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask
