from __future__ import annotations

import shlex
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from src.bootstrap.commands import CommandRunner
from src.bootstrap.errors import StepFailedError


class ImageBuilder(Protocol):
    def build(self, service: str) -> None: ...


class ProjectScaffolder(Protocol):
    def run_once(self, service: str, argv: Sequence[str]) -> None: ...


class DependencyInstaller(Protocol):
    def install(self, service: str, argv: Sequence[str]) -> None: ...


class StackOrchestrator(Protocol):
    def up(self) -> None: ...

    def down_command(self) -> str: ...


class ComposeCli:
    """Every stack interaction, expressed as a compose invocation.

    Implements ImageBuilder, ProjectScaffolder, DependencyInstaller and
    StackOrchestrator. One-off commands run in throwaway containers
    (`run --rm`), so they see the bind-mounted project directories.
    """

    def __init__(
        self,
        runner: CommandRunner,
        *,
        root: Path,
        compose_cmd: Sequence[str],
    ) -> None:
        if not compose_cmd:
            raise ValueError("compose_cmd must not be empty")
        self._runner = runner
        self._root = root
        self._compose_cmd = tuple(compose_cmd)

    @property
    def compose_cmd(self) -> tuple[str, ...]:
        return self._compose_cmd

    def _invoke(self, *args: str) -> None:
        argv = [*self._compose_cmd, *args]
        rc = self._runner.run(argv, cwd=self._root)
        if rc != 0:
            raise StepFailedError(argv, rc)

    def build(self, service: str) -> None:
        self._invoke("build", service)

    def run_once(self, service: str, argv: Sequence[str]) -> None:
        self._invoke("run", "--rm", service, *argv)

    def install(self, service: str, argv: Sequence[str]) -> None:
        self.run_once(service, argv)

    def up(self) -> None:
        self._invoke("up", "-d")

    def down_command(self) -> str:
        return shlex.join([*self._compose_cmd, "down"])
