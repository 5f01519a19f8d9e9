from __future__ import annotations

import shlex
from collections.abc import Sequence


class BootstrapError(RuntimeError):
    pass


class ConfigError(BootstrapError):
    pass


class PreflightError(BootstrapError):
    """Container runtime or orchestration CLI is unavailable."""


class StepFailedError(BootstrapError):
    def __init__(self, argv: Sequence[str], exit_code: int) -> None:
        self.argv = tuple(argv)
        self.exit_code = int(exit_code)
        super().__init__(
            f"Command failed with exit code {self.exit_code}: {shlex.join(self.argv)}"
        )


class OwnershipFixupError(BootstrapError):
    pass


class EnvFileMissing(BootstrapError):
    pass


class WorkspaceError(BootstrapError):
    """A path under the stack root could not be created, read or replaced."""
