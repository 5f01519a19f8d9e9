from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path

from src.bootstrap.commands import CommandRunner
from src.bootstrap.errors import OwnershipFixupError
from src.bootstrap.materialize import FRONTEND_DIR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnershipFixup:
    """Hand container-created files back to the invoking user.

    Containers write bind-mounted files as their own (usually root) user, so
    this runs `chown -R` over every non-hidden top-level entry and over
    frontend/node_modules, escalated through sudo when configured.
    """

    runner: CommandRunner
    root: Path
    uid: int
    gid: int
    use_sudo: bool = True

    def targets(self) -> list[str]:
        out = sorted(p.name for p in self.root.iterdir() if not p.name.startswith("."))
        modules = self.root / FRONTEND_DIR / "node_modules"
        if modules.is_dir():
            out.extend(
                f"{FRONTEND_DIR}/node_modules/{p.name}"
                for p in sorted(modules.iterdir(), key=lambda p: p.name)
                if not p.name.startswith(".")
            )
        return out

    def command(self) -> list[str] | None:
        targets = self.targets()
        if not targets:
            return None
        argv = ["chown", "-R", f"{self.uid}:{self.gid}", *targets]
        return ["sudo", *argv] if self.use_sudo else argv

    def run(self) -> None:
        argv = self.command()
        if argv is None:
            logger.info("Nothing to re-own under %s", self.root)
            return
        logger.info("Adjusting file ownership to the current user...")
        logger.debug("ownership fixup: %s", shlex.join(argv))
        rc = self.runner.run(argv, cwd=self.root)
        if rc != 0:
            raise OwnershipFixupError(
                f"Could not adjust file ownership (exit code {rc}); "
                f"run manually: {shlex.join(argv)}"
            )
