from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from src.bootstrap.commands import CommandRunner
from src.bootstrap.errors import PreflightError

logger = logging.getLogger(__name__)

Which = Callable[[str], str | None]


def detect_compose_command(
    runner: CommandRunner,
    *,
    cwd: Path,
    which: Which = shutil.which,
) -> tuple[str, ...]:
    """Return the orchestration command prefix, preferring the compose plugin.

    Nothing here touches the filesystem; callers run this before any write.
    """
    if not which("docker"):
        raise PreflightError(
            "Docker is not installed or not in PATH. Please install Docker."
        )

    # cwd may not exist yet on a fresh root; probe from its nearest parent.
    probe_cwd = cwd
    while not probe_cwd.exists() and probe_cwd != probe_cwd.parent:
        probe_cwd = probe_cwd.parent

    if runner.run(["docker", "compose", "version"], cwd=probe_cwd, quiet=True) == 0:
        logger.debug("Using docker compose plugin")
        return ("docker", "compose")
    if which("docker-compose"):
        logger.debug("Using legacy docker-compose binary")
        return ("docker-compose",)

    raise PreflightError(
        "Docker Compose is not installed. Please install Docker Compose."
    )
