from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

# Shell convention for "command not found".
EXIT_NOT_FOUND = 127


class CommandRunner(Protocol):
    """Runs one external command to completion and returns its exit status."""

    def run(self, argv: Sequence[str], *, cwd: Path, quiet: bool = False) -> int: ...


class SubprocessRunner:
    """Blocking runner that shares the caller's terminal.

    Output is not captured: scaffolding tools print progress and may prompt.
    `quiet=True` discards output, which is what availability probes want.
    """

    def run(self, argv: Sequence[str], *, cwd: Path, quiet: bool = False) -> int:
        args = [str(a) for a in argv]
        logger.debug("exec (cwd=%s): %s", cwd, shlex.join(args))
        sink = subprocess.DEVNULL if quiet else None
        try:
            proc = subprocess.run(
                args,
                cwd=str(cwd),
                stdout=sink,
                stderr=sink,
                check=False,
            )
        except FileNotFoundError:
            logger.debug("executable not found: %s", args[0] if args else "")
            return EXIT_NOT_FOUND
        return int(proc.returncode)
