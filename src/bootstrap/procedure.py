from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from src.bootstrap.backend_project import BackendInitResult, initialize_backend
from src.bootstrap.commands import CommandRunner, SubprocessRunner
from src.bootstrap.config import BootstrapSettings
from src.bootstrap.errors import OwnershipFixupError
from src.bootstrap.frontend_project import FrontendInitResult, initialize_frontend
from src.bootstrap.materialize import MaterializeResult, materialize_stack_files
from src.bootstrap.ownership import OwnershipFixup
from src.bootstrap.persistence import BACKEND_SERVICE
from src.bootstrap.preflight import Which, detect_compose_command
from src.bootstrap.tools import ComposeCli
from src.stack_templates.registry import PersistenceProfile, persistence_profile

logger = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    root: Path
    profile: PersistenceProfile
    compose_cmd: tuple[str, ...]
    down_command: str
    materialized: MaterializeResult
    backend: BackendInitResult
    frontend: FrontendInitResult
    ownership_fixed: bool = False
    ownership_error: str | None = None


def run_bootstrap(
    settings: BootstrapSettings,
    *,
    runner: CommandRunner | None = None,
    which: Which = shutil.which,
) -> BootstrapResult:
    """Provision the whole stack under `settings.root`, strictly in order.

    Any failing step raises and stops the run. The ownership fixup is the
    exception: its failure is recorded on the result after the stack is up.
    """
    runner = runner or SubprocessRunner()
    root = settings.root.resolve()
    profile = persistence_profile(settings.persistence)

    compose_cmd = detect_compose_command(runner, cwd=root, which=which)
    logger.debug("Bootstrapping %s stack in %s", profile.label, root)

    materialized = materialize_stack_files(root, profile)

    tools = ComposeCli(runner, root=root, compose_cmd=compose_cmd)
    logger.info("Building Laravel backend image...")
    tools.build(BACKEND_SERVICE)

    backend = initialize_backend(tools, root, profile)
    frontend = initialize_frontend(tools, root)

    logger.info("Starting Docker services...")
    tools.up()

    result = BootstrapResult(
        root=root,
        profile=profile,
        compose_cmd=compose_cmd,
        down_command=tools.down_command(),
        materialized=materialized,
        backend=backend,
        frontend=frontend,
    )

    if not settings.fix_ownership:
        logger.info("Ownership fixup disabled; skipping.")
        return result

    fixup = OwnershipFixup(
        runner=runner,
        root=root,
        uid=settings.owner_uid,
        gid=settings.owner_gid,
        use_sudo=settings.use_sudo,
    )
    try:
        fixup.run()
    except OwnershipFixupError as exc:
        logger.error("%s", exc)
        result.ownership_error = str(exc)
    else:
        result.ownership_fixed = True
    return result
