from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from src.bootstrap.errors import WorkspaceError
from src.bootstrap.materialize import BACKEND_APP_DIR
from src.bootstrap.persistence import (
    BACKEND_SERVICE,
    BackendTools,
    PersistenceSetupResult,
    persistence_setup_for,
)
from src.envfile.editor import apply_env_overrides
from src.stack_templates.registry import PersistenceProfile, env_overrides_for

logger = logging.getLogger(__name__)

BackendState = Literal[
    "uninitialized",
    "scaffolding",
    "configured",
    "existing",
    "syncing_env",
    "ready",
]

MANIFEST = "composer.json"
DEPENDENCY_DIR = "vendor"
ENV_FILE = ".env"
ENV_EXAMPLE = ".env.example"


@dataclass
class BackendInitResult:
    states: list[BackendState] = field(default_factory=list)
    env_keys_changed: list[str] | None = None
    dependencies_installed: bool = False
    persistence: PersistenceSetupResult | None = None

    @property
    def scaffolded(self) -> bool:
        return "scaffolding" in self.states


def detect_backend_state(app_dir: Path) -> Literal["uninitialized", "existing"]:
    return "existing" if (app_dir / MANIFEST).is_file() else "uninitialized"


def _derive_env_file(app_dir: Path) -> None:
    env = app_dir / ENV_FILE
    example = app_dir / ENV_EXAMPLE
    if env.exists():
        logger.debug("%s already present; keeping it", env)
        return
    if not example.is_file():
        # The strict rewrite below reports the missing file.
        logger.warning("%s not found; cannot derive %s", example, ENV_FILE)
        return
    try:
        shutil.copyfile(example, env)
    except OSError as exc:
        raise WorkspaceError(f"Cannot create {env}: {exc}") from exc


def _scaffold(
    tools: BackendTools, app_dir: Path, profile: PersistenceProfile, result: BackendInitResult
) -> None:
    result.states.append("scaffolding")
    logger.info("Initializing new Laravel project in %s...", BACKEND_APP_DIR)
    tools.run_once(BACKEND_SERVICE, ["composer", "create-project", "laravel/laravel", "."])

    logger.info("Configuring Laravel environment for %s...", profile.label)
    _derive_env_file(app_dir)
    result.env_keys_changed = apply_env_overrides(
        app_dir / ENV_FILE, env_overrides_for(profile), missing_ok=False
    )

    logger.info("Generating Laravel application key...")
    tools.run_once(BACKEND_SERVICE, ["php", "artisan", "key:generate"])

    result.persistence = persistence_setup_for(profile).apply(tools, app_dir)
    result.states.append("configured")


def _sync_existing(
    tools: BackendTools, app_dir: Path, profile: PersistenceProfile, result: BackendInitResult
) -> None:
    logger.info(
        "Laravel project already exists in %s. Skipping Laravel installation.",
        BACKEND_APP_DIR,
    )
    result.states.append("syncing_env")
    result.env_keys_changed = apply_env_overrides(
        app_dir / ENV_FILE, env_overrides_for(profile), missing_ok=True
    )
    if not (app_dir / DEPENDENCY_DIR).is_dir():
        logger.info("Installing Laravel dependencies...")
        tools.install(BACKEND_SERVICE, ["composer", "install"])
        result.dependencies_installed = True


def initialize_backend(
    tools: BackendTools, root: Path, profile: PersistenceProfile
) -> BackendInitResult:
    """Bring backend/app to the ready state.

    A fresh tree is scaffolded and configured once; an existing one only gets
    its .env keys re-asserted and, if vendor/ is missing, a composer install.
    """
    app_dir = root / BACKEND_APP_DIR
    initial = detect_backend_state(app_dir)
    result = BackendInitResult(states=[initial])

    if initial == "uninitialized":
        _scaffold(tools, app_dir, profile, result)
    else:
        _sync_existing(tools, app_dir, profile, result)

    result.states.append("ready")
    return result
