from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from src.bootstrap.materialize import FRONTEND_DIR, write_if_absent
from src.bootstrap.tools import DependencyInstaller, ProjectScaffolder
from src.stack_templates.compose import BACKEND_PORT

logger = logging.getLogger(__name__)

FRONTEND_SERVICE = "frontend"
MANIFEST = "package.json"
VITE_TEMPLATE = "vue"


@dataclass(frozen=True)
class FrontendInitResult:
    scaffolded: bool
    env_written: bool
    dependencies_installed: bool


def render_frontend_env() -> str:
    return f"VITE_API_URL=http://localhost:{BACKEND_PORT}\n"


class FrontendTools(ProjectScaffolder, DependencyInstaller, Protocol):
    pass


def initialize_frontend(tools: FrontendTools, root: Path) -> FrontendInitResult:
    front = root / FRONTEND_DIR
    scaffolded = False
    env_written = False

    if not (front / MANIFEST).is_file():
        logger.info("Initializing new Vue 3 project in %s...", FRONTEND_DIR)
        tools.run_once(
            FRONTEND_SERVICE,
            ["npm", "create", "vite@latest", ".", "--", "--template", VITE_TEMPLATE],
        )
        scaffolded = True
        env_written = write_if_absent(
            front / ".env", render_frontend_env(), label=f"{FRONTEND_DIR}/.env"
        )
    else:
        logger.info("Vue project already exists. Skipping Vue initialization.")

    # Not gated on node_modules: npm install is a fast no-op when satisfied.
    installed = False
    if (front / MANIFEST).is_file():
        logger.info("Installing Vue dependencies...")
        tools.install(FRONTEND_SERVICE, ["npm", "install"])
        installed = True

    return FrontendInitResult(
        scaffolded=scaffolded, env_written=env_written, dependencies_installed=installed
    )
