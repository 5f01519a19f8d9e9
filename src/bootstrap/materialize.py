from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from src.bootstrap.errors import WorkspaceError
from src.stack_templates.compose import COMPOSE_FILENAME, render_compose_yml
from src.stack_templates.dockerfile import BACKEND_DOCKERFILE, render_backend_dockerfile
from src.stack_templates.registry import PersistenceProfile

logger = logging.getLogger(__name__)

BACKEND_APP_DIR = "backend/app"
FRONTEND_DIR = "frontend"


@dataclass(frozen=True)
class MaterializeResult:
    compose_written: bool
    dockerfile_written: bool


def ensure_directories(root: Path) -> None:
    for rel in (BACKEND_APP_DIR, FRONTEND_DIR):
        path = root / rel
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WorkspaceError(f"Cannot create directory {path}: {exc}") from exc


def write_if_absent(path: Path, content: str, *, label: str | None = None) -> bool:
    """Write `content` to `path` unless something is already there."""
    name = label or path.name
    if path.exists():
        logger.info("%s already exists. Skipping creation.", name)
        return False
    logger.info("Generating %s...", name)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise WorkspaceError(f"Cannot write {path}: {exc}") from exc
    return True


def materialize_stack_files(root: Path, profile: PersistenceProfile) -> MaterializeResult:
    ensure_directories(root)
    compose = write_if_absent(
        root / COMPOSE_FILENAME, render_compose_yml(profile), label=COMPOSE_FILENAME
    )
    dockerfile = write_if_absent(
        root / BACKEND_DOCKERFILE,
        render_backend_dockerfile(profile),
        label=BACKEND_DOCKERFILE,
    )
    return MaterializeResult(compose_written=compose, dockerfile_written=dockerfile)
