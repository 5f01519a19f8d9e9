from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.bootstrap.errors import ConfigError
from src.stack_templates.registry import PersistenceId, default_persistence_id


def _env_str(name: str) -> str:
    return str(os.environ.get(name) or "").strip()


def _env_bool(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    return default


def root_dir() -> Path:
    return Path(_env_str("DEVSTACK_ROOT") or os.getcwd())


def persistence_id() -> str:
    return _env_str("DEVSTACK_PERSISTENCE").lower() or default_persistence_id()


def fix_ownership_enabled() -> bool:
    return _env_bool("DEVSTACK_FIX_OWNERSHIP", default=True)


def use_sudo() -> bool:
    # Root can chown directly; everyone else needs escalation.
    return _env_bool("DEVSTACK_USE_SUDO", default=os.geteuid() != 0)


def log_level() -> str:
    v = (_env_str("DEVSTACK_LOG_LEVEL") or "INFO").upper()
    return v if v in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO"


class BootstrapSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    root: Path
    persistence: PersistenceId
    fix_ownership: bool = True
    use_sudo: bool = True
    owner_uid: int = Field(ge=0)
    owner_gid: int = Field(ge=0)
    log_level: str = "INFO"


def settings_from_env(
    *,
    root: Path | str | None = None,
    persistence: str | None = None,
    fix_ownership: bool | None = None,
    log_level_override: str | None = None,
) -> BootstrapSettings:
    """Build settings from DEVSTACK_* variables, with explicit values winning."""
    try:
        return BootstrapSettings(
            root=Path(root) if root is not None else root_dir(),
            persistence=(persistence or persistence_id()).strip().lower(),
            fix_ownership=(
                fix_ownership_enabled() if fix_ownership is None else fix_ownership
            ),
            use_sudo=use_sudo(),
            owner_uid=os.getuid(),
            owner_gid=os.getgid(),
            log_level=log_level_override or log_level(),
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
