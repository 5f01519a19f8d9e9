"""Persistence-specific backend setup.

The document-store profile installs the MongoDB Laravel driver and registers a
`mongodb` connection in `config/database.php`; the relational profile only
needs its schema migrated. Which one runs is decided by the profile, never by
which entry point was used.
"""

from __future__ import annotations

import base64
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Protocol

from src.bootstrap.errors import WorkspaceError
from src.bootstrap.tools import DependencyInstaller, ProjectScaffolder
from src.stack_templates.registry import PersistenceProfile

logger = logging.getLogger(__name__)

BACKEND_SERVICE = "backend"
MONGODB_DRIVER_PACKAGE = "mongodb/laravel-mongodb"
DATABASE_CONFIG = "config/database.php"

_DEFAULT_CONN_RE = re.compile(
    r"('default'\s*=>\s*env\(\s*'DB_CONNECTION'\s*,\s*)'[^']*'(\s*\))"
)
_CONNECTIONS_RE = re.compile(r"^(?P<indent>[ \t]*)'connections'\s*=>\s*\[[ \t]*$", re.M)
_MONGODB_CONN_RE = re.compile(r"'mongodb'\s*=>\s*\[")

_MONGODB_CONNECTION_LINES = (
    "'mongodb' => [",
    "    'driver' => 'mongodb',",
    "    'host' => env('DB_HOST', 'mongodb'),",
    "    'port' => env('DB_PORT', 27017),",
    "    'database' => env('DB_DATABASE', 'laravel'),",
    "    'username' => env('DB_USERNAME', 'root'),",
    "    'password' => env('DB_PASSWORD', 'root'),",
    "    'options' => [",
    "        'app_name' => 'laravel',",
    "    ],",
    "],",
)


@dataclass(frozen=True)
class DatabaseConfigPatch:
    default_switched: bool
    connection_inserted: bool
    anchor_found: bool
    already_present: bool


@dataclass
class PersistenceSetupResult:
    kind: Literal["driver_and_config_patch", "migrate"]
    config_patch: DatabaseConfigPatch | None = None
    warnings: list[str] = field(default_factory=list)


class BackendTools(ProjectScaffolder, DependencyInstaller, Protocol):
    pass


def patch_database_config(text: str) -> tuple[str, DatabaseConfigPatch]:
    """Point the default connection at mongodb and register its profile.

    Safe to apply repeatedly: the connection block is inserted only when no
    `'mongodb' => [` entry exists yet.
    """
    out, n_default = _DEFAULT_CONN_RE.subn(r"\1'mongodb'\2", text, count=1)
    default_switched = n_default > 0 and out != text

    if _MONGODB_CONN_RE.search(out):
        return out, DatabaseConfigPatch(
            default_switched=default_switched,
            connection_inserted=False,
            anchor_found=bool(_CONNECTIONS_RE.search(out)),
            already_present=True,
        )

    m = _CONNECTIONS_RE.search(out)
    if m is None:
        return out, DatabaseConfigPatch(
            default_switched=default_switched,
            connection_inserted=False,
            anchor_found=False,
            already_present=False,
        )

    indent = m.group("indent") + "    "
    block = "".join(f"{indent}{line}\n" for line in _MONGODB_CONNECTION_LINES)
    line_end = m.end()
    if out[line_end : line_end + 1] == "\n":
        head, tail = out[: line_end + 1], out[line_end + 1 :]
    else:
        head, tail = out[:line_end] + "\n", out[line_end:]
    out = head + block + tail
    return out, DatabaseConfigPatch(
        default_switched=default_switched,
        connection_inserted=True,
        anchor_found=True,
        already_present=False,
    )


def container_write_argv(rel_path: str, text: str) -> list[str]:
    """Command that writes `text` to `rel_path` from inside the backend container.

    Files created by `composer create-project` belong to the container user,
    so the host cannot rewrite them in place.
    """
    payload = base64.b64encode(text.encode("utf-8")).decode("ascii")
    code = (
        f"exit(file_put_contents('{rel_path}', base64_decode('{payload}')) === false"
        " ? 1 : 0);"
    )
    return ["php", "-r", code]


class DocumentStoreSetup:
    kind: Literal["driver_and_config_patch"] = "driver_and_config_patch"

    def apply(self, tools: BackendTools, app_dir: Path) -> PersistenceSetupResult:
        result = PersistenceSetupResult(kind=self.kind)

        logger.info(
            "Installing MongoDB driver for Laravel (%s)...", MONGODB_DRIVER_PACKAGE
        )
        tools.install(BACKEND_SERVICE, ["composer", "require", MONGODB_DRIVER_PACKAGE])

        logger.info("Configuring %s for MongoDB...", DATABASE_CONFIG)
        cfg = app_dir / DATABASE_CONFIG
        if not cfg.is_file():
            msg = f"{DATABASE_CONFIG} not found; add the mongodb connection manually"
            logger.warning(msg)
            result.warnings.append(msg)
            return result

        try:
            original = cfg.read_text(encoding="utf-8")
        except OSError as exc:
            raise WorkspaceError(f"Cannot read {cfg}: {exc}") from exc
        patched, patch = patch_database_config(original)
        if patched != original:
            tools.run_once(BACKEND_SERVICE, container_write_argv(DATABASE_CONFIG, patched))
        result.config_patch = patch

        if not patch.anchor_found and not patch.already_present:
            msg = (
                f"No 'connections' => [ line in {DATABASE_CONFIG}; "
                "the mongodb connection was not registered"
            )
            logger.warning(msg)
            result.warnings.append(msg)
        if not patch.default_switched and not patch.already_present:
            msg = f"Default connection line in {DATABASE_CONFIG} not recognized"
            logger.warning(msg)
            result.warnings.append(msg)

        logger.info(
            "Ensure your Laravel models extend MongoDB\\Laravel\\Eloquent\\Model."
        )
        return result


class RelationalStoreSetup:
    kind: Literal["migrate"] = "migrate"

    def apply(self, tools: BackendTools, app_dir: Path) -> PersistenceSetupResult:
        logger.info("Running migrations to create necessary tables...")
        tools.run_once(BACKEND_SERVICE, ["php", "artisan", "migrate", "--force"])
        return PersistenceSetupResult(kind=self.kind)


PersistenceSetup = DocumentStoreSetup | RelationalStoreSetup


def persistence_setup_for(profile: PersistenceProfile) -> PersistenceSetup:
    if profile.setup_kind == "driver_and_config_patch":
        return DocumentStoreSetup()
    return RelationalStoreSetup()
