import base64
import re
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

# Ensure the repo root is on sys.path so tests can import the local `src/` package.
ROOT = str(Path(__file__).resolve().parents[1])
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


LARAVEL_ENV_EXAMPLE = """APP_NAME=Laravel
APP_ENV=local
APP_KEY=
APP_DEBUG=true

DB_CONNECTION=sqlite
# DB_HOST=127.0.0.1
# DB_PORT=3306
# DB_DATABASE=laravel
# DB_USERNAME=root
# DB_PASSWORD=

MAIL_MAILER=log
MAIL_HOST=127.0.0.1
MAIL_PORT=2525
"""

LARAVEL_DATABASE_PHP = """<?php

use Illuminate\\Support\\Str;

return [

    'default' => env('DB_CONNECTION', 'sqlite'),

    'connections' => [

        'sqlite' => [
            'driver' => 'sqlite',
        ],

    ],

    'migrations' => [
        'table' => 'migrations',
    ],
];
"""


def _contains(call: tuple[str, ...], fragment: tuple[str, ...]) -> bool:
    n = len(fragment)
    return any(call[i : i + n] == fragment for i in range(len(call) - n + 1))


class FakeRunner:
    """Records every command; simulates selected side effects on the tree."""

    def __init__(self, *, compose_plugin: bool = True) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.compose_plugin = compose_plugin
        self.failures: dict[tuple[str, ...], int] = {}
        self._effects: list[tuple[tuple[str, ...], Callable[[Path, tuple[str, ...]], None]]] = []

    def on(self, fragment: Sequence[str], effect: Callable[[Path, tuple[str, ...]], None]) -> None:
        self._effects.append((tuple(fragment), effect))

    def fail(self, fragment: Sequence[str], exit_code: int = 1) -> None:
        self.failures[tuple(fragment)] = exit_code

    def run(self, argv: Sequence[str], *, cwd: Path, quiet: bool = False) -> int:
        call = tuple(str(a) for a in argv)
        self.calls.append(call)
        if call == ("docker", "compose", "version"):
            return 0 if self.compose_plugin else 1
        for fragment, code in self.failures.items():
            if _contains(call, fragment):
                return code
        for fragment, effect in self._effects:
            if _contains(call, fragment):
                effect(cwd, call)
        return 0

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c != ("docker", "compose", "version")]

    def count(self, fragment: Sequence[str]) -> int:
        frag = tuple(fragment)
        return sum(1 for c in self.calls if _contains(c, frag))


def _laravel_create_project(root: Path, _call: tuple[str, ...]) -> None:
    app = root / "backend" / "app"
    (app / "config").mkdir(parents=True, exist_ok=True)
    (app / "vendor").mkdir(exist_ok=True)
    (app / "composer.json").write_text('{"name": "laravel/laravel"}\n', encoding="utf-8")
    (app / ".env.example").write_text(LARAVEL_ENV_EXAMPLE, encoding="utf-8")
    (app / "config" / "database.php").write_text(LARAVEL_DATABASE_PHP, encoding="utf-8")


def _composer_install(root: Path, _call: tuple[str, ...]) -> None:
    (root / "backend" / "app" / "vendor").mkdir(parents=True, exist_ok=True)


def _vite_create(root: Path, _call: tuple[str, ...]) -> None:
    front = root / "frontend"
    front.mkdir(parents=True, exist_ok=True)
    (front / "package.json").write_text('{"name": "frontend"}\n', encoding="utf-8")


def _npm_install(root: Path, _call: tuple[str, ...]) -> None:
    (root / "frontend" / "node_modules" / "vue").mkdir(parents=True, exist_ok=True)


def _laravel_writes_env(root: Path, _call: tuple[str, ...]) -> None:
    env = LARAVEL_ENV_EXAMPLE.replace("APP_KEY=\n", "APP_KEY=base64:scaffolded\n")
    (root / "backend" / "app" / ".env").write_text(env, encoding="utf-8")


_PHP_WRITE_RE = re.compile(r"file_put_contents\('([^']+)', base64_decode\('([^']*)'\)\)")


def _decode_container_write(call: Sequence[str]) -> tuple[str, str] | None:
    """(relative path, text) of a `php -r file_put_contents(...)` call."""
    if "-r" not in call:
        return None
    m = _PHP_WRITE_RE.search(call[-1])
    if m is None:
        return None
    return m.group(1), base64.b64decode(m.group(2)).decode("utf-8")


def _php_write(root: Path, call: tuple[str, ...]) -> None:
    decoded = _decode_container_write(call)
    if decoded is None:
        return
    target = root / "backend" / "app" / decoded[0]
    # The container runs as root and ignores the host permission bits.
    if target.exists():
        target.chmod(0o644)
    target.write_text(decoded[1], encoding="utf-8")


@pytest.fixture(autouse=True)
def _clear_devstack_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Tests must not pick up the developer's own DEVSTACK_* settings.
    for name in (
        "DEVSTACK_ROOT",
        "DEVSTACK_PERSISTENCE",
        "DEVSTACK_FIX_OWNERSHIP",
        "DEVSTACK_USE_SUDO",
        "DEVSTACK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_runner() -> FakeRunner:
    runner = FakeRunner()
    runner.on(("composer", "create-project"), _laravel_create_project)
    runner.on(("composer", "install"), _composer_install)
    runner.on(("npm", "create"), _vite_create)
    runner.on(("npm", "install"), _npm_install)
    runner.on(("php", "-r"), _php_write)
    return runner


@pytest.fixture
def fake_runner_scaffolds_env(fake_runner: FakeRunner) -> FakeRunner:
    """Like `fake_runner`, but create-project also writes `.env` as Laravel does."""
    fake_runner.on(("composer", "create-project"), _laravel_writes_env)
    return fake_runner


@pytest.fixture
def which_all() -> Callable[[str], str | None]:
    return lambda name: f"/usr/bin/{name}"


@pytest.fixture
def laravel_database_php() -> str:
    return LARAVEL_DATABASE_PHP


@pytest.fixture
def decode_container_write() -> Callable[[Sequence[str]], tuple[str, str] | None]:
    return _decode_container_write
