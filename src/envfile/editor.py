"""Line-preserving editor for dotenv files.

Only assignment lines are interpreted; comments, blank lines and anything
unparseable are carried through untouched so a rewrite never reshuffles a
file the user has edited.
"""

from __future__ import annotations

import io
import logging
import os
import re
import stat
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import dotenv_values

from src.bootstrap.errors import EnvFileMissing, WorkspaceError

logger = logging.getLogger(__name__)

_ASSIGN_RE = re.compile(r"^\s*(?:export\s+)?(?P<key>[A-Za-z_][A-Za-z0-9_.]*)\s*=(?P<value>.*)$")
_COMMENTED_RE = re.compile(r"^\s*#\s*(?P<key>[A-Za-z_][A-Za-z0-9_.]*)\s*=(?P<value>.*)$")


@dataclass
class _Line:
    raw: str
    key: str | None = None
    commented: bool = False


def _active(parsed: Mapping[str, str | None]) -> dict[str, str]:
    # Bare keys without "=" parse to None.
    return {k: v for k, v in parsed.items() if v is not None}


def _classify(raw: str) -> _Line:
    m = _ASSIGN_RE.match(raw)
    if m:
        return _Line(raw=raw, key=m.group("key"))
    m = _COMMENTED_RE.match(raw)
    if m:
        return _Line(raw=raw, key=m.group("key"), commented=True)
    return _Line(raw=raw)


@dataclass
class EnvFile:
    lines: list[_Line] = field(default_factory=list)
    trailing_newline: bool = True

    @classmethod
    def parse(cls, text: str) -> EnvFile:
        normalized = text.replace("\r\n", "\n")
        trailing = normalized.endswith("\n") or not normalized
        body = normalized[:-1] if normalized.endswith("\n") else normalized
        raw_lines = body.split("\n") if body else []
        return cls(lines=[_classify(r) for r in raw_lines], trailing_newline=trailing)

    def values(self) -> dict[str, str]:
        """Active assignments as the application will see them.

        Quoting, inline comments and `${VAR}` references follow dotenv rules.
        """
        return _active(dotenv_values(stream=io.StringIO(self.render())))

    def _find(self, key: str, *, commented: bool) -> int | None:
        for i, line in enumerate(self.lines):
            if line.key == key and line.commented == commented:
                return i
        return None

    def set(self, key: str, value: str) -> bool:
        """Set `key` to `value`; return True if the file text changed.

        Every active assignment of `key` is replaced wholesale. When none
        exists, the first commented-out assignment is re-activated in place,
        and failing that a new line is appended.
        """
        wanted = f"{key}={value}"
        changed = False
        active = [i for i, ln in enumerate(self.lines) if ln.key == key and not ln.commented]
        if active:
            for i in active:
                if self.lines[i].raw != wanted:
                    self.lines[i] = _Line(raw=wanted, key=key)
                    changed = True
            return changed

        idx = self._find(key, commented=True)
        if idx is not None:
            self.lines[idx] = _Line(raw=wanted, key=key)
            return True

        self.lines.append(_Line(raw=wanted, key=key))
        return True

    def apply(self, overrides: Mapping[str, str]) -> list[str]:
        return [k for k, v in overrides.items() if self.set(k, str(v))]

    def render(self) -> str:
        text = "\n".join(line.raw for line in self.lines)
        if self.trailing_newline and self.lines:
            text += "\n"
        return text


def _replace_file(path: Path, text: str) -> None:
    # Same contract as `sed -i`: a new inode through the parent directory, so
    # a file the caller may read but not write can still be rewritten.
    mode = stat.S_IMODE(path.stat().st_mode)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def apply_env_overrides(
    path: Path, overrides: Mapping[str, str], *, missing_ok: bool = False
) -> list[str] | None:
    """Rewrite `overrides` into the env file at `path`.

    Returns the keys whose lines changed, or None when the file is absent and
    `missing_ok` is set.
    """
    if not path.is_file():
        if missing_ok:
            logger.info("%s not found; skipping environment update", path)
            return None
        raise EnvFileMissing(f"Environment file not found: {path}")

    try:
        original = path.read_text(encoding="utf-8")
        env = EnvFile.parse(original)
        changed = env.apply(overrides)
        rendered = env.render()
        if rendered != original:
            _replace_file(path, rendered)
    except OSError as exc:
        raise WorkspaceError(f"Cannot rewrite {path}: {exc}") from exc
    if changed:
        logger.debug("Updated %s: %s", path, ", ".join(changed))
    return changed


def read_env_values(path: Path) -> dict[str, str]:
    if not path.is_file():
        return {}
    return _active(dotenv_values(path, encoding="utf-8"))
