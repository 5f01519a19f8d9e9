from __future__ import annotations

from dataclasses import dataclass

from src.stack_templates.compose import (
    BACKEND_PORT,
    FRONTEND_PORT,
    MAILPIT_SMTP_PORT,
    MAILPIT_UI_PORT,
)
from src.stack_templates.registry import PersistenceProfile


@dataclass(frozen=True)
class Endpoint:
    label: str
    service: str
    host_port: int
    url: str
    note: str | None = None

    def describe(self) -> str:
        if self.note:
            return f"{self.url} ({self.note})"
        return self.url


def _first_host_port(mappings: tuple[str, ...]) -> int:
    return int(mappings[0].split(":", 1)[0])


def stack_endpoints(profile: PersistenceProfile) -> list[Endpoint]:
    return [
        Endpoint("Vue Frontend", "frontend", FRONTEND_PORT, f"http://localhost:{FRONTEND_PORT}"),
        Endpoint("Laravel Backend", "backend", BACKEND_PORT, f"http://localhost:{BACKEND_PORT}"),
        Endpoint(
            profile.label,
            profile.db.name,
            _first_host_port(profile.db.ports),
            profile.db_url,
            profile.db_note,
        ),
        Endpoint(
            profile.admin_label,
            profile.admin.name,
            _first_host_port(profile.admin.ports),
            profile.admin_url,
            profile.admin_note,
        ),
        Endpoint(
            "Mailpit",
            "mailpit",
            MAILPIT_UI_PORT,
            f"http://localhost:{MAILPIT_UI_PORT}",
            f"SMTP on port {MAILPIT_SMTP_PORT}",
        ),
    ]


def format_announcement(profile: PersistenceProfile, down_command: str) -> str:
    lines = ["Setup complete!"]
    lines.extend(f"- {e.label}: {e.describe()}" for e in stack_endpoints(profile))
    lines.append(f"To stop services, run: {down_command}")
    return "\n".join(lines) + "\n"
