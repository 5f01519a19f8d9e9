from __future__ import annotations

from src.stack_templates.registry import PersistenceProfile, ServiceBlock

COMPOSE_FILENAME = "docker-compose.yml"

FRONTEND_PORT = 8080
BACKEND_PORT = 8000
MAILPIT_UI_PORT = 8025
MAILPIT_SMTP_PORT = 1025

_FRONTEND_BLOCK = (
    "  # Frontend service (Vue 3 + Node.js)\n"
    "  frontend:\n"
    "    image: node:latest\n"
    "    working_dir: /app\n"
    "    volumes:\n"
    "      - ./frontend:/app\n"
    "    ports:\n"
    f'      - "{FRONTEND_PORT}:{FRONTEND_PORT}"\n'
    f"    # Explicitly run dev server on port {FRONTEND_PORT}\n"
    '    command: ["npm", "run", "dev", "--", "--host", "0.0.0.0", '
    f'"--port", "{FRONTEND_PORT}"]\n'
    "    depends_on:\n"
    "      - backend\n"
)

_MAILPIT_BLOCK = (
    "  # Mailpit service (SMTP mail catcher)\n"
    "  mailpit:\n"
    "    image: axllent/mailpit:latest\n"
    "    ports:\n"
    f'      - "{MAILPIT_UI_PORT}:{MAILPIT_UI_PORT}"\n'
    f'      - "{MAILPIT_SMTP_PORT}:{MAILPIT_SMTP_PORT}"\n'
)


def _list(key: str, items: tuple[str, ...], *, quoted: bool = False) -> str:
    if not items:
        return ""
    fmt = '      - "{}"\n' if quoted else "      - {}\n"
    return f"    {key}:\n" + "".join(fmt.format(i) for i in items)


def _backend_block(profile: PersistenceProfile) -> str:
    env = (
        f"APP_PORT={BACKEND_PORT}",
        f"DB_CONNECTION={profile.profile_id}",
        f"DB_HOST={profile.db.name}",
        *profile.backend_env_extra,
        "DB_DATABASE=laravel",
        "DB_USERNAME=root",
        "DB_PASSWORD=root",
        "MAIL_MAILER=smtp",
        "MAIL_HOST=mailpit",
        f"MAIL_PORT={MAILPIT_SMTP_PORT}",
        "MAIL_USERNAME=null",
        "MAIL_PASSWORD=null",
        "MAIL_ENCRYPTION=null",
    )
    return (
        "  # Backend service (Laravel 10 with PHP 8.3)\n"
        "  backend:\n"
        "    build:\n"
        "      context: ./backend\n"
        "      dockerfile: Dockerfile\n"
        "    working_dir: /var/www/html\n"
        + _list("volumes", ("./backend/app:/var/www/html",))
        + _list("ports", (f"{BACKEND_PORT}:{BACKEND_PORT}",), quoted=True)
        + _list("environment", env)
        + _list("depends_on", (profile.db.name,))
        + '    command: ["php", "artisan", "serve", "--host=0.0.0.0", '
        f'"--port={BACKEND_PORT}"]\n'
    )


def render_service_block(svc: ServiceBlock) -> str:
    ports = _list("ports", svc.ports, quoted=True)
    return (
        f"  # {svc.comment}\n"
        f"  {svc.name}:\n"
        f"    image: {svc.image}\n"
        + _list("depends_on", svc.depends_on)
        + ("" if svc.ports_last else ports)
        + _list("volumes", svc.volumes)
        + _list("environment", svc.environment)
        + (ports if svc.ports_last else "")
    )


def render_compose_yml(profile: PersistenceProfile) -> str:
    blocks = [
        _FRONTEND_BLOCK,
        _backend_block(profile),
        render_service_block(profile.db),
        render_service_block(profile.admin),
        _MAILPIT_BLOCK,
    ]
    return (
        'version: "3.9"\n'
        "\n"
        "services:\n"
        + "\n".join(blocks)
        + "\n"
        "volumes:\n"
        f"  {profile.volume_name}:\n"
    )


def _host_ports(mappings: tuple[str, ...]) -> tuple[int, ...]:
    return tuple(int(m.split(":", 1)[0]) for m in mappings)


def declared_host_ports(profile: PersistenceProfile) -> dict[str, tuple[int, ...]]:
    """Published host ports per service, as written by `render_compose_yml`."""
    return {
        "frontend": (FRONTEND_PORT,),
        "backend": (BACKEND_PORT,),
        profile.db.name: _host_ports(profile.db.ports),
        profile.admin.name: _host_ports(profile.admin.ports),
        "mailpit": (MAILPIT_UI_PORT, MAILPIT_SMTP_PORT),
    }
