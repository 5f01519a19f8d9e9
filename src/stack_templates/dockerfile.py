from __future__ import annotations

from src.stack_templates.registry import PersistenceProfile

BACKEND_DOCKERFILE = "backend/Dockerfile"


def render_backend_dockerfile(profile: PersistenceProfile) -> str:
    extra = "".join(line + "\n" for line in profile.dockerfile_extra)
    return (
        "FROM php:8.3-cli\n"
        "\n"
        "RUN apt-get update && apt-get install -y \\\n"
        "    git curl zip unzip \\\n"
        "    libzip-dev libpq-dev libpng-dev libonig-dev \\\n"
        "    && docker-php-ext-install pdo_mysql zip \\\n"
        + extra
        + "    && apt-get clean && rm -rf /var/lib/apt/lists/*\n"
        "\n"
        "COPY --from=composer:latest /usr/bin/composer /usr/bin/composer\n"
        "\n"
        "WORKDIR /var/www/html\n"
    )
