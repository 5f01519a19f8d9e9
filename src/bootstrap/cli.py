from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from src.bootstrap.config import settings_from_env
from src.bootstrap.endpoints import format_announcement
from src.bootstrap.errors import BootstrapError
from src.bootstrap.procedure import run_bootstrap
from src.stack_templates.registry import available_persistence_ids

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devstack-init",
        description=(
            "Initialize a Dockerized Laravel + Vue development stack "
            "(frontend, backend, database, admin UI, Mailpit)."
        ),
    )
    parser.add_argument(
        "--root",
        default=None,
        help="Directory to provision (default: $DEVSTACK_ROOT or the current directory).",
    )
    parser.add_argument(
        "--persistence",
        choices=available_persistence_ids(),
        default=None,
        help="Database backend (default: $DEVSTACK_PERSISTENCE or mongodb).",
    )
    parser.add_argument(
        "--skip-chown",
        action="store_true",
        help="Do not hand container-created files back to the current user.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log commands.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = settings_from_env(
            root=args.root,
            persistence=args.persistence,
            fix_ownership=False if args.skip_chown else None,
            log_level_override="DEBUG" if args.verbose else None,
        )
    except BootstrapError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    logging.basicConfig(level=settings.log_level, format="%(message)s")

    try:
        result = run_bootstrap(settings)
    except BootstrapError as exc:
        logger.error("%s", exc)
        return 1

    sys.stdout.write(format_announcement(result.profile, result.down_command))
    if result.ownership_error:
        return 1
    return 0
