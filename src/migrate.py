"""Apply or roll back the database schema.

Usage: `python -m src.migrate [up|down|reset]` (default: up)

- up: upgrade to the latest revision
- down: roll back the last revision
- reset: roll back everything, then upgrade to the latest revision

Exit codes: 0 on success, 1 on an invalid argument, 2 on a migration failure.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from src.core.config import settings
from src.core.logging_setup import configure_logging

log = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[1]
ACTIONS = ("up", "down", "reset")


def alembic_config() -> Config:
    cfg = Config(str(REPO_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(REPO_ROOT / "alembic"))
    # Logging is configured here, not by alembic.ini
    cfg.attributes["configure_logger"] = False
    return cfg


def run_migrations(action: str, cfg: Config | None = None) -> None:
    cfg = cfg or alembic_config()
    if action == "up":
        log.info("Applying migrations...")
        command.upgrade(cfg, "head")
        log.info("Migrations applied successfully")
    elif action == "down":
        log.info("Rolling back the last migration...")
        command.downgrade(cfg, "-1")
        log.info("Last migration rolled back successfully")
    elif action == "reset":
        log.info("Resetting all migrations...")
        command.downgrade(cfg, "base")
        command.upgrade(cfg, "head")
        log.info("All migrations reset and applied successfully")
    else:
        raise ValueError(f"unknown migration action: {action}")


def _parse_args(argv: list[str] | None = None) -> tuple[argparse.Namespace, list[str]]:
    p = argparse.ArgumentParser(description="Manage the APR database schema")
    p.add_argument("action", nargs="?", default=None, help="up | down | reset (default: up)")
    # Tokens after the action are ignored; unknown flags are reported as invalid below
    return p.parse_known_args(argv)


def main(argv: list[str] | None = None) -> int:
    configure_logging(settings.log_level)
    args, extra = _parse_args(argv)

    action = args.action
    if action is None and extra:
        action = extra[0]
    if action is None:
        log.info("No argument provided, defaulting to 'up' migration")
        action = "up"
    if action not in ACTIONS:
        print("Invalid argument. Use 'up', 'down', or 'reset'.")
        return 1

    try:
        run_migrations(action)
    except Exception:
        log.exception(f"Migration '{action}' failed")
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
