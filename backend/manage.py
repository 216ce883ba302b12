"""Management helpers for the database and the stats cache.

Wraps Flask-Migrate so migrations can be applied without the Flask CLI, and
exposes small operator commands for seeding users and pre-filling the daily
bucket cache.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click

# Ensure models are imported so Flask-Migrate sees them
import models  # noqa: F401
import structlog
from app import app
from day_utils import target_day as calc_target_day
from flask_migrate import upgrade as flask_migrate_upgrade  # type: ignore[import]
from repositories import users_repo
from security import ApiError, validate_target_day
from services import stats_service
from services.common import utcnow

logger = structlog.get_logger("voidtrack.manage")
MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


@click.group()
def cli():
    """Manage the voidtrack database."""


@cli.command("upgrade")
@click.option("--revision", default="head", help="Target revision (default: head)")
def upgrade_command(revision: str):
    """Apply migrations up to the selected revision."""

    if not MIGRATIONS_DIR.exists():
        raise click.ClickException("Migrations directory missing.")

    with app.app_context():
        flask_migrate_upgrade(directory=str(MIGRATIONS_DIR), revision=revision)
    click.echo(f"Database upgraded to revision {revision}.")


@cli.command("create-user")
@click.option("--nickname", required=True, help="Display name of the new user.")
def create_user_command(nickname: str) -> None:
    """Insert a user and print its id."""

    nickname = nickname.strip()
    if not nickname:
        raise click.ClickException("Nickname must not be empty.")

    with app.app_context():
        user_id = users_repo.create_user(nickname)
    logger.info("user.created", user_id=user_id)
    click.echo(f"Created user '{nickname}' (id={user_id}).")


@cli.command("warm-stats")
@click.option(
    "--target-day",
    default=None,
    help="Tracking day in YYYY-MM-DD format (defaults to the current one).",
)
def warm_stats_command(target_day: Optional[str]) -> None:
    """Fill the bucket cache for every elapsed bucket of a tracking day."""

    now = utcnow()
    try:
        day = validate_target_day(target_day or calc_target_day(now))
    except ApiError as exc:
        raise click.ClickException(exc.message) from exc

    with app.app_context():
        try:
            buckets = stats_service.get_daily_buckets(day, now)
        except ApiError as exc:
            raise click.ClickException(exc.message) from exc

    summary = {
        "target_day": day,
        "buckets": len(buckets),
        "max_count": max((count for _, count in buckets), default=0),
    }
    logger.info("stats.warm", **summary)
    click.echo(json.dumps(summary))


if __name__ == "__main__":
    cli()
