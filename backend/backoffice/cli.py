# Overview: Flask CLI command groups for bootstrap and reporting.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to backoffice (PowerShell: $env:FLASK_APP="backoffice").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create the records table if it does not exist (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system hash-password
#   Prompt for a password and print the bcrypt hash to use as ADMIN_PASSWORD_HASH.
#
# Reporting:
# - python -m flask reports pnl --period thisMonth
# - python -m flask reports pnl --period custom --start 2024-02-01 --end 2024-02-28
#   Print the profit & loss summary and monthly breakdown (amounts in cents).

import asyncio
import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import reporting_service
from .services.auth_service import hash_password, PasswordValidationError
from .services.cache_service import get_entity_cache
from .services.entity_store import get_entity_store
from .time_utils import parse_iso_date


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db_command():
    """Create missing tables."""
    db.create_all()
    click.echo("Database initialized.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset.')
@with_appcontext
def reset_db_command(yes: bool):
    """Drop and recreate all tables (DEV/TEST only)."""
    if not yes:
        raise click.ClickException("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("Database reset.")


@system_group.command('hash-password')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def hash_password_command(password: str):
    """Print a bcrypt hash for ADMIN_PASSWORD_HASH."""
    try:
        click.echo(hash_password(password))
    except PasswordValidationError as exc:
        raise click.ClickException(str(exc))


@click.group('reports')
def reports_group():
    """Reporting commands."""


@reports_group.command('pnl')
@click.option('--period', default='all', show_default=True,
              type=click.Choice([p.value for p in reporting_service.Period]))
@click.option('--start', default=None, help='Custom range start (YYYY-MM-DD).')
@click.option('--end', default=None, help='Custom range end (YYYY-MM-DD).')
@with_appcontext
def pnl_command(period: str, start: str | None, end: str | None):
    """Profit & loss for a period, as JSON."""
    try:
        start_date = parse_iso_date(start)
        end_date = parse_iso_date(end)
    except ValueError:
        raise click.ClickException("--start and --end must be YYYY-MM-DD dates")

    cache = get_entity_cache()
    if not asyncio.run(cache.load(get_entity_store())):
        raise click.ClickException("Could not load sales from the store")

    report = reporting_service.profit_and_loss(
        cache.sales,
        reporting_service.Period(period),
        start_date,
        end_date,
        tz_name=current_app.config["REPORT_TIMEZONE"],
    )
    click.echo(json.dumps(report, indent=2))


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(reports_group)
