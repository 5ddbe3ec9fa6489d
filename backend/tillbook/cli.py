# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/tillbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users set-password admin
#   Change a password (prompts for the new one).
#
# Inspection:
# - python -m flask products list [--low-stock]
# - python -m flask reports revenue

import click
from flask.cli import with_appcontext

from .services import storage_service, products_service, reporting_service
from .services.auth_service import set_password, PasswordValidationError, UserNotFoundError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables and seed the default admin user if none exists."""
    click.echo("START Initializing store database...")
    result = storage_service.initialize()

    if result["seeded_admin"]:
        click.echo("PASS Created default user: admin / admin")
        click.echo("\nSECURITY WARNING:")
        click.echo("   - The default credential is well known")
        click.echo("   - Run `flask users set-password admin` before going live")
    else:
        click.echo("PASS Users already exist, nothing seeded")
    click.echo("DONE")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables (deletes all data)."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    storage_service.reset()
    click.echo("DONE Database reset; default admin re-seeded")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('set-password')
@click.argument('username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def set_password_command(username, password):
    """Change a user's password."""
    try:
        set_password(username, password)
    except UserNotFoundError:
        click.echo(f"FAIL User '{username}' not found")
        raise SystemExit(1)
    except PasswordValidationError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Password updated for '{username}'")


@click.group('products')
def products_group():
    """Catalog inspection commands."""


@products_group.command('list')
@click.option('--low-stock', is_flag=True, help='Only products below the low-stock threshold')
@with_appcontext
def list_products_command(low_stock):
    """List products with stock levels."""
    if low_stock:
        rows = reporting_service.low_stock_products()
    else:
        rows = products_service.list_products()

    if not rows:
        click.echo("No products.")
        return
    for row in rows:
        price = row.get("price")
        price_text = f"{price:>10.2f}" if price is not None else f"{'':>10}"
        click.echo(f"{row['id']:>5}  {row['name']:<40} {price_text}  stock={row['stock']}")


@click.group('reports')
def reports_group():
    """Reporting commands."""


@reports_group.command('revenue')
@with_appcontext
def revenue_command():
    """Print daily, weekly and monthly revenue."""
    overview = reporting_service.revenue_overview()
    for label in ("daily", "weekly", "monthly"):
        click.echo(f"{label:<8} {overview[label]:>12.2f}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
    app.cli.add_command(reports_group)
