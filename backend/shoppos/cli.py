# Overview: Flask CLI command groups for bootstrap, users, and bulk import.

# backend/shoppos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables (if missing) and a default operator account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email owner@shop.local --password "Password123!"
# - python -m flask users list
#
# Products:
# - python -m flask products import-text inventory.txt [--save]
#   Parse an OCR text dump into draft products; --save inserts them.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import create_user, PasswordValidationError
from .services import import_service
from .services.import_service import ImportTextError

DEFAULT_EMAIL = "owner@shop.local"
DEFAULT_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create all tables and the default operator account (idempotent).

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing shop POS...")
    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(email=DEFAULT_EMAIL).first()
    if existing:
        click.echo(f"PASS Using existing user: {existing.email}")
        return

    create_user(DEFAULT_EMAIL, DEFAULT_PASSWORD)
    click.echo(f"PASS Created user: {DEFAULT_EMAIL} / {DEFAULT_PASSWORD}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(email, password):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(email, password)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.email}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with active status."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found")
        return

    for u in users:
        status = "active" if u.is_active else "inactive"
        click.echo(f"{u.id:>4}  {u.email:<40} {status}")


@click.group('products')
def products_group():
    """Catalog maintenance commands."""


@products_group.command('import-text')
@click.argument('source', type=click.File('r', encoding='utf-8'))
@click.option('--save', is_flag=True, help='Insert the parsed drafts as new products')
@with_appcontext
def import_text_cli(source, save):
    """Parse a text dump (one product per line) into draft products."""
    try:
        drafts = import_service.extract_drafts(source.read())
    except ImportTextError as e:
        click.echo(f"FAIL {str(e)}")
        raise SystemExit(1)

    for d in drafts:
        click.echo(f"{d.name:<40} qty={d.quantity:<6} cost_cents={d.cost_price_cents}")
    click.echo(f"PASS Parsed {len(drafts)} products")

    if not save:
        return

    try:
        saved = import_service.save_drafts(drafts)
    except ImportTextError as e:
        click.echo(f"FAIL {str(e)} (saved {e.details.get('saved', 0)})")
        raise SystemExit(1)

    click.echo(f"PASS Saved {len(saved)} products")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
