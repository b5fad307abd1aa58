# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Set FLASK_APP to wsgi.py and DATABASE_URL to a file-backed SQLite URI;
#   with the default in-memory database every command starts from a fresh dataset.
# - Use: python -m flask <group> <command> [options]
#
# - python -m flask system init
#   Idempotent bootstrap: creates tables, seed catalog and the admin account.
# - python -m flask users list
#   List users with role and active status.
# - python -m flask users create --email a@b.c --name "A B" --password secret1 [--username ab] [--role admin]
#   Create a user (prompts if options are omitted).
# - python -m flask catalog list [--category Laptops]
#   List products with price and category.

import click
from flask.cli import with_appcontext

from .extensions import db, get_storage
from .models.auth import ROLES, ROLE_USER
from .seed import seed_admin, seed_catalog
from .services.auth_service import hash_password, PasswordValidationError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables, then seed the catalog and the admin account if missing."""
    click.echo("START Initializing storefront...")
    db.create_all()
    storage = get_storage()

    created = seed_catalog(storage)
    if created:
        click.echo(f"PASS Seeded {created} products")
    else:
        click.echo("PASS Catalog already present")

    if seed_admin(storage):
        click.echo("PASS Created admin account")
    else:
        click.echo("PASS Admin account already present")

    click.echo("DONE")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = get_storage().list_users()
    if not users:
        click.echo("No users found")
        return
    for user in users:
        status = "active" if user.is_active else "inactive"
        click.echo(f"{user.id}  {user.email:<32} {user.username or '-':<16} {user.role:<6} {status}")


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--name', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--username', default=None)
@click.option('--role', type=click.Choice(ROLES), default=ROLE_USER, show_default=True)
@with_appcontext
def create_user_command(email, name, password, username, role):
    """Create a user. The only way to create an admin besides the seeded one."""
    storage = get_storage()
    if storage.get_user_by_email(email) is not None:
        raise click.ClickException(f"Email already registered: {email}")
    if username and storage.get_user_by_username(username) is not None:
        raise click.ClickException(f"Username already taken: {username}")

    try:
        password_hash = hash_password(password)
    except PasswordValidationError as e:
        raise click.ClickException(str(e))

    user = storage.create_user({
        "email": email,
        "name": name,
        "username": username,
        "password_hash": password_hash,
        "role": role,
    })
    click.echo(f"PASS Created {user.role} {user.email} (ID: {user.id})")


@click.group('catalog')
def catalog_group():
    """Catalog inspection commands."""


@catalog_group.command('list')
@click.option('--category', default=None, help='Case-insensitive category name')
@with_appcontext
def list_catalog(category):
    """List products."""
    storage = get_storage()
    products = storage.get_products_by_category(category) if category else storage.get_products()
    for product in products:
        flag = "*" if product.featured else " "
        click.echo(f"{flag} {product.price:>10}  {product.category:<12} {product.name}")
    click.echo(f"{len(products)} product(s)")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
