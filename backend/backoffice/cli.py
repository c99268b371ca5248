# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--staff-password "..."]
#   Idempotent bootstrap: creates tables, the default store and the default staff member.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes
#   Delete all sales but keep items, stores and staff.
#
# Inventory inspection:
# - python -m flask items list
#   List live items with price and stock.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Sale, SaleLine
from .services import store_service, staff_service, inventory_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--store-name', default='Main Store', help='Default store name')
@click.option('--store-code', default='MAIN', help='Default store code')
@click.option('--staff-name', default='Admin', help='Default staff member name')
@click.option('--staff-password', default='Password123!', help='Default staff password')
@with_appcontext
def init_system(store_name, store_code, staff_name, staff_password):
    """
    Initialize the back office: schema, default store and default staff member.

    SECURITY: Change the default staff password immediately in production!
    """
    click.echo("START Initializing back office...")

    db.create_all()
    click.echo("PASS Schema ready")

    # 1. Ensure a default store exists
    stores = store_service.list_stores()
    if not stores:
        store = store_service.create_store(name=store_name, code=store_code)
        click.echo(f"PASS Created default store: {store.name} (ID: {store.id}, Code: {store.code})")
    else:
        store = stores[0]
        click.echo(f"PASS Using existing store: {store.name} (ID: {store.id})")

    # 2. Ensure a default staff member exists
    staff = staff_service.list_staff()
    if not staff:
        member = staff_service.create_staff(
            name=staff_name,
            store_id=store.id,
            password=staff_password,
        )
        click.echo(f"PASS Created default staff: {member.name} (ID: {member.id}, Code: {member.code})")
    else:
        click.echo(f"PASS Using existing staff: {staff[0].name} (ID: {staff[0].id})")

    click.echo("DONE Back office initialized")


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


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def wipe_data(yes):
    """
    Clear all sales while preserving items, stores and staff.

    Stock already taken by those sales is NOT given back.
    """
    if not yes:
        click.confirm("WARN This will DELETE all sales. Are you sure?", abort=True)

    lines = db.session.query(SaleLine).delete(synchronize_session=False)
    sales = db.session.query(Sale).delete(synchronize_session=False)
    db.session.commit()

    click.echo(f"PASS Deleted {sales} sales ({lines} lines)")


@click.group('items')
def items_group():
    """Inventory inspection commands."""


@items_group.command('list')
@with_appcontext
def list_items_cli():
    """List live items with price and stock."""
    items = inventory_service.list_items()
    if not items:
        click.echo("No items found.")
        return

    click.echo(f"{'ID':<6} {'CODE':<16} {'NAME':<32} {'PRICE':>10} {'STOCK':>7}")
    for item in items:
        click.echo(f"{item.id:<6} {item.code:<16} {item.name[:32]:<32} {item.price:>10} {item.stock:>7}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(items_group)
