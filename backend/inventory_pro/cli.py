# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/inventory_pro/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--demo]
#   Idempotent bootstrap: creates missing data files and the default administrator.
# - python -m flask system reset-data --yes
#   DEV/TEST only: reset every collection to its defaults (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --username jane --name "Jane Doe" --role Cashier --pin 4321
#
# Inventory:
# - python -m flask inventory list [--popular]
# - python -m flask inventory low-stock
#
# Stats:
# - python -m flask stats show
# - python -m flask stats reset --yes
#   Zero todaySales/todayRefunds (start of a business day).
#
# Activity log:
# - python -m flask logs list [--category sales] [--user-id 1] [--limit 50]
#
# Permissions:
# - python -m flask perms list [--role Stocker] [--category INVENTORY]

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import get_storage, get_activity_log
from .models.auth import ROLES, ROLE_SYSTEM
from .permissions import PERMISSION_DEFINITIONS, get_permissions_by_category, get_role_permissions
from .services import inventory_service, stats_service, user_service
from .services.activity_log_service import LOG_ACTIONS, ActivityLogRepository, log_system_activity
from .validation import ValidationError, ConflictError

DEMO_ITEMS = [
    {"name": "Whole Milk", "sku": "DAIRY-001", "category": "Dairy", "unit": "carton",
     "price": 3.49, "priceUnit": "each", "stock": 24, "threshold": 6},
    {"name": "Sourdough Bread", "sku": "BAKE-001", "category": "Bakery", "unit": "loaf",
     "price": 5.25, "priceUnit": "each", "stock": 8, "threshold": 10},
    {"name": "Bananas", "sku": "PROD-001", "category": "Produce", "unit": "lb",
     "price": 0.69, "priceUnit": "per lb", "stock": 40, "threshold": 15},
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--demo', is_flag=True, help='Also create a few demo inventory items')
@with_appcontext
def init_system(demo):
    """
    Initialize the data directory.

    Creates:
    - Every missing collection file with its default content
    - Default administrator (admin / PIN 1234) when no users exist
    - Demo inventory items with --demo (skipped when the SKU exists)

    SECURITY: Change the administrator PIN immediately in production!
    """
    storage = get_storage()
    click.echo(f"START Initializing data directory {storage.data_dir}...")

    created = storage.ensure_data_files()
    if created:
        click.echo(f"PASS Created data files: {', '.join(created)}")
    else:
        click.echo("PASS All data files present")

    admin = user_service.seed_default_admin(storage, rounds=current_app.config["PIN_HASH_ROUNDS"])
    if admin:
        click.echo(f"PASS Created default administrator: {admin.username} (PIN 1234)")
    else:
        click.echo("PASS Users already exist; no default administrator created")

    if demo:
        added = 0
        for payload in DEMO_ITEMS:
            if inventory_service.find_by_sku(storage, payload["sku"]):
                continue
            inventory_service.create_item(storage, payload, activity_log=get_activity_log())
            added += 1
        click.echo(f"PASS Added {added} demo inventory items")

    log_system_activity(get_activity_log(), LOG_ACTIONS["SYSTEM"]["STARTUP"], "System startup: data initialized")
    click.echo("\nDONE System initialized")


@system_group.command('reset-data')
@click.option('--yes', is_flag=True, help='Confirm data reset')
@with_appcontext
def reset_data(yes):
    """DEV/TEST only: reset every collection to its default content."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return

    storage = get_storage()
    storage.clear()
    get_activity_log().reload()
    click.echo(f"PASS Reset all collections in {storage.data_dir}")


# -- USERS --

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users_cli():
    """List all users with role and status."""
    users = user_service.list_users(get_storage())
    if not users:
        click.echo("No users found")
        return

    click.echo(f"{'ID':<5} {'Username':<20} {'Name':<25} {'Role':<15} {'Status'}")
    click.echo("-" * 80)
    for user in users:
        click.echo(f"{user.id:<5} {user.username:<20} {user.name:<25} {user.role:<15} {user.status}")
    click.echo(f"\n Total: {len(users)} users")


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--name', prompt=True, help='Display name')
@click.option('--role', type=click.Choice(ROLES), prompt=True, help='Role')
@click.option('--pin', prompt=True, hide_input=True, confirmation_prompt=True, help='4-digit PIN')
@with_appcontext
def create_user_cli(username, name, role, pin):
    """Create a user (prompts if options are omitted)."""
    try:
        user = user_service.create_user(
            get_storage(),
            {"username": username, "name": name, "role": role, "pin": pin},
            activity_log=get_activity_log(),
            rounds=current_app.config["PIN_HASH_ROUNDS"],
            session_max_age=current_app.config["SESSION_MAX_AGE"],
        )
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        return
    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{user.role}'")
    click.echo("SECURITY PIN securely hashed with bcrypt")


# -- INVENTORY --

@click.group('inventory')
def inventory_group():
    """Inventory inspection commands."""


def _echo_items(items):
    click.echo(f"{'ID':<5} {'SKU':<15} {'Name':<30} {'Stock':>8} {'Threshold':>10} {'Price':>10}  {'Status'}")
    click.echo("-" * 95)
    for item in items:
        click.echo(
            f"{item.id:<5} {item.sku:<15} {item.name:<30} {item.stock:>8} "
            f"{item.threshold:>10} {item.price:>10.2f}  {item.status}"
        )
    click.echo(f"\n Total: {len(items)} items")


@inventory_group.command('list')
@click.option('--popular', is_flag=True, help='Order by units sold (most popular first)')
@with_appcontext
def list_inventory_cli(popular):
    """List inventory items."""
    storage = get_storage()
    if popular:
        items = inventory_service.list_items_by_popularity(storage)
    else:
        items = inventory_service.list_items(storage)
    _echo_items(items)


@inventory_group.command('low-stock')
@with_appcontext
def low_stock_cli():
    """List items below their reorder threshold."""
    items = inventory_service.list_low_stock_items(get_storage())
    if not items:
        click.echo("PASS No items below threshold")
        return
    _echo_items(items)


# -- STATS --

@click.group('stats')
def stats_group():
    """Dashboard statistics."""


@stats_group.command('show')
@click.option('--json', 'as_json', is_flag=True, help='Print raw JSON')
@with_appcontext
def show_stats(as_json):
    """Show persisted counters and derived metrics."""
    snapshot = stats_service.get_stats(get_storage()).to_dict()
    if as_json:
        click.echo(json.dumps(snapshot, indent=2))
        return
    for key, value in snapshot.items():
        click.echo(f"{key:<22} {value}")


@stats_group.command('reset')
@click.option('--yes', is_flag=True, help='Confirm counter reset')
@with_appcontext
def reset_stats(yes):
    """Zero todaySales and todayRefunds."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    if stats_service.reset_daily_counters(get_storage()) is None:
        click.echo("FAIL Could not write stats.json")
        return
    click.echo("PASS Daily counters reset")


# -- ACTIVITY LOG --

@click.group('logs')
def logs_group():
    """Activity log inspection."""


@logs_group.command('list')
@click.option('--category', type=click.Choice(ActivityLogRepository.visible_categories(), case_sensitive=False),
              help='Filter by category')
@click.option('--user-id', type=int, help='Filter by user ID')
@click.option('--limit', type=int, default=50, show_default=True, help='Maximum entries to show')
@with_appcontext
def list_logs(category, user_id, limit):
    """List visible activity log entries, newest first."""
    entries = get_activity_log().list_visible(
        category=category.lower() if category else None,
        user_id=user_id,
    )
    if not entries:
        click.echo("No log entries found")
        return

    for entry in entries[:limit]:
        click.echo(f"{entry.timestamp}  [{entry.category}] {entry.username}: {entry.action}")
        if entry.details:
            click.echo(f"    {entry.details}")
    click.echo(f"\n Showing {min(limit, len(entries))} of {len(entries)} entries")


# -- PERMISSIONS --

@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', type=click.Choice(ROLES + (ROLE_SYSTEM,)), help='Filter by role')
@click.option('--category', help='Filter by category')
@with_appcontext
def list_permissions_cli(role, category):
    """List all permissions, optionally filtered by role or category."""
    perms = get_permissions_by_category(category.upper()) if category else PERMISSION_DEFINITIONS
    if role:
        granted = get_role_permissions(role)
        perms = [p for p in perms if p[0] in granted]
        click.echo(f"Permissions for role: {role}")

    click.echo(f"{'Code':<25} {'Name':<25} {'Category'}")
    click.echo("-" * 65)
    for code, name, _description, perm_category in perms:
        click.echo(f"{code:<25} {name:<25} {perm_category}")
    click.echo(f"\n Total: {len(perms)} permissions")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(inventory_group)
    app.cli.add_command(stats_group)
    app.cli.add_command(logs_group)
    app.cli.add_command(perms_group)
