# Overview: Flask CLI command groups for bootstrap, user management, scanning and maintenance.

# backend/tourops/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (use `flask db upgrade` where migrations are managed).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --name "Ops Admin" --email admin@tourops.local --password "Password123!" --role admin
#
# Notifications:
# - python -m flask notifications scan [--today 2024-07-01] [--horizon-days 30]
#   Run the upcoming-events scanner once (same as GET /api/cron/notifications).
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
# - python -m flask maintenance cleanup-activity-logs --retention-days 365
# - python -m flask maintenance cleanup-watermarks

import click
from flask.cli import with_appcontext

from .errors import AppError
from .extensions import db
from .models import User
from .models.auth import USER_ROLES
from .services import maintenance_service, scanner_service
from .services.auth_service import PasswordValidationError, create_user
from .time_utils import parse_iso_date


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask users create' to add an admin.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(USER_ROLES), default='staff', show_default=True)
@with_appcontext
def create_user_cli(name, email, password, role):
    """Create a user account."""
    try:
        user = create_user(name=name, email=email, password=password, role=role)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e.message}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        raise SystemExit(1)
    except AppError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{user.role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<30} {'Role':<8} {'Active'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<25} {user.email:<30} {user.role:<8} {active_str}")

    click.echo("="*80 + "\n")


@click.group('notifications')
def notifications_group():
    """Notification commands."""


@notifications_group.command('scan')
@click.option('--today', 'today_str', help='Pretend today is YYYY-MM-DD')
@click.option('--horizon-days', type=int, help='Days ahead to scan (default: UPCOMING_HORIZON_DAYS)')
@with_appcontext
def scan_cli(today_str, horizon_days):
    """Run the upcoming-events scanner once."""
    try:
        today = parse_iso_date(today_str) if today_str else None
    except ValueError:
        raise click.BadParameter("must be YYYY-MM-DD", param_hint="--today")

    try:
        report = scanner_service.scan_upcoming_events(today=today, horizon_days=horizon_days)
    except AppError as e:
        raise click.ClickException(e.message)

    click.echo(f"Scan {report.status}: {report.today.isoformat()} .. {report.horizon_end.isoformat()}")
    for category in scanner_service.CATEGORY_SCANNERS:
        if category in report.failed:
            click.echo(f"  {category:<12} FAILED")
        else:
            click.echo(
                f"  {category:<12} notified={report.notified.get(category, 0)} "
                f"suppressed={report.suppressed.get(category, 0)}"
            )
    if report.status == "failed":
        raise SystemExit(1)


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired and revoked session tokens."""
    deleted = maintenance_service.cleanup_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions.")


@maintenance_group.command('cleanup-activity-logs')
@click.option('--retention-days', type=int, default=365, show_default=True)
@with_appcontext
def cleanup_activity_logs_cli(retention_days):
    """
    Cleanup old activity log entries.

    Default retention: 365 days. Login entries are kept.
    """
    try:
        deleted = maintenance_service.cleanup_activity_logs(retention_days=retention_days)
    except AppError as e:
        raise click.BadParameter(e.message, param_hint="--retention-days")
    click.echo(f"Deleted {deleted} activity log entries older than {retention_days} days.")


@maintenance_group.command('cleanup-watermarks')
@with_appcontext
def cleanup_watermarks_cli():
    """Delete notification watermarks whose target date has passed."""
    deleted = maintenance_service.cleanup_notification_watermarks()
    click.echo(f"Deleted {deleted} past notification watermarks.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(notifications_group)
    app.cli.add_command(maintenance_group)
