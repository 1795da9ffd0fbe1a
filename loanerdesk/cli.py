"""
Custom Flask CLI commands.

These commands are registered with the app via ``register_commands()``
in the application factory. Run them with ``flask <command_name>``.

Usage::

    flask db-check          # Verify database connectivity and schema
    flask seed-schools      # Insert the district's default schools
    flask create-user --username admin --email it@example.org --admin
"""

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import inspect
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

from loanerdesk.errors import LoanerDeskError
from loanerdesk.extensions import db

EXPECTED_TABLES = (
    "schools",
    "devices",
    "device_logs",
    "repair_tickets",
    "users",
    "sessions",
    "audit_log",
)


@click.command("db-check")
@with_appcontext
def db_check_command():
    """
    Verify database connectivity and confirm expected tables exist.

    Tests the connection string from the app config, runs a simple
    query, and lists the application tables it finds.  Useful for
    confirming ``DATABASE_URL`` is right and ``flask db upgrade`` has
    been run.
    """
    click.echo("=" * 60)
    click.echo("  LoanerDesk: Database Connectivity Check")
    click.echo("=" * 60)

    # Show the connection string with any password masked.
    db_uri = make_url(current_app.config["SQLALCHEMY_DATABASE_URI"])
    click.echo(f"\n  Connection string: {db_uri.render_as_string(hide_password=True)}\n")

    # -- Step 1: Basic connectivity ----------------------------------------
    click.echo("[1/2] Testing connection...")
    try:
        result = db.session.execute(db.text("SELECT 1 AS connected"))
        row = result.fetchone()
        if row and row[0] == 1:
            click.secho("      ✓ Connected successfully.", fg="green")
        else:
            click.secho("      ✗ Unexpected result from test query.", fg="red")
            return
    except SQLAlchemyError as exc:
        click.secho(f"      ✗ Connection failed: {exc}", fg="red")
        click.echo("\n  Troubleshooting tips:")
        click.echo("    - Does DATABASE_URL point at the right server and database?")
        click.echo("    - Is the database server running and reachable?")
        return

    # -- Step 2: Tables ----------------------------------------------------
    click.echo("[2/2] Checking tables...\n")
    existing = set(inspect(db.engine).get_table_names())
    missing = [name for name in EXPECTED_TABLES if name not in existing]
    for name in EXPECTED_TABLES:
        mark = "✓" if name in existing else "✗"
        click.echo(f"      {mark} {name}")

    if missing:
        click.secho(
            f"\n      Missing {len(missing)} table(s). Run: flask db upgrade",
            fg="red",
        )
        return

    click.echo("\n" + "=" * 60)
    click.secho("  All checks passed. Database is ready.", fg="green", bold=True)
    click.echo("=" * 60)


@click.command("seed-schools")
@with_appcontext
def seed_schools_command():
    """Insert the district's default schools (existing rows are kept)."""
    from loanerdesk.services import school_service

    created = school_service.seed_default_schools()
    click.echo(f"Created {created} school(s).")


@click.command("create-user")
@click.option("--username", required=True, help="Login name.")
@click.option("--email", required=True, help="Contact email address.")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Password (prompted when omitted).",
)
@click.option("--admin", "is_admin", is_flag=True, help="Grant admin access.")
@with_appcontext
def create_user_command(username, email, password, is_admin):
    """Create a user account (the first admin is created this way)."""
    from loanerdesk.services import user_service

    try:
        user = user_service.create_user(username, email, password, is_admin=is_admin)
    except LoanerDeskError as exc:
        raise click.ClickException(exc.message) from exc
    click.secho(
        f"Created {'admin' if user.is_admin else 'user'} {user.username} (id {user.id}).",
        fg="green",
    )


def register_commands(app):
    """Register all custom CLI commands with the Flask application."""
    app.cli.add_command(db_check_command)
    app.cli.add_command(seed_schools_command)
    app.cli.add_command(create_user_command)
