"""
Operational commands for the HAPA backend.

    python -m hapa.cli create-admin admin@hapa.mr --name "Admin"
    python -m hapa.cli set-password admin@hapa.mr
    python -m hapa.cli seed
    python -m hapa.cli cleanup-orphans
"""
import json
import sys

import click
from sqlalchemy import select

from hapa.core.config import get_settings
from hapa.core.logging import configure_logging
from hapa.db.session import SessionLocal
from hapa.models.enums import UserRole
from hapa.models.user import User
from hapa.services.auth_service import create_user, overwrite_password
from hapa.services.form_media_service import FormMediaService
from hapa.services.storage import get_storage

EXIT_SUCCESS = 0
EXIT_ERROR = 1


@click.group()
def cli() -> None:
    configure_logging(get_settings())


@cli.command("create-admin")
@click.argument("email")
@click.option("--name", default="", help="Display name")
@click.option(
    "--role",
    type=click.Choice([r.value for r in UserRole]),
    default=UserRole.ADMIN.value,
    help="Back-office role",
)
@click.password_option()
def create_admin(email: str, name: str, role: str, password: str) -> None:
    """Create a staff account."""
    db = SessionLocal()
    try:
        if db.execute(select(User.id).where(User.email == email.lower())).first():
            click.echo(f"User {email} already exists", err=True)
            sys.exit(EXIT_ERROR)
        user = create_user(db, email, password, name=name, role=UserRole(role))
        click.echo(f"Created {user.role} {user.email} ({user.id})")
    finally:
        db.close()


@cli.command("set-password")
@click.argument("email")
@click.password_option()
def set_password(email: str, password: str) -> None:
    """Replace a staff account's password."""
    db = SessionLocal()
    try:
        changed = overwrite_password(db, email, password)
    finally:
        db.close()

    if not changed:
        click.echo(f"No user {email}", err=True)
        sys.exit(EXIT_ERROR)
    click.echo(f"Password updated for {email}")


@cli.command("seed")
def seed_command() -> None:
    """Insert demo categories and posts."""
    from hapa.seed import seed

    db = SessionLocal()
    try:
        click.echo(json.dumps(seed(db)))
    finally:
        db.close()


@cli.command("cleanup-orphans")
def cleanup_orphans() -> None:
    """Delete staging/orphaned form media that never reached a submission."""
    db = SessionLocal()
    try:
        stats = FormMediaService().cleanup_orphaned(db, get_storage())
    finally:
        db.close()

    click.echo(json.dumps(stats, indent=2))
    sys.exit(EXIT_ERROR if stats["failed"] else EXIT_SUCCESS)


if __name__ == "__main__":
    cli()
