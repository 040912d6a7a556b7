"""CLI tools for form-builder administration."""

import click

from formbuilder.core.exceptions import FormBuilderError
from formbuilder.db.session import SessionLocal
from formbuilder.services import auth_service, form_service, validation_service


@click.group()
def cli():
    """Form builder CLI tools."""
    pass


@cli.command()
@click.option("--owner-id", type=int, default=None, help="Only expire forms of this admin")
def expire_forms(owner_id: int | None):
    """
    Deactivate every form whose end date has passed.

    Example:
        python -m formbuilder.cli expire-forms
    """
    db = SessionLocal()
    try:
        count = form_service.expire_forms(db, owner_id=owner_id)
        click.echo(f"✓ Expired {count} form(s)")
    finally:
        db.close()


@cli.command()
def seed_validation_types():
    """Insert the built-in validation catalog (required, email, phone, numeric)."""
    db = SessionLocal()
    try:
        added = validation_service.seed_validation_types(db)
        click.echo(f"✓ Added {added} validation type(s)")
    finally:
        db.close()


@cli.command()
@click.option("--name", required=True, help="Display name")
@click.option("--email", required=True, help="Login email")
@click.password_option(help="Login password")
def create_admin(name: str, email: str, password: str):
    """Create an administrator account."""
    db = SessionLocal()
    try:
        admin = auth_service.register_admin(db, name, email, password)
        click.echo(f"✓ Created admin {admin.email} (id {admin.id})")
    except FormBuilderError as e:
        raise click.ClickException(e.message) from e
    finally:
        db.close()


if __name__ == "__main__":
    cli()
