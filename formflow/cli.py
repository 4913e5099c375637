"""CLI tools for FormFlow administration."""

import click

from formflow.db.session import SessionLocal
from formflow.services import auth_service, template_service


@click.group()
def cli():
    """FormFlow CLI tools."""
    pass


@cli.command("seed-templates")
def seed_templates():
    """
    Insert the preset template library.

    Does nothing when presets already exist, so it is safe to run on every deploy.

    Example:
        formflow seed-templates
    """
    db = SessionLocal()
    try:
        added = template_service.seed_presets(db)
        if added:
            click.echo(f"✓ Seeded {added} preset templates")
        else:
            click.echo("Preset templates already exist, nothing to do")
    finally:
        db.close()


@cli.command("create-user")
@click.option("--email", required=True, help="Login email address")
@click.option("--password", required=True, help="Initial password (min 6 characters)")
@click.option("--name", default=None, help="Display name")
def create_user(email: str, password: str, name: str | None):
    """
    Create a form author account.

    Example:
        formflow create-user --email "admin@example.com" --password "s3cret!" --name "Admin"
    """
    db = SessionLocal()
    try:
        user = auth_service.register_user(db, email, password, name)
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    finally:
        db.close()
    click.echo(f"✓ Created user: {user.email}")
    click.echo(f"  ID: {user.id}")


if __name__ == "__main__":
    cli()
