"""Tests for the admin CLI."""
from click.testing import CliRunner
from sqlalchemy.orm import Session

from formflow.cli import cli
from formflow.db.models import Template, User


def test_seed_templates_command(db: Session):
    runner = CliRunner()

    result = runner.invoke(cli, ["seed-templates"])
    assert result.exit_code == 0
    assert "Seeded 6 preset templates" in result.output

    result = runner.invoke(cli, ["seed-templates"])
    assert result.exit_code == 0
    assert "already exist" in result.output
    assert db.query(Template).count() == 6


def test_create_user_command(db: Session):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["create-user", "--email", "Admin@Example.com", "--password", "s3cret!", "--name", "Admin"],
    )
    assert result.exit_code == 0
    assert "Created user: admin@example.com" in result.output
    assert db.query(User).filter(User.email == "admin@example.com").count() == 1


def test_create_user_rejects_short_password(db: Session):
    result = CliRunner().invoke(cli, ["create-user", "--email", "a@example.com", "--password", "123"])
    assert result.exit_code != 0
    assert "Password must be at least 6 characters" in result.output
