"""``voter-card-api db``: run Alembic migrations without the alembic CLI."""

from typing import Annotated

import typer
from loguru import logger

db_app = typer.Typer()

ConfigOption = Annotated[str, typer.Option("--config", help="Path to alembic.ini")]


def _alembic(config_path: str):  # noqa: ANN202
    from alembic import command
    from alembic.config import Config

    return command, Config(config_path)


@db_app.command()
def upgrade(
    revision: Annotated[str, typer.Argument(help="Target revision")] = "head",
    config_path: ConfigOption = "alembic.ini",
) -> None:
    """Migrate the schema forward to ``revision``."""
    command, config = _alembic(config_path)
    logger.info("Migrating database up to {}", revision)
    command.upgrade(config, revision)
    logger.info("Database is at {}", revision)


@db_app.command()
def downgrade(
    revision: Annotated[str, typer.Argument(help="Target revision")] = "-1",
    config_path: ConfigOption = "alembic.ini",
) -> None:
    """Migrate the schema back to ``revision`` (one step by default)."""
    command, config = _alembic(config_path)
    logger.info("Migrating database down to {}", revision)
    command.downgrade(config, revision)
    logger.info("Database is at {}", revision)


@db_app.command()
def current(config_path: ConfigOption = "alembic.ini") -> None:
    """Print the revision the database is at."""
    command, config = _alembic(config_path)
    command.current(config, verbose=True)
