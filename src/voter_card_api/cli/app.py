"""``voter-card-api`` command line entry point."""

from typing import Annotated

import typer

from voter_card_api.core.config import get_settings
from voter_card_api.core.logging import setup_logging

app = typer.Typer(name="voter-card-api", help="Election events and voter card management CLI", no_args_is_help=True)


@app.callback()
def _main_callback() -> None:
    """Configure logging from settings before any subcommand runs."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir, json_logs=settings.log_json)


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Interface to bind")] = "0.0.0.0",  # noqa: S104
    port: Annotated[int, typer.Option("--port", help="Port to bind")] = 8000,
    workers: Annotated[int, typer.Option("--workers", min=1, help="Worker processes")] = 1,
    reload: Annotated[bool, typer.Option("--reload", help="Restart on code changes (development)")] = False,
) -> None:
    """Run the HTTP API under uvicorn."""
    import uvicorn

    uvicorn.run(
        "voter_card_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        workers=None if reload else workers,
        reload=reload,
    )


def _register_subcommands() -> None:
    from voter_card_api.cli.db_cmd import db_app
    from voter_card_api.cli.events_cmd import events_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(events_app, name="events", help="Election event management commands")


_register_subcommands()
