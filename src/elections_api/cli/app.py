"""Typer CLI root application with serve command."""

import typer

from elections_api.core.config import get_settings
from elections_api.core.logging import setup_logging

app = typer.Typer(name="elections-api", help="FEC filing sync and candidate promotion CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "elections_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from elections_api.cli.auth_cmd import auth_app
    from elections_api.cli.db_cmd import db_app
    from elections_api.cli.fec_cmd import fec_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(fec_app, name="fec", help="FEC filing sync and promotion commands")
    app.add_typer(auth_app, name="auth", help="Admin token commands")


_register_subcommands()
