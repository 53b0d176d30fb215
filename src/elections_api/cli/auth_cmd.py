"""CLI commands for issuing admin bearer tokens."""

from typing import Annotated

import typer

auth_app = typer.Typer()


@auth_app.command("token")
def token(
    subject: Annotated[str, typer.Option("--subject", help="Operator name recorded in the token")],
    role: Annotated[str, typer.Option("--role", help="Role claim")] = "admin",
    expires_minutes: Annotated[
        int | None,
        typer.Option("--expires-minutes", help="Lifetime in minutes (defaults to JWT_ACCESS_TOKEN_EXPIRE_MINUTES)"),
    ] = None,
) -> None:
    """Print a signed access token for the admin API."""
    from elections_api.core.config import get_settings
    from elections_api.core.security import create_access_token

    settings = get_settings()
    typer.echo(
        create_access_token(
            subject=subject,
            role=role,
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            expires_minutes=expires_minutes or settings.jwt_access_token_expire_minutes,
        )
    )
