"""FastAPI dependency injection for database sessions, admin auth, and clients.

Provides get_async_session, get_current_operator, the require_role factory,
and accessors for the OpenFEC client and legislator directory, plus the
legislator directory builder shared by the app lifespan and the CLI.
"""

from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Annotated, Any

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from elections_api.core.config import Settings, get_settings
from elections_api.core.database import get_session_factory
from elections_api.core.security import decode_token
from elections_api.lib.legislators import LegislatorDirectory
from elections_api.lib.openfec import OpenFecClient

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Operator:
    """Identity carried by an admin bearer token."""

    subject: str
    role: str


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


async def get_current_operator(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Operator:
    """Decode the bearer JWT and return the operator it identifies.

    Raises:
        HTTPException: 401 if the token is missing or invalid.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = decode_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
    except Exception as exc:
        raise credentials_exception from exc

    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or not role or payload.get("type") != "access":
        raise credentials_exception
    return Operator(subject=subject, role=role)


def require_role(*roles: str) -> Callable[..., Any]:
    """Factory that creates a dependency requiring specific operator roles.

    Args:
        *roles: Allowed role names (e.g., "admin").

    Returns:
        A FastAPI dependency function that validates the operator's role.
    """

    async def role_checker(
        operator: Annotated[Operator, Depends(get_current_operator)],
    ) -> Operator:
        if operator.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{operator.role}' does not have access to this resource",
            )
        return operator

    return role_checker


async def get_openfec_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncGenerator[OpenFecClient]:
    """Yield an OpenFEC client built from settings.

    Raises:
        HTTPException: 503 if no API key is configured.
    """
    if not settings.fec_api_key:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="FEC_API_KEY not configured")
    client = OpenFecClient(
        settings.fec_api_key,
        base_url=settings.fec_base_url,
        per_page=settings.fec_per_page,
        timeout=settings.fec_timeout,
    )
    try:
        yield client
    finally:
        await client.close()


def get_legislator_directory(request: Request) -> LegislatorDirectory | None:
    """Return the app-wide legislator directory, if one was started."""
    return getattr(request.app.state, "legislator_directory", None)


def build_legislator_directory(http_client: httpx.AsyncClient, settings: Settings) -> LegislatorDirectory:
    """Build a legislator directory configured from settings.

    The caller owns ``http_client`` and must close it.
    """
    return LegislatorDirectory(
        http_client,
        legislators_url=settings.legislators_url,
        social_url=settings.legislators_social_url or None,
        photo_base_url=settings.legislators_photo_base_url,
        refresh_interval=timedelta(hours=settings.legislators_refresh_hours),
    )
