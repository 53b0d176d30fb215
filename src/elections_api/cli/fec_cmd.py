"""CLI commands for the FEC filing pipeline.

Provides a one-shot sync, an OpenFEC credential probe, a by-state view of
promotable filings, and promotion of staged filings to candidates.
"""

import asyncio
import uuid
from enum import StrEnum
from typing import Annotated

import typer
from loguru import logger

fec_app = typer.Typer()


class RaceStatus(StrEnum):
    """Race-candidate statuses accepted by ``fec promote --status``."""

    ANNOUNCED = "announced"
    PRIMARY_WINNER = "primary_winner"
    RUNOFF = "runoff"
    WITHDRAWN = "withdrawn"
    WON = "won"
    LOST = "lost"


@fec_app.command("sync")
def sync(
    manual: Annotated[
        bool,
        typer.Option("--manual/--auto", help="Manual runs ignore the scheduled-sync toggle"),
    ] = True,
) -> None:
    """Run one FEC sync and print the outcome."""
    asyncio.run(_sync_impl("manual" if manual else "auto"))


async def _sync_impl(sync_type: str) -> None:
    """Async implementation of the sync command."""
    from elections_api.core.config import get_settings
    from elections_api.core.database import dispose_engine, get_session_factory, init_engine
    from elections_api.services.fec_sync_service import (
        FecSyncConfigError,
        FecSyncTimeoutError,
        SyncAlreadyRunningError,
        run_fec_sync,
    )

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema, echo=False)

    try:
        factory = get_session_factory()
        async with factory() as session:
            try:
                outcome = await run_fec_sync(session, settings, sync_type)
            except (FecSyncConfigError, SyncAlreadyRunningError, FecSyncTimeoutError) as exc:
                typer.echo(f"Sync failed: {exc}", err=True)
                raise typer.Exit(code=1) from exc

        if outcome.disabled or outcome.message:
            typer.echo(outcome.message)
            return
        typer.echo(
            f"Sync {outcome.status}: {', '.join(outcome.states_synced) or 'no states'} | "
            f"{outcome.created} created, {outcome.updated} updated, {outcome.deactivated} deactivated | "
            f"{outcome.api_requests} API requests"
        )
        if outcome.rebuild_triggered:
            typer.echo("Rebuild hook triggered")
        for error in outcome.errors:
            typer.echo(f"  ERROR {error}", err=True)
    finally:
        await dispose_engine()


@fec_app.command("test-connection")
def test_connection() -> None:
    """Check that the configured OpenFEC API key works."""
    asyncio.run(_test_connection_impl())


async def _test_connection_impl() -> None:
    """Async implementation of the test-connection command."""
    from elections_api.core.config import get_settings
    from elections_api.lib.openfec import OpenFecClient

    settings = get_settings()
    if not settings.fec_api_key:
        typer.echo("FEC_API_KEY not configured", err=True)
        raise typer.Exit(code=1)

    async with OpenFecClient(
        settings.fec_api_key,
        base_url=settings.fec_base_url,
        timeout=settings.fec_timeout,
    ) as client:
        result = await client.test_connection(settings.fec_cycle)

    if not result.ok:
        typer.echo(f"Connection failed: {result.error}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Connection OK: {result.count} Senate candidates in cycle {settings.fec_cycle}")


@fec_app.command("filings")
def filings(
    office: Annotated[str | None, typer.Option("--office", help="Office filter: S or H")] = None,
    min_funds: Annotated[float, typer.Option("--min-funds", help="Minimum funds raised")] = 5000.0,
) -> None:
    """List promotable filings grouped by state, soonest primary first."""
    if office is not None and office.upper() not in ("S", "H"):
        typer.echo("--office must be S or H", err=True)
        raise typer.Exit(code=1)
    asyncio.run(_filings_impl(office.upper() if office else None, min_funds))


async def _filings_impl(office: str | None, min_funds: float) -> None:
    """Async implementation of the filings command."""
    from datetime import UTC, datetime

    from elections_api.core.config import get_settings
    from elections_api.core.database import dispose_engine, get_session_factory, init_engine
    from elections_api.services import filing_service

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema, echo=False)

    try:
        factory = get_session_factory()
        async with factory() as session:
            groups = await filing_service.list_filings_by_state(
                session,
                datetime.now(UTC).date(),
                office=office,
                min_funds=min_funds,
            )

        if not groups:
            typer.echo("No promotable filings.")
            return
        for group in groups:
            countdown = f"{group.days_until_primary} days" if group.days_until_primary is not None else "no primary"
            typer.echo(f"{group.state_name} ({group.state_abbr}) | primary {group.primary_date} | {countdown}")
            for filing in group.filings:
                typer.echo(
                    f"  {filing.id}  {filing.first_name} {filing.last_name} ({filing.party}) "
                    f"{filing.office}{filing.district_number or ''}  ${filing.funds_raised:,.0f}"
                )
    finally:
        await dispose_engine()


@fec_app.command("promote")
def promote(
    filing_ids: Annotated[list[str], typer.Argument(help="Filing UUIDs to promote")],
    race_status: Annotated[RaceStatus, typer.Option("--status", help="Race status for the new race candidates")] = (
        RaceStatus.ANNOUNCED
    ),
) -> None:
    """Promote staged filings to candidates with default fields."""
    try:
        parsed = [uuid.UUID(value) for value in filing_ids]
    except ValueError as exc:
        typer.echo(f"Invalid filing id: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    asyncio.run(_promote_impl(parsed, race_status.value))


async def _promote_impl(filing_ids: list[uuid.UUID], race_status: str) -> None:
    """Async implementation of the promote command."""
    import httpx

    from elections_api.core.config import get_settings
    from elections_api.core.database import dispose_engine, get_session_factory, init_engine
    from elections_api.core.dependencies import build_legislator_directory
    from elections_api.services.promotion_service import bulk_promote

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema, echo=False)

    try:
        factory = get_session_factory()
        async with httpx.AsyncClient(timeout=30.0) as legislators_http, factory() as session:
            directory = build_legislator_directory(legislators_http, settings)
            logger.info("Promoting {} filing(s) as {}", len(filing_ids), race_status)
            outcome = await bulk_promote(session, filing_ids, directory, race_status=race_status)

        for result in outcome.promoted:
            typer.echo(f"Promoted {result.filing_id} -> candidate {result.slug} (race {result.race_id})")
        for warning in outcome.warnings:
            typer.echo(f"  WARN  {warning}")
        for error in outcome.errors:
            typer.echo(f"  ERROR {error}", err=True)
        if outcome.errors:
            raise typer.Exit(code=1)
    finally:
        await dispose_engine()
