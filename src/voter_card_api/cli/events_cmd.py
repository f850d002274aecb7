"""CLI commands for election event management.

Provides creation, listing, archive/restore, and the passed-event sweep for
operators without going through the admin API.
"""

import asyncio
from datetime import date
from typing import Annotated

import typer

events_app = typer.Typer()


async def _run_with_session(work):  # noqa: ANN001, ANN202
    """Initialize the engine, run ``work(session)``, and dispose the engine."""
    from voter_card_api.core.config import get_settings
    from voter_card_api.core.database import dispose_engine, init_engine_from_settings, session_scope

    settings = get_settings()
    init_engine_from_settings(settings)
    try:
        async with session_scope() as session:
            return await work(session, settings)
    finally:
        await dispose_engine()


@events_app.command("create")
def create(
    state: Annotated[str, typer.Option("--state", help="Two-letter state code")],
    title: Annotated[str, typer.Option("--title", help="Event title")],
    election_date: Annotated[str, typer.Option("--date", help="Election date (YYYY-MM-DD)")],
    event_type: Annotated[
        str,
        typer.Option("--type", help="Event type: primary, general, midterm, special, runoff"),
    ],
    county: Annotated[str | None, typer.Option("--county", help="County name")] = None,
    ballot_id: Annotated[str | None, typer.Option("--ballot-id", help="Linked ballot id")] = None,
    public: Annotated[bool, typer.Option("--public/--private", help="Listing visibility")] = False,
) -> None:
    """Create a new election event."""
    try:
        parsed_date = date.fromisoformat(election_date)
    except ValueError as e:
        typer.echo(f"Error: invalid --date '{election_date}', expected YYYY-MM-DD", err=True)
        raise typer.Exit(code=1) from e
    asyncio.run(_create_impl(state, title, parsed_date, event_type, county, ballot_id, public))


async def _create_impl(
    state: str,
    title: str,
    election_date: date,
    event_type: str,
    county: str | None,
    ballot_id: str | None,
    public: bool,
) -> None:
    """Async implementation of the create command."""
    from voter_card_api.schemas.election_event import ElectionEventCreateRequest
    from voter_card_api.services import election_event_service

    async def work(session, settings):  # noqa: ANN001, ANN202
        request = ElectionEventCreateRequest(
            state=state,
            title=title,
            election_date=election_date,
            event_type=event_type,
            county=county,
            ballot_id=ballot_id,
            visibility="public" if public else "private",
        )
        return await election_event_service.create_event(
            session, request, supported_states=settings.supported_state_list
        )

    try:
        event = await _run_with_session(work)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(f"Created event {event.id}: {event.title} ({event.election_date})")


@events_app.command("list")
def list_events(
    archived: Annotated[bool, typer.Option("--archived", help="List archived events instead")] = False,
) -> None:
    """List election events with their current status."""
    asyncio.run(_list_impl(archived))


async def _list_impl(archived: bool) -> None:
    """Async implementation of the list command."""
    from voter_card_api.services import election_event_service

    async def work(session, settings):  # noqa: ANN001, ANN202, ARG001
        if archived:
            return await election_event_service.list_archived_events(session)
        return await election_event_service.list_all_events(session)

    events = await _run_with_session(work)
    if not events:
        typer.echo("No events found.")
        return
    for event in events:
        typer.echo(
            f"{event.id}  {event.state}  {event.election_date}  {event.status:<8}  {event.visibility:<7}  {event.title}"
        )


@events_app.command("archive")
def archive(event_id: Annotated[str, typer.Argument(help="Event id")]) -> None:
    """Archive an event (hidden from listings, still resolvable)."""
    asyncio.run(_set_archived_impl(event_id, archived=True))


@events_app.command("restore")
def restore(event_id: Annotated[str, typer.Argument(help="Event id")]) -> None:
    """Restore an archived event."""
    asyncio.run(_set_archived_impl(event_id, archived=False))


async def _set_archived_impl(event_id: str, *, archived: bool) -> None:
    """Async implementation of the archive and restore commands."""
    from voter_card_api.services import election_event_service

    operation = election_event_service.archive_event if archived else election_event_service.restore_event

    async def work(session, settings):  # noqa: ANN001, ANN202, ARG001
        return await operation(session, event_id)

    event = await _run_with_session(work)
    if event is None:
        typer.echo(f"Error: event {event_id} not found", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"{'Archived' if archived else 'Restored'} event {event.id}")


@events_app.command("sweep")
def sweep() -> None:
    """Record notifications for events that have passed."""
    asyncio.run(_sweep_impl())


async def _sweep_impl() -> None:
    """Async implementation of the sweep command."""
    from voter_card_api.services import election_event_service

    async def work(session, settings):  # noqa: ANN001, ANN202, ARG001
        return await election_event_service.sweep_passed_events(session)

    created = await _run_with_session(work)
    typer.echo(f"Sweep complete: {created} notification(s) recorded")
