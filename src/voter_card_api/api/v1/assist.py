"""Endpoints backed by external collaborators.

POST /assist/simplify — plain-language measure summaries
POST /assist/check-bias — framing assessment for measure or candidate text
GET /assist/location/{zip_code} — ZIP code to state/county
GET /assist/ballot/{state} — ballot content for a location

Collaborators are attached to ``app.state`` at startup. None of these
endpoints reads or writes decision or card records.
"""

from collections.abc import Callable
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from voter_card_api.lib.collaborators import BallotProvider, BiasChecker, LocationLookup, Simplifier, UpstreamError
from voter_card_api.schemas.assist import BiasCheckRequest, BiasReport, MeasureSummary, SimplifyRequest
from voter_card_api.services import assist_service

assist_router = APIRouter(prefix="/assist", tags=["assist"])

_UPSTREAM_DETAIL = "The assistance service is temporarily unavailable. Please retry later."


def _collaborator(name: str) -> Callable[[Request], Any]:
    """Build a dependency returning ``app.state.<name>``, or 503 if unset."""

    def dependency(request: Request) -> Any:
        collaborator = getattr(request.app.state, name, None)
        if collaborator is None:
            raise HTTPException(status_code=503, detail=f"{name.replace('_', ' ').capitalize()} is not configured.")
        return collaborator

    return dependency


@assist_router.post("/simplify", response_model=MeasureSummary)
async def simplify_measure(
    request: SimplifyRequest,
    simplifier: Annotated[Simplifier, Depends(_collaborator("simplifier"))],
) -> MeasureSummary:
    """Summarize ballot measure text in plain language."""
    try:
        return await assist_service.simplify_measure(simplifier, request.original_text, request.title)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=_UPSTREAM_DETAIL) from e


@assist_router.post("/check-bias", response_model=BiasReport)
async def check_bias(
    request: BiasCheckRequest,
    checker: Annotated[BiasChecker, Depends(_collaborator("bias_checker"))],
) -> BiasReport:
    """Assess measure or candidate text for one-sided framing."""
    try:
        return await assist_service.check_bias(checker, request.content, request.kind)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=_UPSTREAM_DETAIL) from e


@assist_router.get("/location/{zip_code}")
async def lookup_location(
    zip_code: str,
    lookup: Annotated[LocationLookup, Depends(_collaborator("location_lookup"))],
) -> dict[str, str]:
    """Resolve a ZIP code to its state and county."""
    try:
        location = await assist_service.lookup_location(lookup, zip_code)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=_UPSTREAM_DETAIL) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if location is None:
        raise HTTPException(status_code=404, detail="ZIP code not found.")
    return location


@assist_router.get("/ballot/{state}")
async def get_ballot(
    state: str,
    provider: Annotated[BallotProvider, Depends(_collaborator("ballot_provider"))],
    county: str | None = Query(default=None, description="County name"),
) -> dict[str, Any]:
    """Fetch ballot content for a state and optional county."""
    try:
        ballot = await assist_service.fetch_ballot(provider, state, county)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=_UPSTREAM_DETAIL) from e
    if ballot is None:
        raise HTTPException(status_code=404, detail="No ballot available for this location.")
    return ballot
