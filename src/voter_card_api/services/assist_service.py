"""Assist service — isolates external collaborators from core state.

These calls never open a database session; whatever a collaborator does, the
failure surfaces as UpstreamError and decision/card records are untouched.
"""

import re
from typing import Any

from loguru import logger

from voter_card_api.lib.collaborators import BallotProvider, BiasChecker, LocationLookup, Simplifier, UpstreamError
from voter_card_api.schemas.assist import BiasReport, MeasureSummary

ZIP_CODE_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")


async def simplify_measure(simplifier: Simplifier, original_text: str, title: str) -> MeasureSummary:
    """Ask the simplification service for plain-language summaries.

    Raises:
        UpstreamError: If the collaborator raises or returns malformed data.
    """
    try:
        summary = await simplifier.simplify(original_text, title)
        return MeasureSummary.model_validate(summary, from_attributes=True)
    except UpstreamError:
        raise
    except Exception as exc:
        logger.warning("Simplification failed for measure '{}': {}", title, exc)
        msg = "Text simplification service failed."
        raise UpstreamError(msg, collaborator="simplifier") from exc


async def check_bias(checker: BiasChecker, content: str, kind: str) -> BiasReport:
    """Ask the bias-check service to assess content.

    Raises:
        UpstreamError: If the collaborator raises or returns malformed data.
    """
    try:
        report = await checker.check_bias(content, kind)
        return BiasReport.model_validate(report, from_attributes=True)
    except UpstreamError:
        raise
    except Exception as exc:
        logger.warning("Bias check failed for {} content: {}", kind, exc)
        msg = "Bias check service failed."
        raise UpstreamError(msg, collaborator="bias_checker") from exc


async def fetch_ballot(provider: BallotProvider, state: str, county: str | None = None) -> dict[str, Any] | None:
    """Fetch ballot content as an opaque document.

    Returns:
        The ballot document, or None if the provider has no ballot for the location.

    Raises:
        UpstreamError: If the provider fails.
    """
    try:
        return await provider.get_ballot(state.upper(), county)
    except UpstreamError:
        raise
    except Exception as exc:
        logger.warning("Ballot provider failed for {}/{}: {}", state, county, exc)
        msg = "Ballot content provider failed."
        raise UpstreamError(msg, collaborator="ballot_provider") from exc


async def lookup_location(lookup: LocationLookup, zip_code: str) -> dict[str, str] | None:
    """Resolve a ZIP code to ``{"state": ..., "county": ...}``.

    Returns:
        The location, or None if the ZIP code is unknown.

    Raises:
        ValueError: If ``zip_code`` is not a 5-digit (or ZIP+4) code.
        UpstreamError: If the lookup fails.
    """
    if not ZIP_CODE_PATTERN.match(zip_code):
        msg = "Please enter a valid ZIP code"
        raise ValueError(msg)
    try:
        return await lookup.lookup(zip_code[:5])
    except UpstreamError:
        raise
    except Exception as exc:
        logger.warning("Location lookup failed for {}: {}", zip_code, exc)
        msg = "Location lookup failed."
        raise UpstreamError(msg, collaborator="location_lookup") from exc
