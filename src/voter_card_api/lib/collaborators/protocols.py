"""Interfaces of the external collaborators the voter card engine relies on.

Concrete clients live outside this package and are injected at application
startup; the core only depends on these shapes.
"""

from typing import Any, Protocol, runtime_checkable

from voter_card_api.schemas.assist import BiasReport, MeasureSummary


class UpstreamError(Exception):
    """Raised when an external collaborator fails or returns unusable data."""

    def __init__(self, message: str, collaborator: str | None = None):
        super().__init__(message)
        self.collaborator = collaborator


@runtime_checkable
class BallotProvider(Protocol):
    """Ballot content store: measures and candidate races for a location."""

    async def get_ballot(self, state: str, county: str | None = None) -> dict[str, Any] | None: ...


@runtime_checkable
class Simplifier(Protocol):
    """Plain-language rewriting of ballot measure text."""

    async def simplify(self, original_text: str, title: str) -> MeasureSummary: ...


@runtime_checkable
class BiasChecker(Protocol):
    """Framing/balance assessment of measure or candidate text."""

    async def check_bias(self, content: str, kind: str) -> BiasReport: ...


@runtime_checkable
class LocationLookup(Protocol):
    """ZIP code to state/county resolution."""

    async def lookup(self, zip_code: str) -> dict[str, str] | None: ...
