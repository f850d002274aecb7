"""External collaborator interfaces.

Public API:
    - BallotProvider, Simplifier, BiasChecker, LocationLookup: Protocols
    - UpstreamError: Collaborator failure type
"""

from voter_card_api.lib.collaborators.protocols import (
    BallotProvider,
    BiasChecker,
    LocationLookup,
    Simplifier,
    UpstreamError,
)

__all__ = [
    "BallotProvider",
    "BiasChecker",
    "LocationLookup",
    "Simplifier",
    "UpstreamError",
]
