"""Request context for ownership enforcement."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Request context carrying the caller's account identity.

    Used to scope every trip and activity operation to its owner.
    """

    account_id: int
