"""Repository protocol interfaces for data access."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from backend.app.models.itinerary import ActivityStats
from backend.app.models.trip import (
    Activity,
    ActivityCreate,
    ActivityPatch,
    Trip,
    TripCreate,
    TripPatch,
)


@dataclass
class AccountRecord:
    """Account data record."""

    account_id: int
    email: str
    display_name: str
    credential_hash: str
    created_at: datetime | None


def normalize_email(email: str) -> str:
    """Normalize email for case-insensitive uniqueness."""
    return email.strip().lower()


class AccountRepository(Protocol):
    """Repository for account operations."""

    async def create_account(
        self, email: str, display_name: str, credential_hash: str
    ) -> AccountRecord:
        """Create a new account.

        Args:
            email: Email address (compared case-insensitively)
            display_name: Display name
            credential_hash: Pre-computed credential hash

        Returns:
            Created account record

        Raises:
            InvalidArgumentError: If the email is already registered
        """
        ...

    async def get_account(self, account_id: int) -> AccountRecord | None:
        """Get account by ID."""
        ...

    async def find_account_by_email(self, email: str) -> AccountRecord | None:
        """Find account by email (case-insensitive)."""
        ...


class TripRepository(Protocol):
    """Repository for trip operations.

    get_trip is deliberately unscoped so the ownership guard can tell a missing
    trip from a trip owned by someone else.
    """

    async def create_trip(self, owner_id: int, data: TripCreate) -> Trip:
        """Create a trip owned by owner_id."""
        ...

    async def get_trip(self, trip_id: int) -> Trip | None:
        """Get trip by ID regardless of owner."""
        ...

    async def list_trips(self, owner_id: int) -> list[Trip]:
        """List an owner's trips, latest start date first."""
        ...

    async def update_trip(self, trip_id: int, patch: TripPatch) -> Trip | None:
        """Apply a partial update.

        Args:
            trip_id: Trip ID
            patch: Fields to change

        Returns:
            Updated trip or None if not found
        """
        ...

    async def delete_trip(self, trip_id: int) -> bool:
        """Delete a trip and all of its activities."""
        ...


class ActivityRepository(Protocol):
    """Repository for activity operations.

    Activity lists are ordered by day_number, then time (nulls last), then id.
    """

    async def create_activity(self, data: ActivityCreate) -> Activity:
        """Create an activity."""
        ...

    async def get_activity(self, activity_id: int) -> Activity | None:
        """Get activity by ID."""
        ...

    async def list_activities(self, trip_id: int) -> list[Activity]:
        """List all activities of a trip."""
        ...

    async def list_activities_for_day(self, trip_id: int, day_number: int) -> list[Activity]:
        """List the activities of a single trip day."""
        ...

    async def update_activity(self, activity_id: int, patch: ActivityPatch) -> Activity | None:
        """Apply a partial update. Returns None if not found."""
        ...

    async def toggle_completed(self, activity_id: int) -> Activity | None:
        """Atomically flip the completed flag. Returns None if not found."""
        ...

    async def delete_activity(self, activity_id: int) -> bool:
        """Delete an activity."""
        ...

    async def get_activity_stats(self, trip_id: int) -> ActivityStats:
        """Aggregate counts and cost over all of a trip's activities."""
        ...


@dataclass
class RetryAfter:
    """Rate limit retry-after information."""

    seconds: int


class RateLimiter(Protocol):
    """Rate limiter interface."""

    async def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Check if quota is available.

        Args:
            key: Rate limit key
            now: Current timestamp

        Returns:
            RetryAfter if over quota, None if allowed
        """
        ...
