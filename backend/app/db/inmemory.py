"""In-memory implementations of repository interfaces."""

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from backend.app.db.repositories import AccountRecord, RetryAfter, normalize_email
from backend.app.errors import InvalidArgumentError
from backend.app.itinerary.partition import compute_activity_stats
from backend.app.models.itinerary import ActivityStats
from backend.app.models.trip import (
    Activity,
    ActivityCreate,
    ActivityPatch,
    Trip,
    TripCreate,
    TripPatch,
)


def _activity_sort_key(activity: Activity) -> tuple[int, bool, str, int]:
    # day_number, then time with nulls last, then id
    return (activity.day_number, activity.time is None, activity.time or "", activity.id)


@dataclass
class InMemoryRecordStore:
    """Shared tables for the in-memory repositories."""

    accounts: dict[int, AccountRecord] = field(default_factory=dict)
    trips: dict[int, Trip] = field(default_factory=dict)
    activities: dict[int, Activity] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def next_id(self) -> int:
        """Allocate a new identity."""
        return next(self._ids)


class InMemoryAccountRepository:
    """In-memory implementation of AccountRepository."""

    def __init__(self, store: InMemoryRecordStore) -> None:
        self._store = store

    async def create_account(
        self, email: str, display_name: str, credential_hash: str
    ) -> AccountRecord:
        """Create a new account."""
        normalized = normalize_email(email)
        if await self.find_account_by_email(normalized) is not None:
            raise InvalidArgumentError("Email already registered")

        record = AccountRecord(
            account_id=self._store.next_id(),
            email=normalized,
            display_name=display_name,
            credential_hash=credential_hash,
            created_at=datetime.now(),
        )
        self._store.accounts[record.account_id] = record
        return record

    async def get_account(self, account_id: int) -> AccountRecord | None:
        """Get account by ID."""
        return self._store.accounts.get(account_id)

    async def find_account_by_email(self, email: str) -> AccountRecord | None:
        """Find account by email (case-insensitive)."""
        normalized = normalize_email(email)
        for record in self._store.accounts.values():
            if record.email == normalized:
                return record
        return None


class InMemoryTripRepository:
    """In-memory implementation of TripRepository."""

    def __init__(self, store: InMemoryRecordStore) -> None:
        self._store = store

    async def create_trip(self, owner_id: int, data: TripCreate) -> Trip:
        """Create a trip owned by owner_id."""
        trip = Trip(
            id=self._store.next_id(),
            owner_id=owner_id,
            title=data.title,
            destination=data.destination,
            start_date=data.start_date,
            end_date=data.end_date,
            created_at=datetime.now(),
        )
        self._store.trips[trip.id] = trip
        return trip

    async def get_trip(self, trip_id: int) -> Trip | None:
        """Get trip by ID regardless of owner."""
        return self._store.trips.get(trip_id)

    async def list_trips(self, owner_id: int) -> list[Trip]:
        """List an owner's trips, latest start date first."""
        trips = [trip for trip in self._store.trips.values() if trip.owner_id == owner_id]
        trips.sort(key=lambda trip: (trip.start_date, trip.id), reverse=True)
        return trips

    async def update_trip(self, trip_id: int, patch: TripPatch) -> Trip | None:
        """Apply a partial update."""
        trip = self._store.trips.get(trip_id)
        if trip is None:
            return None

        updated = trip.model_copy(update=patch.changes())
        self._store.trips[trip_id] = updated
        return updated

    async def delete_trip(self, trip_id: int) -> bool:
        """Delete a trip and all of its activities."""
        if self._store.trips.pop(trip_id, None) is None:
            return False

        orphaned = [a.id for a in self._store.activities.values() if a.trip_id == trip_id]
        for activity_id in orphaned:
            del self._store.activities[activity_id]
        return True


class InMemoryActivityRepository:
    """In-memory implementation of ActivityRepository."""

    def __init__(self, store: InMemoryRecordStore) -> None:
        self._store = store

    async def create_activity(self, data: ActivityCreate) -> Activity:
        """Create an activity."""
        activity = Activity(
            id=self._store.next_id(),
            created_at=datetime.now(),
            completed=False,
            **data.model_dump(),
        )
        self._store.activities[activity.id] = activity
        return activity

    async def get_activity(self, activity_id: int) -> Activity | None:
        """Get activity by ID."""
        return self._store.activities.get(activity_id)

    async def list_activities(self, trip_id: int) -> list[Activity]:
        """List all activities of a trip."""
        activities = [a for a in self._store.activities.values() if a.trip_id == trip_id]
        activities.sort(key=_activity_sort_key)
        return activities

    async def list_activities_for_day(self, trip_id: int, day_number: int) -> list[Activity]:
        """List the activities of a single trip day."""
        return [a for a in await self.list_activities(trip_id) if a.day_number == day_number]

    async def update_activity(self, activity_id: int, patch: ActivityPatch) -> Activity | None:
        """Apply a partial update."""
        activity = self._store.activities.get(activity_id)
        if activity is None:
            return None

        updated = activity.model_copy(update=patch.changes())
        self._store.activities[activity_id] = updated
        return updated

    async def toggle_completed(self, activity_id: int) -> Activity | None:
        """Flip the completed flag."""
        activity = self._store.activities.get(activity_id)
        if activity is None:
            return None

        updated = activity.model_copy(update={"completed": not activity.completed})
        self._store.activities[activity_id] = updated
        return updated

    async def delete_activity(self, activity_id: int) -> bool:
        """Delete an activity."""
        return self._store.activities.pop(activity_id, None) is not None

    async def get_activity_stats(self, trip_id: int) -> ActivityStats:
        """Aggregate counts and cost over all of a trip's activities."""
        return compute_activity_stats(await self.list_activities(trip_id))


class InMemoryRateLimiter:
    """In-memory implementation of RateLimiter using fixed window.

    Expired windows are evicted at most once per window length, so the table
    only holds keys seen within the last two windows.
    """

    def __init__(self, max_requests: int, window_seconds: int = 60) -> None:
        """Initialize rate limiter.

        Args:
            max_requests: Maximum requests per window
            window_seconds: Window size in seconds (default 60)
        """
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._windows: dict[str, tuple[datetime, int]] = {}
        self._next_sweep: datetime | None = None

    async def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Check if quota is available."""
        self._evict_expired(now)

        # Get or create window
        if key in self._windows:
            window_start, count = self._windows[key]

            # Check if window expired
            if now >= window_start + timedelta(seconds=self._window_seconds):
                # New window
                self._windows[key] = (now, 1)
                return None

            # Within same window
            if count >= self._max_requests:
                # Over quota
                seconds_remaining = int(
                    (window_start + timedelta(seconds=self._window_seconds) - now).total_seconds()
                )
                return RetryAfter(seconds=max(1, seconds_remaining))

            # Increment count
            self._windows[key] = (window_start, count + 1)
            return None
        else:
            # First request
            self._windows[key] = (now, 1)
            return None

    def _evict_expired(self, now: datetime) -> None:
        window = timedelta(seconds=self._window_seconds)
        if self._next_sweep is not None and now < self._next_sweep:
            return

        expired = [key for key, (start, _) in self._windows.items() if now >= start + window]
        for key in expired:
            del self._windows[key]
        self._next_sweep = now + window
