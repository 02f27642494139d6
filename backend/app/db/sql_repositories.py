"""SQL implementations of repository interfaces."""

from enum import Enum
from typing import Any

from sqlalchemy import case, delete, distinct, func, not_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.models import Account as AccountDB
from backend.app.db.models import Activity as ActivityDB
from backend.app.db.models import Trip as TripDB
from backend.app.db.queries import select_owned_trips, select_trip_activities
from backend.app.db.repositories import AccountRecord, normalize_email
from backend.app.errors import InvalidArgumentError
from backend.app.itinerary.partition import coerce_cost
from backend.app.models.itinerary import ActivityStats
from backend.app.models.trip import (
    Activity,
    ActivityCreate,
    ActivityPatch,
    Trip,
    TripCreate,
    TripPatch,
)


def _to_account(row: AccountDB) -> AccountRecord:
    return AccountRecord(
        account_id=row.account_id,
        email=row.email,
        display_name=row.display_name,
        credential_hash=row.credential_hash,
        created_at=row.created_at,
    )


def _to_trip(row: TripDB) -> Trip:
    return Trip(
        id=row.trip_id,
        owner_id=row.owner_id,
        title=row.title,
        destination=row.destination,
        start_date=row.start_date,
        end_date=row.end_date,
        created_at=row.created_at,
    )


def _to_activity(row: ActivityDB) -> Activity:
    return Activity(
        id=row.activity_id,
        trip_id=row.trip_id,
        day_number=row.day_number,
        title=row.title,
        description=row.description,
        time=row.time,
        category=row.category,
        location=row.location,
        cost=row.cost,
        notes=row.notes,
        completed=row.completed,
        created_at=row.created_at,
    )


def _column_values(changes: dict[str, Any]) -> dict[str, Any]:
    # Enum members are stored by value
    return {
        name: value.value if isinstance(value, Enum) else value
        for name, value in changes.items()
    }


class SqlAccountRepository:
    """SQL implementation of AccountRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_account(
        self, email: str, display_name: str, credential_hash: str
    ) -> AccountRecord:
        """Create a new account."""
        normalized = normalize_email(email)
        if await self.find_account_by_email(normalized) is not None:
            raise InvalidArgumentError("Email already registered")

        account = AccountDB(
            email=normalized,
            display_name=display_name,
            credential_hash=credential_hash,
        )
        self._session.add(account)
        try:
            await self._session.flush()
        except IntegrityError as e:
            await self._session.rollback()
            raise InvalidArgumentError("Email already registered") from e

        await self._session.refresh(account)
        record = _to_account(account)
        await self._session.commit()
        return record

    async def get_account(self, account_id: int) -> AccountRecord | None:
        """Get account by ID."""
        account = await self._session.get(AccountDB, account_id)
        return _to_account(account) if account is not None else None

    async def find_account_by_email(self, email: str) -> AccountRecord | None:
        """Find account by email (case-insensitive)."""
        result = await self._session.execute(
            select(AccountDB).where(AccountDB.email == normalize_email(email))
        )
        account = result.scalar_one_or_none()
        return _to_account(account) if account is not None else None


class SqlTripRepository:
    """SQL implementation of TripRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_trip(self, owner_id: int, data: TripCreate) -> Trip:
        """Create a trip owned by owner_id."""
        trip = TripDB(
            owner_id=owner_id,
            title=data.title,
            destination=data.destination,
            start_date=data.start_date,
            end_date=data.end_date,
        )
        self._session.add(trip)
        await self._session.flush()
        await self._session.refresh(trip)

        created = _to_trip(trip)
        await self._session.commit()
        return created

    async def get_trip(self, trip_id: int) -> Trip | None:
        """Get trip by ID regardless of owner."""
        trip = await self._session.get(TripDB, trip_id)
        return _to_trip(trip) if trip is not None else None

    async def list_trips(self, owner_id: int) -> list[Trip]:
        """List an owner's trips, latest start date first."""
        result = await self._session.execute(select_owned_trips(owner_id))
        return [_to_trip(row) for row in result.scalars().all()]

    async def update_trip(self, trip_id: int, patch: TripPatch) -> Trip | None:
        """Apply a partial update."""
        trip = await self._session.get(TripDB, trip_id)
        if trip is None:
            return None

        values = _column_values(patch.changes())
        if values:
            await self._session.execute(
                update(TripDB)
                .where(TripDB.trip_id == trip_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await self._session.flush()
            await self._session.refresh(trip)

        updated = _to_trip(trip)
        await self._session.commit()
        return updated

    async def delete_trip(self, trip_id: int) -> bool:
        """Delete a trip and all of its activities."""
        await self._session.execute(delete(ActivityDB).where(ActivityDB.trip_id == trip_id))
        result = await self._session.execute(delete(TripDB).where(TripDB.trip_id == trip_id))
        await self._session.commit()
        return result.rowcount > 0


class SqlActivityRepository:
    """SQL implementation of ActivityRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_activity(self, data: ActivityCreate) -> Activity:
        """Create an activity."""
        activity = ActivityDB(
            trip_id=data.trip_id,
            day_number=data.day_number,
            title=data.title,
            description=data.description,
            time=data.time,
            category=data.category.value if data.category else None,
            location=data.location,
            cost=data.cost,
            notes=data.notes,
            completed=False,
        )
        self._session.add(activity)
        await self._session.flush()
        await self._session.refresh(activity)

        created = _to_activity(activity)
        await self._session.commit()
        return created

    async def get_activity(self, activity_id: int) -> Activity | None:
        """Get activity by ID."""
        activity = await self._session.get(ActivityDB, activity_id)
        return _to_activity(activity) if activity is not None else None

    async def list_activities(self, trip_id: int) -> list[Activity]:
        """List all activities of a trip."""
        result = await self._session.execute(select_trip_activities(trip_id))
        return [_to_activity(row) for row in result.scalars().all()]

    async def list_activities_for_day(self, trip_id: int, day_number: int) -> list[Activity]:
        """List the activities of a single trip day."""
        result = await self._session.execute(
            select_trip_activities(trip_id).where(ActivityDB.day_number == day_number)
        )
        return [_to_activity(row) for row in result.scalars().all()]

    async def update_activity(self, activity_id: int, patch: ActivityPatch) -> Activity | None:
        """Apply a partial update."""
        activity = await self._session.get(ActivityDB, activity_id)
        if activity is None:
            return None

        values = _column_values(patch.changes())
        if values:
            await self._session.execute(
                update(ActivityDB)
                .where(ActivityDB.activity_id == activity_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await self._session.flush()
            await self._session.refresh(activity)

        updated = _to_activity(activity)
        await self._session.commit()
        return updated

    async def toggle_completed(self, activity_id: int) -> Activity | None:
        """Atomically flip the completed flag with a single UPDATE."""
        result = await self._session.execute(
            update(ActivityDB)
            .where(ActivityDB.activity_id == activity_id)
            .values(completed=not_(ActivityDB.completed))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self._session.rollback()
            return None

        refreshed = await self._session.execute(
            select(ActivityDB)
            .where(ActivityDB.activity_id == activity_id)
            .execution_options(populate_existing=True)
        )
        toggled = _to_activity(refreshed.scalar_one())
        await self._session.commit()
        return toggled

    async def delete_activity(self, activity_id: int) -> bool:
        """Delete an activity."""
        result = await self._session.execute(
            delete(ActivityDB).where(ActivityDB.activity_id == activity_id)
        )
        await self._session.commit()
        return result.rowcount > 0

    async def get_activity_stats(self, trip_id: int) -> ActivityStats:
        """Aggregate counts and cost over all of a trip's activities."""
        result = await self._session.execute(
            select(
                func.count(ActivityDB.activity_id),
                func.sum(case((ActivityDB.completed.is_(True), 1), else_=0)),
                func.sum(ActivityDB.cost),
                func.count(distinct(ActivityDB.day_number)),
            ).where(ActivityDB.trip_id == trip_id)
        )
        total, completed, cost, days = result.one()

        return ActivityStats(
            total_activities=total or 0,
            completed_activities=int(completed or 0),
            total_cost=coerce_cost(cost),
            days_with_activities=days or 0,
        )
