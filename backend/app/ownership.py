"""Ownership guard for trips and activities.

A missing record and a record owned by someone else are different errors
(404 vs 403). Activities are owned through their trip, so the activity check
is a two-hop lookup: activity -> parent trip -> owner.
"""

from backend.app.db.repositories import ActivityRepository, TripRepository
from backend.app.errors import AccessDeniedError, NotFoundError
from backend.app.models.trip import Activity, Trip


async def verify_trip_ownership(trips: TripRepository, trip_id: int, account_id: int) -> Trip:
    """Return the trip if it exists and belongs to account_id.

    Raises:
        NotFoundError: Trip does not exist
        AccessDeniedError: Trip belongs to another account
    """
    trip = await trips.get_trip(trip_id)
    if trip is None:
        raise NotFoundError("Trip not found")
    if trip.owner_id != account_id:
        raise AccessDeniedError("Not authorized to access this trip")
    return trip


async def verify_activity_ownership(
    trips: TripRepository,
    activities: ActivityRepository,
    activity_id: int,
    account_id: int,
) -> Activity:
    """Return the activity if its parent trip belongs to account_id.

    Raises:
        NotFoundError: Activity (or its parent trip) does not exist
        AccessDeniedError: Parent trip belongs to another account
    """
    activity = await activities.get_activity(activity_id)
    if activity is None:
        raise NotFoundError("Activity not found")
    await verify_trip_ownership(trips, activity.trip_id, account_id)
    return activity
