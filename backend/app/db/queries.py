"""Scoped query builders."""

from sqlalchemy import Select, select

from backend.app.db.models import Activity, Trip


def select_owned_trips(owner_id: int) -> Select[tuple[Trip]]:
    """Select an owner's trips, latest start date first.

    Args:
        owner_id: Account ID of the owner

    Returns:
        Select filtered by owner_id
    """
    return (
        select(Trip)
        .where(Trip.owner_id == owner_id)
        .order_by(Trip.start_date.desc(), Trip.trip_id.desc())
    )


def select_trip_activities(trip_id: int) -> Select[tuple[Activity]]:
    """Select a trip's activities in itinerary order.

    Ordered by day_number, then time with nulls last, then id.

    Args:
        trip_id: Trip ID

    Returns:
        Select filtered by trip_id
    """
    return (
        select(Activity)
        .where(Activity.trip_id == trip_id)
        .order_by(
            Activity.day_number,
            Activity.time.asc().nulls_last(),
            Activity.activity_id,
        )
    )
