"""Day partitioning - buckets a trip's activities into calendar days.

The trip span is the inclusive number of calendar days between start and end
date. Each day 1..span gets the activities whose day_number matches, in the
order storage returned them. Activities whose day_number falls outside the
span are left out of every day (and out of the cost total) but are still
counted in total_activities.
"""

import math
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

from backend.app.models.itinerary import ActivityStats, DayItinerary, ItineraryView
from backend.app.models.trip import Activity, Trip


def coerce_cost(value: Any) -> float:
    """Numeric cost of an activity; absent or non-numeric values count as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _as_date(value: date | datetime) -> date:
    # datetime is a date subclass; drop the time-of-day part
    if isinstance(value, datetime):
        return value.date()
    return value


def trip_span_days(start_date: date | datetime, end_date: date | datetime) -> int:
    """Inclusive number of calendar days in the trip, at least 1."""
    delta = (_as_date(end_date) - _as_date(start_date)).days
    return max(delta + 1, 1)


def day_dates(start_date: date | datetime, span: int) -> list[date]:
    """Calendar date of each day index 1..span."""
    start = _as_date(start_date)
    return [start + timedelta(days=index) for index in range(span)]


def group_by_day(activities: Iterable[Activity]) -> dict[int, list[Activity]]:
    """Group activities by day_number, keeping their relative order."""
    grouped: dict[int, list[Activity]] = defaultdict(list)
    for activity in activities:
        grouped[activity.day_number].append(activity)
    return grouped


def partition_activities(trip: Trip, activities: Sequence[Activity]) -> ItineraryView:
    """Build the day-by-day itinerary for a trip.

    Args:
        trip: Trip whose start/end dates define the days
        activities: Every activity of the trip, in storage order

    Returns:
        ItineraryView with one DayItinerary per trip day
    """
    span = trip_span_days(trip.start_date, trip.end_date)
    grouped = group_by_day(activities)

    days: list[DayItinerary] = []
    for day_number, day_date in enumerate(day_dates(trip.start_date, span), start=1):
        day_activities = list(grouped.get(day_number, []))
        day_cost = 0.0
        for activity in day_activities:
            day_cost += coerce_cost(activity.cost)
        days.append(
            DayItinerary(
                day_number=day_number,
                date=day_date,
                activities=day_activities,
                total_cost=day_cost,
            )
        )

    # Summed from the day totals so the two always agree exactly
    total_cost = 0.0
    for day in days:
        total_cost += day.total_cost

    return ItineraryView(
        trip=trip,
        days=days,
        total_activities=len(activities),
        total_cost=total_cost,
    )


def compute_activity_stats(activities: Sequence[Activity]) -> ActivityStats:
    """Rollup over every activity of a trip, in range or not."""
    total_cost = 0.0
    for activity in activities:
        total_cost += coerce_cost(activity.cost)

    return ActivityStats(
        total_activities=len(activities),
        completed_activities=sum(1 for activity in activities if activity.completed),
        total_cost=total_cost,
        days_with_activities=len({activity.day_number for activity in activities}),
    )
