"""Activity endpoints - every call is checked against the parent trip's owner."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from backend.app.api.auth import enforce_crud_rate_limit, get_current_context
from backend.app.api.deps import get_activity_repository, get_trip_repository
from backend.app.api.routes.trips import DeletedResponse
from backend.app.db.context import RequestContext
from backend.app.db.repositories import ActivityRepository, TripRepository
from backend.app.errors import NotFoundError
from backend.app.models.trip import Activity, ActivityCreate, ActivityPatch
from backend.app.ownership import verify_activity_ownership, verify_trip_ownership

router = APIRouter(
    prefix="/activities", tags=["activities"], dependencies=[Depends(enforce_crud_rate_limit)]
)


@router.post("", response_model=Activity, status_code=status.HTTP_201_CREATED)
async def create_activity(
    request: ActivityCreate,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
    activities: Annotated[ActivityRepository, Depends(get_activity_repository)],
) -> Activity:
    """Add an activity to one of the caller's trips."""
    await verify_trip_ownership(trips, request.trip_id, ctx.account_id)
    return await activities.create_activity(request)


@router.get("/trip/{trip_id}/day/{day_number}", response_model=list[Activity])
async def list_day_activities(
    trip_id: int,
    day_number: Annotated[int, Path(ge=1)],
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
    activities: Annotated[ActivityRepository, Depends(get_activity_repository)],
) -> list[Activity]:
    """List one day's activities, by time (untimed last) then id."""
    trip = await verify_trip_ownership(trips, trip_id, ctx.account_id)
    return await activities.list_activities_for_day(trip.id, day_number)


@router.get("/{activity_id}", response_model=Activity)
async def get_activity(
    activity_id: int,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
    activities: Annotated[ActivityRepository, Depends(get_activity_repository)],
) -> Activity:
    """Get a single activity, including ones outside the trip's days."""
    return await verify_activity_ownership(trips, activities, activity_id, ctx.account_id)


@router.patch("/{activity_id}/toggle", response_model=Activity)
async def toggle_activity(
    activity_id: int,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
    activities: Annotated[ActivityRepository, Depends(get_activity_repository)],
) -> Activity:
    """Flip an activity's completed flag."""
    activity = await verify_activity_ownership(trips, activities, activity_id, ctx.account_id)

    toggled = await activities.toggle_completed(activity.id)
    if toggled is None:
        raise NotFoundError("Activity not found")
    return toggled


@router.patch("/{activity_id}", response_model=Activity)
async def update_activity(
    activity_id: int,
    patch: ActivityPatch,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
    activities: Annotated[ActivityRepository, Depends(get_activity_repository)],
) -> Activity:
    """Partially update an activity."""
    activity = await verify_activity_ownership(trips, activities, activity_id, ctx.account_id)

    updated = await activities.update_activity(activity.id, patch)
    if updated is None:
        raise NotFoundError("Activity not found")
    return updated


@router.delete("/{activity_id}", response_model=DeletedResponse)
async def delete_activity(
    activity_id: int,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
    activities: Annotated[ActivityRepository, Depends(get_activity_repository)],
) -> DeletedResponse:
    """Delete an activity."""
    activity = await verify_activity_ownership(trips, activities, activity_id, ctx.account_id)

    if not await activities.delete_activity(activity.id):
        raise NotFoundError("Activity not found")
    return DeletedResponse(message="Activity deleted successfully")
