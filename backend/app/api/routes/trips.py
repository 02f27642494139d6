"""Trip endpoints - CRUD over the caller's trips."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from backend.app.api.auth import enforce_crud_rate_limit, get_current_context
from backend.app.api.deps import get_activity_repository, get_trip_repository
from backend.app.db.context import RequestContext
from backend.app.db.repositories import ActivityRepository, TripRepository
from backend.app.errors import InvalidArgumentError, NotFoundError
from backend.app.models.trip import Trip, TripCreate, TripPatch, TripWithActivities
from backend.app.ownership import verify_trip_ownership

router = APIRouter(
    prefix="/trips", tags=["trips"], dependencies=[Depends(enforce_crud_rate_limit)]
)


class DeletedResponse(BaseModel):
    """Response for DELETE endpoints."""

    message: str


@router.get("", response_model=list[Trip])
async def list_trips(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
) -> list[Trip]:
    """List the caller's trips, latest start date first."""
    return await trips.list_trips(ctx.account_id)


@router.post("", response_model=Trip, status_code=status.HTTP_201_CREATED)
async def create_trip(
    request: TripCreate,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
) -> Trip:
    """Create a trip owned by the caller."""
    return await trips.create_trip(ctx.account_id, request)


@router.get("/{trip_id}", response_model=TripWithActivities)
async def get_trip(
    trip_id: int,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
    activities: Annotated[ActivityRepository, Depends(get_activity_repository)],
) -> TripWithActivities:
    """Get a trip with all of its activities.

    Raises:
        NotFoundError: 404 if the trip does not exist
        AccessDeniedError: 403 if another account owns it
    """
    trip = await verify_trip_ownership(trips, trip_id, ctx.account_id)
    trip_activities = await activities.list_activities(trip.id)
    return TripWithActivities(**trip.model_dump(), activities=trip_activities)


@router.patch("/{trip_id}", response_model=Trip)
async def update_trip(
    trip_id: int,
    patch: TripPatch,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
) -> Trip:
    """Partially update a trip.

    Raises:
        InvalidArgumentError: 400 if the result would end before it starts
    """
    trip = await verify_trip_ownership(trips, trip_id, ctx.account_id)

    merged = trip.model_copy(update=patch.changes())
    if merged.end_date < merged.start_date:
        raise InvalidArgumentError("end_date must be on or after start_date")

    updated = await trips.update_trip(trip.id, patch)
    if updated is None:
        # Deleted between the ownership check and the update
        raise NotFoundError("Trip not found")
    return updated


@router.delete("/{trip_id}", response_model=DeletedResponse)
async def delete_trip(
    trip_id: int,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
) -> DeletedResponse:
    """Delete a trip and its activities."""
    trip = await verify_trip_ownership(trips, trip_id, ctx.account_id)

    if not await trips.delete_trip(trip.id):
        raise NotFoundError("Trip not found")
    return DeletedResponse(message="Trip deleted successfully")
