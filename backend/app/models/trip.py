"""Trip and activity models - records as stored and the payloads that change them."""

import math
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from backend.app.models.common import MAX_ACTIVITY_COST, ActivityCategory

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$"


def _numeric_or_none(value: Any) -> float | None:
    """Coerce a stored cost to float; unusable values become None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


class Trip(BaseModel):
    """Trip owned by a single account."""

    id: int
    owner_id: int
    title: str
    destination: str
    start_date: date
    end_date: date
    created_at: datetime | None = None


class Activity(BaseModel):
    """Activity planned on a 1-indexed trip day."""

    id: int
    trip_id: int
    day_number: int
    title: str
    description: str | None = None
    time: str | None = None
    category: ActivityCategory | None = None
    location: str | None = None
    cost: float | None = None
    notes: str | None = None
    completed: bool = False
    created_at: datetime | None = None

    @field_validator("cost", mode="before")
    @classmethod
    def _coerce_cost(cls, value: Any) -> float | None:
        return _numeric_or_none(value)


class TripWithActivities(Trip):
    """Trip plus its activities in storage order."""

    activities: list[Activity]


class TripCreate(BaseModel):
    """Request body for creating a trip."""

    title: str = Field(..., min_length=1, max_length=200)
    destination: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_date_order(self) -> "TripCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class TripPatch(BaseModel):
    """Partial trip update. Only fields present in the payload are applied."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=200)
    destination: str | None = Field(None, min_length=1, max_length=100)
    start_date: date | None = None
    end_date: date | None = None

    @model_validator(mode="after")
    def _reject_nulls(self) -> "TripPatch":
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Column values for the fields present in this patch."""
        fields = self.model_fields_set
        values: dict[str, Any] = {}
        if "title" in fields:
            values["title"] = self.title
        if "destination" in fields:
            values["destination"] = self.destination
        if "start_date" in fields:
            values["start_date"] = self.start_date
        if "end_date" in fields:
            values["end_date"] = self.end_date
        return values


class ActivityCreate(BaseModel):
    """Request body for creating an activity.

    day_number is only checked to be positive; it is not validated against the
    trip span, so activities can sit outside the trip's days.
    """

    trip_id: int
    day_number: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    time: str | None = Field(None, pattern=TIME_OF_DAY_PATTERN)
    category: ActivityCategory | None = None
    location: str | None = None
    cost: float | None = Field(None, ge=0, le=MAX_ACTIVITY_COST)
    notes: str | None = None


class ActivityPatch(BaseModel):
    """Partial activity update. completed is changed only through toggle."""

    model_config = ConfigDict(extra="forbid")

    day_number: int | None = Field(None, ge=1)
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    time: str | None = Field(None, pattern=TIME_OF_DAY_PATTERN)
    category: ActivityCategory | None = None
    location: str | None = None
    cost: float | None = Field(None, ge=0, le=MAX_ACTIVITY_COST)
    notes: str | None = None

    @model_validator(mode="after")
    def _reject_required_nulls(self) -> "ActivityPatch":
        for name in ("day_number", "title"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Column values for the fields present in this patch."""
        fields = self.model_fields_set
        values: dict[str, Any] = {}
        if "day_number" in fields:
            values["day_number"] = self.day_number
        if "title" in fields:
            values["title"] = self.title
        if "description" in fields:
            values["description"] = self.description
        if "time" in fields:
            values["time"] = self.time
        if "category" in fields:
            values["category"] = self.category
        if "location" in fields:
            values["location"] = self.location
        if "cost" in fields:
            values["cost"] = self.cost
        if "notes" in fields:
            values["notes"] = self.notes
        return values
