"""Common types and enums shared across all models."""

from enum import Enum


class ActivityCategory(str, Enum):
    """Type of planned activity."""

    sightseeing = "sightseeing"
    food = "food"
    transport = "transport"
    accommodation = "accommodation"
    entertainment = "entertainment"
    shopping = "shopping"
    outdoor = "outdoor"
    other = "other"


# Upper bound for a single activity cost
MAX_ACTIVITY_COST = 999999
