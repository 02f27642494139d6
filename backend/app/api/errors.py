"""HTTP rendering of domain errors."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.app.errors import RateLimitedError, TripPlannerError


async def handle_trip_planner_error(request: Request, exc: TripPlannerError) -> JSONResponse:
    """Render a domain error with its kind and retryable flag."""
    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitedError):
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind, "retryable": exc.retryable},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install domain error handlers on the app."""
    app.add_exception_handler(TripPlannerError, handle_trip_planner_error)  # type: ignore[arg-type]
