"""Error taxonomy shared by the record store, ownership guard and weather path.

Each error carries a stable ``kind`` string, an HTTP status and a retryable
flag. The kind drives both the client-visible status and retry behavior, so
errors are raised where detected and never collapsed into a generic failure.
"""


class TripPlannerError(Exception):
    """Base class for all domain errors."""

    kind: str = "internal"
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgumentError(TripPlannerError):
    """Malformed input; never reaches storage or the provider."""

    kind = "invalid_argument"
    status_code = 400


class NotFoundError(TripPlannerError):
    """Record or location does not exist."""

    kind = "not_found"
    status_code = 404


class AccessDeniedError(TripPlannerError):
    """Record exists but belongs to another account."""

    kind = "access_denied"
    status_code = 403


class UpstreamUnavailableError(TripPlannerError):
    """Provider timeout, unreachable host or 5xx."""

    kind = "upstream_unavailable"
    status_code = 503
    retryable = True

    def __init__(self, message: str, reason: str = "unavailable") -> None:
        super().__init__(message)
        self.reason = reason


class UpstreamRejectedError(TripPlannerError):
    """Provider 4xx other than not-found and rate-limit."""

    kind = "upstream_rejected"
    status_code = 502

    def __init__(self, message: str, upstream_status: int) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class RateLimitedError(TripPlannerError):
    """Local or upstream request budget exhausted."""

    kind = "rate_limited"
    status_code = 429
    retryable = True

    def __init__(self, message: str, retry_after: int = 1, upstream: bool = False) -> None:
        super().__init__(message)
        self.retry_after = retry_after
        self.upstream = upstream


class MisconfiguredError(TripPlannerError):
    """Missing or rejected provider credential; operator-fixable."""

    kind = "misconfigured"
    status_code = 500


class UpstreamDataInvalidError(TripPlannerError):
    """Provider payload unusable after parsing attempts."""

    kind = "upstream_data_invalid"
    status_code = 502
