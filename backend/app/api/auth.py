"""Minimal auth dependency.

Token issuance lives outside this service. The bearer token carries the
caller's account id ("Bearer <account_id>"); the account must exist.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from backend.app.api.deps import get_account_repository, get_crud_rate_limiter
from backend.app.db.context import RequestContext
from backend.app.db.repositories import AccountRepository, RateLimiter
from backend.app.errors import RateLimitedError
from backend.app.middleware.ratelimit import RateLimitMiddleware, create_default_bucket_map


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_context(
    accounts: Annotated[AccountRepository, Depends(get_account_repository)],
    authorization: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Extract request context from authorization header.

    Args:
        accounts: Account repository used to confirm the account exists
        authorization: Authorization header (e.g., "Bearer 42")

    Returns:
        RequestContext with account_id

    Raises:
        HTTPException: 401 if the header is missing, malformed or names no account
    """
    if not authorization:
        raise _unauthorized("Access denied. No token provided.")

    if not authorization.startswith("Bearer "):
        raise _unauthorized("Invalid authorization header format")

    token = authorization[7:]  # Strip "Bearer "

    try:
        account_id = int(token)
    except ValueError as e:
        raise _unauthorized("Invalid token format (expected account id)") from e

    account = await accounts.get_account(account_id)
    if account is None:
        raise _unauthorized("Invalid token. Account not found.")

    return RequestContext(account_id=account.account_id)


async def enforce_crud_rate_limit(
    request: Request,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    limiter: Annotated[RateLimiter, Depends(get_crud_rate_limiter)],
) -> None:
    """Reject the request when the caller's CRUD budget is spent.

    Raises:
        RateLimitedError: Budget exhausted
    """
    middleware = RateLimitMiddleware(limiter, create_default_bucket_map())
    allowed, retry_after = await middleware.check_rate_limit(request.url.path, ctx)
    if not allowed:
        raise RateLimitedError(
            "Too many requests. Please try again later.", retry_after=retry_after
        )
