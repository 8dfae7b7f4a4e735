"""
Shared FastAPI dependencies: authentication, rate limiting, deprecation.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from spacesync.core.audit_log import get_audit_logger
from spacesync.core.auth import verify_token
from spacesync.core.config import settings
from spacesync.core.rate_limiter import get_rate_limiter, DEFAULT_RATE_LIMITS, RateLimitExceeded
from spacesync.database.engine import get_db
from spacesync.schemas.auth import TokenData

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

__all__ = ["get_db", "get_current_user", "enforce_rate_limit", "deprecated_route"]


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenData:
    """Resolve the authenticated user from the bearer token."""
    token_data = verify_token(credentials.credentials) if credentials else None

    if token_data is None:
        get_audit_logger().log_unauthorized_access(
            resource=request.url.path,
            ip_address=_client_ip(request)
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, invalid or missing token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return token_data


async def enforce_rate_limit(
    request: Request,
    current_user: TokenData = Depends(get_current_user)
) -> None:
    """Per-user request budget shared by all sync routes."""
    if settings.DISABLE_RATE_LIMITING:
        return

    try:
        get_rate_limiter().check_rate_limit(
            key=f"sync:{current_user.user_id}",
            rule=DEFAULT_RATE_LIMITS["sync"]
        )
    except RateLimitExceeded as e:
        get_audit_logger().log_rate_limit_exceeded(
            user_id=current_user.user_id,
            resource=request.url.path,
            retry_after=e.retry_after
        )
        raise


def deprecated_route(replacement: str):
    """
    Mark a route as deprecated.

    The route keeps working; responses carry deprecation headers and every
    call is logged so remaining clients can be tracked down.
    """
    async def add_deprecation_headers(request: Request, response: Response) -> None:
        response.headers["X-API-Deprecated"] = "true"
        response.headers["X-API-Deprecation-Info"] = f"This endpoint is deprecated. Use {replacement} instead."
        response.headers["X-API-Sunset-Date"] = settings.DEPRECATION_SUNSET_DATE
        logger.warning(
            f"DEPRECATED API CALL: {request.method} {request.url.path} - client should migrate to {replacement}"
        )

    return add_deprecation_headers
