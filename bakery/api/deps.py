from functools import lru_cache
from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session
from bakery.core import set_request_context
from bakery.core_settings import get_settings
from bakery.domain.errors import AuthenticationError, ForbiddenError, RateLimitExceeded
from bakery.domain.models import Profile
from bakery.infrastructure.db import get_db
from bakery.infrastructure.payments import StripeGateway
from bakery.infrastructure.rate_limit import RateLimiter
from .auth import decode_access_token

BEARER_PREFIX = "Bearer "

def get_gateway() -> StripeGateway:
    return StripeGateway(get_settings())

@lru_cache
def get_rate_limiter() -> RateLimiter:
    return RateLimiter(get_settings().REDIS_URL)

def get_current_user(request: Request, db: Session = Depends(get_db)) -> Profile:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise AuthenticationError("Missing token")
    token_data = decode_access_token(auth_header[len(BEARER_PREFIX):])
    if not token_data or not str(token_data.get("sub", "")).isdigit():
        raise AuthenticationError("Invalid token")
    user = db.get(Profile, int(token_data["sub"]))
    if user is None:
        raise AuthenticationError("Invalid token")
    set_request_context(user_id=str(user.id))
    return user

def require_admin(user: Profile = Depends(get_current_user)) -> Profile:
    if not user.is_admin:
        raise ForbiddenError()
    return user

def rate_limit_identifier(request: Request, user: Profile = None) -> str:
    if user is not None:
        return f"user:{user.id}"
    return f"ip:{request.client.host if request.client else 'unknown'}"

def checkout_rate_limit(
    request: Request,
    response: Response,
    user: Profile = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    settings = get_settings()
    result = limiter.hit(
        f"checkout:{rate_limit_identifier(request, user)}",
        settings.CHECKOUT_RATE_LIMIT,
        settings.CHECKOUT_RATE_WINDOW_SECONDS,
    )
    if not result.allowed:
        raise RateLimitExceeded(result.retry_after)
    response.headers["X-RateLimit-Limit"] = str(result.limit)
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)
