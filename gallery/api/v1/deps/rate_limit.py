from typing import Annotated

from fastapi import Depends, Request

from gallery.core.config import settings
from gallery.core.constants import OperationClass, RateLimitPrefix
from gallery.core.exceptions.http_exceptions import TooManyRequestsException
from gallery.core.logger import security_logger
from gallery.core.utils import get_client_ip
from gallery.middleware.rate_limit import rate_limit_headers
from gallery.services.cache.rate_limiter import (
    RateLimitDecision,
    RateLimiter,
    get_rate_limiter,
)


def create_rate_limit(operation: OperationClass):
    """
    Build the rate limit dependency of one operation class (IP-based).

    The key is `ratelimit:{operation}:{client ip}` and the policy comes from
    settings.rate_limit_policies. The decision is stored in
    request.state.rate_limit_info for RateLimitHeaderMiddleware.

    Args:
        operation: Operation class being throttled

    Returns:
        Async dependency function that can be used with Depends()

    Example:
        ```python
        @router.post("/upload", dependencies=[Depends(rate_limit_upload)])
        async def upload(...):
            pass
        ```
    """
    prefix = RateLimitPrefix.for_operation(operation)

    async def limiter_dependency(
        request: Request,
        limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    ) -> RateLimitDecision:
        ip = get_client_ip(request)
        key = f"{prefix}{ip}"
        policy = settings.rate_limit_policies[operation]

        decision = await limiter.check(
            key=key, max_requests=policy.max_requests, window_ms=policy.window_ms
        )

        request.state.rate_limit_info = decision

        if not decision.allowed:
            security_logger.warning(
                f"Rate limit exceeded for {operation} endpoint. IP: {ip}, Key: {key}"
            )
            raise TooManyRequestsException(
                detail="Too many requests, please try again later",
                headers={
                    **rate_limit_headers(decision),
                    "Retry-After": str(decision.retry_after_seconds(limiter.now_ms())),
                },
            )

        return decision

    limiter_dependency.__name__ = f"rate_limit_{operation}"

    return limiter_dependency


rate_limit_list = create_rate_limit(OperationClass.LIST)
rate_limit_login = create_rate_limit(OperationClass.LOGIN)
rate_limit_upload = create_rate_limit(OperationClass.UPLOAD)
rate_limit_delete = create_rate_limit(OperationClass.DELETE)
rate_limit_object = create_rate_limit(OperationClass.OBJECT)
