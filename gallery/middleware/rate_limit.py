from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from gallery.services.cache.rate_limiter import RateLimitDecision


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    """X-RateLimit-* headers describing a decision"""
    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(decision.reset_at),
    }


class RateLimitHeaderMiddleware(BaseHTTPMiddleware):
    """
    Copy the rate limit decision of the request onto the response.

    The rate limit dependency stores its decision in
    request.state.rate_limit_info. Requests that never went through the
    dependency (health check, docs) get no headers.

    Example:
        ```python
        app.add_middleware(RateLimitHeaderMiddleware)
        ```
    """

    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)

        decision: RateLimitDecision | None = getattr(request.state, "rate_limit_info", None)
        if decision is not None:
            response.headers.update(rate_limit_headers(decision))

        return response
