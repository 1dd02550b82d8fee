from unittest.mock import MagicMock

import pytest
from fastapi import Request, Response

from gallery.middleware.rate_limit import RateLimitHeaderMiddleware, rate_limit_headers
from gallery.services.cache.rate_limiter import RateLimitDecision

DECISION = RateLimitDecision(
    allowed=True, limit=20, remaining=7, reset_at=1_700_000_060_000, window_ms=60_000
)


def make_request() -> Request:
    return Request({"type": "http", "method": "GET", "path": "/", "headers": []})


def test_rate_limit_headers():
    assert rate_limit_headers(DECISION) == {
        "X-RateLimit-Limit": "20",
        "X-RateLimit-Remaining": "7",
        "X-RateLimit-Reset": "1700000060000",
    }


@pytest.mark.anyio
class TestRateLimitHeaderMiddleware:
    async def test_adds_headers_from_request_state(self):
        middleware = RateLimitHeaderMiddleware(MagicMock())
        request = make_request()

        async def call_next(req):
            req.state.rate_limit_info = DECISION
            return Response(status_code=200)

        response = await middleware.dispatch(request, call_next)

        assert response.headers["X-RateLimit-Remaining"] == "7"
        assert response.headers["X-RateLimit-Reset"] == "1700000060000"

    async def test_no_headers_without_decision(self):
        middleware = RateLimitHeaderMiddleware(MagicMock())

        async def call_next(req):
            return Response(status_code=200)

        response = await middleware.dispatch(make_request(), call_next)

        assert "X-RateLimit-Limit" not in response.headers
