from unittest.mock import MagicMock, patch

import pytest
from fastapi import Request, Response

from gallery.core.logger import request_id_var
from gallery.middleware.logging import LoggingMiddleware


def make_request(path: str = "/api/list") -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": path,
            "query_string": b"password=secret",
            "headers": [(b"user-agent", b"test-agent"), (b"x-real-ip", b"192.0.2.9")],
        }
    )


@pytest.mark.anyio
class TestLoggingMiddleware:
    """Test LoggingMiddleware functionality."""

    async def test_generates_request_id(self):
        middleware = LoggingMiddleware(MagicMock())
        request = make_request()
        seen_ids = []

        async def call_next(req):
            seen_ids.append(request_id_var.get())
            return Response(status_code=200)

        with patch("gallery.middleware.logging.logger"):
            response = await middleware.dispatch(request, call_next)

        assert len(request.state.request_id) == 8
        assert response.headers["X-Request-ID"] == request.state.request_id
        assert seen_ids == [request.state.request_id]
        assert request_id_var.get() is None

    async def test_logs_request_and_response(self):
        middleware = LoggingMiddleware(MagicMock())

        async def call_next(req):
            return Response(status_code=201)

        with patch("gallery.middleware.logging.logger") as mock_logger:
            await middleware.dispatch(make_request(), call_next)

        assert mock_logger.trace.call_count == 2
        logged = " ".join(call.args[0] for call in mock_logger.trace.call_args_list)
        assert "192.0.2.9" in logged
        assert "Status: 201" in logged
        assert "secret" not in logged

    async def test_logs_and_reraises_errors(self):
        middleware = LoggingMiddleware(MagicMock())

        async def call_next(req):
            raise RuntimeError("handler crashed")

        with patch("gallery.middleware.logging.logger") as mock_logger:
            with pytest.raises(RuntimeError):
                await middleware.dispatch(make_request(), call_next)

        mock_logger.error.assert_called_once()
        assert request_id_var.get() is None
