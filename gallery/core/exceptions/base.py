from typing import Any, Optional

from fastapi import HTTPException as FastAPIHTTPException


class GalleryException(Exception):
    """
    Base for all gallery exceptions.

    `message` is safe to show to clients, `exception` keeps the underlying
    cause for logs only.
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.exception = exception

    def __str__(self):
        if self.exception:
            return f"{self.message}\nException: {self.exception}"

        return self.message


class HTTPException(FastAPIHTTPException):
    def __init__(
        self,
        status_code: int,
        detail: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        """
        HTTP error rendered by FastAPI as {"detail": ...}.
        :param status_code: The HTTP status code of the response.
        :param detail: Message or data returned to the client.
        :param headers: Extra response headers (rate limit, WWW-Authenticate).
        """
        super().__init__(status_code=status_code, detail=detail, headers=headers)
