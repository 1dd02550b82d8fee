from typing import Any, ClassVar, Optional

from starlette import status

from gallery.core.exceptions.base import HTTPException


class GalleryHTTPException(HTTPException):
    """
    HTTP error with a fixed status code and a client safe default detail.

    Subclasses only set `status_code` and `default_detail`; handlers pass a
    more specific detail where the client may see it.
    """

    default_detail: ClassVar[str]

    def __init__(self, detail: Any = None, headers: Optional[dict[str, str]] = None) -> None:
        super().__init__(
            status_code=type(self).status_code,
            detail=self.default_detail if detail is None else detail,
            headers=headers,
        )


class BadRequestException(GalleryHTTPException):
    """Unsafe path or key, rejected upload, exhausted quota or malformed body"""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request parameters"


class UnauthorizedException(GalleryHTTPException):
    """Credential missing, invalid or not the gallery owner's; never retried by clients"""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class NotFoundException(GalleryHTTPException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class TooManyRequestsException(GalleryHTTPException):
    """Window quota exhausted, carries Retry-After and the X-RateLimit-* headers"""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many requests, please try again later"


class InternalServerErrorException(GalleryHTTPException):
    """Object store failure, the cause is only logged"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Storage operation failed"
