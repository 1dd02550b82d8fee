from pydantic import BaseModel


class BadRequestResponse(BaseModel):
    detail: str = "Invalid path"


class InternalServerErrorResponse(BaseModel):
    detail: str = "Storage operation failed"


class NotFoundResponse(BaseModel):
    detail: str = "Not found"


class TooManyRequestsResponse(BaseModel):
    detail: str = "Too many requests, please try again later"


class UnauthorizedResponse(BaseModel):
    detail: str = "Unauthorized"


RATE_LIMIT_HEADERS = {
    "X-RateLimit-Limit": {
        "description": "Maximum requests allowed in the window",
        "schema": {"type": "integer", "example": 5},
    },
    "X-RateLimit-Remaining": {
        "description": "Requests remaining in current window",
        "schema": {"type": "integer", "example": 0},
    },
    "X-RateLimit-Reset": {
        "description": "Unix timestamp (milliseconds) when the window resets",
        "schema": {"type": "integer", "example": 1767225600000},
    },
    "Retry-After": {
        "description": "Seconds until the window resets",
        "schema": {"type": "integer", "example": 42},
    },
}

THROTTLED_RESPONSE = {"model": TooManyRequestsResponse, "headers": RATE_LIMIT_HEADERS}
