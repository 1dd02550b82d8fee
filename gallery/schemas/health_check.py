from typing import Literal

from gallery.schemas.base import BaseSchema


class HealthCheckResponse(BaseSchema):
    """
    The API answers even when the shared rate limit store is down,
    `rate_limit_store` tells which store is counting requests.
    """

    status: Literal["healthy"] = "healthy"
    rate_limit_store: Literal["redis", "memory"]
