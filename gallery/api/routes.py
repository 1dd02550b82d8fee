from typing import Annotated

from fastapi import APIRouter, Depends

from gallery.api.v1.router import api_v1_router
from gallery.schemas.health_check import HealthCheckResponse
from gallery.services.cache.rate_limiter import RateLimiter, get_rate_limiter

api_router = APIRouter()


@api_router.get(
    "/health",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Health Check",
    description="Not rate limited. A Redis outage is reported, never turned into an error.",
)
async def health_check(limiter: Annotated[RateLimiter, Depends(get_rate_limiter)]):
    shared = await limiter.health_check()

    return HealthCheckResponse(rate_limit_store="redis" if shared else "memory")


api_router.include_router(api_v1_router)
