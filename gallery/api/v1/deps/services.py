from typing import Annotated

from fastapi import Depends

from gallery.services.auth_service import AuthService
from gallery.services.cache.rate_limiter import RateLimiter, get_rate_limiter
from gallery.services.media_service import MediaService
from gallery.services.storage import ObjectStore, get_object_store


def get_auth_service(
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> AuthService:
    return AuthService(limiter)


def get_media_service(
    store: Annotated[ObjectStore, Depends(get_object_store)],
) -> MediaService:
    return MediaService(store)
