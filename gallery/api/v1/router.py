from fastapi import APIRouter

from gallery.api.v1.endpoints import auth, media, objects

api_v1_router = APIRouter()


api_v1_router.include_router(
    auth.router,
    prefix="/api",
    tags=["Auth"],
)

api_v1_router.include_router(
    media.router,
    prefix="/api",
    tags=["Media"],
)

api_v1_router.include_router(
    objects.router,
    prefix="/r2",
    tags=["Objects"],
)
