from fastapi import FastAPI, Request, status
from fastapi.concurrency import asynccontextmanager
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from gallery.api.routes import api_router
from gallery.core.config import Environment, settings
from gallery.core.logger import configure_uvicorn_logging, setup_logger, shutdown_logger
from gallery.middleware.logging import LoggingMiddleware
from gallery.middleware.rate_limit import RateLimitHeaderMiddleware
from gallery.services.cache import close_redis_pool, rate_limiter
from gallery.services.storage import close_object_store, get_object_store


async def _check_dependencies():
    """Check the shared rate limit store, the app starts in degraded mode without it"""

    if await rate_limiter.health_check():
        logger.success("Rate limit store is healthy.")
    else:
        logger.warning(
            "Rate limit store unavailable, limits are counted per process (degraded mode)."
        )

    get_object_store()


async def _shutdown_dependencies():
    """Shutdown essential dependencies gracefully"""

    await rate_limiter.close()
    await close_redis_pool()
    await close_object_store()
    logger.success("Rate limit store and object store closed.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""

    setup_logger()
    configure_uvicorn_logging()

    logger.info("Initializing resources...")
    await _check_dependencies()
    logger.success("Resources initialized.")

    yield  # Application runs here

    logger.info("Cleaning up resources...")
    await _shutdown_dependencies()
    shutdown_logger()


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.debug(f"Rejected malformed request to {request.url.path}: {exc.errors()}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request parameters"},
    )


ALLOWED_ENVIRONMENTS = {Environment.LOCAL, Environment.DEV, Environment.STG}

app = FastAPI(
    title=settings.app_title,
    version=settings.app_version,
    description=settings.app_description,
    openapi_url=("/openapi.json" if settings.current_environment in ALLOWED_ENVIRONMENTS else None),
    docs_url="/docs" if settings.current_environment in ALLOWED_ENVIRONMENTS else None,
    redoc_url="/redoc" if settings.current_environment in ALLOWED_ENVIRONMENTS else None,
    lifespan=lifespan,
    generate_unique_id_function=lambda route: f"{route.tags[0]}-{route.name}",
    exception_handlers={RequestValidationError: validation_exception_handler},
)

# Set CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
)

app.add_middleware(RateLimitHeaderMiddleware)

# Set logging middleware
app.add_middleware(LoggingMiddleware)

# Include API router
app.include_router(api_router)
