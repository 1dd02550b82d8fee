from .base import BaseSchema
from .health_check import HealthCheckResponse
from .gallery import (
    StoredObject,
    LoginRequest,
    LoginResponse,
    UploadResponse,
    DeleteRequest,
    DeleteResponse,
)

__all__ = [
    "BaseSchema",
    "HealthCheckResponse",
    "StoredObject",
    "LoginRequest",
    "LoginResponse",
    "UploadResponse",
    "DeleteRequest",
    "DeleteResponse",
]
