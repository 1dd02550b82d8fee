from loguru import logger

from gallery.core.config import StorageBackend, settings
from gallery.core.exceptions.storage import StorageNotConfiguredError

from .base import ObjectBody, ObjectStore, get_storage_usage
from .gcs import GCSObjectStore
from .memory import MemoryObjectStore

_object_store: ObjectStore | None = None


def create_object_store() -> ObjectStore:
    """
    Build the object store selected by settings.storage_backend.

    Raises:
        StorageNotConfiguredError: If GCS is selected without a bucket name
    """
    if settings.storage_backend == StorageBackend.GCS:
        if not settings.gcs_bucket_name:
            raise StorageNotConfiguredError("GCS_BUCKET_NAME is required for the gcs backend")

        logger.info(f"Using GCS bucket {settings.gcs_bucket_name} for media storage")
        return GCSObjectStore(settings.gcs_bucket_name, settings.gcs_service_account_path)

    logger.warning("Using in-memory media storage (contents are lost on restart)")
    return MemoryObjectStore()


def get_object_store() -> ObjectStore:
    """FastAPI dependency returning the process-wide object store"""
    global _object_store

    if _object_store is None:
        _object_store = create_object_store()

    return _object_store


async def close_object_store() -> None:
    global _object_store

    if _object_store is not None:
        await _object_store.close()
        _object_store = None


__all__ = [
    "ObjectBody",
    "ObjectStore",
    "GCSObjectStore",
    "MemoryObjectStore",
    "create_object_store",
    "get_object_store",
    "close_object_store",
    "get_storage_usage",
]
