from loguru import logger

from gallery.core.config import settings
from gallery.core.exceptions.domain import (
    InvalidPathError,
    InvalidUploadError,
    ObjectNotFoundError,
    StorageQuotaExceededError,
)
from gallery.core.keys import build_object_key, decode_route_key, is_allowed_file_type, is_safe_key
from gallery.core.utils import format_size
from gallery.schemas import StoredObject, UploadResponse
from gallery.services.storage import ObjectBody, ObjectStore, get_storage_usage


class MediaService:
    """
    Gallery operations on top of an object store.

    Raises domain exceptions (InvalidPathError, InvalidUploadError,
    StorageQuotaExceededError, ObjectNotFoundError) and lets StorageError
    from the store propagate. The endpoints translate both to HTTP errors.
    """

    def __init__(self, store: ObjectStore):
        self.store = store

    async def list_media(self) -> list[StoredObject]:
        """Objects under the upload prefix, keys that could escape it are hidden"""
        objects = await self.store.list_objects(settings.upload_prefix)

        return [item for item in objects if is_safe_key(item.key)]

    def check_upload(self, content_type: str | None, size: int | None) -> None:
        """
        Type and size checks, usable on the declared size before the body is read.

        Raises:
            InvalidUploadError: Unsupported type or file too large
        """
        if not is_allowed_file_type(content_type, settings.allowed_file_types):
            raise InvalidUploadError(f"Unsupported file type: {content_type}")

        if size is not None and size > settings.max_file_size_bytes:
            raise InvalidUploadError(
                f"File exceeds the size limit ({format_size(settings.max_file_size_bytes)})"
            )

    async def upload(
        self,
        file_name: str,
        content_type: str | None,
        data: bytes,
        path: str = "",
    ) -> UploadResponse:
        """
        Validate and store an upload

        Args:
            file_name: Client supplied file name, repaired before use
            content_type: MIME type of the upload
            data: File content
            path: Target folder inside the gallery

        Returns:
            UploadResponse with the final key and the stored metadata

        Raises:
            InvalidUploadError: Unsupported type or file too large
            InvalidPathError: Path or assembled key escapes the gallery
            StorageQuotaExceededError: Upload would exceed max_storage_bytes
        """
        size = len(data)
        self.check_upload(content_type, size)

        key = build_object_key(settings.upload_prefix, path, file_name)

        usage = await get_storage_usage(self.store, settings.upload_prefix)
        if usage + size > settings.max_storage_bytes:
            logger.warning(f"Upload of {key} rejected, storage in use: {format_size(usage)}")
            raise StorageQuotaExceededError(
                f"Not enough storage space (max {format_size(settings.max_storage_bytes)})"
            )

        metadata: dict[str, str] = {}
        if content_type and content_type.startswith("image/"):
            metadata = {"size": str(size), "type": content_type}

        await self.store.put_object(key, data, content_type, metadata)
        logger.info(f"Uploaded {key} ({format_size(size)})")

        return UploadResponse(success=True, key=key, metadata=metadata)

    async def delete(self, keys: list[str]) -> int:
        """
        Delete objects after validating every key, nothing is deleted if one is unsafe

        Returns:
            int: Number of keys submitted for deletion
        """
        for key in keys:
            if not key or not is_safe_key(key):
                raise InvalidPathError("Invalid file path")

        await self.store.delete_objects(keys)
        logger.info(f"Deleted {len(keys)} object(s)")

        return len(keys)

    async def fetch(self, route_key: str) -> ObjectBody:
        """
        Resolve a "___" joined route key and load the object

        Raises:
            InvalidPathError: Decoded key escapes the gallery
            ObjectNotFoundError: No object under the key
        """
        key = decode_route_key(route_key)
        if not key or not is_safe_key(key):
            raise InvalidPathError("Invalid file path")

        obj = await self.store.get_object(key)
        if obj is None:
            raise ObjectNotFoundError(f"Object {key} not found")

        return obj
