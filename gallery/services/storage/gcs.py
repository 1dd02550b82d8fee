import asyncio
from pathlib import Path
from typing import Any

import aiohttp
from gcloud.aio.storage import Storage
from loguru import logger
from starlette import status

from gallery.core.exceptions.storage import StorageError
from gallery.schemas import StoredObject
from gallery.services.storage.base import ObjectBody

_STORAGE_FAILURES = (aiohttp.ClientError, asyncio.TimeoutError)


def _to_stored_object(item: dict[str, Any]) -> StoredObject:
    return StoredObject(
        key=item["name"],
        size=int(item.get("size", 0)),
        uploaded=item.get("timeCreated"),
        content_type=item.get("contentType"),
        custom_metadata=item.get("metadata") or {},
    )


def _is_not_found(error: Exception) -> bool:
    return (
        isinstance(error, aiohttp.ClientResponseError)
        and error.status == status.HTTP_404_NOT_FOUND
    )


class GCSObjectStore:
    """
    Object store backed by a Google Cloud Storage bucket.

    The underlying aiohttp session is created on first use and released by
    `close()` at application shutdown.

    Example usage:
        store = GCSObjectStore("my-gallery", service_file="service_account.json")
        await store.put_object("albums/beach.jpg", data, "image/jpeg")
        await store.close()
    """

    def __init__(self, bucket_name: str, service_file: Path | str | None = None):
        self.bucket_name = bucket_name
        self._service_file = str(service_file) if service_file is not None else None
        self._storage: Storage | None = None

    @property
    def storage(self) -> Storage:
        if self._storage is None:
            self._storage = Storage(service_file=self._service_file)

        return self._storage

    async def list_objects(self, prefix: str = "") -> list[StoredObject]:
        """
        List every object under a prefix, following page tokens

        Args:
            prefix (str): Key prefix, empty for the whole bucket

        Returns:
            List of StoredObject, folder placeholders excluded
        """
        objects: list[StoredObject] = []
        params = {"prefix": prefix, "maxResults": "1000"}

        try:
            while True:
                page = await self.storage.list_objects(self.bucket_name, params=params)

                for item in page.get("items", []):
                    name: str = item.get("name", "")
                    if name and not name.endswith("/"):
                        objects.append(_to_stored_object(item))

                page_token = page.get("nextPageToken")
                if not page_token:
                    break

                params["pageToken"] = page_token
        except _STORAGE_FAILURES as e:
            raise StorageError(f"Failed to list objects under '{prefix}'", e)

        return objects

    async def get_object(self, key: str) -> ObjectBody | None:
        """
        Download an object with its metadata

        Args:
            key (str): Object key in the bucket

        Returns:
            ObjectBody or None when the object does not exist
        """
        try:
            metadata = await self.storage.download_metadata(
                bucket=self.bucket_name,
                object_name=key,
            )
            data = await self.storage.download(
                bucket=self.bucket_name,
                object_name=key,
            )
        except _STORAGE_FAILURES as e:
            if _is_not_found(e):
                return None

            raise StorageError(f"Failed to download {key}", e)

        return ObjectBody(
            key=key,
            body=data,
            content_type=metadata.get("contentType"),
            custom_metadata=metadata.get("metadata") or {},
        )

    async def put_object(
        self,
        key: str,
        data: bytes,
        content_type: str | None = None,
        custom_metadata: dict[str, str] | None = None,
    ) -> StoredObject:
        """
        Upload bytes to the bucket

        Args:
            key (str): Destination object key
            data (bytes): Object content
            content_type (str | None): MIME type
            custom_metadata (dict[str, str] | None): Custom object metadata

        Returns:
            StoredObject describing the uploaded object
        """
        try:
            resource = await self.storage.upload(
                bucket=self.bucket_name,
                object_name=key,
                file_data=data,
                content_type=content_type,
                metadata={"metadata": custom_metadata or {}},
            )
        except _STORAGE_FAILURES as e:
            raise StorageError(f"Failed to upload {key}", e)

        logger.info(f"Uploaded {key} to bucket {self.bucket_name}")
        return _to_stored_object({"name": key, "size": len(data), **resource})

    async def delete_objects(self, keys: str | list[str]) -> None:
        """
        Delete one or several objects, unknown keys are ignored

        Args:
            keys (str | list[str]): Object key or list of keys
        """
        key_list = [keys] if isinstance(keys, str) else keys

        results = await asyncio.gather(
            *(self.storage.delete(bucket=self.bucket_name, object_name=key) for key in key_list),
            return_exceptions=True,
        )

        for key, result in zip(key_list, results):
            if isinstance(result, _STORAGE_FAILURES) and not _is_not_found(result):
                raise StorageError(f"Failed to delete {key}", result)
            if isinstance(result, BaseException) and not isinstance(result, _STORAGE_FAILURES):
                raise result

        logger.info(f"Deleted {len(key_list)} object(s) from bucket {self.bucket_name}")

    async def close(self) -> None:
        if self._storage is not None:
            await self._storage.close()
            self._storage = None
