from datetime import UTC, datetime

from loguru import logger

from gallery.schemas import StoredObject
from gallery.services.storage.base import ObjectBody


class MemoryObjectStore:
    """
    Process-local object store for local runs and tests.

    Contents are lost on restart and not shared between workers.
    """

    def __init__(self):
        self._objects: dict[str, tuple[ObjectBody, datetime]] = {}

    async def list_objects(self, prefix: str = "") -> list[StoredObject]:
        return [
            StoredObject(
                key=key,
                size=body.size,
                uploaded=uploaded,
                content_type=body.content_type,
                custom_metadata=body.custom_metadata,
            )
            for key, (body, uploaded) in sorted(self._objects.items())
            if key.startswith(prefix)
        ]

    async def get_object(self, key: str) -> ObjectBody | None:
        stored = self._objects.get(key)
        return stored[0] if stored else None

    async def put_object(
        self,
        key: str,
        data: bytes,
        content_type: str | None = None,
        custom_metadata: dict[str, str] | None = None,
    ) -> StoredObject:
        uploaded = datetime.now(UTC)
        body = ObjectBody(
            key=key,
            body=data,
            content_type=content_type,
            custom_metadata=dict(custom_metadata or {}),
        )
        self._objects[key] = (body, uploaded)
        logger.debug(f"Stored {key} in memory ({len(data)} bytes)")

        return StoredObject(
            key=key,
            size=body.size,
            uploaded=uploaded,
            content_type=content_type,
            custom_metadata=body.custom_metadata,
        )

    async def delete_objects(self, keys: str | list[str]) -> None:
        for key in [keys] if isinstance(keys, str) else keys:
            self._objects.pop(key, None)

    async def close(self) -> None:
        self._objects.clear()
