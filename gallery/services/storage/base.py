from dataclasses import dataclass, field
from typing import Protocol

from gallery.schemas import StoredObject


@dataclass
class ObjectBody:
    """Object payload returned by a fetch"""

    key: str
    body: bytes
    content_type: str | None = None
    custom_metadata: dict[str, str] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.body)


class ObjectStore(Protocol):
    """
    Blob store holding the gallery media.

    Implementations raise StorageError for backend failures and never for a
    missing key: `get_object` returns None and `delete_objects` ignores
    unknown keys.
    """

    async def list_objects(self, prefix: str = "") -> list[StoredObject]: ...

    async def get_object(self, key: str) -> ObjectBody | None: ...

    async def put_object(
        self,
        key: str,
        data: bytes,
        content_type: str | None = None,
        custom_metadata: dict[str, str] | None = None,
    ) -> StoredObject: ...

    async def delete_objects(self, keys: str | list[str]) -> None: ...

    async def close(self) -> None: ...


async def get_storage_usage(store: ObjectStore, prefix: str = "") -> int:
    """
    Sum the size of every object under a prefix.

    Args:
        store: Object store to scan
        prefix: Key prefix, empty for the whole store

    Returns:
        int: Total size in bytes
    """
    return sum(item.size for item in await store.list_objects(prefix))
