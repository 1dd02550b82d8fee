import pytest
from faker import Faker

from gallery.services.storage import MemoryObjectStore, get_storage_usage


class TestMemoryObjectStore:
    @pytest.mark.anyio
    async def test_put_get_and_list(self, faker: Faker):
        store = MemoryObjectStore()
        data = faker.binary(length=128)

        stored = await store.put_object("albums/a.png", data, "image/png", {"type": "image/png"})
        await store.put_object("albums/b.mp4", b"video", "video/mp4")
        await store.put_object("other/c.png", b"x", "image/png")

        assert stored.size == 128
        assert stored.uploaded is not None

        body = await store.get_object("albums/a.png")
        assert body is not None
        assert body.body == data
        assert body.content_type == "image/png"
        assert body.custom_metadata == {"type": "image/png"}

        listed = await store.list_objects("albums/")
        assert [item.key for item in listed] == ["albums/a.png", "albums/b.mp4"]

    @pytest.mark.anyio
    async def test_missing_object_is_none(self):
        assert await MemoryObjectStore().get_object("nope.png") is None

    @pytest.mark.anyio
    async def test_delete_one_or_many(self):
        store = MemoryObjectStore()
        for key in ("a", "b", "c"):
            await store.put_object(key, b"1")

        await store.delete_objects("a")
        await store.delete_objects(["b", "unknown"])

        assert [item.key for item in await store.list_objects()] == ["c"]

    @pytest.mark.anyio
    async def test_storage_usage(self):
        store = MemoryObjectStore()
        await store.put_object("media/a", b"12345")
        await store.put_object("media/b", b"123")
        await store.put_object("elsewhere/c", b"1234567")

        assert await get_storage_usage(store, "media/") == 8
        assert await get_storage_usage(store) == 15
