from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from gallery.core.config import settings
from gallery.core.exceptions.storage import StorageError
from gallery.services.storage import MemoryObjectStore, get_object_store


@pytest.mark.anyio
class TestGetObject:
    """GET /r2/{key}"""

    async def test_serves_object(self, client: AsyncClient, object_store: MemoryObjectStore):
        await object_store.put_object("albums/beach day.png", b"png-bytes", "image/png")

        response = await client.get("/r2/albums___beach%20day.png")

        assert response.status_code == 200
        assert response.content == b"png-bytes"
        assert response.headers["content-type"] == "image/png"
        assert response.headers["cache-control"] == "public, max-age=31536000"
        assert response.headers["X-RateLimit-Limit"] == "300"

    async def test_unknown_content_type(self, client: AsyncClient, object_store: MemoryObjectStore):
        await object_store.put_object("blob", b"\x00\x01")

        response = await client.get("/r2/blob")

        assert response.headers["content-type"] == "application/octet-stream"

    async def test_missing_object(self, client: AsyncClient):
        response = await client.get("/r2/albums___missing.png")

        assert response.status_code == 404
        assert response.json() == {"detail": "Not found"}

    async def test_parent_segments_are_rejected(self, client: AsyncClient):
        response = await client.get("/r2/..___secret.png")

        assert response.status_code == 400

    async def test_guest_mode_off(
        self,
        client: AsyncClient,
        auth_headers: dict[str, str],
        object_store: MemoryObjectStore,
    ):
        await object_store.put_object("a.png", b"1", "image/png")

        with patch.object(settings, "guest_mode", False):
            anonymous = await client.get("/r2/a.png")
            owner = await client.get("/r2/a.png", headers=auth_headers)

        assert anonymous.status_code == 401
        assert owner.status_code == 200

    async def test_storage_failure(self, client: AsyncClient, test_app: FastAPI):
        failing_store = AsyncMock()
        failing_store.get_object.side_effect = StorageError("timeout")
        test_app.dependency_overrides[get_object_store] = lambda: failing_store

        response = await client.get("/r2/a.png")

        assert response.status_code == 500
        assert response.json() == {"detail": "Storage operation failed"}

    async def test_throttled(self, client: AsyncClient, object_store: MemoryObjectStore):
        await object_store.put_object("a.png", b"1", "image/png")

        with patch.object(settings, "rate_limit_object_requests", 2):
            statuses = [(await client.get("/r2/a.png")).status_code for _ in range(3)]

        assert statuses == [200, 200, 429]
