from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from gallery.core.config import AuthMode, settings
from gallery.core.exceptions.storage import StorageError
from gallery.services.storage import MemoryObjectStore, get_object_store

PNG = ("beach.png", b"\x89PNG fake image", "image/png")


@pytest.mark.anyio
class TestListMedia:
    """GET /api/list"""

    async def test_guest_can_list(self, client: AsyncClient, object_store: MemoryObjectStore):
        await object_store.put_object("albums/a.png", b"123", "image/png", {"size": "3"})

        response = await client.get("/api/list")

        assert response.status_code == 200
        body = response.json()
        assert [item["key"] for item in body] == ["albums/a.png"]
        assert body[0]["size"] == 3
        assert body[0]["custom_metadata"] == {"size": "3"}
        assert response.headers["X-RateLimit-Remaining"] == "19"

    async def test_unsafe_keys_are_filtered(
        self, client: AsyncClient, object_store: MemoryObjectStore
    ):
        await object_store.put_object("../secret.png", b"1")
        await object_store.put_object("ok.png", b"1")

        response = await client.get("/api/list")

        assert [item["key"] for item in response.json()] == ["ok.png"]

    async def test_guest_mode_off_requires_identity(
        self, client: AsyncClient, auth_headers: dict[str, str]
    ):
        with patch.object(settings, "guest_mode", False):
            anonymous = await client.get("/api/list")
            owner = await client.get("/api/list", headers=auth_headers)

        assert anonymous.status_code == 401
        assert anonymous.headers["WWW-Authenticate"] == "Bearer"
        assert owner.status_code == 200

    async def test_invalid_token_is_rejected_in_guest_mode(self, client: AsyncClient):
        response = await client.get("/api/list", headers={"Authorization": "Bearer a.b.c"})

        assert response.status_code == 401

    async def test_legacy_credentials(self, client: AsyncClient):
        with patch.object(settings, "auth_mode", AuthMode.LEGACY), patch.object(
            settings, "guest_mode", False
        ):
            good = await client.get(
                "/api/list", headers={"x-username": "owner", "x-password": "P@ssword123"}
            )
            bad = await client.get("/api/list", params={"username": "owner", "password": "x"})

        assert good.status_code == 200
        assert bad.status_code == 401
        assert "WWW-Authenticate" not in bad.headers

    async def test_storage_failure_is_generic_500(self, client: AsyncClient, test_app: FastAPI):
        failing_store = AsyncMock()
        failing_store.list_objects.side_effect = StorageError("bucket unreachable")
        test_app.dependency_overrides[get_object_store] = lambda: failing_store

        response = await client.get("/api/list")

        assert response.status_code == 500
        assert response.json() == {"detail": "Storage operation failed"}


@pytest.mark.anyio
class TestUploadMedia:
    """POST /api/upload"""

    async def test_upload(
        self,
        client: AsyncClient,
        auth_headers: dict[str, str],
        object_store: MemoryObjectStore,
    ):
        response = await client.post(
            "/api/upload", files={"file": PNG}, data={"path": "albums/2024"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "key": "albums/2024/beach.png",
            "metadata": {"size": str(len(PNG[1])), "type": "image/png"},
        }
        stored = await object_store.get_object("albums/2024/beach.png")
        assert stored is not None and stored.body == PNG[1]

    async def test_requires_identity(self, client: AsyncClient, object_store: MemoryObjectStore):
        response = await client.post("/api/upload", files={"file": PNG})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert await object_store.list_objects() == []

    async def test_unsupported_type(self, client: AsyncClient, auth_headers: dict[str, str]):
        response = await client.post(
            "/api/upload", files={"file": ("x.html", b"<html>", "text/html")}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Unsupported file type: text/html"}

    @pytest.mark.parametrize("path", ["../outside", "/absolute", "a\\..\\b"])
    async def test_path_traversal(
        self, client: AsyncClient, auth_headers: dict[str, str], path: str
    ):
        response = await client.post(
            "/api/upload", files={"file": PNG}, data={"path": path}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid path"}

    async def test_oversized_file(self, client: AsyncClient, auth_headers: dict[str, str]):
        with patch.object(settings, "max_file_size_bytes", 4):
            response = await client.post("/api/upload", files={"file": PNG}, headers=auth_headers)

        assert response.status_code == 400

    async def test_oversized_file_is_rejected_before_reading(
        self, client: AsyncClient, auth_headers: dict[str, str]
    ):
        with (
            patch.object(settings, "max_file_size_bytes", 4),
            patch(
                "starlette.datastructures.UploadFile.read", new_callable=AsyncMock
            ) as mock_read,
        ):
            response = await client.post("/api/upload", files={"file": PNG}, headers=auth_headers)

        assert response.status_code == 400
        assert "size limit" in response.json()["detail"]
        mock_read.assert_not_awaited()

    async def test_quota_exceeded(
        self,
        client: AsyncClient,
        auth_headers: dict[str, str],
        object_store: MemoryObjectStore,
    ):
        await object_store.put_object("big.mp4", b"x" * 100)

        with patch.object(settings, "max_storage_bytes", 100):
            response = await client.post("/api/upload", files={"file": PNG}, headers=auth_headers)

        assert response.status_code == 400
        assert "storage" in response.json()["detail"]

    async def test_missing_file(self, client: AsyncClient, auth_headers: dict[str, str]):
        response = await client.post("/api/upload", data={"path": "a"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid request parameters"}

    async def test_rate_limit_runs_before_authentication(self, client: AsyncClient):
        statuses = [
            (await client.post("/api/upload", files={"file": PNG})).status_code for _ in range(11)
        ]

        assert statuses == [401] * 10 + [429]


@pytest.mark.anyio
class TestDeleteMedia:
    """DELETE /api/upload"""

    async def test_delete_single_key(
        self,
        client: AsyncClient,
        auth_headers: dict[str, str],
        object_store: MemoryObjectStore,
    ):
        await object_store.put_object("a.png", b"1")

        response = await client.request(
            "DELETE", "/api/upload", json={"key": "a.png"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "deleted": 1}
        assert await object_store.get_object("a.png") is None

    async def test_delete_many(
        self,
        client: AsyncClient,
        auth_headers: dict[str, str],
        object_store: MemoryObjectStore,
    ):
        await object_store.put_object("a.png", b"1")
        await object_store.put_object("b/c.png", b"1")

        response = await client.request(
            "DELETE", "/api/upload", json={"keys": ["a.png", "b/c.png"]}, headers=auth_headers
        )

        assert response.json() == {"success": True, "deleted": 2}
        assert await object_store.list_objects() == []

    async def test_unsafe_key_deletes_nothing(
        self,
        client: AsyncClient,
        auth_headers: dict[str, str],
        object_store: MemoryObjectStore,
    ):
        await object_store.put_object("a.png", b"1")

        response = await client.request(
            "DELETE", "/api/upload", json={"keys": ["a.png", "../b.png"]}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid file path"}
        assert await object_store.get_object("a.png") is not None

    @pytest.mark.parametrize("payload", [{}, {"keys": []}, {"key": ""}, {"keys": "a.png"}])
    async def test_invalid_body(
        self, client: AsyncClient, auth_headers: dict[str, str], payload: dict
    ):
        response = await client.request(
            "DELETE", "/api/upload", json=payload, headers=auth_headers
        )

        assert response.status_code == 400

    async def test_requires_identity(self, client: AsyncClient):
        response = await client.request("DELETE", "/api/upload", json={"key": "a.png"})

        assert response.status_code == 401
