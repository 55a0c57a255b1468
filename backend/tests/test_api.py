"""
TagNotes Backend: HTTP API Tests
================================

What:  End-to-end tests of the /api/notes endpoints and /health.
How:   HTTPX AsyncClient over ASGITransport; the app runs its real lifespan
       against a per-test SQLite file.

What we test:
    ✅ Status codes for every endpoint's success path
    ✅ 400 / 404 / 500 mapping and error body shape
    ✅ Tag filter query parameter
    ✅ Request ID header, static browser client
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError


async def _create(client, **overrides):
    body = {"title": "Shopping", "content": "Milk, eggs", "tags": "Food, urgent, food"}
    body.update(overrides)
    response = await client.post("/api/notes", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestNotesEndpoints:

    @pytest.mark.asyncio
    async def test_create_returns_201_with_normalized_tags(self, test_client):
        note = await _create(test_client)

        assert note["title"] == "Shopping"
        assert sorted(note["tags"]) == ["food", "urgent"]
        assert {"id", "created_at", "updated_at"} <= note.keys()

    @pytest.mark.asyncio
    async def test_list_notes(self, test_client):
        first = await _create(test_client, title="First")
        second = await _create(test_client, title="Second")

        response = await test_client.get("/api/notes")

        assert response.status_code == 200
        assert [n["id"] for n in response.json()] == [second["id"], first["id"]]

    @pytest.mark.asyncio
    async def test_list_notes_by_tag(self, test_client):
        work = await _create(test_client, tags=["work"])
        await _create(test_client, tags=["home"])

        response = await test_client.get("/api/notes", params={"tag": "work"})

        assert response.status_code == 200
        assert [n["id"] for n in response.json()] == [work["id"]]

    @pytest.mark.asyncio
    async def test_list_tags(self, test_client):
        await _create(test_client, tags="b, a")
        await _create(test_client, tags=["c"])

        response = await test_client.get("/api/notes/tags")

        assert response.status_code == 200
        assert response.json() == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_get_note(self, test_client):
        note = await _create(test_client)

        response = await test_client.get(f"/api/notes/{note['id']}")

        assert response.status_code == 200
        assert response.json() == note

    @pytest.mark.asyncio
    async def test_get_missing_note_is_404(self, test_client):
        response = await test_client.get("/api/notes/999")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert "999" in body["message"]

    @pytest.mark.asyncio
    async def test_create_invalid_is_400_naming_field(self, test_client):
        response = await test_client.post("/api/notes", json={"title": "", "content": "x"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["field"] == "title"

    @pytest.mark.asyncio
    async def test_create_with_non_object_body_is_400(self, test_client):
        response = await test_client.post("/api/notes", json=["not", "an", "object"])

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "body"

    @pytest.mark.asyncio
    async def test_create_with_malformed_json_is_400(self, test_client):
        response = await test_client.post(
            "/api/notes",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_update_note(self, test_client):
        note = await _create(test_client)

        response = await test_client.put(
            f"/api/notes/{note['id']}",
            json={"title": note["title"], "content": note["content"], "tags": []},
        )

        assert response.status_code == 200
        updated = response.json()
        assert updated["tags"] == []
        assert updated["title"] == note["title"]

    @pytest.mark.asyncio
    async def test_update_missing_is_404(self, test_client):
        response = await test_client.put("/api/notes/77", json={"title": "t", "content": "c"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_invalid_is_400(self, test_client):
        note = await _create(test_client)

        response = await test_client.put(
            f"/api/notes/{note['id']}", json={"title": "t", "content": "c" * 1000}
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "content"

    @pytest.mark.asyncio
    async def test_delete_note(self, test_client):
        note = await _create(test_client)

        response = await test_client.delete(f"/api/notes/{note['id']}")

        assert response.status_code == 204
        assert response.content == b""
        assert (await test_client.get(f"/api/notes/{note['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_missing_is_404(self, test_client):
        response = await test_client.delete("/api/notes/5")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_non_integer_id_is_400(self, test_client):
        response = await test_client.get("/api/notes/abc")
        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("note_id", [0, -1, 2**31, 2**63, 2**70])
    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
    async def test_id_outside_column_range_is_404(self, test_client, method, note_id):
        body = {"title": "t", "content": "c"} if method == "PUT" else None

        response = await test_client.request(method, f"/api/notes/{note_id}", json=body)

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_storage_failure_is_generic_500(self, test_client):
        storage = test_client.app.state.storage
        storage.list_all = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("secret driver detail"))
        )

        response = await test_client.get("/api/notes")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "secret driver detail" not in response.text


class TestAmbient:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_health_reports_unreachable_database(self, test_client):
        test_client.app.state.storage.ping = AsyncMock(side_effect=OSError("refused"))

        response = await test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_request_id_header_echoed(self, test_client):
        response = await test_client.get("/api/notes", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_request_id_generated_and_in_error_body(self, test_client):
        response = await test_client.get("/api/notes/404")

        rid = response.headers["X-Request-ID"]
        assert len(rid) == 8
        assert response.json()["request_id"] == rid

    @pytest.mark.asyncio
    async def test_browser_client_served(self, test_client):
        response = await test_client.get("/")

        assert response.status_code == 200
        assert "TagNotes" in response.text
