"""
Tutorials API: Tutorial Route Tests
===================================

What:  HTTP-level tests for /api/tutorials.
How:   httpx.AsyncClient against create_app() with the in-memory fake store.

What we test:
    ✅ The create → filter → update → delete-all walkthrough
    ✅ Status codes and error bodies for bad input, unknown ids and store failures
    ✅ /published is not captured as an id
"""

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

API = "/api/tutorials"


class TestTutorialWalkthrough:

    @pytest.mark.asyncio
    async def test_create_filter_update_delete_all(self, test_client, tutorial_payload):
        created = await test_client.post(API, json=tutorial_payload)
        assert created.status_code == 201
        body = created.json()
        assert body["title"] == "Learn Go"
        assert body["description"] == "basics"
        assert body["published"] is False
        tutorial_id = body["id"]

        found = await test_client.get(API, params={"title": "Go"})
        assert found.status_code == 200
        assert [t["id"] for t in found.json()] == [tutorial_id]

        updated = await test_client.put(f"{API}/{tutorial_id}", json={"published": True})
        assert updated.status_code == 200
        assert updated.json()["published"] is True
        assert updated.json()["title"] == "Learn Go"

        fetched = await test_client.get(f"{API}/{tutorial_id}")
        assert fetched.status_code == 200
        record = fetched.json()
        assert record["published"] is True
        assert record["title"] == "Learn Go"
        assert record["description"] == "basics"
        assert record["created_at"] == body["created_at"]

        deleted = await test_client.delete(API)
        assert deleted.status_code == 200
        assert deleted.json() == {
            "message": "1 Tutorials were deleted successfully!",
            "deleted_count": 1,
        }

        remaining = await test_client.get(API)
        assert remaining.json() == []

    @pytest.mark.asyncio
    async def test_create_then_get_returns_same_record(self, test_client, tutorial_payload):
        created = (await test_client.post(API, json=tutorial_payload)).json()

        fetched = await test_client.get(f"{API}/{created['id']}")

        assert fetched.status_code == 200
        assert fetched.json() == created

    @pytest.mark.asyncio
    async def test_delete_then_get_is_404(self, test_client, tutorial_payload):
        created = (await test_client.post(API, json=tutorial_payload)).json()

        deleted = await test_client.delete(f"{API}/{created['id']}")
        assert deleted.status_code == 200
        assert deleted.json() == {
            "message": "Tutorial was deleted successfully!",
            "id": created["id"],
        }

        response = await test_client.get(f"{API}/{created['id']}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestTutorialQueries:

    @pytest.mark.asyncio
    async def test_title_filter_is_case_insensitive(self, test_client):
        for title in ("Learn Go", "Go concurrency", "Python basics"):
            await test_client.post(API, json={"title": title})

        response = await test_client.get(API, params={"title": "GO"})

        assert {t["title"] for t in response.json()} == {"Learn Go", "Go concurrency"}

    @pytest.mark.asyncio
    async def test_published_route_is_not_an_id(self, test_client):
        await test_client.post(API, json={"title": "Draft"})
        await test_client.post(API, json={"title": "Released", "published": True})

        response = await test_client.get(f"{API}/published")

        assert response.status_code == 200
        assert [t["title"] for t in response.json()] == ["Released"]


class TestTutorialErrors:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"title": ""}, {"title": "   "}, {"description": "x"}])
    async def test_create_requires_title(self, test_client, fake_collection, payload):
        response = await test_client.post(API, json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert fake_collection.documents == []

    @pytest.mark.asyncio
    async def test_blank_title_message(self, test_client):
        response = await test_client.post(API, json={"title": " "})
        assert response.json()["message"] == "Content can not be empty!"

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(self, test_client):
        response = await test_client.post(
            API, content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["get", "delete"])
    async def test_malformed_id_is_400(self, test_client, method):
        response = await getattr(test_client, method)(f"{API}/not-an-id")

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"] == {"field": "id"}

    @pytest.mark.asyncio
    async def test_update_malformed_id_is_400(self, test_client):
        response = await test_client.put(f"{API}/not-an-id", json={"title": "x"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_id_is_404(self, test_client):
        missing = str(ObjectId())

        got = await test_client.get(f"{API}/{missing}")
        put = await test_client.put(f"{API}/{missing}", json={"title": "x"})
        deleted = await test_client.delete(f"{API}/{missing}")

        assert got.status_code == put.status_code == deleted.status_code == 404
        assert got.json()["message"] == f"Not found Tutorial with id {missing}"
        assert put.json()["message"].startswith(f"Cannot update Tutorial with id={missing}")
        assert deleted.json()["message"].startswith(f"Cannot delete Tutorial with id={missing}")

    @pytest.mark.asyncio
    async def test_empty_update_is_400(self, test_client, tutorial_payload):
        created = (await test_client.post(API, json=tutorial_payload)).json()

        response = await test_client.put(f"{API}/{created['id']}", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "Data to update can not be empty!"

    @pytest.mark.asyncio
    async def test_update_rejects_null_title(self, test_client, tutorial_payload):
        created = (await test_client.post(API, json=tutorial_payload)).json()

        response = await test_client.put(f"{API}/{created['id']}", json={"title": None})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_store_failure_is_generic_500(self, test_client, fake_collection):
        fake_collection.failure = ServerSelectionTimeoutError("mongo-7.internal:27017 timed out")

        response = await test_client.get(API)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "mongo-7.internal" not in response.text
        assert body["request_id"]
