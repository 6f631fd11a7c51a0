"""
Tutorials API: Middleware Tests
===============================

What:  The HTTP pipeline in front of the routes.
How:   Requests through httpx.AsyncClient; the fake collection's `calls` list
       shows whether a request reached a handler.

What we test:
    ✅ CORS allow-list: allowed, absent and rejected origins
    ✅ Body size cap, with and without Content-Length
    ✅ Security headers, request IDs and gzip compression
    ✅ Optional per-IP rate limiting
"""

import pytest
from httpx import ASGITransport, AsyncClient

from tutorials_api.config import Settings
from tutorials_api.main import create_app
from tutorials_api.middleware.security_headers import SECURITY_HEADERS

API = "/api/tutorials"
ALLOWED_ORIGIN = "http://localhost:4200"


class TestCORS:

    @pytest.mark.asyncio
    async def test_allowed_origin(self, test_client):
        response = await test_client.get(API, headers={"Origin": ALLOWED_ORIGIN})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN

    @pytest.mark.asyncio
    async def test_second_listed_origin(self, test_client):
        origin = "https://tutorials.example.com"
        response = await test_client.get(API, headers={"Origin": origin})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == origin

    @pytest.mark.asyncio
    async def test_no_origin_is_allowed(self, test_client):
        response = await test_client.get(API)

        assert response.status_code == 200
        assert "access-control-allow-origin" not in response.headers

    @pytest.mark.asyncio
    async def test_disallowed_origin_never_reaches_handler(self, test_client, fake_collection):
        response = await test_client.post(
            API, json={"title": "x"}, headers={"Origin": "https://evil.example"}
        )

        assert response.status_code == 403
        assert response.json()["error"] == "cors_rejected"
        assert response.json()["message"] == "Not allowed by CORS"
        assert fake_collection.calls == []

    @pytest.mark.asyncio
    async def test_rejections_share_error_body(self, test_client):
        rejected_origin = await test_client.get(
            API, headers={"Origin": "https://evil.example", "X-Request-ID": "cors-1"}
        )
        too_large = await test_client.post(
            API, content=b"x" * 11_000, headers={"X-Request-ID": "body-1"}
        )

        assert rejected_origin.json() == {
            "error": "cors_rejected",
            "message": "Not allowed by CORS",
            "request_id": "cors-1",
        }
        assert too_large.json() == {
            "error": "payload_too_large",
            "message": "Payload too large",
            "details": {"limit": 10_240},
            "request_id": "body-1",
        }

    @pytest.mark.asyncio
    async def test_preflight_allowed(self, test_client):
        response = await test_client.options(
            API,
            headers={"Origin": ALLOWED_ORIGIN, "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN

    @pytest.mark.asyncio
    async def test_preflight_disallowed(self, test_client):
        response = await test_client.options(
            API,
            headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_wildcard_allows_any_origin(self, fake_connector):
        app = create_app(Settings(cors_origin="*"), connector=fake_connector)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get(API, headers={"Origin": "https://anything.example"})
        assert response.status_code == 200


class TestBodySizeLimit:

    @pytest.mark.asyncio
    async def test_oversized_body_is_413(self, test_client, fake_collection):
        response = await test_client.post(
            API,
            json={"title": "big", "description": "x" * 11_000},
        )

        assert response.status_code == 413
        body = response.json()
        assert body["error"] == "payload_too_large"
        assert body["message"] == "Payload too large"
        assert body["details"] == {"limit": 10_240}
        assert fake_collection.calls == []

    @pytest.mark.asyncio
    async def test_oversized_invalid_json_is_413_not_400(self, test_client):
        response = await test_client.post(
            API,
            content=b"{" * 11_000,
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 413

    @pytest.mark.asyncio
    async def test_oversized_form_body_is_413(self, test_client):
        response = await test_client.post(
            API,
            content=b"a=" + b"b" * 11_000,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 413

    @pytest.mark.asyncio
    async def test_chunked_body_without_content_length(self, test_client, fake_collection):
        async def chunks():
            for _ in range(11):
                yield b"x" * 1024

        response = await test_client.post(
            API, content=chunks(), headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 413
        assert fake_collection.calls == []

    @pytest.mark.asyncio
    async def test_body_at_limit_is_accepted(self, test_client):
        prefix, suffix = '{"title":"x","description":"', '"}'
        padding = "a" * (10_240 - len(prefix) - len(suffix))
        content = (prefix + padding + suffix).encode()
        assert len(content) == 10_240

        response = await test_client.post(
            API, content=content, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 201


class TestResponseHeaders:

    @pytest.mark.asyncio
    async def test_security_headers_present(self, test_client):
        response = await test_client.get("/")

        for name, value in SECURITY_HEADERS.items():
            assert response.headers[name] == value

    @pytest.mark.asyncio
    async def test_security_headers_on_errors(self, test_client):
        response = await test_client.get("/nope")

        assert response.status_code == 404
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"

    @pytest.mark.asyncio
    async def test_docs_served_without_csp(self, test_client):
        response = await test_client.get("/docs")

        assert response.status_code == 200
        assert "Content-Security-Policy" not in response.headers
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/nope", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"

    @pytest.mark.asyncio
    async def test_large_response_is_gzipped(self, test_client):
        for i in range(10):
            await test_client.post(API, json={"title": f"Tutorial {i}", "description": "d" * 50})

        response = await test_client.get(API, headers={"Accept-Encoding": "gzip"})

        assert response.status_code == 200
        assert response.headers["content-encoding"] == "gzip"
        assert len(response.json()) == 10

    @pytest.mark.asyncio
    async def test_small_response_not_compressed(self, test_client):
        response = await test_client.get("/", headers={"Accept-Encoding": "gzip"})
        assert "content-encoding" not in response.headers


class TestRateLimit:

    @pytest.fixture
    def limited_app(self, fake_connector):
        app_settings = Settings(rate_limit_enabled=True, rate_limit_requests=2, rate_limit_window=60)
        return create_app(app_settings, connector=fake_connector)

    @pytest.mark.asyncio
    async def test_rejects_after_limit(self, limited_app):
        async with AsyncClient(transport=ASGITransport(app=limited_app), base_url="http://test") as client:
            assert (await client.get(API)).status_code == 200
            assert (await client.get(API)).status_code == 200
            response = await client.get(API)

        assert response.status_code == 429
        assert response.json()["error"] == "rate_limit_exceeded"
        assert 1 <= int(response.headers["Retry-After"]) <= 61
        assert response.json()["details"] == {"retry_after": int(response.headers["Retry-After"])}
        assert response.json()["request_id"]

    @pytest.mark.asyncio
    async def test_health_is_exempt(self, limited_app):
        async with AsyncClient(transport=ASGITransport(app=limited_app), base_url="http://test") as client:
            statuses = [(await client.get("/health")).status_code for _ in range(5)]
        assert statuses == [200] * 5

    @pytest.mark.asyncio
    async def test_disabled_by_default(self, test_client):
        statuses = [(await test_client.get("/")).status_code for _ in range(5)]
        assert statuses == [200] * 5
