"""
NoteShelf Backend — Middleware Tests
======================================

What we test:
    ✅ Rate limiter answers 429 with Retry-After once the window is full
    ✅ Excluded paths are never limited
    ✅ Request ids are generated when absent and echoed when supplied
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from noteshelf.middleware.rate_limit import RateLimitMiddleware
from noteshelf.middleware.request_id import RequestIDMiddleware, request_id_var


def _build_app(max_requests: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60)

    @app.get("/ping")
    async def ping():
        return {"request_id": request_id_var.get("")}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


@pytest.mark.asyncio
async def test_rate_limit_exceeded():
    transport = ASGITransport(app=_build_app(max_requests=2))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        assert (await client.get("/ping")).status_code == 200
        assert (await client.get("/ping")).status_code == 200

        limited = await client.get("/ping")

    assert limited.status_code == 429
    assert limited.json()["error"] == "rate_limit_exceeded"
    assert 1 <= int(limited.headers["Retry-After"]) <= 61


@pytest.mark.asyncio
async def test_health_is_never_limited():
    transport = ASGITransport(app=_build_app(max_requests=1))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        statuses = [(await client.get("/health")).status_code for _ in range(5)]
    assert statuses == [200] * 5


@pytest.mark.asyncio
async def test_request_id_generated_and_visible_to_handlers():
    transport = ASGITransport(app=_build_app(max_requests=100))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/ping")

    rid = response.headers["X-Request-ID"]
    assert len(rid) == 8
    assert response.json()["request_id"] == rid


@pytest.mark.asyncio
async def test_oversized_client_request_id_replaced():
    transport = ASGITransport(app=_build_app(max_requests=100))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/ping", headers={"X-Request-ID": "x" * 200})
    assert response.headers["X-Request-ID"] != "x" * 200
