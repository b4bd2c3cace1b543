"""
FieldSync Backend: Middleware Tests
====================================

What:  Rate limiting on a minimal app (so limits can be tiny) and access
       log levels.
"""

import logging

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from fieldsync.middleware.logging import level_for
from fieldsync.middleware.rate_limit import RateLimitMiddleware
from fieldsync.middleware.request_id import RequestIDMiddleware


def build_app(max_requests: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60)

    @app.get("/get-reports")
    async def reports():
        return {"success": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


@pytest.mark.asyncio
async def test_rate_limit_returns_envelope_after_limit():
    transport = ASGITransport(app=build_app(max_requests=2))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        assert (await client.get("/get-reports")).status_code == 200
        assert (await client.get("/get-reports")).status_code == 200

        blocked = await client.get("/get-reports")

    assert blocked.status_code == 429
    assert blocked.json()["success"] is False
    assert blocked.json()["message"].startswith("Demasiadas solicitudes")
    assert 1 <= int(blocked.headers["retry-after"]) <= 61


@pytest.mark.asyncio
async def test_probes_not_counted():
    transport = ASGITransport(app=build_app(max_requests=1))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        for _ in range(5):
            assert (await client.get("/health")).status_code == 200
        assert (await client.get("/get-reports")).status_code == 200
        assert (await client.get("/get-reports")).status_code == 429


@pytest.mark.parametrize(
    "status, elapsed_ms, expected",
    [
        (200, 12.0, logging.INFO),
        (201, 5000.0, logging.WARNING),
        (409, 3.0, logging.WARNING),
        (500, 3.0, logging.ERROR),
    ],
)
def test_access_log_level(status, elapsed_ms, expected):
    assert level_for(status, elapsed_ms) == expected
