import pytest

from app.main import app as fastapi_app

pytestmark = pytest.mark.anyio


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy"}
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"


async def test_ready_once_session_store_started(client):
    r = await client.get("/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ready"}


async def test_not_ready_without_session_store(client):
    store = fastapi_app.state.session_store
    fastapi_app.state.session_store = None
    try:
        r = await client.get("/ready")
    finally:
        fastapi_app.state.session_store = store
    assert r.status_code == 503
