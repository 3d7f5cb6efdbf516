import os

import pytest
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing app.config.settings/app.main (settings load at import time)
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173")

from app.main import app as fastapi_app  # noqa: E402
from app.core.attachments import AttachmentPolicy, get_attachment_policy  # noqa: E402
from app.core.session import SessionStore  # noqa: E402
from app.database.supabase_client import get_supabase, get_data_client  # noqa: E402
from app.modules.posts import interactions  # noqa: E402

from fakes import FakeSupabase  # noqa: E402

# Small limits so oversized uploads stay cheap to build in tests
TEST_MAX_IMAGE_BYTES = 1024
TEST_MAX_FILE_BYTES = 4096


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def session_store(supabase):
    store = SessionStore(ttl_seconds=60, max_size=100)
    store.start(supabase)
    yield store
    store.stop()


@pytest.fixture
async def client(supabase, session_store):
    """
    ASGITransport does not run startup events, so the session store is put on
    app.state here and both Supabase clients are replaced by the in-memory fake.
    """
    fastapi_app.dependency_overrides[get_supabase] = lambda: supabase
    fastapi_app.dependency_overrides[get_data_client] = lambda: supabase
    fastapi_app.dependency_overrides[get_attachment_policy] = lambda: AttachmentPolicy(
        max_image_bytes=TEST_MAX_IMAGE_BYTES, max_file_bytes=TEST_MAX_FILE_BYTES
    )
    fastapi_app.state.session_store = session_store

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.session_store = None
    with interactions._lock:
        interactions._in_flight.clear()


@pytest.fixture
def user_factory(supabase):
    def _create(full_name: str = "Test User", email: str | None = None):
        return supabase.add_user(email=email, full_name=full_name)

    return _create
