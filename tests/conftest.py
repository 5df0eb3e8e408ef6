"""Test fixtures: queue items, mocked collaborators and the API test client."""

import itertools
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from attachment_uploader.main import create_app
from attachment_uploader.schemas.queue import PopQueueResponse, QueueStatus, UploadQueueItem
from attachment_uploader.services import init_services, shutdown_services
from attachment_uploader.services.attachment_store import AttachmentFile
from attachment_uploader.services.session import AuthSession


@pytest.fixture
def make_item():
    """Factory for queue items with unique ids and keys."""
    counter = itertools.count(1)

    def _make(**overrides) -> UploadQueueItem:
        n = next(counter)
        data = {
            "id": f"q-{n}",
            "library_id": 1,
            "attachment_key": f"KEY{n:04d}",
            "upload_url": f"https://storage.test/upload/{n}",
            "file_hash": f"hash-{n}",
            "attempts": 0,
        }
        data.update(overrides)
        return UploadQueueItem(**data)

    return _make


@pytest.fixture
def pop_response():
    """Build a PopQueueResponse from items and status counts."""

    def _make(items=(), **status) -> PopQueueResponse:
        return PopQueueResponse(items=list(items), status=QueueStatus(**status))

    return _make


@pytest.fixture
def session():
    return AuthSession(access_token="test-token", user_id="user-1")


@pytest.fixture
def mock_queue():
    queue = MagicMock()
    queue.pop_queue_items = AsyncMock()
    queue.complete_upload = AsyncMock()
    queue.mark_upload_as_failed = AsyncMock()
    queue.reset_upload = AsyncMock()
    return queue


@pytest.fixture
def mock_store(tmp_path):
    store = MagicMock()
    store.resolve = AsyncMock(return_value=AttachmentFile(
        path=tmp_path / "paper.pdf",
        mime_type="application/pdf",
        size_bytes=4,
    ))
    store.read_bytes = AsyncMock(return_value=b"%PDF")
    store.page_count = AsyncMock(return_value=12)
    return store


@pytest.fixture
def mock_http():
    """Patch the httpx client used for object-storage PUTs."""
    client = AsyncMock()
    client.put = AsyncMock(return_value=MagicMock(status_code=200))
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    with patch("attachment_uploader.services.upload_task.httpx.AsyncClient", return_value=client):
        yield client


@pytest_asyncio.fixture
async def services():
    """Initialize the service registry without starting uploads."""
    await init_services()
    yield
    await shutdown_services()


@pytest_asyncio.fixture
async def client(services):
    """Async test client for the control API."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
