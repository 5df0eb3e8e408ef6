"""Tests for the queue service REST client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from attachment_uploader.exceptions import NotAuthenticatedError
from attachment_uploader.services.queue_service import QueueServiceClient


def _response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = b"{}" if payload is not None else b""
    resp.json.return_value = payload
    resp.raise_for_status = MagicMock()
    return resp


@pytest.fixture
def http():
    client = AsyncMock()
    client.request = AsyncMock(return_value=_response(payload={}))
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    with patch("attachment_uploader.services.queue_service.httpx.AsyncClient", return_value=client):
        yield client


@pytest.fixture
def queue(session):
    return QueueServiceClient(session, base_url="http://api.test/", timeout=5)


class TestPop:
    @pytest.mark.asyncio
    async def test_pop_parses_items_and_status(self, queue, http):
        http.request.return_value = _response(payload={
            "items": [{
                "id": "q-1",
                "library_id": 1,
                "attachment_key": "ABCD1234",
                "upload_url": "https://storage.test/put/1",
                "file_hash": "abc",
                "attempts": 1,
                "status": "in_progress",
            }],
            "status": {"pending": 7, "in_progress": 1, "completed": 2, "failed": 0, "total": 10},
        })

        response = await queue.pop_queue_items(3)

        assert len(response.items) == 1
        assert response.items[0].attachment_key == "ABCD1234"
        assert response.items[0].attempts == 1
        assert response.status.pending == 7
        assert response.status.total == 10

        method, url = http.request.call_args.args
        assert (method, url) == ("POST", "http://api.test/queue/pop")
        assert http.request.call_args.kwargs["json"] == {"limit": 3}
        assert http.request.call_args.kwargs["headers"]["Authorization"] == "Bearer test-token"

    @pytest.mark.asyncio
    async def test_pop_empty_body(self, queue, http):
        http.request.return_value = _response(payload=None)
        response = await queue.pop_queue_items(3)
        assert response.items == []
        assert response.status.pending == 0


class TestItemCalls:
    @pytest.mark.asyncio
    async def test_complete_upload_payload(self, queue, http, make_item):
        item = make_item()
        await queue.complete_upload(item, 12)
        assert http.request.call_args.args == ("POST", "http://api.test/queue/complete")
        assert http.request.call_args.kwargs["json"] == {
            "queue_id": item.id,
            "file_hash": item.file_hash,
            "page_count": 12,
        }

    @pytest.mark.asyncio
    async def test_mark_failed_payload(self, queue, http):
        await queue.mark_upload_as_failed("q-9", "hash-9")
        assert http.request.call_args.args == ("POST", "http://api.test/queue/fail")
        assert http.request.call_args.kwargs["json"] == {"queue_id": "q-9", "file_hash": "hash-9"}

    @pytest.mark.asyncio
    async def test_reset_payload(self, queue, http):
        await queue.reset_upload("q-3")
        assert http.request.call_args.args == ("POST", "http://api.test/queue/reset")
        assert http.request.call_args.kwargs["json"] == {"queue_id": "q-3"}

    @pytest.mark.asyncio
    async def test_get_queue_status(self, queue, http):
        http.request.return_value = _response(payload={"pending": 1, "total": 4, "completed": 3})
        status = await queue.get_queue_status()
        assert http.request.call_args.args == ("GET", "http://api.test/queue/status")
        assert (status.pending, status.completed, status.total) == (1, 3, 4)

    @pytest.mark.asyncio
    async def test_reset_failed_uploads_count(self, queue, http):
        http.request.return_value = _response(payload={"reset": 4})
        assert await queue.reset_failed_uploads() == 4

        http.request.return_value = _response(payload=[{"id": "a"}, {"id": "b"}])
        assert await queue.reset_failed_uploads() == 2


class TestErrors:
    @pytest.mark.asyncio
    async def test_401_signs_session_out(self, queue, http, session):
        http.request.return_value = _response(status_code=401, payload={"detail": "expired"})

        with pytest.raises(NotAuthenticatedError):
            await queue.pop_queue_items(3)
        assert session.is_authenticated is False

    @pytest.mark.asyncio
    async def test_no_token_skips_request(self, queue, http, session):
        session.sign_out()
        with pytest.raises(NotAuthenticatedError):
            await queue.reset_upload("q-1")
        http.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_server_error_propagates(self, queue, http):
        resp = _response(status_code=502, payload={})
        resp.raise_for_status.side_effect = httpx.HTTPStatusError(
            "bad gateway", request=MagicMock(), response=resp,
        )
        http.request.return_value = resp

        with pytest.raises(httpx.HTTPStatusError):
            await queue.pop_queue_items(3)
