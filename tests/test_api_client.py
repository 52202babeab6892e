"""Tests for ApiClient with mocked HTTP transport."""

import threading

import httpx
import pytest

from client.api_client import ApiClient
from client.constants import NETWORK_ERROR_MESSAGE, UNEXPECTED_RESPONSE_MESSAGE
from client.exceptions import (
    NotFoundError,
    SessionExpiredError,
    TransportError,
    UnknownError,
)

FILES = '/api/v1/files/uploaded'


def ok_handler(request):
    return httpx.Response(200, json=[])


@pytest.mark.asyncio
async def test_bearer_attached_to_authenticated_request(make_client, login_session):
    """A live credential is sent as a bearer header."""
    async with make_client(ok_handler) as client:
        token = await login_session(client)
        await client.api.get_json(FILES)

    request = client.requests[0]
    assert request.headers['Authorization'] == f"Bearer {token}"
    assert request.headers['X-Request-ID']


@pytest.mark.asyncio
async def test_no_bearer_without_session(make_client):
    async with make_client(ok_handler) as client:
        await client.api.get_json(FILES)

    assert 'Authorization' not in client.requests[0].headers


@pytest.mark.asyncio
async def test_expired_credential_is_not_attached_and_is_purged(make_client, login_session, memory_store):
    async with make_client(ok_handler) as client:
        await login_session(client, expires_in=-10)
        await client.api.get_json(FILES)

    assert 'Authorization' not in client.requests[0].headers
    assert memory_store.data == {}


@pytest.mark.asyncio
async def test_unauthenticated_request_never_carries_credential(make_client, login_session):
    async with make_client(ok_handler) as client:
        await login_session(client)
        await client.api.post_json('/auth/login', {'username': 'a'}, authenticated=False)

    assert 'Authorization' not in client.requests[0].headers


@pytest.mark.asyncio
async def test_unauthorized_response_ends_session(make_client, login_session, memory_store):
    """A 401 on an authenticated call clears the stored session before the caller sees it."""
    def handler(request):
        return httpx.Response(401, json={'message': 'Token expired', 'code': 'TOKEN_EXPIRED'})

    async with make_client(handler) as client:
        await login_session(client)
        with pytest.raises(SessionExpiredError) as exc_info:
            await client.api.get_json(FILES)

        assert exc_info.value.status == 401
        assert not await client.is_logged_in()

    assert memory_store.data == {}


@pytest.mark.asyncio
async def test_unauthorized_on_login_keeps_session(make_client, login_session):
    def handler(request):
        return httpx.Response(401, json={'message': 'Invalid credentials'})

    async with make_client(handler) as client:
        await login_session(client)
        with pytest.raises(SessionExpiredError):
            await client.api.post_json('/auth/login', {}, authenticated=False)

        assert await client.is_logged_in()


@pytest.mark.asyncio
async def test_teardown_failure_does_not_mask_error(make_client, login_session):
    def handler(request):
        return httpx.Response(401)

    async def broken_teardown(rejected_token):
        raise RuntimeError("storage unavailable")

    async with make_client(handler) as client:
        await login_session(client)
        client.api.on_unauthorized = broken_teardown
        with pytest.raises(SessionExpiredError):
            await client.api.get_json(FILES)


@pytest.mark.asyncio
async def test_server_error_is_retried(make_client):
    """Test retry logic on 5xx errors."""
    statuses = iter([503, 502, 200])

    def handler(request):
        status = next(statuses)
        if status == 200:
            return httpx.Response(200, json=[{'id': 1}])
        return httpx.Response(status)

    async with make_client(handler) as client:
        data = await client.api.get_json(FILES)

    assert data == [{'id': 1}]
    assert len(client.requests) == 3


@pytest.mark.asyncio
async def test_server_error_after_retries(make_client):
    def handler(request):
        return httpx.Response(500, json={'message': 'Database down'})

    async with make_client(handler) as client:
        with pytest.raises(UnknownError) as exc_info:
            await client.api.get_json(FILES)

    assert exc_info.value.message == 'Database down'
    assert exc_info.value.status == 500
    assert len(client.requests) == 4


@pytest.mark.asyncio
async def test_network_failure_becomes_transport_error(make_client):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.api.get_json(FILES)

    assert exc_info.value.message == NETWORK_ERROR_MESSAGE
    assert exc_info.value.status is None
    assert len(client.requests) == 4


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(make_client):
    def handler(request):
        return httpx.Response(404, json={'detail': 'Not found'})

    async with make_client(handler) as client:
        with pytest.raises(NotFoundError):
            await client.api.get_json('/api/v1/files/details/9')

    assert len(client.requests) == 1


@pytest.mark.asyncio
async def test_max_retries_override(make_client):
    def handler(request):
        return httpx.Response(503)

    async with make_client(handler) as client:
        with pytest.raises(UnknownError):
            await client.api.request('POST', '/auth/logout', max_retries=0)

    assert len(client.requests) == 1


def test_parse_json_empty_and_invalid():
    assert ApiClient.parse_json(httpx.Response(204)) is None
    with pytest.raises(UnknownError) as exc_info:
        ApiClient.parse_json(httpx.Response(200, text="not json"))
    assert exc_info.value.message == UNEXPECTED_RESPONSE_MESSAGE


@pytest.mark.asyncio
async def test_upload_timeout_scales_with_size(make_client):
    async with make_client(ok_handler) as client:
        pass

    assert client.api._calculate_upload_timeout(0) == 60
    assert client.api._calculate_upload_timeout(10 * 1024 * 1024) == 60
    assert client.api._calculate_upload_timeout(1000 * 1024 * 1024) == pytest.approx(130.0)


@pytest.mark.asyncio
async def test_upload_is_multipart_and_not_retried(make_client, login_session):
    def handler(request):
        return httpx.Response(503)

    async with make_client(handler) as client:
        await login_session(client)
        with pytest.raises(UnknownError):
            await client.api.upload('/api/v1/files/upload', 'a.txt', b'hello', 'text/plain', 5)

    assert len(client.requests) == 1
    request = client.requests[0]
    assert request.headers['Content-Type'].startswith('multipart/form-data')
    assert b'filename="a.txt"' in request.content
    assert request.headers['Authorization'].startswith('Bearer ')


@pytest.mark.asyncio
async def test_download_writes_file(make_client, login_session, tmp_path):
    def handler(request):
        return httpx.Response(200, content=b'file body')

    output = tmp_path / 'out' / 'a.txt'
    async with make_client(handler) as client:
        token = await login_session(client)
        written = await client.api.download('/api/v1/files/download/1', output)

    assert written == 9
    assert output.read_bytes() == b'file body'
    assert client.requests[0].headers['Authorization'] == f"Bearer {token}"


@pytest.mark.asyncio
async def test_download_opens_file_off_the_event_loop(make_client, tmp_path, monkeypatch):
    threads = []

    def recording_open(*args, **kwargs):
        threads.append(threading.current_thread())
        return open(*args, **kwargs)

    monkeypatch.setattr('client.api_client.open', recording_open, raising=False)
    async with make_client(lambda request: httpx.Response(200, content=b'abc')) as client:
        await client.api.download('/api/v1/files/download/1', tmp_path / 'a.txt')

    assert len(threads) == 1
    assert threads[0] is not threading.main_thread()
    assert (tmp_path / 'a.txt').read_bytes() == b'abc'


@pytest.mark.asyncio
async def test_download_error_is_normalized(make_client, tmp_path):
    def handler(request):
        return httpx.Response(404, json={'message': 'No such file'})

    async with make_client(handler) as client:
        with pytest.raises(NotFoundError) as exc_info:
            await client.api.download('/api/v1/files/download/1', tmp_path / 'a.txt')

    assert exc_info.value.message == 'No such file'
    assert not (tmp_path / 'a.txt').exists()
