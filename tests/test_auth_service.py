"""Tests for signup, login, logout and profile refresh."""

import asyncio
import json

import httpx
import pytest

from client.constants import NETWORK_ERROR_MESSAGE
from client.exceptions import SessionExpiredError, ValidationError
from client.models import LoginData, SignupData
from client.services.auth_service import (
    EXPIRED_CREDENTIAL_MESSAGE,
    MISSING_CREDENTIAL_MESSAGE,
)
from client.token_manager import decode_token
from client.validation import validate_login, validate_signup

USER_PAYLOAD = {'id': 7, 'username': 'alice', 'fullName': 'Alice Smith', 'email': 'alice@example.com'}


def signup_data(**overrides):
    values = dict(
        username='alice',
        password='secret123',
        email='alice@example.com',
        full_name='Alice Smith',
    )
    values.update(overrides)
    return SignupData(**values)


class TestValidation:
    """Tests for local form validation."""

    @pytest.mark.parametrize('overrides, field, message', [
        ({'username': ''}, 'username', 'Username is required'),
        ({'username': 'ab'}, 'username', 'Username must be at least 3 characters'),
        ({'username': 'al ice'}, 'username', 'Username can only contain letters, numbers, and underscores'),
        ({'full_name': ' '}, 'full_name', 'Full name is required'),
        ({'full_name': 'A'}, 'full_name', 'Name must be at least 2 characters'),
        ({'email': ''}, 'email', 'Email is required'),
        ({'email': 'alice@example'}, 'email', 'Invalid email format'),
        ({'password': ''}, 'password', 'Password is required'),
        ({'password': '12345'}, 'password', 'Password must be at least 6 characters'),
        ({'confirm_password': 'other'}, 'confirm_password', 'Passwords must match'),
    ])
    def test_signup_rules(self, overrides, field, message):
        with pytest.raises(ValidationError) as exc_info:
            validate_signup(signup_data(**overrides))

        assert exc_info.value.field == field
        assert exc_info.value.message == message

    def test_first_failing_field_wins(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_signup(signup_data(username='ab', email='bad'))
        assert exc_info.value.field == 'username'

    def test_valid_signup(self):
        validate_signup(signup_data(confirm_password='secret123'))

    def test_login_requires_both_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_login(LoginData(username='  ', password='x'))
        assert exc_info.value.message == 'Username and password are required'
        assert exc_info.value.field is None


@pytest.mark.asyncio
async def test_login_with_empty_username_makes_no_request(make_client, route):
    async with make_client(route({})) as client:
        result = await client.login(LoginData(username='', password='secret'))

    assert result.success is False
    assert result.message == 'Username and password are required'
    assert client.requests == []


@pytest.mark.asyncio
async def test_signup_with_short_username_makes_no_request(make_client, route):
    async with make_client(route({})) as client:
        result = await client.signup(signup_data(username='ab'))

    assert result.success is False
    assert result.field == 'username'
    assert result.message == 'Username must be at least 3 characters'
    assert client.requests == []


@pytest.mark.asyncio
async def test_login_success(make_client, route, make_token, memory_store):
    token = make_token()
    handler = route({('POST', '/auth/login'): httpx.Response(200, json={'token': token, 'user': USER_PAYLOAD})})

    async with make_client(handler) as client:
        result = await client.login(LoginData(username=' alice ', password='secret123'))

        assert result.success is True
        assert result.token == token
        assert result.user.id == '7'
        assert result.user.full_name == 'Alice Smith'
        assert await client.is_logged_in()
        assert (await client.get_logged_in_user()).username == 'alice'

    body = json.loads(client.requests[0].content)
    assert body == {'username': 'alice', 'password': 'secret123'}
    assert 'Authorization' not in client.requests[0].headers


@pytest.mark.asyncio
async def test_login_fetches_profile_when_response_has_no_user(make_client, route, make_token):
    token = make_token()
    handler = route({
        ('POST', '/auth/login'): httpx.Response(200, json={'access_token': token}),
        ('GET', '/auth/me'): httpx.Response(200, json={'user': USER_PAYLOAD}),
    })

    async with make_client(handler) as client:
        result = await client.login(LoginData(username='alice', password='secret123'))

    assert result.success is True
    assert result.user.username == 'alice'
    assert client.requests[1].url.path == '/auth/me'
    assert client.requests[1].headers['Authorization'] == f"Bearer {token}"


@pytest.mark.asyncio
async def test_login_rejected_credentials(make_client, route):
    handler = route({('POST', '/auth/login'): httpx.Response(401, json={'detail': 'Unauthorized'})})

    async with make_client(handler) as client:
        result = await client.login(LoginData(username='alice', password='wrong'))

        assert result.success is False
        assert result.message == 'Invalid username or password'
        assert result.field == 'password'
        assert not await client.is_logged_in()


@pytest.mark.asyncio
async def test_login_unknown_user(make_client, route):
    handler = route({
        ('POST', '/auth/login'): httpx.Response(404, json={'message': 'no user', 'code': 'USER_NOT_FOUND'}),
    })

    async with make_client(handler) as client:
        result = await client.login(LoginData(username='ghost', password='secret123'))

    assert result.message == 'User not found'
    assert result.field == 'username'


@pytest.mark.asyncio
async def test_login_network_failure(make_client):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        result = await client.login(LoginData(username='alice', password='secret123'))

    assert result.success is False
    assert result.message == NETWORK_ERROR_MESSAGE
    assert result.field is None


@pytest.mark.asyncio
async def test_login_with_expired_credential_is_refused(make_client, route, make_token):
    handler = route({
        ('POST', '/auth/login'): httpx.Response(200, json={'token': make_token(expires_in=-5), 'user': USER_PAYLOAD}),
    })

    async with make_client(handler) as client:
        result = await client.login(LoginData(username='alice', password='secret123'))

        assert result.success is False
        assert result.message == EXPIRED_CREDENTIAL_MESSAGE
        assert not await client.is_logged_in()


@pytest.mark.asyncio
async def test_login_response_without_credential(make_client, route, memory_store):
    handler = route({('POST', '/auth/login'): httpx.Response(200, json={'user': USER_PAYLOAD})})

    async with make_client(handler) as client:
        result = await client.login(LoginData(username='alice', password='secret123'))

    assert result.success is False
    assert result.message == MISSING_CREDENTIAL_MESSAGE
    assert memory_store.data == {}


@pytest.mark.asyncio
async def test_signup_success(make_client, route, make_token):
    token = make_token()
    handler = route({
        ('POST', '/auth/signup'): httpx.Response(201, json={'data': {'token': token, 'user': USER_PAYLOAD}}),
    })

    async with make_client(handler) as client:
        result = await client.signup(signup_data())

        assert result.success is True
        assert result.message == 'Account created successfully'
        assert await client.is_logged_in()

    body = json.loads(client.requests[0].content)
    assert body == {
        'username': 'alice',
        'password': 'secret123',
        'email': 'alice@example.com',
        'fullName': 'Alice Smith',
    }


@pytest.mark.asyncio
async def test_signup_without_credential_logs_in(make_client, route, make_token):
    token = make_token()
    handler = route({
        ('POST', '/auth/signup'): httpx.Response(201, json={'message': 'created', 'user': USER_PAYLOAD}),
        ('POST', '/auth/login'): httpx.Response(200, json={'token': token}),
    })

    async with make_client(handler) as client:
        result = await client.signup(signup_data())

    assert result.success is True
    assert result.token == token
    assert result.user.username == 'alice'
    assert [r.url.path for r in client.requests] == ['/auth/signup', '/auth/login']


@pytest.mark.asyncio
@pytest.mark.parametrize('code, field, message', [
    ('USERNAME_TAKEN', 'username', 'Username is already taken'),
    ('EMAIL_EXISTS', 'email', 'Email is already registered'),
])
async def test_signup_conflicts_are_field_tagged(make_client, route, code, field, message):
    handler = route({('POST', '/auth/signup'): httpx.Response(409, json={'message': 'exists', 'code': code})})

    async with make_client(handler) as client:
        result = await client.signup(signup_data())

    assert result.success is False
    assert result.field == field
    assert result.message == message


@pytest.mark.asyncio
async def test_logout_clears_session_even_when_server_fails(make_client, login_session, memory_store):
    """isLoggedIn is false right after logout even if the notification fails."""
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    async with make_client(handler) as client:
        await login_session(client)
        outcome = await client.logout()

        assert not await client.is_logged_in()
        assert outcome.completed is False
        assert outcome.error is not None

    assert memory_store.data == {}
    assert len(client.requests) == 1


@pytest.mark.asyncio
async def test_logout_notifies_server(make_client, route, login_session):
    handler = route({('POST', '/auth/logout'): httpx.Response(204)})

    async with make_client(handler) as client:
        token = await login_session(client)
        outcome = await client.logout()

        assert outcome.completed is True
        assert not await client.is_logged_in()

    assert client.requests[0].headers['Authorization'] == f"Bearer {token}"


@pytest.mark.asyncio
async def test_logout_without_session_skips_server(make_client, route):
    async with make_client(route({})) as client:
        outcome = await client.logout()

    assert outcome.completed is True
    assert client.requests == []


@pytest.mark.asyncio
async def test_refresh_profile_updates_stored_user(make_client, route, login_session):
    updated = dict(USER_PAYLOAD, fullName='Alice Jones')
    handler = route({('GET', '/auth/me'): httpx.Response(200, json=updated)})

    async with make_client(handler) as client:
        token = await login_session(client)
        user = await client.refresh_profile()

        assert user.full_name == 'Alice Jones'
        assert (await client.get_logged_in_user()).full_name == 'Alice Jones'
        assert await client.session.get_valid_token() == token


@pytest.mark.asyncio
async def test_refresh_profile_keeps_id_when_missing(make_client, route, login_session):
    handler = route({('GET', '/auth/me'): httpx.Response(200, json={'username': 'alice', 'fullName': 'A'})})

    async with make_client(handler) as client:
        await login_session(client)
        user = await client.refresh_profile()

    assert user.id == '7'


@pytest.mark.asyncio
async def test_refresh_profile_failure_keeps_session(make_client, route, login_session, sample_user):
    handler = route({('GET', '/auth/me'): lambda request: httpx.Response(500)})

    async with make_client(handler) as client:
        await login_session(client)

        assert await client.refresh_profile() is None
        assert await client.get_logged_in_user() == sample_user


@pytest.mark.asyncio
async def test_refresh_profile_unauthorized_ends_session(make_client, route, login_session):
    handler = route({('GET', '/auth/me'): httpx.Response(401, json={'code': 'TOKEN_EXPIRED', 'message': 'expired'})})

    async with make_client(handler) as client:
        await login_session(client)

        assert await client.refresh_profile() is None
        assert not await client.is_logged_in()


@pytest.mark.asyncio
async def test_refresh_profile_when_logged_out(make_client, route):
    async with make_client(route({})) as client:
        assert await client.refresh_profile() is None

    assert client.requests == []


@pytest.mark.asyncio
async def test_require_session(make_client, route, login_session, sample_user):
    async with make_client(route({})) as client:
        with pytest.raises(SessionExpiredError):
            await client.auth.require_session()

        await login_session(client)
        session = await client.auth.require_session()

    assert session.user == sample_user


@pytest.mark.asyncio
async def test_is_current_token_expired(make_client, route, login_session):
    async with make_client(route({})) as client:
        assert await client.auth.is_current_token_expired()

        await login_session(client)
        assert not await client.auth.is_current_token_expired()


@pytest.mark.asyncio
async def test_concurrent_logins_store_a_consistent_pair(make_client, route, make_token):
    """The stored credential always belongs to the stored profile."""
    def login(request):
        username = json.loads(request.content)['username']
        user = {'id': username, 'username': username}
        return httpx.Response(200, json={'token': make_token(sub=username), 'user': user})

    async with make_client(route({('POST', '/auth/login'): login})) as client:
        await asyncio.gather(
            client.login(LoginData(username='alice', password='secret123')),
            client.login(LoginData(username='bobby', password='secret123')),
        )

        session = await client.session.load()

    assert session is not None
    assert decode_token(session.credential.token)['sub'] == session.user.username


@pytest.mark.asyncio
async def test_late_rejection_keeps_newer_session(make_client, route, make_token, login_session):
    """A 401 for a credential replaced by a later login leaves the new session alone."""
    released = asyncio.Event()
    fresh_token = make_token(sub='fresh')

    async def listing(request):
        await released.wait()
        return httpx.Response(401, json={'code': 'TOKEN_EXPIRED', 'message': 'expired'})

    handler = route({
        ('GET', '/api/v1/files/uploaded'): listing,
        ('POST', '/auth/login'): httpx.Response(200, json={'token': fresh_token, 'user': USER_PAYLOAD}),
    })

    async with make_client(handler) as client:
        stale_token = await login_session(client)
        pending_listing = asyncio.create_task(client.list_my_files())
        while not client.requests:
            await asyncio.sleep(0)

        result = await client.login(LoginData(username='alice', password='secret123'))
        released.set()
        with pytest.raises(SessionExpiredError):
            await pending_listing

        assert result.success is True
        assert await client.is_logged_in()
        session = await client.session.load()

    assert stale_token != fresh_token
    assert client.requests[0].headers['Authorization'] == f'Bearer {stale_token}'
    assert session.credential.token == fresh_token


@pytest.mark.asyncio
async def test_handle_token_expired_without_token_clears_session(make_client, route, login_session):
    async with make_client(route({})) as client:
        await login_session(client)
        await client.auth.handle_token_expired()

        assert not await client.is_logged_in()
