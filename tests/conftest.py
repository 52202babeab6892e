"""Shared pytest fixtures for all tests."""

import time

import httpx
import jwt
import pytest

from client.app import FileShareClient
from client.config import Config
from client.storage import MemoryStore
from common.types import UserProfile

TEST_BASE_URL = 'http://test'


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .fileshare directory
    """
    config_dir = tmp_path / '.fileshare'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance pointed at the mock backend, with no retry delay.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    config = Config(temp_config_dir / 'config.json')
    config.data['base_url'] = TEST_BASE_URL
    config.data['retry_base_delay'] = 0
    config.data['storage_path'] = str(temp_config_dir / 'secure_store.json')
    return config


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def make_token():
    """
    Factory for signed JWTs.

    make_token(expires_in=3600, **claims); expires_in=None omits the exp claim.
    """
    def factory(expires_in=3600, **claims):
        payload = {'sub': '7', **claims}
        if expires_in is not None:
            payload['exp'] = int(time.time()) + expires_in
        return jwt.encode(payload, 'test-secret', algorithm='HS256')

    return factory


@pytest.fixture
def sample_user():
    return UserProfile(id='7', username='alice', full_name='Alice Smith', email='alice@example.com')


@pytest.fixture
def make_client(temp_config, memory_store):
    """
    Factory building a FileShareClient whose HTTP calls go to handler.

    Also records every request in client.requests.
    """
    def factory(handler, picker=None):
        requests = []

        async def recording_handler(request):
            requests.append(request)
            response = handler(request)
            if hasattr(response, '__await__'):
                response = await response
            return response

        client = FileShareClient(
            temp_config,
            memory_store,
            transport=httpx.MockTransport(recording_handler),
            picker=picker,
        )
        client.requests = requests
        return client

    return factory


@pytest.fixture
def login_session(make_token, sample_user):
    """Coroutine function storing a live session in a client's store."""
    async def seed(client, expires_in=3600):
        token = make_token(expires_in=expires_in)
        credential = client.token_manager.build_credential(token)
        await client.session.save(credential, sample_user)
        return token

    return seed


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    """
    Create multiple sample files for testing bulk operations.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        List of Paths to sample files
    """
    files = []
    for i in range(1, 4):
        file_path = tmp_path / f'file{i}'
        file_path.write_text(f'Sample content {i}')
        files.append(file_path)
    return files


@pytest.fixture
def route():
    """
    Build a transport handler from {(method, path): response-or-callable}.

    Unrouted requests get a 404. Use a callable for routes hit more than once.
    """
    def factory(routes):
        def handler(request):
            target = routes.get((request.method, request.url.path))
            if target is None:
                return httpx.Response(404, json={'detail': 'Not Found'})
            return target(request) if callable(target) else target

        return handler

    return factory
