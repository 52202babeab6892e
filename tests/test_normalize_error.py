"""Tests for error normalization and the exception taxonomy."""

from collections.abc import Mapping

import httpx
import pytest

from client.constants import NETWORK_ERROR_MESSAGE, TIMEOUT_ERROR_MESSAGE
from client.exceptions import (
    AuthError,
    ConflictError,
    NormalizedError,
    NotFoundError,
    SessionExpiredError,
    TransportError,
    UnknownError,
    ValidationError,
    error_from_normalized,
)
from client.normalize_error import (
    GENERIC_ERROR_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    normalize,
)


class ExplodingMapping(Mapping):
    """Mapping whose every lookup fails."""

    def __getitem__(self, key):
        raise RuntimeError("lookup failed")

    def __iter__(self):
        return iter(())

    def __len__(self):
        return 1


def test_normalized_error_returned_unchanged():
    """Already-normalized values pass through as the same object."""
    error = NormalizedError(message="Already done", code="X", status=400)
    assert normalize(error) is error


def test_normalize_is_idempotent():
    """Normalizing a normalized error yields an equal value."""
    response = httpx.Response(409, json={'message': 'Taken', 'code': 'USERNAME_TAKEN'})
    once = normalize(response)
    assert normalize(once) == once


def test_client_error_keeps_its_normalized_form():
    error = ValidationError("Username is required", field='username')
    normalized = normalize(error)

    assert normalized.message == "Username is required"
    assert normalized.code == 'VALIDATION_ERROR'
    assert normalized.original is error


def test_response_envelope_message_and_code():
    response = httpx.Response(400, json={'message': 'Bad input', 'code': 'BAD_INPUT'})
    normalized = normalize(response)

    assert normalized.message == 'Bad input'
    assert normalized.code == 'BAD_INPUT'
    assert normalized.status == 400


def test_response_nested_error_object():
    response = httpx.Response(
        409, json={'error': {'message': 'Already shared', 'code': 'ALREADY_SHARED'}}
    )
    normalized = normalize(response)

    assert normalized.message == 'Already shared'
    assert normalized.code == 'ALREADY_SHARED'
    assert normalized.status == 409


def test_response_fastapi_detail_string():
    response = httpx.Response(404, json={'detail': 'File not found'})
    normalized = normalize(response)

    assert normalized.message == 'File not found'
    assert normalized.code is None
    assert normalized.status == 404


def test_response_validation_detail_list_is_flattened():
    response = httpx.Response(
        422,
        json={'detail': [{'msg': 'field required'}, {'msg': 'too short'}]},
    )
    assert normalize(response).message == 'field required; too short'


def test_response_without_body_uses_reason_phrase():
    response = httpx.Response(503)
    normalized = normalize(response)

    assert normalized.message == 'Service Unavailable'
    assert normalized.status == 503


def test_response_with_non_json_body():
    response = httpx.Response(502, text='<html>Bad Gateway</html>')
    assert normalize(response).message == 'Bad Gateway'


def test_http_status_error():
    request = httpx.Request('GET', 'http://test/x')
    response = httpx.Response(401, json={'message': 'Token expired', 'code': 'TOKEN_EXPIRED'}, request=request)
    error = httpx.HTTPStatusError('401', request=request, response=response)

    normalized = normalize(error)
    assert normalized.message == 'Token expired'
    assert normalized.status == 401
    assert normalized.original is error


def test_connect_error_is_network_error():
    normalized = normalize(httpx.ConnectError('connection refused'))

    assert normalized.message == NETWORK_ERROR_MESSAGE
    assert normalized.code == 'NETWORK_ERROR'
    assert normalized.status is None


def test_timeout_is_timeout_error():
    normalized = normalize(httpx.ReadTimeout('read timed out'))

    assert normalized.message == TIMEOUT_ERROR_MESSAGE
    assert normalized.code == 'TIMEOUT'


def test_plain_exception_uses_its_message():
    assert normalize(ValueError('bad value')).message == 'bad value'
    assert normalize(ValueError()).message == 'ValueError'


def test_string_becomes_message():
    assert normalize('Something broke').message == 'Something broke'
    assert normalize('').message == GENERIC_ERROR_MESSAGE


def test_error_like_mapping():
    normalized = normalize({'message': 'I am a teapot', 'status': 418, 'code': 'TEAPOT'})

    assert normalized.message == 'I am a teapot'
    assert normalized.status == 418
    assert normalized.code == 'TEAPOT'


@pytest.mark.parametrize('value', [None, 42, object(), {'unrelated': True}])
def test_unrecognized_values_are_unknown(value):
    normalized = normalize(value)

    assert normalized.message == UNKNOWN_ERROR_MESSAGE
    assert normalized.original is value


def test_normalize_never_raises():
    bad = ExplodingMapping()
    normalized = normalize(bad)

    assert normalized.message == UNKNOWN_ERROR_MESSAGE
    assert normalized.original is bad


@pytest.mark.parametrize('normalized, expected', [
    (NormalizedError('Wrong password', code='INVALID_CREDENTIALS', status=401), AuthError),
    (NormalizedError('No such user', code='USER_NOT_FOUND', status=404), AuthError),
    (NormalizedError('Taken', code='EMAIL_EXISTS', status=400), ConflictError),
    (NormalizedError('Expired', status=401), SessionExpiredError),
    (NormalizedError('Expired', code='TOKEN_EXPIRED', status=403), SessionExpiredError),
    (NormalizedError('Missing', status=404), NotFoundError),
    (NormalizedError('Conflict', status=409), ConflictError),
    (NormalizedError(NETWORK_ERROR_MESSAGE, code='NETWORK_ERROR'), TransportError),
    (NormalizedError('Boom', status=500), UnknownError),
])
def test_error_from_normalized_categories(normalized, expected):
    error = error_from_normalized(normalized)

    assert type(error) is expected
    assert error.message == normalized.message
    assert error.status == normalized.status
    assert error.normalized is normalized
