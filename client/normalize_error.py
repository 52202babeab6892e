"""Funnel every failure into a single NormalizedError shape."""

from collections.abc import Mapping
from typing import Any, Optional

import httpx

from client.constants import NETWORK_ERROR_MESSAGE, TIMEOUT_ERROR_MESSAGE
from client.exceptions import ClientError, NormalizedError
from common.logging_config import get_logger

logger = get_logger(__name__)

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"
GENERIC_ERROR_MESSAGE = "An error occurred"


def _detail_text(detail: Any) -> Optional[str]:
    """Flatten a string or FastAPI-style list of validation errors."""
    if isinstance(detail, str):
        return detail or None
    if isinstance(detail, list):
        parts = []
        for item in detail:
            if isinstance(item, Mapping):
                text = item.get('msg') or item.get('message')
                if text:
                    parts.append(str(text))
            elif isinstance(item, str):
                parts.append(item)
        return '; '.join(parts) or None
    return None


def _from_response(response: httpx.Response, original: Any) -> NormalizedError:
    """Extract message, code and status from a backend response envelope."""
    try:
        body = response.json()
    except ValueError:
        body = None

    message = None
    code = None
    if isinstance(body, Mapping):
        for key in ('message', 'error', 'detail'):
            value = body.get(key)
            if isinstance(value, Mapping):
                message = value.get('message') or value.get('detail')
                code = code or value.get('code')
            else:
                message = _detail_text(value)
            if message:
                break
        code = body.get('code') or body.get('error_code') or code
    elif isinstance(body, str) and body:
        message = body

    if not message:
        message = response.reason_phrase or GENERIC_ERROR_MESSAGE

    return NormalizedError(
        message=str(message),
        code=str(code) if code is not None else None,
        status=response.status_code,
        original=original,
    )


def _from_transport_error(error: httpx.TransportError) -> NormalizedError:
    if isinstance(error, httpx.TimeoutException):
        return NormalizedError(message=TIMEOUT_ERROR_MESSAGE, code='TIMEOUT', original=error)
    return NormalizedError(message=NETWORK_ERROR_MESSAGE, code='NETWORK_ERROR', original=error)


def _normalize(error: Any) -> NormalizedError:
    if isinstance(error, NormalizedError):
        return error

    if isinstance(error, ClientError):
        return error.normalized

    if isinstance(error, httpx.HTTPStatusError):
        return _from_response(error.response, error)

    if isinstance(error, httpx.Response):
        return _from_response(error, error)

    if isinstance(error, httpx.TransportError):
        return _from_transport_error(error)

    if isinstance(error, Mapping) and error.get('message') and ('status' in error or 'code' in error):
        status = error.get('status')
        return NormalizedError(
            message=str(error['message']),
            code=error.get('code'),
            status=status if isinstance(status, int) else None,
            original=error.get('original', error),
        )

    if isinstance(error, BaseException):
        return NormalizedError(message=str(error) or type(error).__name__, original=error)

    if isinstance(error, str):
        return NormalizedError(message=error or GENERIC_ERROR_MESSAGE, original=error)

    return NormalizedError(message=UNKNOWN_ERROR_MESSAGE, original=error)


def normalize(error: Any) -> NormalizedError:
    """
    Convert any error shape into a NormalizedError.

    Handles transport response envelopes, already-normalized values (returned
    unchanged), exceptions and strings. Never raises.

    Args:
        error: Anything that was raised or returned as an error

    Returns:
        NormalizedError describing the failure
    """
    try:
        return _normalize(error)
    except Exception as e:
        logger.warning(f"Error normalization failed for {type(error).__name__}: {e}")
        return NormalizedError(message=UNKNOWN_ERROR_MESSAGE, original=error)
