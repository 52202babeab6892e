"""HTTP transport for the file-sharing backend."""

import asyncio
import uuid
from functools import partial
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import httpx

from client.config import Config
from client.constants import UNEXPECTED_RESPONSE_MESSAGE
from client.exceptions import UnknownError, error_from_normalized
from client.normalize_error import normalize
from client.session import SessionStore
from common.logging_config import get_logger

logger = get_logger(__name__)

AUTHENTICATED = "fileshare.authenticated"

UnauthorizedHandler = Callable[[str], Awaitable[Any]]


class ApiClient:
    """
    Async HTTP client with retry logic and a credential interceptor chain.

    Request hook: attaches the bearer credential to authenticated requests,
    but only while it is unexpired. Response hook: an authorization failure on
    an authenticated request tears down the session that sent it before the
    caller sees the error; a session stored since then is left alone.
    """

    def __init__(
        self,
        config: Config,
        session: SessionStore,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize API client.

        Args:
            config: Configuration instance
            session: Session store supplying the credential
            transport: Optional httpx transport (tests pass an httpx.MockTransport)
        """
        self.config = config
        self.session = session
        self.on_unauthorized: UnauthorizedHandler = session.clear_if
        self.client = httpx.AsyncClient(
            base_url=config.get_base_url(),
            timeout=config.get_timeout(),
            headers={'Accept': 'application/json'},
            transport=transport,
            event_hooks={
                'request': [self._attach_credential],
                'response': [self._handle_unauthorized],
            },
        )
        logger.info(f"Initialized ApiClient [base_url={config.get_base_url()}]")

    async def _attach_credential(self, request: httpx.Request) -> None:
        if not request.extensions.get(AUTHENTICATED) or 'Authorization' in request.headers:
            return
        token = await self.session.get_valid_token()
        if token:
            request.headers['Authorization'] = f"Bearer {token}"
        else:
            logger.debug(f"No valid credential for {request.method} {request.url.path}, sending without it")

    async def _handle_unauthorized(self, response: httpx.Response) -> None:
        request = response.request
        if response.status_code != 401 or not request.extensions.get(AUTHENTICATED):
            return
        scheme, _, token = request.headers.get('Authorization', '').partition(' ')
        if scheme.lower() != 'bearer' or not token:
            logger.warning(
                f"Authorization failed without a credential: {request.method} {request.url.path} "
                f"[request_id={request.headers.get('X-Request-ID')}]"
            )
            return
        logger.warning(
            f"Authorization failed: {request.method} {request.url.path} "
            f"[request_id={request.headers.get('X-Request-ID')}], ending session"
        )
        try:
            await self.on_unauthorized(token)
        except Exception as e:
            logger.error(f"Session teardown after authorization failure failed: {e}")

    def _calculate_upload_timeout(self, file_size: int) -> float:
        """
        Calculate timeout for upload based on file size.

        Args:
            file_size: File size in bytes

        Returns:
            Timeout in seconds: the configured upload timeout, raised by 0.1s per MB for large files
        """
        size_mb = max(file_size, 0) / (1024 * 1024)
        return max(float(self.config.get_upload_timeout()), 30.0 + size_mb * 0.1)

    def _raise_for_status(self, response: httpx.Response, request_id: str) -> None:
        if response.status_code < 400:
            return
        error = error_from_normalized(normalize(response))
        logger.warning(
            f"Request failed: {response.request.method} {response.request.url.path} "
            f"status={response.status_code} code={error.code} [request_id={request_id}]"
        )
        raise error

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        authenticated: bool = True,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path
            authenticated: Attach the session credential and tear the session down on 401
            max_retries: Max retry attempts (uses config default if None)
            timeout: Per-request timeout in seconds (uses client default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            Successful HTTP response

        Raises:
            ClientError: Normalized failure (TransportError once retries are exhausted)
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']
        base_delay = retry_config['retry_base_delay']

        request_id = str(uuid.uuid4())
        kwargs['headers'] = {**kwargs.get('headers', {}), 'X-Request-ID': request_id}
        kwargs['extensions'] = {**kwargs.get('extensions', {}), AUTHENTICATED: authenticated}
        if timeout is not None:
            kwargs['timeout'] = timeout

        logger.debug(f"Making request: {method} {endpoint} [request_id={request_id}]")

        last_exception: Optional[httpx.TransportError] = None
        for attempt in range(max_retries + 1):
            try:
                response = await self.client.request(method, endpoint, **kwargs)
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = base_delay * backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={request_id}]"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={request_id}]"
                )
                break
            except httpx.TransportError as e:
                logger.error(f"Transport error: {method} {endpoint} error={e} [request_id={request_id}]")
                raise error_from_normalized(normalize(e)) from e

            logger.debug(
                f"Response received: {method} {endpoint} status={response.status_code} [request_id={request_id}]"
            )

            if response.status_code >= 500 and attempt < max_retries:
                delay = base_delay * backoff ** attempt
                logger.warning(
                    f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                    f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={request_id}]"
                )
                await asyncio.sleep(delay)
                continue

            self._raise_for_status(response, request_id)
            return response

        raise error_from_normalized(normalize(last_exception)) from last_exception

    @staticmethod
    def parse_json(response: httpx.Response) -> Any:
        """
        Decode a response body.

        Returns:
            Decoded JSON, or None for an empty body

        Raises:
            UnknownError: If the body is not JSON
        """
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise UnknownError(UNEXPECTED_RESPONSE_MESSAGE, status=response.status_code)

    async def get_json(self, endpoint: str, **kwargs) -> Any:
        return self.parse_json(await self.request('GET', endpoint, **kwargs))

    async def post_json(self, endpoint: str, payload: Any = None, **kwargs) -> Any:
        if payload is not None:
            kwargs['json'] = payload
        return self.parse_json(await self.request('POST', endpoint, **kwargs))

    async def upload(
        self,
        endpoint: str,
        file_name: str,
        content: Any,
        mime_type: str,
        file_size: int,
        data: Optional[dict] = None,
    ) -> Any:
        """
        Upload one file as multipart form data.

        Uploads are never retried and use the size-scaled upload timeout.

        Args:
            endpoint: Upload endpoint path
            file_name: Name sent with the file part
            content: Bytes or a binary file object
            mime_type: Content type of the file part
            file_size: Size in bytes, used for the timeout
            data: Extra form fields

        Returns:
            Decoded JSON response
        """
        timeout = self._calculate_upload_timeout(file_size)
        logger.info(f"Uploading {file_name} ({file_size} bytes, timeout={timeout:.1f}s)")
        response = await self.request(
            'POST',
            endpoint,
            files={'file': (file_name, content, mime_type)},
            data=data or {},
            max_retries=0,
            timeout=timeout,
        )
        return self.parse_json(response)

    async def download(self, endpoint: str, output_file: Path) -> int:
        """
        Stream a response body to disk.

        Args:
            endpoint: Download endpoint path
            output_file: Destination path (parent directories are created)

        Returns:
            Number of bytes written
        """
        request_id = str(uuid.uuid4())
        output_file = Path(output_file)
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, partial(output_file.parent.mkdir, parents=True, exist_ok=True))
        written = 0
        try:
            async with self.client.stream(
                'GET',
                endpoint,
                headers={'X-Request-ID': request_id},
                extensions={AUTHENTICATED: True},
                timeout=self.config.get_upload_timeout(),
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    self._raise_for_status(response, request_id)
                f = await loop.run_in_executor(None, open, output_file, 'wb')
                try:
                    async for chunk in response.aiter_bytes(chunk_size=8192):
                        await loop.run_in_executor(None, f.write, chunk)
                        written += len(chunk)
                finally:
                    await loop.run_in_executor(None, f.close)
        except httpx.TransportError as e:
            logger.error(f"Download failed: {endpoint} error={e} [request_id={request_id}]")
            raise error_from_normalized(normalize(e)) from e
        logger.info(f"Downloaded {written} bytes to {output_file}")
        return written

    async def aclose(self) -> None:
        """Close the HTTP session."""
        await self.client.aclose()

    async def __aenter__(self) -> 'ApiClient':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
