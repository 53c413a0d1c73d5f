"""
HTTP transport for the Multinet client

aiohttp-based client for the Multinet REST API. Provides connection pooling,
per-instance bearer credentials and uniform error propagation. Status codes
are never interpreted: every non-2xx response becomes an APIException.
"""
import asyncio
import json
import logging
from typing import Optional, Dict, Any, Tuple, Union
from urllib.parse import urlencode

import aiohttp

from multinet.config import get_config
from multinet.exceptions import APIException, ConfigurationException, InvalidArgumentError

logger = logging.getLogger(f'{__name__}.APIClient')

LOG_TRUNCATE = 1200


def _truncate(data: Any) -> str:
    data_str = str(data)
    if len(data_str) > LOG_TRUNCATE:
        return data_str[:LOG_TRUNCATE] + "..."
    return data_str


class APIClient:
    """
    Async HTTP client for Multinet API communication.

    Features:
    - Connection pooling with lazy session management
    - Bearer token credential owned by the instance
    - JSON request bodies and query parameter encoding
    - Error propagation with status code and server error body
    - Debug logging with response truncation
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[int] = None
    ):
        """
        Initialize API client with configuration.

        Args:
            base_url: Override the configured API URL
            api_token: Bearer token to attach to every request
            timeout: Override the configured total request timeout (seconds)

        Raises:
            ConfigurationException: If no API URL is available
        """
        config = get_config()
        self.base_url = (base_url or config.api_url or '').rstrip('/')
        self.api_token = api_token or config.api_token
        self.timeout = timeout or config.request_timeout
        self.connect_timeout = config.connect_timeout
        self.user_agent = config.user_agent
        self._session: Optional[aiohttp.ClientSession] = None

        if not self.base_url:
            raise ConfigurationException("MULTINET_API_URL must be configured")

        logger.debug(f"APIClient initialized with base_url: {self.base_url}")

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def set_auth_token(self, token: str) -> None:
        """Attach a bearer token to all subsequent requests."""
        if not token:
            raise InvalidArgumentError('argument "token" must not be empty')
        self.api_token = token
        logger.debug("Bearer token set")

    def clear_auth_token(self) -> None:
        """Stop sending a bearer token."""
        self.api_token = None
        logger.debug("Bearer token cleared")

    @property
    def headers(self) -> Dict[str, str]:
        """Get headers for API requests, with authentication when a token is set."""
        headers = {
            'Accept': 'application/json',
            'User-Agent': self.user_agent
        }
        if self.api_token:
            headers['Authorization'] = f'Bearer {self.api_token}'
        return headers

    # ------------------------------------------------------------------
    # URL building
    # ------------------------------------------------------------------

    def _build_url(self, path: str) -> str:
        """
        Build complete API URL from a resource path.

        Args:
            path: Resource path relative to the API root, or an absolute URL

        Returns:
            Complete URL for API request
        """
        if path.startswith(('http://', 'https://')):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _add_params(self, url: str, params: Optional[Dict[str, Any]] = None) -> str:
        """
        Add query parameters to URL.

        None values are dropped and booleans are sent as true/false.

        Args:
            url: Base URL
            params: Mapping of parameter names to values

        Returns:
            URL with query parameters appended
        """
        if not params:
            return url

        filtered = []
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                value = 'true' if value else 'false'
            filtered.append((key, value))

        if not filtered:
            return url

        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{urlencode(filtered)}"

    # ------------------------------------------------------------------
    # Session management
    # ------------------------------------------------------------------

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session exists and is not closed."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=100,  # Total connection pool size
                limit_per_host=30,  # Connections per host
                ttl_dns_cache=300,  # DNS cache TTL
                use_dns_cache=True
            )

            timeout = aiohttp.ClientTimeout(total=self.timeout, connect=self.connect_timeout)

            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=timeout
            )

            logger.debug("Created new aiohttp session with connection pooling")

    @property
    def session(self) -> aiohttp.ClientSession:
        """The active aiohttp session; call _ensure_session() first."""
        if self._session is None:
            raise RuntimeError("HTTP session has not been created")
        return self._session

    # ------------------------------------------------------------------
    # Core request
    # ------------------------------------------------------------------

    @staticmethod
    def _decode(text: str, content_type: Optional[str]) -> Any:
        """Parse a response body: JSON when declared as such, raw text otherwise."""
        if not text.strip():
            return None
        if content_type and 'json' in content_type:
            return json.loads(text)
        return text

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
        data: Union[bytes, str, None] = None,
        headers: Optional[Dict[str, str]] = None,
        authenticate: bool = True,
        timeout: Optional[int] = None
    ) -> Tuple[aiohttp.ClientResponse, str]:
        """
        Send one request and return the response together with its body text.

        Raises:
            APIException: For non-2xx statuses or network issues
        """
        url = self._add_params(self._build_url(path), params)

        await self._ensure_session()

        request_headers = dict(self.headers) if authenticate else {'User-Agent': self.user_agent}
        if headers:
            request_headers.update(headers)

        kwargs: Dict[str, Any] = {'headers': request_headers}
        if json_data is not None:
            kwargs['json'] = json_data
        elif data is not None:
            kwargs['data'] = data
        if timeout:
            kwargs['timeout'] = aiohttp.ClientTimeout(total=timeout)

        try:
            logger.debug(f"{method}: {url} body: {_truncate(json_data) if json_data is not None else None}")

            async with self.session.request(method, url, **kwargs) as response:
                text = await response.text()

                if response.status >= 400:
                    try:
                        detail = self._decode(text, response.content_type)
                    except ValueError:
                        detail = text
                    logger.error(f"{method} error {response.status}: {url} - {_truncate(text)}")
                    raise APIException(
                        f"{method} {url} failed with status {response.status}: {text[:500]}",
                        status=response.status,
                        detail=detail,
                        method=method,
                        url=url
                    )

                return response, text

        except aiohttp.ClientError as e:
            logger.error(f"HTTP client error for {method} {url}: {e}")
            raise APIException(f"Network error: {e}", method=method, url=url) from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timeout for {method} {url}")
            raise APIException(f"Request timed out: {method} {url}", method=method, url=url) from e

    async def request_json(self, method: str, path: str, **kwargs) -> Any:
        """
        Send a request and return the decoded response body.

        Returns:
            Parsed JSON, raw text for non-JSON bodies, or None for empty bodies

        Raises:
            APIException: For HTTP errors, network issues or malformed JSON
        """
        response, text = await self._request(method, path, **kwargs)

        try:
            result = self._decode(text, response.content_type)
        except ValueError as e:
            logger.error(f"Invalid JSON response from {method} {path}: {e}")
            raise APIException(
                f"Invalid JSON response: {e}",
                status=response.status,
                detail=text,
                method=method,
                url=str(response.url)
            ) from e

        logger.debug(f"{method} Response: {_truncate(result)}")
        return result

    # ------------------------------------------------------------------
    # HTTP verbs
    # ------------------------------------------------------------------

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[int] = None) -> Any:
        """Make GET request to API."""
        return await self.request_json('GET', path, params=params, timeout=timeout)

    async def post(self, path: str, data: Any = None, params: Optional[Dict[str, Any]] = None,
                   timeout: Optional[int] = None) -> Any:
        """Make POST request to API with a JSON body."""
        return await self.request_json('POST', path, params=params, json_data=data, timeout=timeout)

    async def put(self, path: str, data: Any = None, timeout: Optional[int] = None) -> Any:
        """Make PUT request to API with a JSON body."""
        return await self.request_json('PUT', path, json_data=data, timeout=timeout)

    async def patch(self, path: str, data: Any = None, timeout: Optional[int] = None) -> Any:
        """Make PATCH request to API with a JSON body."""
        return await self.request_json('PATCH', path, json_data=data, timeout=timeout)

    async def delete(self, path: str, timeout: Optional[int] = None) -> Any:
        """
        Make DELETE request to API.

        Returns:
            The server's response body, usually None for 204 responses
        """
        return await self.request_json('DELETE', path, timeout=timeout)

    # ------------------------------------------------------------------
    # Presigned storage requests
    # ------------------------------------------------------------------

    async def put_presigned(self, url: str, data: bytes) -> str:
        """
        PUT raw bytes to a presigned storage URL.

        The bearer token is never sent to storage.

        Returns:
            The ETag header of the stored part
        """
        response, _ = await self._request('PUT', url, data=data, authenticate=False)
        etag = response.headers.get('ETag')
        if not etag:
            raise APIException(
                f"Storage response for {url} carried no ETag",
                status=response.status,
                method='PUT',
                url=url
            )
        return etag

    async def post_raw(self, url: str, body: str) -> Any:
        """POST a raw string body to an absolute storage URL without credentials."""
        return await self.request_json('POST', url, data=body, authenticate=False)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP session and clean up resources."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("Closed aiohttp session")
        self._session = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit with cleanup."""
        await self.close()
