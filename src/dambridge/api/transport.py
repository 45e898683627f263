"""HTTP transport for calling the DAM portal API."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import httpx

from dambridge.auth.tokens import TokenManager
from dambridge.core.config import settings
from dambridge.core.exceptions import ConfigurationError, TransportError

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "x-api-correlation-id"


@dataclass
class APIResponse:
    """Parsed response of one API call."""

    data: Any = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    status_code: int = 200

    @property
    def correlation_id(self) -> Optional[str]:
        return self.headers.get(CORRELATION_ID_HEADER)


def encode_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop unset values and flatten lists into comma separated strings."""
    if not params:
        return {}
    encoded = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = ",".join(str(item) for item in value)
        encoded[key] = value
    return encoded


def validate_base_url(base_url: str) -> str:
    """Check that base_url is an absolute http(s) URL.

    Raises:
        ConfigurationError: If the URL is not valid
    """
    try:
        url = httpx.URL(base_url or "")
    except (httpx.InvalidURL, TypeError) as e:
        raise ConfigurationError("The base URL provided is not valid") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError("The base URL provided is not valid")
    return base_url


class APIClient:
    """Authenticated client for the portal API."""

    def __init__(
        self,
        base_url: str,
        token_manager: TokenManager,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize API client.

        Args:
            base_url: Portal base URL (e.g. https://portal.example.com/)
            token_manager: Source of bearer tokens
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            transport: Optional httpx transport (tests, proxies, custom pools)

        Raises:
            ConfigurationError: If base_url is not an absolute http(s) URL
        """
        self.base_url = validate_base_url(base_url)
        self.token_manager = token_manager
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.user_agent = user_agent or settings.user_agent

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )

    async def headers(self, additional: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Build request headers, including a fresh bearer token."""
        access_token = await self.token_manager.access_token()
        headers = {
            "User-Agent": self.user_agent,
            "Authorization": f"Bearer {access_token}",
        }
        if additional:
            headers.update(additional)
        return headers

    async def send(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        content: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> APIResponse:
        """Send a request to the API.

        POST params are form-encoded into the body, params of any other
        method go to the query string. Raw bytes can be sent as content.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            params: Request parameters
            content: Raw request body
            headers: Additional headers

        Returns:
            Parsed response

        Raises:
            AuthenticationError: If no access token is available
            TransportError: On network errors or non-2xx responses
        """
        method = method.upper()
        request_headers = await self.headers(headers)
        encoded = encode_params(params)

        request_kwargs: Dict[str, Any] = {"headers": request_headers}
        if content is not None:
            request_kwargs["content"] = content
            if encoded:
                request_kwargs["params"] = encoded
        elif method == "POST":
            # httpx sets the form Content-Type itself
            request_kwargs["data"] = encoded
        elif encoded:
            request_kwargs["params"] = encoded

        try:
            logger.debug(f"{method} {path}")
            response = await self.client.request(method, path, **request_kwargs)

        except httpx.HTTPError as e:
            logger.error(
                f"Request failed: {method} {path}",
                extra={"method": method, "path": path, "error": str(e)},
            )
            raise TransportError(str(e) or "Request failed", status=0) from e

        if response.is_success:
            return APIResponse(
                data=self._parse_body(response),
                headers=dict(response.headers),
                status_code=response.status_code,
            )

        body = self._parse_error_body(response)
        logger.warning(
            f"HTTP error {response.status_code}: {method} {path}",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "correlation_id": response.headers.get(CORRELATION_ID_HEADER),
            },
        )
        raise TransportError(
            response.reason_phrase or f"HTTP {response.status_code}",
            status=response.status_code,
            body=body,
            headers=response.headers,
        )

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        # Only 200-202 carry a payload worth returning
        if response.status_code > 202 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    @staticmethod
    def _parse_error_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self.client.aclose()

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
