"""OAuth2 token management.

Holds either a permanent bearer token or an OAuth2 token, hands out the
current access token and refreshes it when it is about to expire. The
refresh is single-flight: concurrent callers wait on one lock and reuse
the token obtained by whichever caller refreshed first.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, Optional, Union
from urllib.parse import urljoin

import httpx
from pydantic import ValidationError as PydanticValidationError

from dambridge.core.config import settings
from dambridge.core.exceptions import AuthenticationError, InvalidTokenError
from dambridge.models.token import OAuth2Token

logger = logging.getLogger(__name__)

GRANT_AUTHORIZATION_CODE = "authorization_code"
GRANT_CLIENT_CREDENTIALS = "client_credentials"
GRANT_REFRESH_TOKEN = "refresh_token"


def _join_scopes(scopes: Union[str, Iterable[str], None]) -> Optional[str]:
    if scopes is None:
        return None
    if isinstance(scopes, str):
        return scopes
    return " ".join(scopes)


class TokenManager:
    """Source of bearer tokens for the transport client."""

    def __init__(
        self,
        base_url: str,
        client_id: str = "",
        client_secret: str = "",
        redirect_uri: str = "",
        permanent_token: Optional[str] = None,
        token: Union[OAuth2Token, Dict[str, Any], None] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        expiry_skew_seconds: Optional[int] = None,
    ):
        """Initialize token manager.

        Args:
            base_url: Portal base URL; OAuth2 endpoints live under /v6/authentication/
            client_id: OAuth2 client id
            client_secret: OAuth2 client secret
            redirect_uri: Redirect URI registered for the authorization code grant
            permanent_token: Long-lived bearer token; disables OAuth2 handling
            token: Previously obtained OAuth2 token (model or token endpoint payload)
            timeout: Token endpoint timeout in seconds
            transport: Optional httpx transport (tests, proxies)
            expiry_skew_seconds: Refresh tokens this long before they expire

        Raises:
            InvalidTokenError: If token has no string access_token
        """
        oauth_base_url = urljoin(base_url, "/v6/authentication/")
        self.authorize_endpoint = urljoin(oauth_base_url, "oauth2/auth")
        self.token_endpoint = urljoin(oauth_base_url, "oauth2/token")

        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.permanent_token = permanent_token or None
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.expiry_skew_seconds = (
            expiry_skew_seconds
            if expiry_skew_seconds is not None
            else settings.TOKEN_EXPIRY_SKEW_SECONDS
        )
        self._transport = transport

        self._token: Optional[OAuth2Token] = None
        self._grant_type: Optional[str] = None
        self._scopes: Optional[str] = None
        self._lock = asyncio.Lock()

        if token is not None:
            self.token = token

    @property
    def token(self) -> Optional[OAuth2Token]:
        return self._token

    @token.setter
    def token(self, value: Union[OAuth2Token, Dict[str, Any]]) -> None:
        if isinstance(value, OAuth2Token):
            self._token = value
            return
        try:
            self._token = OAuth2Token.model_validate(value)
        except PydanticValidationError as e:
            raise InvalidTokenError(f"Invalid token format: {value!r}") from e

    def authorization_url(self, state: str, scope: Union[str, Iterable[str], None] = None) -> str:
        """Build the URL the user visits to grant access.

        Args:
            state: Opaque value echoed back to the redirect URI
            scope: Requested scope(s)

        Returns:
            Authorization URL
        """
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": state,
        }
        joined = _join_scopes(scope)
        if joined:
            params["scope"] = joined
        return str(httpx.URL(self.authorize_endpoint, params=params))

    async def fetch_token(self, code: str) -> OAuth2Token:
        """Exchange a one-time authorization code for a token.

        Args:
            code: Authorization code received on the redirect URI

        Returns:
            New token, also kept as the current token
        """
        async with self._lock:
            token = await self._request_token(
                {
                    "grant_type": GRANT_AUTHORIZATION_CODE,
                    "code": code,
                    "redirect_uri": self.redirect_uri,
                }
            )
            self._token = token
            self._grant_type = GRANT_AUTHORIZATION_CODE
            return token

    async def fetch_client_credentials_token(
        self, scopes: Union[str, Iterable[str], None] = None
    ) -> OAuth2Token:
        """Obtain a token with the client credentials grant.

        Args:
            scopes: Requested scope(s)

        Returns:
            New token, also kept as the current token
        """
        async with self._lock:
            self._scopes = _join_scopes(scopes)
            token = await self._fetch_client_credentials()
            self._token = token
            self._grant_type = GRANT_CLIENT_CREDENTIALS
            return token

    async def refresh(self) -> OAuth2Token:
        """Refresh the current token unconditionally."""
        async with self._lock:
            await self._renew()
            return self._token

    async def access_token(self) -> str:
        """Return a usable access token, refreshing it first if expired.

        Raises:
            AuthenticationError: If no token is available or it cannot be renewed
        """
        if self.permanent_token:
            return self.permanent_token

        async with self._lock:
            if self._token is None:
                raise AuthenticationError("No token found")
            # Another caller may have refreshed while we waited on the lock
            if self._token.is_expired(self.expiry_skew_seconds):
                logger.info(
                    "Access token expired, renewing",
                    extra={"grant_type": self._grant_type},
                )
                await self._renew()
            return self._token.access_token

    async def _renew(self) -> None:
        if self._token is None:
            raise AuthenticationError("No token found")

        if self._token.refresh_token:
            token = await self._request_token(
                {
                    "grant_type": GRANT_REFRESH_TOKEN,
                    "refresh_token": self._token.refresh_token,
                }
            )
            # Token endpoints may omit the refresh token when it is unchanged
            if token.refresh_token is None:
                token.refresh_token = self._token.refresh_token
            self._token = token
        elif self._grant_type == GRANT_CLIENT_CREDENTIALS:
            self._token = await self._fetch_client_credentials()
        else:
            raise AuthenticationError("Access token expired and cannot be refreshed")

    async def _fetch_client_credentials(self) -> OAuth2Token:
        form = {"grant_type": GRANT_CLIENT_CREDENTIALS}
        if self._scopes:
            form["scope"] = self._scopes
        return await self._request_token(form)

    async def _request_token(self, form: Dict[str, str]) -> OAuth2Token:
        grant_type = form["grant_type"]
        client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        try:
            response = await client.post(
                self.token_endpoint,
                data=form,
                auth=(self.client_id, self.client_secret),
            )
            response.raise_for_status()
            payload = response.json()

        except httpx.HTTPStatusError as e:
            logger.error(
                "Token request rejected",
                extra={
                    "grant_type": grant_type,
                    "status_code": e.response.status_code,
                },
            )
            raise AuthenticationError(
                f"Token request failed: {e.response.reason_phrase}",
                status=e.response.status_code,
            ) from e

        except httpx.HTTPError as e:
            logger.error(
                "Token request failed",
                extra={"grant_type": grant_type, "error": str(e)},
            )
            raise AuthenticationError(f"Token request failed: {e}") from e

        except ValueError as e:
            raise AuthenticationError("Token endpoint returned a non-JSON body") from e

        finally:
            # A caller-supplied transport is shared with the API client and closed by its owner
            if self._transport is None:
                await client.aclose()

        try:
            token = OAuth2Token.model_validate(payload)
        except PydanticValidationError as e:
            raise InvalidTokenError(f"Invalid token format: {payload!r}") from e

        logger.info(
            "Token obtained",
            extra={"grant_type": grant_type, "expires_in": token.expires_in},
        )
        return token
