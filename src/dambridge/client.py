"""Client facade for the DAM portal API.

Wires token management, the transport client, the resource groups and
the upload pipeline together. Unspecified options fall back to
``dambridge.core.config.settings``.

Usage:
    async with DamClient(base_url="https://portal.example.com/", permanent_token="...") as dam:
        assets = await dam.media.list({"type": "image"})
        result = await dam.upload_file("photo.jpg", data_bytes, {"brandId": brand_id})
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, Optional, Union

import httpx

from dambridge.api.transport import APIClient
from dambridge.api.v4 import (
    BrandsResource,
    CategoriesResource,
    CollectionsResource,
    MediaResource,
    MetapropertiesResource,
    SmartfiltersResource,
    TagsResource,
    UsageResource,
    UsersResource,
)
from dambridge.auth.tokens import TokenManager
from dambridge.core.config import settings
from dambridge.models.token import OAuth2Token
from dambridge.models.upload import UploadRequest, UploadResult
from dambridge.services.upload.orchestrator import ProgressCallback, UploadOrchestrator

logger = logging.getLogger(__name__)


class DamClient:
    """Async client for the DAM portal API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        permanent_token: Optional[str] = None,
        token: Union[OAuth2Token, Dict[str, Any], None] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Portal base URL
            client_id: OAuth2 client id
            client_secret: OAuth2 client secret
            redirect_uri: OAuth2 redirect URI
            permanent_token: Long-lived bearer token, used instead of OAuth2
            token: Previously obtained OAuth2 token
            timeout: Request timeout in seconds
            transport: Optional httpx transport shared by API and token calls

        Raises:
            ConfigurationError: If base_url is not a valid URL
            InvalidTokenError: If token is malformed
        """
        base_url = base_url if base_url is not None else settings.BASE_URL

        self.token_manager = TokenManager(
            base_url,
            client_id=client_id if client_id is not None else settings.CLIENT_ID,
            client_secret=client_secret if client_secret is not None else settings.CLIENT_SECRET,
            redirect_uri=redirect_uri if redirect_uri is not None else settings.REDIRECT_URI,
            permanent_token=permanent_token if permanent_token is not None else settings.PERMANENT_TOKEN,
            token=token,
            timeout=timeout,
            transport=transport,
        )
        self.api = APIClient(
            base_url,
            self.token_manager,
            timeout=timeout,
            transport=transport,
        )
        self.uploader = UploadOrchestrator(self.api)

        self.media = MediaResource(self.api)
        self.metaproperties = MetapropertiesResource(self.api)
        self.collections = CollectionsResource(self.api)
        self.tags = TagsResource(self.api)
        self.smartfilters = SmartfiltersResource(self.api)
        self.brands = BrandsResource(self.api)
        self.categories = CategoriesResource(self.api)
        self.usage = UsageResource(self.api)
        self.users = UsersResource(self.api)

    def make_authorization_url(
        self, state: str, scope: Union[str, Iterable[str], None] = None
    ) -> str:
        """Return the URL a user visits to authorize this client."""
        return self.token_manager.authorization_url(state, scope)

    async def get_token(
        self,
        code: Optional[str] = None,
        scopes: Union[str, Iterable[str], None] = None,
    ) -> OAuth2Token:
        """Obtain an OAuth2 token.

        Exchanges code when one is given (authorization code grant), uses
        the client credentials grant otherwise.
        """
        if code:
            return await self.token_manager.fetch_token(code)
        return await self.token_manager.fetch_client_credentials_token(scopes)

    async def upload_file(
        self,
        filename: str,
        body: Any,
        data: Optional[Dict[str, Any]] = None,
        length: Optional[int] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """Upload a file and register it as an asset.

        Args:
            filename: Name of the file on the portal
            body: bytes-like buffer, file object, async iterable or iterator of bytes
            data: Asset attributes (brandId, name, mediaId for a new version, ...)
            length: Byte length; required for streamed bodies
            cancel_event: Stops the upload before the next chunk once set
            on_progress: Called with the upload session after every chunk

        Returns:
            The saved asset

        Raises:
            ValidationError: If filename, body or length is invalid
            UploadCancelledError: If cancel_event was set mid-upload
            UploadError: If the upload failed after validation
        """
        request = UploadRequest(filename=filename, body=body, data=dict(data or {}), length=length)
        return await self.uploader.upload(
            request, cancel_event=cancel_event, on_progress=on_progress
        )

    async def save_asset(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Register an already finalised upload (data must carry fileId)."""
        return await self.uploader.save_asset(data)

    async def aclose(self) -> None:
        await self.api.aclose()

    async def __aenter__(self) -> "DamClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
