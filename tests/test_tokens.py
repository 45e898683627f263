"""Tests for OAuth2 token management."""

import asyncio
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from conftest import BASE_URL, RecordingHandler, form_data, json_response
from dambridge.auth.tokens import TokenManager
from dambridge.core.exceptions import AuthenticationError, InvalidTokenError
from dambridge.models.token import OAuth2Token

TOKEN_PATH = "/v6/authentication/oauth2/token"


def expired_token(refresh_token="refresh-1"):
    return {
        "access_token": "old-access",
        "refresh_token": refresh_token,
        "expires_at": datetime.now(timezone.utc) - timedelta(minutes=5),
    }


def token_manager_with(handler, **kwargs):
    return TokenManager(
        BASE_URL,
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="https://app.example.com/callback",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestOAuth2Token:
    """Tests for the token model."""

    def test_expires_at_derived_from_expires_in(self):
        token = OAuth2Token(access_token="a", expires_in=3600)
        assert token.expires_at == token.issued_at + timedelta(seconds=3600)
        assert not token.is_expired()

    def test_without_expiry_never_expires(self):
        assert not OAuth2Token(access_token="a").is_expired(skew_seconds=10**6)

    def test_skew(self):
        token = OAuth2Token(access_token="a", expires_in=20)
        assert token.is_expired(skew_seconds=30)
        assert not token.is_expired()

    def test_expired_property(self):
        assert OAuth2Token(access_token="a", expires_in=0).expired
        assert not OAuth2Token(access_token="a", expires_in=3600).expired


class TestTokenManager:
    """Tests for TokenManager."""

    def test_endpoints(self):
        manager = TokenManager("https://portal.example.com/some/path/")
        assert manager.token_endpoint == "https://portal.example.com/v6/authentication/oauth2/token"
        assert manager.authorize_endpoint == "https://portal.example.com/v6/authentication/oauth2/auth"

    def test_authorization_url(self):
        manager = token_manager_with(RecordingHandler())

        url = manager.authorization_url("state-1", ["offline", "asset:read"])

        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert parsed.path == "/v6/authentication/oauth2/auth"
        assert query["response_type"] == ["code"]
        assert query["client_id"] == ["client-id"]
        assert query["redirect_uri"] == ["https://app.example.com/callback"]
        assert query["state"] == ["state-1"]
        assert query["scope"] == ["offline asset:read"]

    @pytest.mark.parametrize("token", [{"access_token": 123}, {"token_type": "bearer"}, {}])
    def test_invalid_token_format(self, token):
        with pytest.raises(InvalidTokenError, match="Invalid token format"):
            TokenManager(BASE_URL, token=token)

    @pytest.mark.asyncio
    async def test_permanent_token(self):
        handler = RecordingHandler()
        manager = token_manager_with(handler, permanent_token="perm")

        assert await manager.access_token() == "perm"
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_no_token(self):
        with pytest.raises(AuthenticationError, match="No token found"):
            await TokenManager(BASE_URL).access_token()

    @pytest.mark.asyncio
    async def test_valid_token_used_as_is(self):
        handler = RecordingHandler()
        manager = token_manager_with(handler, token={"access_token": "abc", "expires_in": 3600})

        assert await manager.access_token() == "abc"
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_fetch_token_with_code(self):
        handler = RecordingHandler(
            {("POST", TOKEN_PATH): json_response({"access_token": "new", "expires_in": 3600})}
        )
        manager = token_manager_with(handler)

        token = await manager.fetch_token("code-1")

        assert token.access_token == "new"
        assert await manager.access_token() == "new"
        request = handler.requests[0]
        assert form_data(request) == {
            "grant_type": "authorization_code",
            "code": "code-1",
            "redirect_uri": "https://app.example.com/callback",
        }
        assert request.headers["Authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_client_credentials_renewed_when_expired(self):
        responses = iter(
            [
                json_response({"access_token": "cc-1", "expires_in": 0}),
                json_response({"access_token": "cc-2", "expires_in": 3600}),
            ]
        )
        handler = RecordingHandler({("POST", TOKEN_PATH): lambda request: next(responses)})
        manager = token_manager_with(handler)

        await manager.fetch_client_credentials_token(["asset:read"])
        assert await manager.access_token() == "cc-2"

        forms = [form_data(request) for request in handler.requests]
        assert forms == [
            {"grant_type": "client_credentials", "scope": "asset:read"},
            {"grant_type": "client_credentials", "scope": "asset:read"},
        ]

    @pytest.mark.asyncio
    async def test_refresh_is_single_flight(self):
        """Test that concurrent callers share one refresh request."""

        async def slow_refresh(request):
            await asyncio.sleep(0.01)
            return json_response({"access_token": "fresh", "expires_in": 3600})

        calls = []

        class Handler:
            async def __call__(self, request):
                calls.append(form_data(request))
                return await slow_refresh(request)

        manager = TokenManager(
            BASE_URL, token=expired_token(), transport=httpx.MockTransport(Handler())
        )

        results = await asyncio.gather(*(manager.access_token() for _ in range(5)))

        assert results == ["fresh"] * 5
        assert calls == [{"grant_type": "refresh_token", "refresh_token": "refresh-1"}]
        # Refresh token kept when the endpoint omits it
        assert manager.token.refresh_token == "refresh-1"

    @pytest.mark.asyncio
    async def test_expired_without_refresh_token(self):
        manager = TokenManager(BASE_URL, token=expired_token(refresh_token=None))

        with pytest.raises(AuthenticationError, match="cannot be refreshed"):
            await manager.access_token()

    @pytest.mark.asyncio
    async def test_token_endpoint_rejects(self):
        handler = RecordingHandler(
            {("POST", TOKEN_PATH): json_response({"error": "invalid_grant"}, status_code=400)}
        )
        manager = token_manager_with(handler)

        with pytest.raises(AuthenticationError) as exc_info:
            await manager.fetch_token("bad-code")

        assert exc_info.value.status == 400
        assert manager.token is None

    @pytest.mark.asyncio
    async def test_token_endpoint_non_json(self):
        handler = RecordingHandler({("POST", TOKEN_PATH): httpx.Response(200, text="<html>")})
        manager = token_manager_with(handler)

        with pytest.raises(AuthenticationError, match="non-JSON"):
            await manager.fetch_token("code")
