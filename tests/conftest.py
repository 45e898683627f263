"""Pytest configuration and shared fixtures."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

from dambridge.api.transport import APIClient, APIResponse
from dambridge.auth.tokens import TokenManager

BASE_URL = "https://portal.example.com/"


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays canned responses.

    Routes map (METHOD, path) to a response factory or an httpx.Response.
    Unrouted requests get 200 with an empty JSON object.
    """

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(200, json={})
        if callable(route):
            return route(request)
        return route


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def token_manager():
    """Token manager holding a permanent token."""
    return TokenManager(BASE_URL, permanent_token="permanent-token")


@pytest_asyncio.fixture
async def api_client(handler, token_manager):
    """APIClient wired to the recording mock transport."""
    client = APIClient(
        BASE_URL,
        token_manager,
        transport=httpx.MockTransport(handler),
    )
    yield client
    await client.aclose()


@pytest.fixture
def mock_api():
    """Transport stand-in whose send() is an AsyncMock."""
    api = MagicMock(spec=APIClient)
    api.send = AsyncMock(return_value=APIResponse(data={}))
    return api


def form_data(request: httpx.Request) -> dict:
    """Decode a form-encoded request body into a flat dict."""
    from urllib.parse import parse_qsl

    return dict(parse_qsl(request.content.decode()))


def json_response(payload, status_code=200, headers=None) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode(),
        headers={"content-type": "application/json", **(headers or {})},
    )
