"""Shared plumbing for API resources."""

from typing import Any, Mapping, Optional

from dambridge.api.transport import APIClient


class Resource:
    """Base class for a group of related API endpoints."""

    def __init__(self, api: APIClient):
        self.api = api

    async def _get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        response = await self.api.send("GET", path, params=params)
        return response.data

    async def _post(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        response = await self.api.send("POST", path, params=params)
        return response.data

    async def _delete(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        response = await self.api.send("DELETE", path, params=params)
        return response.data
