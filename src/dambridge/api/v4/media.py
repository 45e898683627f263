"""Media (asset) endpoints."""

from typing import Any, AsyncIterator, Dict, List, Optional

from dambridge.api.v4.base import Resource
from dambridge.core.config import settings
from dambridge.core.exceptions import ValidationError


def _media_query(params: Optional[Dict[str, Any]], count: bool) -> Dict[str, Any]:
    query = dict(params or {})
    # The API answers count=true with totals instead of assets
    query["count"] = count
    option_ids = query.get("propertyOptionId")
    if isinstance(option_ids, (list, tuple)):
        query["propertyOptionId"] = ",".join(str(option_id) for option_id in option_ids)
    return query


class MediaResource(Resource):
    """Retrieve, edit and delete assets."""

    async def list(self, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """List assets matching the given query parameters."""
        return await self._get("api/v4/media/", _media_query(params, count=False))

    async def get(self, id: str, **options: Any) -> Dict[str, Any]:
        """Retrieve one asset.

        Args:
            id: Asset id
            **options: Extra query parameters (e.g. versions=True)

        Raises:
            ValidationError: If id is missing
        """
        if not id:
            raise ValidationError("media", "id")
        return await self._get(f"api/v4/media/{id}/", options)

    async def iter_all(
        self, params: Optional[Dict[str, Any]] = None
    ) -> AsyncIterator[Dict[str, Any]]:
        """Yield every asset, page by page.

        Starts at params["page"] (default 1) and stops after the first page
        holding fewer than params["limit"] assets.
        """
        query = dict(params or {})
        query["page"] = query.get("page") or 1
        query["limit"] = query.get("limit") or settings.DEFAULT_PAGE_SIZE

        while True:
            page = await self.list(query)
            for asset in page or []:
                yield asset
            # A full page means another one might exist
            if not page or len(page) < query["limit"]:
                return
            query["page"] += 1

    async def all(self, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Collect every asset into a list. See iter_all."""
        return [asset async for asset in self.iter_all(params)]

    async def total(self, params: Optional[Dict[str, Any]] = None) -> int:
        """Count assets matching the given query parameters."""
        data = await self._get("api/v4/media/", _media_query(params, count=True))
        return data["count"]["total"]

    async def edit(self, id: str, **params: Any) -> Dict[str, Any]:
        """Modify an asset's attributes."""
        if not id:
            raise ValidationError("media", "id")
        return await self._post("api/v4/media/", {"id": id, **params})

    async def delete(self, id: str) -> Dict[str, Any]:
        """Delete an asset."""
        if not id:
            raise ValidationError("media", "id")
        return await self._delete(f"api/v4/media/{id}/")

    async def download_url(self, id: str, **params: Any) -> Dict[str, Any]:
        """Retrieve the download location of an asset's original file."""
        if not id:
            raise ValidationError("media", "id")
        return await self._get(f"api/v4/media/{id}/download/", params)
