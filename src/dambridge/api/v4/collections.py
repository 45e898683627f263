"""Collection endpoints."""

import json
from typing import Any, Dict, List, Optional, Sequence, Union

from dambridge.api.v4.base import Resource
from dambridge.core.exceptions import ValidationError


class CollectionsResource(Resource):
    """Create, share and fill collections."""

    async def list(self, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return await self._get("api/v4/collections/", params)

    async def get(self, id: str) -> Dict[str, Any]:
        if not id:
            raise ValidationError("collection", "id")
        return await self._get(f"api/v4/collections/{id}/")

    async def create(self, name: str, **params: Any) -> Dict[str, Any]:
        """Create a collection.

        Args:
            name: Collection name
            **params: Optional attributes such as description
        """
        if not name:
            raise ValidationError("collection", "name")
        return await self._post("api/v4/collections/", {"name": name, **params})

    async def add_media(self, id: str, data: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        """Add assets to a collection.

        Args:
            id: Collection id
            data: Asset ids to add
        """
        if not id:
            raise ValidationError("collection", "id")
        if not data:
            raise ValidationError("collection", "data")
        return await self._post(f"api/v4/collections/{id}/media/", {"data": json.dumps(list(data))})

    async def remove_media(
        self, id: str, delete_ids: Union[str, Sequence[str], None] = None
    ) -> Dict[str, Any]:
        """Remove assets from a collection."""
        if not id:
            raise ValidationError("collection", "id")
        if not delete_ids:
            raise ValidationError("collection", "deleteIds")
        if not isinstance(delete_ids, str):
            delete_ids = ",".join(delete_ids)
        return await self._delete(f"api/v4/collections/{id}/media/", {"deleteIds": delete_ids})

    async def share(
        self,
        id: str,
        recipients: Union[str, Sequence[str], None] = None,
        collection_options: Optional[str] = None,
        **params: Any,
    ) -> Dict[str, Any]:
        """Share a collection.

        Args:
            id: Collection id
            recipients: Recipient email addresses
            collection_options: Recipient rights, "view" or "edit"
            **params: Optional sharing attributes (message, dates, ...)
        """
        if not id:
            raise ValidationError("collection", "id")
        if not recipients:
            raise ValidationError("collection", "recipients")
        if not collection_options:
            raise ValidationError("collection", "collectionOptions")
        return await self._post(
            f"api/v4/collections/{id}/share/",
            {"recipients": recipients, "collectionOptions": collection_options, **params},
        )
