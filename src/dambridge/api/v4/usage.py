"""Asset usage endpoints.

Usage records link an asset to the place an integration published it.
"""

from typing import Any, Dict, List, Optional

from dambridge.api.v4.base import Resource
from dambridge.core.exceptions import ValidationError

USAGE_PATH = "api/media/usage/"


class UsageResource(Resource):
    """Track where assets are used."""

    async def get(self, id: str) -> List[Dict[str, Any]]:
        """List the usages of an asset."""
        if not id:
            raise ValidationError("asset usage", "id")
        return await self._get(USAGE_PATH, {"asset_id": id})

    async def create(
        self,
        id: str,
        integration_id: Optional[str] = None,
        timestamp: Optional[str] = None,
        uri: Optional[str] = None,
        additional: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Record a usage of an asset.

        Args:
            id: Asset id
            integration_id: Integration that used the asset
            timestamp: ISO 8601 datetime of the usage
            uri: Location of the usage, e.g. /blog/first_post
            additional: Free text description
        """
        if not id:
            raise ValidationError("asset usage", "id")
        if not integration_id:
            raise ValidationError("asset usage", "integration_id")
        return await self._post(
            USAGE_PATH,
            {
                "asset_id": id,
                "integration_id": integration_id,
                "timestamp": timestamp,
                "uri": uri,
                "additional": additional,
            },
        )

    async def delete(
        self, id: str, integration_id: Optional[str] = None, uri: Optional[str] = None
    ) -> Dict[str, Any]:
        if not id:
            raise ValidationError("asset usage", "id")
        if not integration_id:
            raise ValidationError("asset usage", "integration_id")
        return await self._delete(
            USAGE_PATH, {"asset_id": id, "integration_id": integration_id, "uri": uri}
        )
