"""Read-only listings: tags, smart filters, brands and categories."""

from typing import Any, Dict, List, Optional

from dambridge.api.v4.base import Resource


class TagsResource(Resource):
    async def list(self, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return await self._get("api/v4/tags/", params)


class SmartfiltersResource(Resource):
    async def list(self) -> List[Dict[str, Any]]:
        return await self._get("api/v4/smartfilters/")


class BrandsResource(Resource):
    async def list(self) -> List[Dict[str, Any]]:
        """List brands with their subbrands."""
        return await self._get("api/v4/brands/")


class CategoriesResource(Resource):
    async def list(self) -> List[Dict[str, Any]]:
        return await self._get("api/v4/categories/")
