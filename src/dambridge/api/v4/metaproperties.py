"""Metaproperty endpoints.

Create and modify calls expect the payload JSON-serialised under a
single ``data`` form field.
"""

import json
from typing import Any, Dict, List, Optional

from dambridge.api.v4.base import Resource
from dambridge.core.exceptions import ValidationError


def _values(data: Any) -> List[Any]:
    # Keyed by metaproperty name on the wire
    if isinstance(data, dict):
        return list(data.values())
    return list(data or [])


class MetapropertiesResource(Resource):
    """Metaproperties and their options."""

    async def list(self, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        data = await self._get("api/v4/metaproperties/", params)
        return _values(data)

    async def get(self, id: str) -> Dict[str, Any]:
        if not id:
            raise ValidationError("metaproperty", "id")
        return await self._get(f"api/v4/metaproperties/{id}/")

    async def create(self, **params: Any) -> Dict[str, Any]:
        return await self._post("api/v4/metaproperties/", {"data": json.dumps(params)})

    async def edit(self, id: str, **params: Any) -> Dict[str, Any]:
        if not id:
            raise ValidationError("metaproperty", "id")
        return await self._post(f"api/v4/metaproperties/{id}/", {"data": json.dumps(params)})

    async def delete(self, id: str) -> Dict[str, Any]:
        if not id:
            raise ValidationError("metaproperty", "id")
        return await self._delete(f"api/v4/metaproperties/{id}/")

    async def options(self, id: str, **params: Any) -> List[Dict[str, Any]]:
        """List the options of a metaproperty."""
        if not id:
            raise ValidationError("metapropertyOption", "id")
        data = await self._get(f"api/v4/metaproperties/{id}/options/", params)
        return _values(data)

    async def create_option(self, id: str, name: Optional[str] = None, **params: Any) -> Dict[str, Any]:
        if not id or not name:
            raise ValidationError("metaproperty option", "id or name")
        return await self._post(
            f"api/v4/metaproperties/{id}/options/",
            {"data": json.dumps({"name": name, **params})},
        )

    async def edit_option(self, id: str, option_id: Optional[str] = None, **params: Any) -> Dict[str, Any]:
        if not id or not option_id:
            raise ValidationError("metaproperty option", "id or optionId")
        return await self._post(
            f"api/v4/metaproperties/{id}/options/{option_id}/",
            {"data": json.dumps({"optionId": option_id, **params})},
        )

    async def delete_option(self, id: str, option_id: Optional[str] = None) -> Dict[str, Any]:
        if not id or not option_id:
            raise ValidationError("metaproperty option", "id or optionId")
        return await self._delete(f"api/v4/metaproperties/{id}/options/{option_id}/")
