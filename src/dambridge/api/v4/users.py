"""Legacy user login."""

from typing import Any, Dict, Optional

from dambridge.api.v4.base import Resource
from dambridge.core.exceptions import ValidationError


class UsersResource(Resource):
    async def login(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        consumer_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Log a user in and return the coupled credentials.

        Deprecated on the portal side; prefer the OAuth2 grants.
        """
        if not username or not password or not consumer_id:
            raise ValidationError("authentication", "username, password or consumerId")
        return await self._post(
            "api/v4/users/login/",
            {"username": username, "password": password, "consumerId": consumer_id},
        )
