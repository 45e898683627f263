"""OAuth2 token model."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator

from dambridge.core.config import settings


class OAuth2Token(BaseModel):
    """Access token as returned by the OAuth2 token endpoint."""

    model_config = ConfigDict(extra="allow")

    access_token: StrictStr
    token_type: str = "bearer"
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    expires_at: Optional[datetime] = None
    scope: Optional[str] = None
    issued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _derive_expires_at(self) -> "OAuth2Token":
        if self.expires_at is None and self.expires_in is not None:
            self.expires_at = self.issued_at + timedelta(seconds=self.expires_in)
        if self.expires_at is not None and self.expires_at.tzinfo is None:
            self.expires_at = self.expires_at.replace(tzinfo=timezone.utc)
        return self

    @property
    def expired(self) -> bool:
        """Whether the token is expired or about to expire."""
        return self.is_expired(settings.TOKEN_EXPIRY_SKEW_SECONDS)

    def is_expired(self, skew_seconds: int = 0) -> bool:
        """Check whether the token expires within skew_seconds.

        Tokens without an expiry never expire.
        """
        if self.expires_at is None:
            return False
        threshold = datetime.now(timezone.utc) + timedelta(seconds=skew_seconds)
        return self.expires_at <= threshold
