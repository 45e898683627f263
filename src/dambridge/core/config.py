"""Configuration management for the dambridge client."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DAM_",
        case_sensitive=True,
        extra="ignore",
    )

    ENV: str = "local"
    SERVICE_NAME: str = "dambridge"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Portal Configuration
    BASE_URL: str = ""  # e.g. https://portal.example.com/

    # OAuth2 Configuration
    CLIENT_ID: str = ""
    CLIENT_SECRET: str = ""
    REDIRECT_URI: str = ""
    PERMANENT_TOKEN: str = ""  # Long-lived bearer token, skips OAuth2 entirely
    TOKEN_EXPIRY_SKEW_SECONDS: int = 30  # Refresh this long before the token expires

    # Transport Configuration
    REQUEST_TIMEOUT: int = 300  # seconds

    # Upload Configuration
    CHUNK_MAX_ATTEMPTS: int = 5  # 1 attempt + 4 retries
    CHUNK_RETRY_WAIT_SECONDS: float = 0  # 0 = retry immediately

    # Resource Configuration
    DEFAULT_PAGE_SIZE: int = 50

    @property
    def user_agent(self) -> str:
        """User-Agent header sent with every request."""
        return f"{self.SERVICE_NAME}/{self.SERVICE_VERSION}"


# Singleton settings instance
settings = Settings()
