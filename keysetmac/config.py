"""Library configuration."""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from ``KEYSETMAC_*`` environment variables."""

    # Environment
    environment: str = "development"  # development, staging, production

    # Key manager limits
    min_hmac_key_size: int = 16  # bytes
    min_tag_size: int = 10  # bytes, applies to HMAC and KMAC tags

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # JSON lines instead of human-readable output

    model_config = SettingsConfigDict(
        env_prefix="KEYSETMAC_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_limits(self) -> "Settings":
        """Refuse limits that would admit trivially forgeable tags."""
        if self.min_tag_size < 8:
            raise ValueError(f"min_tag_size must be at least 8 bytes, got {self.min_tag_size}")
        if self.is_production and self.min_hmac_key_size < 16:
            raise ValueError(
                f"min_hmac_key_size must be at least 16 bytes in production, "
                f"got {self.min_hmac_key_size}"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
