"""Environment-driven defaults using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings

from .types import FileWatchConfig


class ConditionalCacheSettings(BaseSettings):
    """Settings loaded from HTTP_CONDITIONAL_* environment variables."""

    DEFAULT_MAX_AGE_MS: int = 0
    HASH_ALGORITHM: str = "md5"
    NOT_MODIFIED_BODY: str = "Cached"

    class Config:
        case_sensitive = True
        env_prefix = "HTTP_CONDITIONAL_"
        env_file = None  # Use system env only

    def to_file_watch_config(self) -> FileWatchConfig:
        return FileWatchConfig(
            default_max_age_ms=self.DEFAULT_MAX_AGE_MS,
            hash_algorithm=self.HASH_ALGORITHM,
            not_modified_body=self.NOT_MODIFIED_BODY,
        )


@lru_cache()
def get_settings() -> ConditionalCacheSettings:
    """Get cached settings instance."""
    return ConditionalCacheSettings()
