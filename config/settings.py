"""Application settings via pydantic-settings (reads from .env).

All environment variables are documented here. A .env file in the working
directory is loaded automatically.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Linkd profile search — https://api.linkd.network
    # Key is sent as a bearer token on REST calls and inside the WebSocket query message
    linkd_api_key: str = ""
    linkd_base_url: str = "https://api.linkd.network"

    # Applies to every REST call and to the streamed search deadline (counted from channel open)
    linkd_timeout_sec: float = 30.0

    # Bounded retry on transport failures only (connect errors, timeouts, 5xx)
    # Auth failures are never retried
    linkd_retry_attempts: int = 3
    linkd_retry_backoff_min: float = 0.5
    linkd_retry_backoff_max: float = 8.0

    # Unipile — LinkedIn connection requests
    unipile_api_key: str = ""
    unipile_base_url: str = "https://api.unipile.com"

    # Default school filter for the alumni tools
    default_school: str = "UCLA"

    # Application metadata
    app_name: str = "linkd-search"
    app_version: str = "0.1.0"
    debug: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
