"""Configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    # Pivotal Tracker
    pivotal_tracker_token: str = ""
    pivotal_tracker_account_id: str = ""
    pivotal_tracker_api_url: str = "https://www.pivotaltracker.com/services/v5"
    pivotal_tracker_web_url: str = "https://www.pivotaltracker.com"
    pivotal_tracker_timeout: float = 30.0
    pivotal_tracker_retries: int = 3

    # Member cache
    redis_url: str = ""  # empty → in-process cache
    member_cache_ttl: int = 60 * 60 * 24
    member_cache_not_found: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
