"""Runtime settings for pagecontract, read from PAGECONTRACT_* variables."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings."""

    model_config = SettingsConfigDict(env_prefix="PAGECONTRACT_")

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Selector heuristic: any of these substrings marks a selector as suspect
    suspicious_selector_tokens: List[str] = ["><", "<<"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process settings, loading them on first use."""
    return Settings()
