"""Environment-driven settings for the storage adapter."""

import os
from dataclasses import dataclass, field
from functools import lru_cache

from .errors import ConfigurationError


@dataclass(frozen=True)
class Settings:
    """Storage account credentials."""

    account_name: str
    account_key: str = field(repr=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""

    required_keys = ("AZURE_STORAGE_ACCOUNT", "AZURE_STORAGE_KEY")
    missing = [key for key in required_keys if not os.getenv(key, "").strip()]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return Settings(
        account_name=os.environ["AZURE_STORAGE_ACCOUNT"].strip(),
        account_key=os.environ["AZURE_STORAGE_KEY"].strip(),
    )
