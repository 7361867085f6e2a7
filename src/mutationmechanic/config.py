"""Runtime configuration.

Values come from the environment (and a ``.env`` file, if present). Every
field has a default so the package runs with no configuration at all.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from mutationmechanic.constants import (
    DATABASE_FILENAME,
    DEFAULT_FAST_TIER_QUOTA_BYTES,
    REQUEST_TIMEOUT_SECONDS,
)

DEFAULT_CACHE_DIR = Path("~/.cache/mutationmechanic").expanduser()


class Settings(BaseModel):
    """Application settings."""

    cache_dir: Path = DEFAULT_CACHE_DIR
    database_url: str | None = Field(
        None, description="SQLAlchemy URL of the durable tier; defaults to a SQLite file in cache_dir"
    )
    fast_tier_quota_bytes: int = DEFAULT_FAST_TIER_QUOTA_BYTES
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    alphagenome_api_url: str | None = None
    alphagenome_api_key: str | None = None
    llm_model: str = "gpt-4o-mini"
    log_dir: Path = Path("./logs")

    def model_post_init(self, __context) -> None:
        if self.database_url is None:
            self.database_url = f"sqlite:///{self.cache_dir / DATABASE_FILENAME}"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        values: dict = {}
        env_map = {
            "MUTATIONMECHANIC_CACHE_DIR": "cache_dir",
            "MUTATIONMECHANIC_DATABASE_URL": "database_url",
            "MUTATIONMECHANIC_FAST_TIER_QUOTA": "fast_tier_quota_bytes",
            "MUTATIONMECHANIC_REQUEST_TIMEOUT": "request_timeout",
            "ALPHAGENOME_API_URL": "alphagenome_api_url",
            "ALPHAGENOME_API_KEY": "alphagenome_api_key",
            "MUTATIONMECHANIC_LLM_MODEL": "llm_model",
            "MUTATIONMECHANIC_LOG_DIR": "log_dir",
        }
        for env_name, field_name in env_map.items():
            value = os.getenv(env_name)
            if value:
                values[field_name] = value

        if "cache_dir" in values:
            values["cache_dir"] = Path(values["cache_dir"]).expanduser()

        return cls(**values)
