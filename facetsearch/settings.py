# facetsearch/settings.py
import os
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # core
    APP_NAME: str = Field(default="Facet Search")
    ENV: str = Field(default=os.getenv("APP_ENV", "dev"))
    DEBUG: bool = Field(default=True)
    LOG_LEVEL: str = Field(default="INFO")

    # search backend (unset URL -> in-memory dev backend)
    MEILISEARCH_URL: Optional[str] = None
    MEILISEARCH_API_KEY: Optional[str] = None
    MEILISEARCH_INDEX: str = Field(default="professionals")
    SEARCH_TIMEOUT: float = Field(default=30.0)

    # query behaviour
    DEBOUNCE_MS: int = Field(default=300, ge=0)
    RESULT_LIMIT: Optional[int] = Field(default=None, ge=0)
    DEFAULT_EMBEDDER: str = Field(default="default")
    DEFAULT_SEMANTIC_RATIO: float = Field(default=1.0, ge=0.0, le=1.0)

    # seed records for the in-memory backend
    SEED_DATA_PATH: str = Field(default="data/professionals.yaml")

    model_config = SettingsConfigDict(
        env_file=".env.dev",
        extra="ignore",
    )

    @property
    def app_name(self) -> str:
        return self.APP_NAME

    @property
    def debounce_seconds(self) -> float:
        return self.DEBOUNCE_MS / 1000.0


settings = Settings()
