"""Environment-driven settings shared by the API and importer services."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

PUBLISH_MODE_CONCURRENT = "concurrent"
PUBLISH_MODE_SEQUENTIAL = "sequential"
_PUBLISH_MODES = (PUBLISH_MODE_CONCURRENT, PUBLISH_MODE_SEQUENTIAL)


class Settings(BaseSettings):
    """Simple application settings loaded from environment variables or a local .env file."""

    APP_NAME: str = "Asset Event Monitor"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ASSET_EVENTS_TOPIC: str = "asset-events"
    PUBLISH_MODE: str = PUBLISH_MODE_CONCURRENT
    PUBLISH_SINK_PATH: str = "/app/data/asset_events.jsonl"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def publish_mode(self) -> str:
        """Return the normalized publish mode, defaulting to concurrent dispatch."""

        mode = self.PUBLISH_MODE.strip().lower()
        if mode in _PUBLISH_MODES:
            return mode
        return PUBLISH_MODE_CONCURRENT

    def asset_events_topic(self) -> str:
        """Return the destination topic, never blank."""

        return self.ASSET_EVENTS_TOPIC.strip() or "asset-events"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings to avoid repeated environment parsing."""

    return Settings()
