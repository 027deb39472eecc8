"""Application configuration."""

import os
import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

ENTRIES_SNAPSHOT_KEY = "SavedPhotoEntries"
ITEMS_SNAPSHOT_KEY = "SavedItemPrices"
API_KEY_SNAPSHOT_KEY = "openAIApiKey"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    data_dir: Path = Path.home() / ".photo_journal"
    export_dir: Path | None = None
    app_name: str = "PhotoJournal"
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"
    analysis_max_tokens: int = 300
    analysis_timeout_seconds: float = 30.0
    analysis_image_max_dimension: int = 512
    analysis_jpeg_quality: int = 70
    photo_jpeg_quality: int = 80
    display_timezone: str = "UTC"
    currency_symbol: str = "$"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def photos_dir(self) -> Path:
        """Directory holding one JPEG blob per entry."""
        return self.data_dir / "photos"

    @property
    def store_dir(self) -> Path:
        """Directory holding the JSON snapshot files."""
        return self.data_dir / "store"

    @property
    def resolved_export_dir(self) -> Path:
        """Directory exported documents are written to."""
        return self.export_dir or Path(tempfile.gettempdir())
