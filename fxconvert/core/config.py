from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_RATE_PROVIDERS = {"external-http", "static"}
ALLOWED_STORAGE_BACKENDS = {"sqlite", "memory"}


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG, DATA_DIR,
    DB_FILENAME, EXCHANGE_API_BASE_URL, HTTP_TIMEOUT_SECONDS, EXCHANGE_RATE_PROVIDER).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Basic app metadata
    app_name: str = "Currency Converter"
    debug: bool = False
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "fxconvert.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided
    storage_backend: str = "sqlite"

    # Exchange rates
    exchange_api_base_url: AnyHttpUrl = "https://api.exchangerate-api.com/v4/latest"  # base code is appended
    http_timeout_seconds: float = 10.0
    exchange_rate_provider: str = "external-http"

    # Conversion screen
    default_base_currency: str = "USD"
    last_result_key: str = "lastConversionAmount"

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        if self.storage_backend == "sqlite":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        if self.exchange_rate_provider not in ALLOWED_RATE_PROVIDERS:
            raise ValueError(
                f"Unsupported exchange_rate_provider '{self.exchange_rate_provider}'. Allowed: {ALLOWED_RATE_PROVIDERS}"
            )
        if self.storage_backend not in ALLOWED_STORAGE_BACKENDS:
            raise ValueError(
                f"Unsupported storage_backend '{self.storage_backend}'. Allowed: {ALLOWED_STORAGE_BACKENDS}"
            )
        if self.http_timeout_seconds <= 0:
            raise ValueError("http_timeout_seconds must be positive")
        self.default_base_currency = self.default_base_currency.upper()

    @property
    def rates_base_url(self) -> str:
        return str(self.exchange_api_base_url).rstrip("/")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
