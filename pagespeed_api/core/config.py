# pagespeed_api/core/config.py
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

PAGESPEED_API_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"


class Settings(BaseSettings):
    """Loads environment variables from .env file."""
    # Optional: Google serves unauthenticated requests with a lower quota
    PAGESPEED_API_KEY: Optional[str] = None
    PAGESPEED_API_ENDPOINT: str = PAGESPEED_API_ENDPOINT
    PAGESPEED_TIMEOUT: float = 30.0

    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


# Create a single instance of the settings to be used across the application
settings = Settings()
