"""
Service settings, read from the environment (``TRADEPDF_*``) and ``.env``.

Layout configuration is not here: each engine takes its own
``LayoutConfig`` value.

License: MIT
"""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Trades Document PDF API"

    # Footer issuer when a business has no legal name on file
    default_issuer_name: str = "OMNEXORA"

    # Comma-separated; "*" allows any origin
    cors_origins: str = "*"

    # Largest accepted request body (signature images arrive inline)
    max_body_bytes: int = 5_000_000

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TRADEPDF_",
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
