# kalkulator/core/settings.py
import os
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # === Algemeen ===
    app_env: str = "local"  # local | development | production
    app_url: str = "http://localhost:8000"

    # === Server ===
    host: str = "0.0.0.0"
    port: int = 8000

    # === Logging ===
    log_level: str = "INFO"

    # === Hash tokens ===
    hash_secret: str = Field(
        "dev_hash_secret_change_me", description="Signing key for shareable calculation tokens"
    )
    hash_salt: str = "kalkulator-hash-v1"

    # === Forms ===
    forms_dir: Optional[str] = None  # None -> packaged definitions

    # === PSČ -> kraj mapping ===
    zip_mapping_path: Optional[str] = None  # None -> packaged sample mapping
    zip_mapping_url: Optional[str] = None  # e.g. {app_url}/lib/zv_cobce_psc.csv
    zip_resolve_timeout_seconds: float = 3.0
    skip_zip_resolve: bool = Field(
        False,
        validation_alias=AliasChoices("HH_SKIP_ZIP_RESOLVE", "skip_zip_resolve"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton Settings instance with simple env overrides."""
    s = Settings()

    env = os.getenv("ENVIRONMENT", s.app_env).lower()
    if env == "production":
        s.log_level = "WARNING"
    elif env == "development":
        s.log_level = "DEBUG"

    return s
