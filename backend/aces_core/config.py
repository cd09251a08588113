"""
Configuration management for the ACES fitment core.
Uses pydantic-settings for environment variable handling.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # API Configuration
    api_title: str = "ACES Fitment API"
    api_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Reference data (one of these; the directory wins when both are set)
    reference_data_dir: Path | None = None  # holds VCdb/, PCdb/, Qdb/ folders of .txt tables
    reference_sqlite_path: Path | None = None

    # Submitter header defaults
    company_name: str = "Auto Parts ERP"
    sender_name: str = "System Export"
    sender_phone: str = "000-000-0000"
    document_title: str = "Product Applications Export"
    parts_approved_for: list[str] = ["US", "CA"]

    # Reference database versions announced in exported headers
    vcdb_version_date: str = "2023-10-26"
    qdb_version_date: str = "2023-10-26"
    pcdb_version_date: str = "2023-10-26"


# Global settings instance
settings = Settings()
