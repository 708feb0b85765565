"""Configuration management using Pydantic Settings"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./pocket_ledger.db"

    # Service
    service_name: str = "pocket-ledger"
    log_level: str = "INFO"

    # Currency conversion
    default_currency: str = "CAD"
    hub_currencies: List[str] = ["USD", "EUR", "CAD", "GBP"]  # Triangulation order

    # Ledger
    split_tolerance: float = 0.01  # Max absolute gap between split sum and amount


settings = Settings()
