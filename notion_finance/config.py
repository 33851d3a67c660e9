"""Configuration management using Pydantic Settings"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Record store
    notion_token: str = ""
    notion_api_base: str = "https://api.notion.com/v1"
    notion_version: str = "2022-06-28"

    # Collections (only spending is required to serve traffic)
    spending_database_id: str = ""
    goals_database_id: Optional[str] = None
    debts_database_id: Optional[str] = None
    accounts_database_id: Optional[str] = None

    # Budgeting
    default_monthly_budget: float = 3000.0
    minimum_spending_amount: float = 50.0
    emergency_fund_months: int = 3

    # Retry / throttling
    max_retries: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    request_timeout_seconds: float = 30.0
    requests_per_second: float = 3.0

    # Response cache
    cache_enabled: bool = True
    cache_ttl_seconds: float = 300.0
    cache_max_size: int = 1000
    cache_sweep_interval_seconds: float = 60.0

    # Rolling operation metrics
    metrics_buffer_size: int = 1000

    # Service
    service_name: str = "notion-finance"
    log_level: str = "INFO"


settings = Settings()
