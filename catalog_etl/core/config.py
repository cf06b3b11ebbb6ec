"""
Application configuration using Pydantic settings
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "Catalog ETL"
    VERSION: str = "0.3.0"
    ENVIRONMENT: str = "development"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 1
    SENTRY_DSN: Optional[str] = None
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Database
    database_url: str = "sqlite+aiosqlite:///./catalog.db"
    db_echo: bool = False

    # Connection pool settings (ignored for SQLite)
    db_pool_size: int = 5
    db_max_overflow: int = 0
    db_pool_pre_ping: bool = True

    # Text generation (Gemini)
    google_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.1

    # Blob storage
    storage_backend: Literal["supabase", "local"] = "local"
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    storage_bucket: str = "catalog-files"
    local_storage_dir: str = "./storage"

    # Sources
    csv_file_name: str = "product_inventory_master_v2.csv"
    records_api_url: str = "https://api.airtable.com/v0"
    records_api_key: Optional[str] = None
    records_base_id: Optional[str] = None
    records_table: str = "Products"
    records_api_timeout: float = 30.0

    # Batch import
    batch_size: int = 3  # image replication dominates per-row latency
    max_batch_size: int = 50
    default_supplier_id: str = "WEDO"
    csv_audience_tags: Literal["en", "zh-TW"] = "en"
    supplier_email_domain: str = "suppliers.invalid"
    image_upload_mode: Literal["await", "background"] = "await"
    image_fetch_timeout: float = 30.0

    # Security
    admin_api_key: Optional[str] = None
    registration_key: Optional[str] = None
    secret_key: str = "dev-secret-key"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    login_rate_limit: str = "5/minute"

    # Logging
    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
