# app/config.py
import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # === General ===
    app_env: str = "local"  # local | development | production
    APP_NAME: str = "vsc-contracts"

    # === Database ===
    DATABASE_URL: str = "sqlite:///./contracts.db"

    # === Blob storage ===
    STORAGE_BACKEND: str = Field("local", description="local | s3 | memory")
    LOCAL_STORAGE_PATH: str = "data"
    S3_BUCKET: Optional[str] = Field(None, description="Bucket holding templates and issued PDFs")
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: Optional[str] = None  # MinIO / localstack
    S3_PUBLIC_ENDPOINT: Optional[str] = None
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None

    # === Document templates ===
    PDF_TEMPLATE_KEY: str = "templates/ContractPSVSCTemplate_HT_v07_01.pdf"
    PDF_TERMS_KEY: str = "templates/ContractPSVSCTemplate_HT_v07_02.pdf"
    PDF_DISCLOSURE_KEY: str = "templates/ContractPSVSCTemplate_HT_v07_03.pdf"

    # === Branding (quotes) ===
    BRAND_NAME: str = "We Cover USA"
    BRAND_LOGO_KEY: str = "brand/logos/wecover-logo.png"

    # === Policy / quote rules ===
    POLICY_NUMBER_PREFIX: str = "WEC"
    STRICT_PRODUCT_VERSIONS: bool = False
    STRICT_QUOTE_TOTALS: bool = False

    # === HTTP ===
    ALLOWED_ORIGINS: List[str] = ["*"]

    # === Logging ===
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton Settings instance with simple environment profiles."""
    s = Settings()

    env = os.getenv("ENVIRONMENT", s.app_env).lower()
    if env == "production":
        s.LOG_LEVEL = "WARNING"
    elif env == "development":
        s.LOG_LEVEL = "DEBUG"

    return s
