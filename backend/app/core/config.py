# app/core/config.py
"""
Application configuration using Pydantic Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import json
from pydantic import field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """

    # Application
    APP_NAME: str = "CaseDesk"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str

    # JWT Authentication
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours

    # AWS Configuration
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "ap-south-1"
    S3_BUCKET_NAME: str = "casedesk-case-files"

    # Bedrock models per AI tier (FREE for anonymous callers, PRO for signed-in users)
    BEDROCK_MODEL_ID: str = "anthropic.claude-3-haiku-20240307-v1:0"
    BEDROCK_PRO_MODEL_ID: str = "anthropic.claude-3-5-sonnet-20240620-v1:0"

    @field_validator("BEDROCK_MODEL_ID", "BEDROCK_PRO_MODEL_ID", mode="before")
    @classmethod
    def strip_model_id(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v

    # Anonymous usage quota (drafts, summaries) per client IP per day
    ANON_DAILY_LIMIT: int = 3
    REDIS_URL: str = "redis://localhost:6379/0"

    # Case timeline
    ACTIVITY_CONTENT_MAX_CHARS: int = 10000
    ACTIVITY_FALLBACK_CONTENT_MAX_CHARS: int = 500
    ACTIVITY_TITLE_MAX_CHARS: int = 100

    # Artifact list endpoints
    LIST_PAGE_SIZE: int = 20

    # Upload limits
    MAX_UPLOAD_SIZE: int = 26214400  # 25MB in bytes

    # CORS
    CORS_ORIGINS: str = '["http://localhost:3000"]'

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from string to list"""
        try:
            if isinstance(self.CORS_ORIGINS, str):
                return json.loads(self.CORS_ORIGINS)
            return self.CORS_ORIGINS
        except json.JSONDecodeError:
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


# Create settings instance
settings = Settings()
