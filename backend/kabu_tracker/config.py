"""
Configuration Management
"""

from pydantic_settings import BaseSettings
from typing import Optional, List
from pathlib import Path


# Get project root directory (2 levels up from this file)
PROJECT_ROOT = Path(__file__).parent.parent.parent.resolve()


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    database_url: str = f"sqlite+aiosqlite:///{PROJECT_ROOT}/data/kabu_tracker.db"

    # Application
    app_name: str = "Kabu Tracker"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    log_dir: str = "logs"
    expose_error_details: bool = False  # Attach exception text to 500 responses

    # Session / login (single static credential pair)
    auth_username: str = "admin"
    auth_password: str = "password"
    auth_secret: str = "change-me-in-production"
    session_max_age_days: int = 30

    # Upstream API keys
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_max_output_tokens: int = 4096
    fmp_api_key: Optional[str] = None
    edinet_api_key: Optional[str] = None
    jquants_refresh_token: Optional[str] = None

    # Financial metrics resolution (comma-separated, tried in order)
    metrics_sources: str = "yahoo_jp,minkabu,yfinance"
    scrape_timeout_seconds: float = 15.0
    financials_timeout_seconds: float = 30.0
    quote_request_delay_seconds: float = 0.1  # Fixed delay between per-stock lookups
    edinet_search_days: int = 90

    # Input limits
    memo_max_length: int = 100
    pdf_max_bytes: int = 10 * 1024 * 1024  # 10MB

    # CORS Origins (comma-separated string from env, converted to list)
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def metrics_sources_list(self) -> List[str]:
        """Convert metrics source string to an ordered list of source names"""
        return [name.strip().lower() for name in self.metrics_sources.split(",") if name.strip()]

    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings"""
    return settings
