"""Shared configuration for the API and the ingestion runner."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB Configuration
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db_name: str = "news_ingestion"

    # Redis Configuration
    redis_url: str = "redis://localhost:6379"
    redis_events_channel: str = "fetch_run_updates"
    publish_events: bool = True

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    # Run Configuration
    max_articles_per_source: int = 20
    source_concurrency: int = 4
    source_timeout_seconds: float = 120.0

    # Scraping Configuration
    lightweight_timeout_seconds: int = 15
    rendered_timeout_seconds: int = 30
    rendered_wait_seconds: float = 2.0
    max_rendered_sessions: int = 2
    per_host_delay_seconds: float = 1.0
    browser_headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
