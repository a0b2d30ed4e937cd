"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "SignalBoard Backend"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "info"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # SQLite (stats, signal history, preferences)
    sqlite_path: Optional[str] = None  # Defaults to ./data/signalboard.db

    # Redis
    redis_url: str = "redis://localhost:6379"

    # CORS
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Tick feed (Deriv / binary.com WebSocket API)
    feed_enabled: bool = True
    feed_ws_url: str = "wss://ws.binaryws.com/websockets/v3"
    feed_app_id: int = 1089
    feed_max_reconnect_delay: int = 60
    history_count: int = 300
    candle_granularity: int = 60  # seconds
    default_asset: str = "frxEURUSD"

    # LLM Providers
    gemini_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    llm_primary_provider: str = "gemini"  # Options: gemini, anthropic, openai
    llm_signal_model: str = "gemini-2.5-flash"
    llm_anthropic_model: str = "claude-3-5-haiku-latest"
    llm_openai_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 1024
    signal_language: str = "English"

    # Signal timing
    signal_expiry_ms: int = 60000  # 1 minute (standard binary expiry)
    error_expiry_ms: int = 10000
    min_candles_for_analysis: int = 5
    min_candles_for_indicators: int = 50
    clock_poll_ms: int = 500
    auto_signal_enabled: bool = False
    auto_signal_lead_seconds: int = 10
    default_confidence: float = 95.0

    # Scanner
    scan_min_trend_strength: float = 0.5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
