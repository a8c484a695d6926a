"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed configuration for the portal support service:
- LLM credentials and model names (OpenAI-compatible endpoint)
- Redis connection (conversation persistence, page cache, rate limiting)
- Relational analytics store connection parts
- Scraper / rate-limit tuning

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Every field has a development default so the app starts without a `.env`.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from backend.database.config.config import settings

redis_url = settings.REDIS_URL
model = settings.OPEN_AI_MODEL
"""


from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM
    API_KEY: str = Field("", description="API key for the OpenAI-compatible completion service.")
    OPEN_AI_MODEL: str = Field("llama-3.1-8b-instant", description="Chat model used for support replies and options.")
    ANALYTICS_MODEL: str = Field("llama-3.3-70b-versatile", description="Model used for the analytics prose summary.")
    LLM_BASE_URL: str = Field("https://api.groq.com/openai/v1", description="Base URL of the OpenAI-compatible endpoint.")
    LLM_TIMEOUT: float = Field(30.0, description="Request timeout (seconds) for completion calls.")

    # Key-value store
    REDIS_URL: str = Field("redis://localhost:6379/0", description="Redis connection URL.")
    REDIS_TOKEN: str = Field("", description="Optional Redis password/token (overrides the URL password).")

    # Relational analytics store
    DB_DRIVER_NAME: str = Field("sqlite", description="Database driver (e.g., `postgresql+psycopg2`, `sqlite`).")
    DB_USERNAME: str | None = Field(None, description="Database username credential.")
    DB_PASSWORD: str | None = Field(None, description="Database password credential.")
    DB_HOST: str | None = Field(None, description="Hostname or IP address of the database server.")
    DB_DATABASE_NAME: str = Field("portal_support.db", description="Database name (file path for sqlite).")

    # HTTP surface
    FRONTEND_URL: str = Field("http://localhost:3000", description="Allowed CORS origin of the chat UI.")
    SCRAPE_TIMEOUT: float = Field(15.0, description="Timeout (seconds) for page fetches.")
    RATE_LIMIT_API: int = Field(20, description="Requests per window allowed on /api routes.")
    RATE_LIMIT_PAGES: int = Field(30, description="Requests per window allowed on other routes.")
    RATE_LIMIT_WINDOW: int = Field(60, description="Rate-limit window length in seconds.")

    LOG_LEVEL: str = Field("INFO", description="Root log level.")

# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Settings object populated from the environment / .env file"""
