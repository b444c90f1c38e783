"""Configuration via pydantic-settings — 12-factor app style."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Logfunnel configuration — loaded from env vars / .env file."""

    db_path: str = Field(default="logfunnel.db", description="SQLite database file for stored entries")
    host: str = Field(default="127.0.0.1", description="Bind address for `logfunnel serve`")
    port: int = Field(default=8787, description="Bind port for `logfunnel serve`")
    cors_origin: str = Field(default="*", description="Value of Access-Control-Allow-Origin")
    page_size: int = Field(default=20, description="Default number of entries per query")
    max_page_size: int = Field(default=500, description="Upper bound for the `limit` query parameter")
    unwrap_depth: int = Field(default=5, description="Max nesting levels followed through \"raw\" wrappers")
    log_level: str = Field(default="WARNING", description="Root log level for the CLI and server")

    class Config:
        env_prefix = "LOGFUNNEL_"
        env_file = ".env"


settings = Settings()
