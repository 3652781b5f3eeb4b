"""Configuration settings using Pydantic BaseSettings."""

from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings

MEMORY_STORE_URL = "memory"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Configuration
    app_name: str = Field(default="Task List API", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    app_host: str = Field(default="0.0.0.0", description="FastAPI host")
    app_port: int = Field(default=8000, description="FastAPI port")
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: str = Field(default="development", description="Deployment environment name")

    # Storage Configuration
    database_url: str = Field(
        default="sqlite:///./data/tasklist.db",
        description="SQLAlchemy database URL, or 'memory' for the in-memory store",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Task Rules
    default_status: str = Field(default="pending", description="Status assigned when none is given on create")

    # CORS Configuration
    cors_allowed_origins: str = Field(default="*", description="Comma separated allowed origins")
    cors_allowed_methods: str = Field(
        default="GET,POST,PUT,DELETE,OPTIONS,PATCH",
        description="Comma separated allowed HTTP methods",
    )
    cors_allowed_headers: str = Field(default="*", description="Comma separated allowed headers")
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials on CORS requests")
    cors_max_age: int = Field(default=3600, description="Preflight cache duration in seconds")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(default=Path("logs"), description="Directory for log files")
    log_to_file: bool = Field(default=True, description="Write rotating log files")

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def uses_memory_store(self) -> bool:
        """Whether the in-memory store is selected instead of a database."""
        return self.database_url.strip().lower() == MEMORY_STORE_URL

    @staticmethod
    def _split(value: str) -> List[str]:
        return [item.strip() for item in value.split(",") if item.strip()]

    @property
    def cors_origins(self) -> List[str]:
        return self._split(self.cors_allowed_origins)

    @property
    def cors_methods(self) -> List[str]:
        return self._split(self.cors_allowed_methods)

    @property
    def cors_headers(self) -> List[str]:
        return self._split(self.cors_allowed_headers)
