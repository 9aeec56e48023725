"""
Application settings and configuration.
"""

import logging
import sys
import tempfile
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_prefix="DATASETLOOM_", env_file=".env")

    # Database
    database_url: str = Field(
        default="postgresql://localhost:5432/datasetloom",
        description="PostgreSQL DSN",
    )
    db_pool_min_size: int = Field(default=2, description="Minimum pool connections")
    db_pool_max_size: int = Field(default=10, description="Maximum pool connections")
    db_command_timeout: float = Field(default=60.0, description="Query timeout (s)")
    apply_schema_on_startup: bool = Field(
        default=False, description="Run schema.sql when the service starts"
    )

    # Export
    export_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="Directory export archives are written to",
    )
    export_compression_level: int = Field(
        default=9, ge=0, le=9, description="Deflate level for export archives"
    )
    export_unique_filenames: bool = Field(
        default=False,
        description="Append a random token to export filenames",
    )
    export_excluded_roles: List[str] = Field(
        default_factory=list,
        description="Message roles dropped from exported datasets",
    )

    # Pagination
    default_page_size: int = Field(default=20, ge=1, description="Default page size")
    max_page_size: int = Field(default=100, ge=1, description="Maximum page size")

    # Server
    host: str = Field(default="localhost", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Log level")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed by CORS",
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

        self.export_dir.mkdir(parents=True, exist_ok=True)


def configure_logging(level: str = "INFO") -> None:
    """
    Configure logging with development-friendly structured output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    from ..utils.logging.structured import create_development_formatter

    log_level = getattr(logging, level.upper())

    # Configure only our application logger (datasetloom.*)
    app_logger = logging.getLogger("datasetloom")
    app_logger.setLevel(log_level)

    for handler in app_logger.handlers[:]:
        app_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(create_development_formatter())
    app_logger.addHandler(console_handler)

    # Prevent propagation to root logger to avoid duplication
    app_logger.propagate = False

    # Root logger stays at the same level so uvicorn logs still work
    logging.getLogger().setLevel(log_level)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
