"""Configuration management for Thumbfast.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the THUMBFAST_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (THUMBFAST_* prefix)
2. .env file in the project root
3. Default values defined in ThumbfastConfig

Example .env file:
    THUMBFAST_GEMINI_API_KEY=your-google-ai-studio-key
    THUMBFAST_ACCESS_PASSWORD=change-me
    THUMBFAST_DATA_DIR=data
    THUMBFAST_HISTORY_MAX_ENTRIES=50

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
The FastAPI lifespan reads it once and injects the values into the
orchestrator, history store and stats tracker; nothing else should read
the global directly.

Usage Example
-------------
    from thumbfast.core.config import config

    print(config.history_db)
    print(config.server_port)

Storage Paths
-------------
``history_db`` and ``stats_file`` default to files inside ``data_dir``.
The data directory is created on initialisation; if it cannot be created
(read-only file system, sandboxed environment) the application still
starts and the stores degrade to empty results.
"""

import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ThumbfastConfig(BaseSettings):
    """Main configuration for Thumbfast.

    Attributes
    ----------
    Remote Model:
        gemini_api_key : str | None
            Google AI Studio API key sent with every generation call
        gemini_base_url : str
            Base URL of the Generative Language REST API
        request_timeout : float | None
            Per-call timeout in seconds; ``None`` disables the timeout

    Access Control:
        access_password : str | None
            Shared secret expected in the ``x-access-password`` header.
            When unset, every generation request is rejected.

    Storage:
        data_dir : Path
            Directory holding the history database and stats record
        history_db : Path | None
            SQLite history database (defaults to ``data_dir/history.db``)
        stats_file : Path | None
            JSON usage stats record (defaults to ``data_dir/stats.json``)
        history_max_entries : int
            Maximum number of history entries kept (oldest evicted first)

    Server:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        log_level : str
            Root logging level used by ``main()``
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="THUMBFAST_",
        case_sensitive=False,
    )

    # Remote model
    gemini_api_key: str | None = Field(
        default=None,
        description="Google AI Studio API key",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Generative Language REST API",
    )
    request_timeout: float | None = Field(
        default=None,
        description="Per-call timeout in seconds (None = no timeout)",
        gt=0,
    )

    # Access control
    access_password: str | None = Field(
        default=None,
        description="Shared secret required in the x-access-password header",
    )

    # Storage
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory for history and stats persistence",
    )
    history_db: Path | None = Field(
        default=None,
        description="SQLite history database (default: data_dir/history.db)",
    )
    stats_file: Path | None = Field(
        default=None,
        description="JSON usage stats record (default: data_dir/stats.json)",
    )
    history_max_entries: int = Field(
        default=50,
        description="Maximum number of history entries kept",
        ge=1,
    )

    # Server
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )

    def __init__(self, **kwargs):
        """Initialize configuration, resolve storage paths and create data_dir.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        if self.history_db is None:
            self.history_db = self.data_dir / "history.db"
        if self.stats_file is None:
            self.stats_file = self.data_dir / "stats.json"

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create data directory {self.data_dir}: {e}")


# Global configuration instance
# Loads values from environment variables (THUMBFAST_* prefix) and .env file.
config = ThumbfastConfig()
