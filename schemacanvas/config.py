"""
Configuration for SchemaCanvas.

Settings are read from environment variables with the ``SCHEMACANVAS_``
prefix; every value has a default suitable for local development.

Invariants:
    - history_depth is at least 1
    - default_string_length is a valid VARCHAR length for MySQL
"""

from __future__ import annotations

import logging

import json_log_formatter
from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """SchemaCanvas configuration."""

    # Undo/redo
    history_depth: int = Field(default=50, ge=1, description="Maximum undo snapshots kept")

    # Collaboration identity for locally-originated events
    actor_id: str = Field(default="local")

    # Database kind for new diagrams (MYSQL or MONGODB)
    database_kind: str = Field(default="MYSQL", pattern="^(MYSQL|MONGODB)$")

    # Code generation
    default_string_length: int = Field(default=255, ge=1, le=65535)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", pattern="^(text|json)$")

    model_config = {"env_prefix": "SCHEMACANVAS_"}


def setup_logging(settings: Settings) -> None:
    """Configure the root logger from settings.

    Args:
        settings: Loaded settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    logger.debug(
        "Logging configured",
        extra={"log_level": settings.log_level, "log_format": settings.log_format},
    )
