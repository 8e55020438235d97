"""Logging and configuration setup for applications using the Livy client."""

import json
import logging
import os
import pathlib
import sys
from typing import TextIO

import structlog

from .client import LivyClient
from .config import LivyClientConfig

CONFIG_ENV_VAR = "LIVY_CLIENT_CONFIG_PATH"
logger = structlog.get_logger(__name__)


def configure_logging(
    log_level_name: str,
    log_format: str = "logfmt",
    file: TextIO | None = None,
) -> None:
    """Configure structlog for the client's request events.

    Args:
        log_level_name: Minimum level name, e.g. "INFO".
        log_format: "logfmt" for key=value lines or "json" for one JSON
            object per line.
        file: Stream to write to; stderr by default so that command output
            on stdout stays clean.
    """
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.processors.LogfmtRenderer(
            key_order=("timestamp", "level", "msg"),
        )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file or sys.stderr),
        cache_logger_on_first_use=True,
    )


def load_config(config_path: str) -> LivyClientConfig:
    """Load client configuration from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If a value has the wrong type or range.
    """
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    data = json.loads(path.read_text())
    return LivyClientConfig(**data)


def create_client(config_path: str | None = None) -> LivyClient:
    """Create a Livy client using a config path or environment default."""
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR, "/config.json")
    config = load_config(resolved_path)
    configure_logging(config.log_level, config.log_format)
    client = LivyClient.from_config(config)
    logger.info("Created Livy client", base_url=config.base_url)
    return client
