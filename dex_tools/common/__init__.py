"""
================================================================================
DEX Tools Common Utilities
================================================================================

Logging setup shared by the test runner, the suites and the session bootstrap.

Exports:
    - init_logger: Configure loguru once per process
    - reset_logger: Allow a later init_logger() call to reconfigure (tests)

Usage:
    from dex_tools.common import init_logger

    init_logger()                       # level from LOG_LEVEL or config.yaml
    init_logger(level="DEBUG", log_file="reports/run.log")

================================================================================
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger


CONFIG_FILE = Path(__file__).resolve().parents[2] / "config" / "config.yaml"

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

_logger_initialized = False


def _logging_section(config_file: Path = CONFIG_FILE) -> Dict[str, Any]:
    """Read the `logging` section of the YAML config (empty when absent)."""
    if not config_file.exists():
        return {}
    with open(config_file, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return data.get("logging", {}) or {}


def init_logger(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
) -> None:
    """
    Initializes the loguru logger with standard settings.

    Priority for each setting: argument, then LOG_LEVEL / LOG_FILE
    environment variables, then the `logging` section of config.yaml.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path to write logs to (rotated at 10 MB)
        format_string: Log format string. Uses default if not provided.
    """
    global _logger_initialized

    if _logger_initialized:
        return

    section = _logging_section()
    level = (level or os.getenv("LOG_LEVEL") or section.get("level", "INFO")).upper()
    log_file = log_file or os.getenv("LOG_FILE") or section.get("file")
    format_string = format_string or section.get("format", DEFAULT_FORMAT)

    logger.remove()
    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
    )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=section.get("rotation", "10 MB"),
            retention=section.get("retention", "7 days"),
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {level}")


def reset_logger() -> None:
    """Allow the next init_logger() call to reconfigure handlers."""
    global _logger_initialized
    _logger_initialized = False


__all__ = [
    "init_logger",
    "reset_logger",
]
