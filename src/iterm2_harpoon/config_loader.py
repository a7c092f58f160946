# =============================================================================
# Configuration Loading
# =============================================================================

from __future__ import annotations

import os
import re
import time
import tomllib
from pathlib import Path

import platformdirs
from loguru import logger

from .errors import Error, ErrorType, Result
from .logging_config import APP_NAME

CONFIG_DIR = Path(platformdirs.user_config_dir(appname=APP_NAME))
CONFIG_PATH = CONFIG_DIR / "config.toml"

SESSION_ENV_VAR = "ITERM2_HARPOON_SESSION"
DEFAULT_SESSION_NAME = "default"

# Default configuration - works without any user config file
DEFAULT_CONFIG = {
    "session_name": None,
    "overlay_name": "harpoon",
    "data_dir": None,  # None -> platformdirs.user_data_dir
    "logging": {
        "console_level": "INFO",
        "file_level": "DEBUG",
    },
    "keys": {
        "add_current": ["a"],
        "add_all": ["A"],
        "delete": ["d"],
        "next": ["j", "Down"],
        "previous": ["k", "Up"],
        "focus": ["Enter", "l"],
        "close": ["Esc", "c"],
    },
}


def extract_toml_error_context(error: tomllib.TOMLDecodeError, file_path: Path) -> dict:
    """
    Extract line context from TOML parse error.

    Args:
        error: The TOMLDecodeError exception
        file_path: Path to the TOML file

    Returns:
        Dict with line_number, line_content, and formatted_message
    """
    error_str = str(error)
    line_number = None
    line_content = None

    # Common formats: "line 15", "at line 15", "(line 15)"
    line_match = re.search(r"line\s+(\d+)", error_str, re.IGNORECASE)
    if line_match:
        line_number = int(line_match.group(1))

    if line_number and file_path.exists():
        try:
            with open(file_path, "r") as f:
                lines = f.readlines()
                if 0 < line_number <= len(lines):
                    line_content = lines[line_number - 1].rstrip()
        except OSError:
            line_content = None

    if line_number:
        formatted = f"Error on line {line_number}"
        if line_content:
            display_line = line_content[:50] + "..." if len(line_content) > 50 else line_content
            formatted += f": {display_line}"
        formatted += f"\n\nDetails: {error_str}"
    else:
        formatted = f"TOML parse error: {error_str}"

    return {
        "line_number": line_number,
        "line_content": line_content,
        "formatted_message": formatted,
        "raw_error": error_str,
    }


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dictionary."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Path = CONFIG_PATH) -> Result[dict]:
    """
    Load configuration from a TOML file with defaults fallback.

    A missing file is not an error: the defaults are returned.

    Args:
        config_path: Path to the config TOML file

    Returns:
        Result[dict]: Ok with merged config, or Err with error details
    """
    start_time = time.perf_counter()

    if not config_path.exists():
        logger.debug(
            "Config file does not exist, using defaults",
            operation="load_config",
            status="default",
            config_path=str(config_path),
        )
        return Result.ok(deep_merge(DEFAULT_CONFIG, {}))

    try:
        with open(config_path, "rb") as f:
            user_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        error_context = extract_toml_error_context(e, config_path)
        logger.error(
            "Invalid TOML syntax in configuration file",
            operation="load_config",
            status="failed",
            file=str(config_path),
            line_number=error_context["line_number"],
            line_content=error_context["line_content"],
            error=error_context["formatted_message"],
        )
        return Result.err(Error(
            error_type=ErrorType.PARSE_ERROR,
            message=error_context["formatted_message"],
            context={"config_path": str(config_path), "line_number": error_context["line_number"]},
            original_exception=e,
        ))
    except OSError as e:
        logger.error(
            "Could not read configuration file",
            operation="load_config",
            status="failed",
            file=str(config_path),
            error=str(e),
        )
        return Result.err(Error(
            error_type=ErrorType.PERMISSION_ERROR,
            message=f"Could not read {config_path}: {e}",
            context={"config_path": str(config_path)},
            original_exception=e,
        ))

    merged = deep_merge(DEFAULT_CONFIG, user_config)
    duration_ms = int((time.perf_counter() - start_time) * 1000)
    logger.debug(
        "Config loaded successfully",
        operation="load_config",
        status="success",
        config_path=str(config_path),
        metrics={"duration_ms": duration_ms},
    )
    return Result.ok(merged)


def resolve_session_name(config: dict) -> str:
    """Config value first, then the environment, then the default."""
    return (
        config.get("session_name")
        or os.environ.get(SESSION_ENV_VAR)
        or DEFAULT_SESSION_NAME
    )


def resolve_data_dir(config: dict) -> Path:
    data_dir = config.get("data_dir")
    if data_dir:
        return Path(data_dir).expanduser()
    return Path(platformdirs.user_data_dir(appname=APP_NAME))
