# =============================================================================
# Structured Logging Setup (JSONL format)
# =============================================================================

from __future__ import annotations

import json
import sys
import traceback
from contextvars import ContextVar
from pathlib import Path

import platformdirs
from loguru import logger

APP_NAME = "iterm2-harpoon"

# Correlation ID for the event currently being handled
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)

_console_sink_id: int | None = None


def format_log_entry(record) -> dict:
    """Build the JSONL schema shared by the console sink."""
    log_entry = {
        "timestamp": record["time"].strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
        "level": record["level"].name.lower(),
        "component": record["function"],
        "operation": record["extra"].get("operation", "unknown"),
        "operation_status": record["extra"].get("status", None),
        "trace_id": record["extra"].get("trace_id") or trace_id_var.get(),
        "message": record["message"],
        "context": {k: v for k, v in record["extra"].items()
                    if k not in ("operation", "status", "trace_id", "metrics")},
        "metrics": record["extra"].get("metrics", {}),
        "error": None,
    }

    if record["exception"]:
        exc_type, exc_value, exc_tb = record["exception"]
        tb_lines = traceback.format_tb(exc_tb) if exc_tb else []

        log_entry["error"] = {
            "type": exc_type.__name__ if exc_type else "Unknown",
            "message": str(exc_value) if exc_value else "Unknown error",
            "traceback_lines": tb_lines,
        }
    return log_entry


def json_sink(message) -> None:
    """JSONL sink - writes to stderr."""
    sys.stderr.write(json.dumps(format_log_entry(message.record), default=str) + "\n")


def setup_logger(config: dict | None = None):
    """Configure loguru for machine-readable JSONL output."""
    global _console_sink_id

    logging_config = (config or {}).get("logging", {})
    console_level = logging_config.get("console_level", "INFO")
    file_level = logging_config.get("file_level", "DEBUG")

    logger.remove()

    # Console output (JSONL to stderr via custom sink)
    _console_sink_id = logger.add(json_sink, level=console_level)

    # macOS: ~/Library/Logs/iterm2-harpoon/
    # Linux: ~/.local/state/iterm2-harpoon/log/
    log_dir = Path(platformdirs.user_log_dir(appname=APP_NAME, ensure_exists=True))

    logger.add(
        str(log_dir / "harpoon.jsonl"),
        format="{message}",
        serialize=True,
        rotation="10 MB",
        retention="7 days",
        compression="gz",
        level=file_level,
    )

    return logger


def disable_console_logging() -> None:
    """Drop the stderr sink while the TUI owns the terminal."""
    global _console_sink_id

    if _console_sink_id is not None:
        logger.remove(_console_sink_id)
        _console_sink_id = None
