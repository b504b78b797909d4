"""Structured logging for VantageCheck runs, built on loguru.

Two sinks are installed by ``configure_logging``:
- stderr, colorized, with the suite/scenario tag when one is bound
- a daily JSON-lines file with rotation, retention and gzip compression

API credentials never reach either sink. Context values are scrubbed by
key (``apikey``, ``api_key``) and by pattern (``apikey=...`` inside URLs and
error messages) before rendering.
"""

import json
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger

from config.settings import GlobalConfig, get_config
from src.exceptions import LoggingInitializationError

MASK = "***"

_SENSITIVE_KEYS = frozenset({"apikey", "api_key"})
_SECRET_IN_TEXT = re.compile(r"(apikey=)[^&\s\"']+", re.IGNORECASE)

# Promoted out of "context" in the JSON lines so runs can be filtered per scenario.
_SCENARIO_FIELDS = ("suite", "scenario_id")


def mask_secrets(text: str) -> str:
    """Replace ``apikey=<value>`` occurrences in free text."""
    return _SECRET_IN_TEXT.sub(rf"\g<1>{MASK}", text)


def _scrub(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: (MASK if str(k).lower() in _SENSITIVE_KEYS else _scrub(v))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_scrub(v) for v in value]
    if isinstance(value, str):
        return mask_secrets(value)
    return value


def _json_line(record: dict[str, Any]) -> str:
    """Render a loguru record as one JSON line.

    Args:
        record: Loguru record dictionary.

    Returns:
        Newline-terminated JSON document.
    """
    extra = {k: v for k, v in record["extra"].items() if k != "serialized"}

    entry: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": record["name"],
        "function": record["function"],
        "line": record["line"],
    }
    for field in _SCENARIO_FIELDS:
        if field in extra:
            entry[field] = extra[field]

    exception = record["exception"]
    if exception is not None:
        entry["exception"] = {
            "type": exception.type.__name__ if exception.type else None,
            "value": mask_secrets(str(exception.value)) if exception.value else None,
            "traceback": exception.traceback is not None,
        }

    if extra:
        entry["context"] = _scrub(extra)

    return json.dumps(entry, default=str) + "\n"


def _mask_message(record: dict[str, Any]) -> None:
    record["message"] = mask_secrets(record["message"])


def _attach_json_line(record: dict[str, Any]) -> bool:
    record["extra"]["serialized"] = _json_line(record)
    return True


def _console_format(record: dict[str, Any]) -> str:
    tag = ""
    if "suite" in record["extra"] and "scenario_id" in record["extra"]:
        tag = "<magenta>[{extra[suite]} {extra[scenario_id]}]</magenta> "
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
        + tag
        + "<level>{message}</level>\n{exception}"
    )


def _validate_log_directory(log_dir: Path) -> None:
    """Create the log directory and prove it is writable.

    Raises:
        LoggingInitializationError: If creation or the write check fails.
    """
    marker = log_dir / ".write_test"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        marker.write_text("ok")
        marker.unlink()
    except PermissionError as exc:
        raise LoggingInitializationError(
            log_dir=str(log_dir),
            reason=f"Permission denied: {exc}",
        ) from exc
    except OSError as exc:
        raise LoggingInitializationError(
            log_dir=str(log_dir),
            reason=f"OS error during directory validation: {exc}",
        ) from exc


def configure_logging(config: GlobalConfig | None = None) -> None:
    """Install the console and JSON file sinks.

    Call once during bootstrap, before the first request is sent.

    Args:
        config: Optional GlobalConfig instance. If None, uses singleton.

    Raises:
        LoggingInitializationError: If the log directory is unusable.
    """
    if config is None:
        config = get_config()

    logger.remove()
    logger.configure(patcher=_mask_message)
    _validate_log_directory(config.log_dir)

    logger.add(
        sys.stderr,
        format=_console_format,
        level=config.log_level,
        colorize=True,
        backtrace=config.debug,
        diagnose=config.debug,
    )

    logger.add(
        str(config.log_dir / "vantagecheck_{time:YYYY-MM-DD}.json"),
        format="{extra[serialized]}",
        level=config.log_level,
        rotation=config.log_rotation,
        retention=config.log_retention,
        compression="gz",
        filter=_attach_json_line,
    )

    logger.info(
        "Logging infrastructure initialized",
        app_name=config.app_name,
        environment=config.environment,
        log_level=config.log_level,
        log_dir=str(config.log_dir),
    )


def get_logger(name: str) -> "logger":
    """Get a logger bound with the module name.

    Example:
        >>> log = get_logger(__name__)
        >>> log.bind(suite="time_series_daily", scenario_id="TC-01").info("Scenario started")
    """
    return logger.bind(module=name)
