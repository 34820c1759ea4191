from typing import Any, Dict

from studyhub.logging.log_levels import LogLevel

_PREFIXES = {
    LogLevel.ERROR: "[ERROR]",
    LogLevel.WARNING: "[WARNING]",
    LogLevel.INFO: "[INFO]",
    LogLevel.REQUEST: "[REQUEST]",
    LogLevel.SLOW: "[SLOW]",
    LogLevel.AUDIT: "[AUDIT]",
}


def format_context(context: Dict[str, Any]) -> str:
    """Render context as sorted key=value pairs, skipping None values."""
    return " ".join(
        f"{key}={value}" for key, value in sorted(context.items()) if value is not None
    )


def format_message(level: LogLevel, message: str, context: Dict[str, Any]) -> str:
    rendered = f"{_PREFIXES.get(level, '')} {message}".strip()
    extra = format_context(context)
    return f"{rendered} | {extra}" if extra else rendered
