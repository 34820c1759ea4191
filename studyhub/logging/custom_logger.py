"""
Context-aware logger
Levels: warning, info, request, error, slow, audit
"""
import logging
from typing import Any, Dict

from studyhub.logging.formatters import format_message
from studyhub.logging.log_levels import LogLevel


class CustomLogger:
    """
    Thin wrapper over a stdlib logger that renders keyword context.

    Handlers are configured once on the root logger (see
    ``studyhub.core.logging.setup_logging``); this class only formats.

    Usage:
        logger = get_logger(__name__)
        logger.info("User created", user_id="abc")
        logger.audit("Content approved", content_id="x", moderator_id="y")
        logger.slow("Slow request", duration=2.3, path="/api/content")
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)

    def _log(
        self,
        level: LogLevel,
        message: str,
        exc_info: bool = False,
        **context: Any
    ) -> None:
        self.logger.log(
            level.std_level,
            format_message(level, message, context),
            extra={"custom_data": {"level": level.value, **context}},
            exc_info=exc_info,
        )

    def warning(self, message: str, **context: Any) -> None:
        self._log(LogLevel.WARNING, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, **context)

    def request(
        self,
        message: str,
        method: str,
        path: str,
        status_code: int,
        duration: float,
        **context: Any
    ) -> None:
        """
        Log an HTTP request

        Example:
            logger.request("API request", method="POST", path="/api/votes",
                           status_code=200, duration=0.04)
        """
        self._log(
            LogLevel.REQUEST,
            message,
            method=method,
            path=path,
            status_code=status_code,
            duration=round(duration, 4),
            **context
        )

    def error(self, message: str, exc_info: bool = True, **context: Any) -> None:
        self._log(LogLevel.ERROR, message, exc_info=exc_info, **context)

    def slow(
        self,
        message: str,
        duration: float,
        threshold: float = 1.0,
        **context: Any
    ) -> None:
        self._log(
            LogLevel.SLOW,
            message,
            duration=round(duration, 4),
            threshold=threshold,
            **context
        )

    def audit(self, message: str, **context: Any) -> None:
        """
        Record a privileged state change (moderation decision, deletion)

        Example:
            logger.audit("Content decided", content_id="x", decision="approved")
        """
        self._log(LogLevel.AUDIT, message, **context)


_loggers: Dict[str, CustomLogger] = {}


def get_logger(name: str) -> CustomLogger:
    """
    Get a cached CustomLogger

    Usage:
        from studyhub.logging import get_logger
        logger = get_logger(__name__)
    """
    if name not in _loggers:
        _loggers[name] = CustomLogger(name)
    return _loggers[name]
