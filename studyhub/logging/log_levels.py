"""
Application log levels, mapped onto the standard logging levels
"""
import logging
from enum import Enum


class LogLevel(str, Enum):
    WARNING = "warning"
    INFO = "info"
    REQUEST = "request"
    ERROR = "error"
    SLOW = "slow"
    AUDIT = "audit"

    @property
    def std_level(self) -> int:
        return _STD_LEVELS[self]


_STD_LEVELS = {
    LogLevel.WARNING: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.REQUEST: logging.INFO,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.SLOW: logging.WARNING,
    LogLevel.AUDIT: logging.INFO,
}
