"""
Application logging helpers
"""
from studyhub.logging.custom_logger import CustomLogger, get_logger
from studyhub.logging.log_levels import LogLevel

__all__ = [
    'CustomLogger',
    'LogLevel',
    'get_logger',
]
