#signalwatch/infrastructure/logging/logger_service.py
"""
Logger service backed by Python's built-in logging module.

Context keyword arguments are appended to the message as ``[key=value ...]``.
"""
import logging
import sys
import os
from datetime import datetime
from typing import Any, Dict

from signalwatch.domain.services.i_logger_service import ILoggerService

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ConsoleLoggerService(ILoggerService):
    """
    Logger service that writes to stdout.

    When the named logger already has handlers (for example after
    setup_logging configured the root logger) none are added.
    """

    def __init__(self, level: int = logging.INFO, name: str = "signalwatch"):
        self.logger = logging.getLogger(name)
        self.set_level(level)

        if not self.logger.handlers and not logging.getLogger().handlers:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level)
            console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(console_handler)

    def debug(self, message: str, **kwargs) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs) -> None:
        self._log(logging.CRITICAL, message, kwargs)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def _log(self, level: int, message: str, context: Dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra = self._format_extra(context)
        if extra:
            message = f"{message} {extra}"
        self.logger.log(level, message)

    def _format_extra(self, extra: Dict[str, Any]) -> str:
        """
        Format extra context information for logging.

        Args:
            extra: Dictionary of extra context information

        Returns:
            Formatted string of context information
        """
        if not extra:
            return ""
        formatted = [f"{key}={value}" for key, value in extra.items()]
        return f"[{' '.join(formatted)}]"


class FileLoggerService(ConsoleLoggerService):
    """ConsoleLoggerService that also writes to a dated file in ``log_dir``."""

    def __init__(self, level: int = logging.INFO, name: str = "signalwatch",
                 log_dir: str = "logs"):
        super().__init__(level, name)

        os.makedirs(log_dir, exist_ok=True)

        current_date = datetime.now().strftime("%Y-%m-%d")
        log_file = os.path.join(log_dir, f"{name}_{current_date}.log")

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        self.logger.addHandler(file_handler)
        self.log_file = log_file
