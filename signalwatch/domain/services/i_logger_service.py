#signalwatch/domain/services/i_logger_service.py
"""
Logger service interface.

Every pipeline stage receives an ILoggerService through its constructor and
logs stage-local failures where they happen. Keyword arguments carry
structured context (tick number, rule, score...) rendered after the message.
"""
from abc import ABC, abstractmethod


class ILoggerService(ABC):
    """Leveled logger with keyword context."""

    @abstractmethod
    def debug(self, message: str, **kwargs) -> None:
        """
        Log diagnostics such as candidate scores and per-strategy recognition misses.

        Args:
            message: The message to log
            **kwargs: Context rendered as ``[key=value ...]``
        """
        pass

    @abstractmethod
    def info(self, message: str, **kwargs) -> None:
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs) -> None:
        """Log a recoverable problem (invalid rule, failed delivery attempt)."""
        pass

    @abstractmethod
    def error(self, message: str, **kwargs) -> None:
        """Log a failed stage (preprocessing, dropped notification)."""
        pass

    @abstractmethod
    def critical(self, message: str, **kwargs) -> None:
        pass

    @abstractmethod
    def set_level(self, level: int) -> None:
        """
        Set the minimum level to emit.

        Args:
            level: A ``logging`` level such as logging.DEBUG
        """
        pass
