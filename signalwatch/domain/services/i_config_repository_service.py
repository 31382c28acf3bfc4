# signalwatch/domain/services/i_config_repository_service.py
"""
Settings persistence contract.

The repository stores the raw ``config.json`` dictionary; the monitoring
session reads it through the typed MonitorSettings view.
"""
from abc import ABC, abstractmethod
from typing import Dict, Any, Callable

from signalwatch.domain.common.result import Result
from signalwatch.domain.models.monitor_settings import MonitorSettings


class IConfigRepository(ABC):
    """Thread-safe store for application settings."""

    @abstractmethod
    def load_config(self, force_reload: bool = False) -> Result[Dict[str, Any]]:
        """
        Read the settings dictionary, from cache unless the file changed.

        Args:
            force_reload: Bypass the cache

        Returns:
            Result with the dictionary (defaults merged in), or a
            ConfigurationError when the file cannot be parsed
        """
        pass

    @abstractmethod
    def save_config(self, config: Dict[str, Any]) -> Result[bool]:
        """Replace the stored dictionary atomically and notify observers."""
        pass

    @abstractmethod
    def get_global_setting(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set_global_setting(self, key: str, value: Any) -> Result[bool]:
        pass

    @abstractmethod
    def get_monitor_settings(self) -> MonitorSettings:
        """
        Typed settings. Invalid or missing values become defaults, so this
        never fails.
        """
        pass

    @abstractmethod
    def save_monitor_settings(self, settings: MonitorSettings) -> Result[bool]:
        pass

    @abstractmethod
    def register_observer(self, callback: Callable[[], None]) -> None:
        """
        Args:
            callback: Called after every successful save
        """
        pass

    @abstractmethod
    def unregister_observer(self, callback: Callable[[], None]) -> None:
        pass
