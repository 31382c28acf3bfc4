#signalwatch/infrastructure/config/json_config_repository.py

"""
JSON-based implementation of the configuration repository.

Stores configuration in a JSON file on disk.
"""
import copy
import os
import json
import threading
from typing import Dict, Any, Callable, List

from signalwatch.domain.common.errors import ConfigurationError
from signalwatch.domain.common.result import Result
from signalwatch.domain.models.monitor_settings import MonitorSettings
from signalwatch.domain.services.i_config_repository_service import IConfigRepository
from signalwatch.domain.services.i_logger_service import ILoggerService


class JsonConfigRepository(IConfigRepository):
    """
    JSON-based implementation of the configuration repository.

    Stores configuration in a JSON file and provides thread-safe access.
    """

    def __init__(self, config_file: str, logger: ILoggerService):
        """
        Initialize the repository.

        Args:
            config_file: Path to the JSON configuration file
            logger: Logger service
        """
        self.config_file = config_file
        self.logger = logger
        self._config_cache = None
        self._last_modified = 0
        self._lock = threading.RLock()
        self._observers: List[Callable[[], None]] = []

        self.DEFAULT_CONFIG = MonitorSettings().to_dict()
        self.DEFAULT_CONFIG["app_version"] = "1.0.0"

    def load_config(self, force_reload: bool = False) -> Result[Dict[str, Any]]:
        """
        Load configuration from storage.

        A missing file is created with the default settings. Missing keys are
        merged in from the defaults and written back.

        Args:
            force_reload: Whether to force a reload from storage

        Returns:
            Result containing the configuration dictionary
        """
        with self._lock:
            try:
                if os.path.exists(self.config_file):
                    mtime = os.path.getmtime(self.config_file)
                    if mtime > self._last_modified:
                        force_reload = True
            except OSError as e:
                self.logger.debug(f"Error checking config file modification time: {e}")

            if self._config_cache is not None and not force_reload:
                return Result.ok(self._config_cache)

            if not os.path.exists(self.config_file):
                self.logger.warning("Config file not found. Creating new configuration with default settings.",
                                    path=self.config_file)
                config = copy.deepcopy(self.DEFAULT_CONFIG)
                save_result = self.save_config(config)
                if save_result.is_failure:
                    return Result.fail(save_result.error)
                return Result.ok(config)

            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    config = json.load(f)
                if not isinstance(config, dict):
                    raise ValueError("top-level JSON value must be an object")
                self._last_modified = os.path.getmtime(self.config_file)
                self.logger.info(f"Config loaded successfully from {self.config_file}")
            except (OSError, ValueError) as e:
                error = ConfigurationError(f"Error loading config from {self.config_file}: {e}",
                                           details={"path": self.config_file}, inner_error=e)
                self.logger.error(str(error))
                return Result.fail(error)

            updated = False
            for key, default_value in self.DEFAULT_CONFIG.items():
                if key not in config:
                    config[key] = copy.deepcopy(default_value)
                    updated = True

            if updated:
                save_result = self.save_config(config)
                if save_result.is_failure:
                    return Result.fail(save_result.error)

            self._config_cache = config
            return Result.ok(config)

    def save_config(self, config: Dict[str, Any]) -> Result[bool]:
        """
        Save configuration to storage.

        Writes to a temporary file first and atomically replaces the original.

        Args:
            config: Configuration dictionary

        Returns:
            Result indicating success or failure
        """
        with self._lock:
            try:
                config_dir = os.path.dirname(self.config_file)
                if config_dir:
                    os.makedirs(config_dir, exist_ok=True)

                temp_path = f"{self.config_file}.tmp"
                with open(temp_path, "w", encoding="utf-8") as f:
                    json.dump(config, f, indent=4)
                os.replace(temp_path, self.config_file)

                self.logger.info(f"Config saved successfully to {self.config_file}")
                self._config_cache = config
                self._last_modified = os.path.getmtime(self.config_file)
            except (OSError, TypeError, ValueError) as e:
                error = ConfigurationError(f"Failed to save config: {e}",
                                           details={"path": self.config_file}, inner_error=e)
                self.logger.error(str(error))
                return Result.fail(error)

        self._notify_observers()
        return Result.ok(True)

    def get_global_setting(self, key: str, default: Any = None) -> Any:
        with self._lock:
            config_result = self.load_config()
            if config_result.is_failure:
                return default
            return config_result.value.get(key, default)

    def set_global_setting(self, key: str, value: Any) -> Result[bool]:
        with self._lock:
            config_result = self.load_config()
            if config_result.is_failure:
                return Result.fail(config_result.error)

            config = config_result.value
            config[key] = value
            return self.save_config(config)

    def get_monitor_settings(self) -> MonitorSettings:
        config_result = self.load_config()
        if config_result.is_failure:
            self.logger.warning("Using default monitor settings", reason=config_result.error.message)
            return MonitorSettings()
        return MonitorSettings.from_dict(config_result.value, self.logger)

    def save_monitor_settings(self, settings: MonitorSettings) -> Result[bool]:
        with self._lock:
            config_result = self.load_config()
            config = dict(config_result.value) if config_result.is_success else {}
            config.update(settings.to_dict())
            return self.save_config(config)

    def register_observer(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback not in self._observers:
                self._observers.append(callback)
                self.logger.debug(f"Observer registered: {callback.__qualname__}")

    def unregister_observer(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._observers:
                self._observers.remove(callback)
                self.logger.debug(f"Observer unregistered: {callback.__qualname__}")

    def _notify_observers(self) -> None:
        """Call all registered observer functions."""
        with self._lock:
            observers = self._observers.copy()

        for callback in observers:
            try:
                callback()
            except Exception as e:
                self.logger.error(f"Error notifying observer {getattr(callback, '__qualname__', callback)}: {e}")
