# signalwatch/domain/services/i_monitoring_service.py
"""
Monitoring service interface.

Defines the contract for the monitoring session lifecycle.
"""
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from signalwatch.domain.common.result import Result
from signalwatch.domain.models.monitoring_result import MonitoringState, TickResult
from signalwatch.domain.models.region_model import Region


class IMonitoringService(ABC):
    """
    Interface for monitoring services.

    Defines methods for watching a screen region and managing the monitoring lifecycle.
    """

    @abstractmethod
    def start_monitoring(self,
                         region: Region,
                         on_tick: Optional[Callable[[TickResult], None]] = None,
                         on_error: Optional[Callable[[str], None]] = None) -> Result[bool]:
        """
        Start watching a region.

        Args:
            region: Desktop region to watch; fixed for the session
            on_tick: Callback invoked with every tick result (worker thread)
            on_error: Callback for a fatal worker error

        Returns:
            Result indicating success or failure
        """
        pass

    @abstractmethod
    def stop_monitoring(self) -> Result[bool]:
        """
        Stop the current monitoring session at the next tick boundary.

        Returns:
            Result indicating success or failure
        """
        pass

    @abstractmethod
    def is_monitoring(self) -> bool:
        pass

    @property
    @abstractmethod
    def state(self) -> MonitoringState:
        pass

    @abstractmethod
    def get_latest_result(self) -> Optional[TickResult]:
        """
        Returns:
            The most recent tick result, or None if no tick has completed
        """
        pass

    @abstractmethod
    def get_monitoring_history(self) -> Result[List[TickResult]]:
        """
        Returns:
            Result containing the most recent tick results, oldest first
        """
        pass
