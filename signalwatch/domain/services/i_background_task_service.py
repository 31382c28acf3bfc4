#signalwatch/domain/services/i_background_task_service.py
"""
Background task service interface.

Defines the worker base class, cooperative cancellation tokens and the
contract for services that run workers off the calling thread.
"""
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional, Callable, List, TypeVar, Generic

from signalwatch.domain.common.result import Result

T = TypeVar('T')


class CancellationToken:
    """
    Token for coordinating cancellation across threads.
    Provides thread-safe cancellation state checking and waiting.
    """

    def __init__(self):
        self._cancelled = False
        self._event = threading.Event()
        self._lock = threading.RLock()

    def cancel(self) -> None:
        """Mark the token as cancelled and signal any waiting threads."""
        with self._lock:
            self._cancelled = True
            self._event.set()

    @property
    def is_cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for cancellation or timeout.

        This is the only sleep primitive used by workers, so a cancelled
        token interrupts any pending delay immediately.

        Args:
            timeout: Maximum time to wait in seconds, or None to wait indefinitely

        Returns:
            True if the token was cancelled, False if timeout occurred
        """
        return self._event.wait(timeout)


class LinkedCancellationToken(CancellationToken):
    """
    Token that is cancelled when its parent is cancelled or when its own
    deadline passes, whichever comes first.

    Used to give a single bounded operation a short-lived budget on top of
    the long-lived cancellation of the task that runs it.
    """

    _POLL_INTERVAL = 0.05

    def __init__(self, parent: Optional[CancellationToken] = None, timeout: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        super().__init__()
        self._parent = parent
        self._clock = clock
        self._deadline = clock() + timeout if timeout is not None else None

    @property
    def timed_out(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    @property
    def is_cancelled(self) -> bool:
        if super().is_cancelled:
            return True
        if self._parent is not None and self._parent.is_cancelled:
            return True
        return self.timed_out

    def wait(self, timeout: Optional[float] = None) -> bool:
        end = self._clock() + timeout if timeout is not None else None
        while not self.is_cancelled:
            remaining = self._POLL_INTERVAL
            if end is not None:
                remaining = min(remaining, end - self._clock())
                if remaining <= 0:
                    return False
            self._event.wait(remaining)
        return True


class Worker(Generic[T]):
    """
    Base class for background workers that can be executed by the task service.

    Worker tasks are executed in a background thread and report start,
    completion with a result, or errors.
    """

    def __init__(self):
        self._cancellation_token = CancellationToken()

        self.on_started_callback: Optional[Callable[[], None]] = None
        self.on_completed_callback: Optional[Callable[[T], None]] = None
        self.on_error_callback: Optional[Callable[[str], None]] = None

    @property
    def cancel_requested(self) -> bool:
        return self._cancellation_token.is_cancelled

    @property
    def cancellation_token(self) -> CancellationToken:
        return self._cancellation_token

    def set_on_started(self, callback: Callable[[], None]) -> None:
        self.on_started_callback = callback

    def set_on_completed(self, callback: Callable[[T], None]) -> None:
        self.on_completed_callback = callback

    def set_on_error(self, callback: Callable[[str], None]) -> None:
        self.on_error_callback = callback

    def report_started(self) -> None:
        if self.on_started_callback:
            self.on_started_callback()

    def report_completed(self, result: T) -> None:
        if self.on_completed_callback:
            self.on_completed_callback(result)

    def report_error(self, error: str) -> None:
        if self.on_error_callback:
            self.on_error_callback(error)

    @abstractmethod
    def execute(self) -> T:
        """
        Execute the worker's task.

        This method is called in a background thread and should return a result.

        Raises:
            Exception: Reported through the error callback by run()
        """
        pass

    def run(self) -> Optional[T]:
        """
        Run the full worker lifecycle on the current thread.

        Task services call this from their thread; tests may call it directly.

        Returns:
            The execute() result, or None if the worker failed
        """
        try:
            self.report_started()
            result = self.execute()
        except Exception as e:
            self.report_error(str(e))
            return None
        self.report_completed(result)
        return result

    def cancel(self) -> None:
        """Request cancellation of the worker's task."""
        self._cancellation_token.cancel()


class IBackgroundTaskService(ABC):
    """
    Interface for background task services.

    Defines methods for executing workers in background threads
    and managing their lifecycle.
    """

    @abstractmethod
    def execute_task(self, task_id: str, worker: Worker[T]) -> Result[bool]:
        """
        Execute a worker in a background thread.

        Args:
            task_id: Unique identifier for the task
            worker: Worker to execute

        Returns:
            Result indicating success or failure
        """
        pass

    @abstractmethod
    def cancel_task(self, task_id: str, timeout: Optional[float] = None) -> Result[bool]:
        """
        Cancel a background task and wait up to ``timeout`` seconds for it to finish.

        Args:
            task_id: Identifier of the task to cancel
            timeout: Maximum wait in seconds, or None for the service default

        Returns:
            Result indicating success or failure
        """
        pass

    @abstractmethod
    def is_task_running(self, task_id: str) -> bool:
        pass

    @abstractmethod
    def get_running_tasks(self) -> List[str]:
        pass

    @abstractmethod
    def cancel_all_tasks(self) -> None:
        """Cancel all running background tasks."""
        pass
