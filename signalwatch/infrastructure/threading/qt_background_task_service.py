# signalwatch/infrastructure/threading/qt_background_task_service.py
"""
Qt implementation of the background task service.

Each task runs its worker on a dedicated QThread. Worker callbacks are
bridged through Qt signals with queued connections, so they run on the
thread that owns the receiving objects (the GUI thread in the application).
"""
import traceback
from typing import Dict, List, Optional, TypeVar

from PySide6.QtCore import QCoreApplication, QMutex, QMutexLocker, QObject, QThread, Qt, Signal, Slot

from signalwatch.domain.common.errors import ResourceError, ValidationError
from signalwatch.domain.common.result import Result
from signalwatch.domain.services.i_background_task_service import IBackgroundTaskService, Worker
from signalwatch.domain.services.i_logger_service import ILoggerService

T = TypeVar('T')

DEFAULT_CANCEL_TIMEOUT = 2.0


class WorkerSignals(QObject):
    """
    Signals available from a running worker thread.

    Signals:
        started: Worker started execution
        completed: Worker finished with a result
        error: Worker failed with an error message
        finished: Worker returned, whatever the outcome
    """
    started = Signal()
    completed = Signal(object)
    error = Signal(str)
    finished = Signal()


class WorkerWrapper(QObject):
    """
    Runs a domain Worker inside a QThread and re-emits its callbacks as signals.
    """

    def __init__(self, worker: Worker[T], logger: ILoggerService, task_id: str):
        super().__init__()
        self.worker = worker
        self.logger = logger
        self.task_id = task_id
        self.signals = WorkerSignals()

        self.original_started_callback = worker.on_started_callback
        self.original_completed_callback = worker.on_completed_callback
        self.original_error_callback = worker.on_error_callback

        self.worker.set_on_started(self.signals.started.emit)
        self.worker.set_on_completed(self.signals.completed.emit)
        self.worker.set_on_error(self.signals.error.emit)

    @Slot()
    def run(self):
        """Execute the worker's lifecycle. Called when the thread starts."""
        try:
            self.logger.debug(f"Worker for task '{self.task_id}' starting execution")
            self.worker.run()
        except Exception as e:
            error_message = f"Unhandled error in worker: {e}"
            self.logger.error(error_message)
            self.logger.debug(traceback.format_exc())
            self.signals.error.emit(error_message)
        finally:
            self.signals.finished.emit()


class TaskInfo:
    """References to the thread, wrapper and worker of one task."""

    def __init__(self, task_id: str, thread: QThread, wrapper: WorkerWrapper, worker: Worker):
        self.task_id = task_id
        self.thread = thread
        self.wrapper = wrapper
        self.worker = worker

    def disconnect_signals(self):
        for signal_name in ['started', 'completed', 'error']:
            try:
                signal = getattr(self.wrapper.signals, signal_name, None)
                if signal:
                    signal.disconnect()
            except (TypeError, RuntimeError):
                pass  # not connected


class QtBackgroundTaskService(IBackgroundTaskService):
    """
    Manages background tasks on QThreads.

    Cancellation is cooperative: the worker's token is cancelled and the
    thread is given a bounded time to exit before being terminated.
    """

    def __init__(self, logger: ILoggerService, cancel_timeout: float = DEFAULT_CANCEL_TIMEOUT):
        self.logger = logger
        self.cancel_timeout = cancel_timeout
        self.tasks: Dict[str, TaskInfo] = {}
        self.mutex = QMutex()

    def execute_task(self, task_id: str, worker: Worker[T]) -> Result[bool]:
        locker = QMutexLocker(self.mutex)
        try:
            if task_id in self.tasks:
                self.logger.warning(f"Task '{task_id}' is already running")
                return Result.fail(ValidationError(f"Task '{task_id}' is already running"))

            self.logger.debug(f"Starting task '{task_id}'")

            thread = QThread()
            wrapper = WorkerWrapper(worker, self.logger, task_id)
            wrapper.moveToThread(thread)

            thread.started.connect(wrapper.run)
            wrapper.signals.finished.connect(thread.quit, Qt.DirectConnection)
            thread.finished.connect(lambda: self._forget_task(task_id, thread))

            if wrapper.original_started_callback:
                wrapper.signals.started.connect(wrapper.original_started_callback, Qt.QueuedConnection)
            if wrapper.original_completed_callback:
                wrapper.signals.completed.connect(wrapper.original_completed_callback, Qt.QueuedConnection)
            if wrapper.original_error_callback:
                wrapper.signals.error.connect(wrapper.original_error_callback, Qt.QueuedConnection)

            self.tasks[task_id] = TaskInfo(task_id, thread, wrapper, worker)
            thread.start()

            self.logger.debug(f"Task '{task_id}' started successfully")
            return Result.ok(True)
        except RuntimeError as e:
            error = ResourceError(f"Error starting task '{task_id}': {e}", inner_error=e)
            self.logger.error(str(error))
            self.logger.debug(traceback.format_exc())
            return Result.fail(error)
        finally:
            locker.unlock()

    def cancel_task(self, task_id: str, timeout: Optional[float] = None) -> Result[bool]:
        locker = QMutexLocker(self.mutex)
        task_info = self.tasks.pop(task_id, None)
        locker.unlock()

        if task_info is None:
            self.logger.debug(f"Cannot cancel task '{task_id}' - not running")
            return Result.fail(ValidationError(f"Task '{task_id}' not found"))

        self.logger.debug(f"Cancelling task '{task_id}'")
        task_info.worker.cancel()

        wait_ms = int((self.cancel_timeout if timeout is None else timeout) * 1000)
        app = QCoreApplication.instance()
        waited = 0
        while not task_info.thread.wait(50):
            waited += 50
            if app is not None:
                app.processEvents()  # lets queued callbacks flow while we wait
            if waited >= wait_ms:
                break

        task_info.disconnect_signals()

        if not task_info.thread.isFinished():
            self.logger.warning(f"Forcing termination of task '{task_id}'")
            task_info.thread.terminate()
            task_info.thread.wait(500)

        self.logger.debug(f"Task '{task_id}' cancelled")
        return Result.ok(True)

    def is_task_running(self, task_id: str) -> bool:
        locker = QMutexLocker(self.mutex)
        try:
            return task_id in self.tasks
        finally:
            locker.unlock()

    def get_running_tasks(self) -> List[str]:
        locker = QMutexLocker(self.mutex)
        try:
            return list(self.tasks.keys())
        finally:
            locker.unlock()

    def cancel_all_tasks(self) -> None:
        for task_id in self.get_running_tasks():
            self.cancel_task(task_id)

    def _forget_task(self, task_id: str, thread: QThread) -> None:
        """Drop the task entry once its thread finished on its own."""
        locker = QMutexLocker(self.mutex)
        try:
            task_info = self.tasks.get(task_id)
            if task_info is not None and task_info.thread is thread:
                del self.tasks[task_id]
                self.logger.debug(f"Task '{task_id}' finished")
        finally:
            locker.unlock()
