#signalwatch/infrastructure/notifications/notification_queue.py
"""
Deduplicating notification queue.

A single worker thread delivers payloads in FIFO order through an injected
delivery function. Identical payloads enqueued within the duplicate window
are dropped; a failed delivery is retried once after a fixed delay.
"""
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from signalwatch.domain.common.errors import DeliveryError
from signalwatch.domain.models.notification import NotificationPayload
from signalwatch.domain.services.i_background_task_service import CancellationToken
from signalwatch.domain.services.i_logger_service import ILoggerService

DeliveryFunc = Callable[[NotificationPayload, CancellationToken], bool]


@dataclass
class _QueuedItem:
    payload: NotificationPayload
    attempt: int = 0


class NotificationQueue:
    """
    Single-flight delivery worker with duplicate suppression and one retry.
    """

    def __init__(self,
                 deliver: DeliveryFunc,
                 logger: ILoggerService,
                 duplicate_window: float = 10.0,
                 retry_delay: float = 1.0,
                 min_interval: float = 0.3,
                 idle_poll: float = 0.2,
                 max_attempts: int = 2,
                 clock: Callable[[], float] = time.monotonic,
                 autostart: bool = True):
        """
        Args:
            deliver: Delivery function returning True on success
            logger: Logger service
            duplicate_window: Seconds during which an identical payload is dropped
            retry_delay: Seconds to wait before re-enqueueing a failed payload
            min_interval: Minimum seconds between successive delivery attempts
            idle_poll: Seconds the worker waits for work before re-checking cancellation
            max_attempts: Delivery attempts per payload, including the first
            clock: Monotonic clock used for the duplicate window
            autostart: Start the worker thread immediately
        """
        self._deliver = deliver
        self.logger = logger
        self.duplicate_window = duplicate_window
        self.retry_delay = retry_delay
        self.min_interval = min_interval
        self.idle_poll = idle_poll
        self.max_attempts = max(1, max_attempts)
        self._clock = clock

        self._queue: "queue.Queue[_QueuedItem]" = queue.Queue()
        self._recent_keys: Dict[str, float] = {}
        self._keys_lock = threading.Lock()
        self._token = CancellationToken()
        self._worker: Optional[threading.Thread] = None

        self._pending = 0
        self._pending_cond = threading.Condition()

        if autostart:
            self.start()

    def start(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(target=self._worker_loop, name="notification-queue", daemon=True)
        self._worker.start()

    def enqueue(self, payload: NotificationPayload) -> bool:
        """
        Queue a payload for delivery without blocking.

        Returns:
            False if the payload was dropped as a duplicate or the queue is shut down
        """
        if payload is None or self._token.is_cancelled:
            return False

        key = payload.dedup_key
        now = self._clock()
        with self._keys_lock:
            last = self._recent_keys.get(key)
            if last is not None and now - last < self.duplicate_window:
                self.logger.debug("Dropping duplicate notification", key=key)
                return False
            self._recent_keys[key] = now
            self._prune_keys(now)

        with self._pending_cond:
            self._pending += 1
        self._queue.put(_QueuedItem(payload))
        return True

    def _prune_keys(self, now: float) -> None:
        expired = [k for k, t in self._recent_keys.items() if now - t >= self.duplicate_window]
        for k in expired:
            del self._recent_keys[k]

    def _worker_loop(self) -> None:
        while not self._token.is_cancelled:
            try:
                item = self._queue.get(timeout=self.idle_poll)
            except queue.Empty:
                continue

            try:
                self._process(item)
            except Exception as e:
                # A broken item must not kill the worker
                self.logger.error(f"Notification worker error: {e}")
                self._finish_item()

            if self._token.wait(self.min_interval):
                break

    def _process(self, item: _QueuedItem) -> None:
        item.attempt += 1
        try:
            ok = bool(self._deliver(item.payload, self._token))
        except Exception as e:
            self.logger.warning(f"Notification delivery raised: {e}", title=item.payload.title)
            ok = False

        if ok:
            self.logger.debug("Notification delivered", title=item.payload.title, attempt=item.attempt)
            self._finish_item()
            return

        if item.attempt < self.max_attempts:
            self.logger.warning("Notification delivery failed, retrying", title=item.payload.title,
                                attempt=item.attempt)
            if self._token.wait(self.retry_delay):
                self._finish_item()
                return
            self._queue.put(item)
            return

        error = DeliveryError("Notification dropped after retry",
                              details={"title": item.payload.title, "attempts": item.attempt})
        self.logger.error(str(error), title=item.payload.title)
        self._finish_item()

    def _finish_item(self) -> None:
        with self._pending_cond:
            self._pending = max(0, self._pending - 1)
            if self._pending == 0:
                self._pending_cond.notify_all()

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every enqueued payload was delivered or dropped.

        Returns:
            True if the queue became idle within the timeout
        """
        with self._pending_cond:
            return self._pending_cond.wait_for(lambda: self._pending == 0, timeout)

    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def shutdown(self, timeout: float = 2.0) -> None:
        """
        Cancel the worker and wait up to ``timeout`` seconds for it to exit.

        Once the worker has stopped, a delivery function exposing ``close()``
        (such as WebhookNotifier) is closed.
        """
        self._token.cancel()
        if self._worker is not None:
            self._worker.join(timeout)
            if self._worker.is_alive():
                self.logger.warning("Notification worker did not stop within timeout", timeout=timeout)
                return
        close = getattr(self._deliver, "close", None)
        if callable(close):
            close()
