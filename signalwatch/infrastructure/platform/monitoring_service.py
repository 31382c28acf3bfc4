#signalwatch/infrastructure/platform/monitoring_service.py
"""
Implementation of the monitoring service.

This service coordinates screen capture, recognition, rule extraction and
match dispatch for one watched region.
"""
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from signalwatch.domain.common.errors import ValidationError, ResourceError
from signalwatch.domain.common.result import Result
from signalwatch.domain.models.extract_rule import ExtractRule, ExtractMatch
from signalwatch.domain.models.monitor_settings import MonitorSettings
from signalwatch.domain.models.monitoring_result import MonitoringState, TickResult, TickStatus
from signalwatch.domain.models.region_model import Region
from signalwatch.domain.services.i_background_task_service import IBackgroundTaskService, Worker
from signalwatch.domain.services.i_image_hash_service import IImageHashService
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.domain.services.i_match_handler import IMatchHandler
from signalwatch.domain.services.i_monitoring_service import IMonitoringService
from signalwatch.domain.services.i_preview_service import IPreviewService
from signalwatch.domain.services.i_rule_repository_service import IRuleRepository
from signalwatch.domain.services.i_screenshot_service import IScreenshotService
from signalwatch.infrastructure.notifications.cooldown import NotifyCooldown
from signalwatch.infrastructure.ocr.signal_pipeline import SignalPipeline

HISTORY_SIZE = 100


class MonitoringWorker(Worker[bool]):
    """
    Worker running the tick loop for one region in a background thread.

    Ticks never overlap: a slow tick delays the next capture. The loop only
    sleeps through the cancellation token, so a cancel request ends it at the
    next tick boundary or during the inter-tick delay.
    """

    def __init__(self,
                 region: Region,
                 rules: List[ExtractRule],
                 screenshot_service: IScreenshotService,
                 hash_service: IImageHashService,
                 preview_service: IPreviewService,
                 pipeline: SignalPipeline,
                 cooldown: NotifyCooldown,
                 match_handler: IMatchHandler,
                 logger: ILoggerService,
                 settings: Optional[MonitorSettings] = None,
                 on_tick: Optional[Callable[[TickResult], None]] = None):
        super().__init__()
        self.region = region
        self.rules = list(rules)
        self.screenshot_service = screenshot_service
        self.hash_service = hash_service
        self.preview_service = preview_service
        self.pipeline = pipeline
        self.cooldown = cooldown
        self.match_handler = match_handler
        self.logger = logger
        self.settings = settings or MonitorSettings()
        self.on_tick = on_tick

        self.tick_count = 0
        self.consecutive_failures = 0
        self.last_hash: Optional[str] = None

    def execute(self) -> bool:
        """Run ticks until cancelled."""
        self.logger.info("Monitoring started", region=str(self.region.as_tuple()), rules=len(self.rules))
        token = self.cancellation_token

        while not token.is_cancelled:
            result = self.run_tick()
            if self.on_tick:
                try:
                    self.on_tick(result)
                except Exception as e:
                    self.logger.warning(f"Tick callback failed: {e}")

            token.wait(self.next_delay(result))

        self.logger.info("Monitoring stopped", ticks=self.tick_count)
        return True

    def run_tick(self) -> TickResult:
        """
        Run one capture-to-dispatch pass. Never raises.

        Returns:
            The tick outcome
        """
        self.tick_count += 1
        try:
            frame = self.screenshot_service.capture_frame(self.region)
            if frame is None:
                self.logger.debug("No frame captured", tick=self.tick_count)
                return TickResult(status=TickStatus.NO_FRAME)

            crop = self.screenshot_service.crop_to_region(frame, self.region)
            if crop is None or crop.size == 0:
                self.logger.debug("Region outside captured frame", tick=self.tick_count)
                return TickResult(status=TickStatus.NO_FRAME)

            self._update_preview(crop)

            result = self.pipeline.process(crop, self.rules, self.cancellation_token)
            if result.status == TickStatus.ERROR:
                self.logger.error(f"Tick failed: {result.error}", tick=self.tick_count)
            elif result.status == TickStatus.MATCHED:
                result.dispatched = self._dispatch(result.matches)
            return result

        except Exception as e:
            error = ResourceError(message=f"Unexpected error in monitoring tick: {e}", inner_error=e)
            self.logger.error(str(error), tick=self.tick_count)
            return TickResult(status=TickStatus.ERROR, error=error)

    def next_delay(self, result: TickResult) -> float:
        """Fixed tick interval, or exponential backoff after failed ticks."""
        if result.status in (TickStatus.ERROR, TickStatus.NO_FRAME):
            self.consecutive_failures += 1
            backoff = self.settings.error_backoff_seconds * (2 ** (self.consecutive_failures - 1))
            return min(self.settings.max_backoff_seconds, max(backoff, self.settings.tick_interval_seconds))

        self.consecutive_failures = 0
        return self.settings.tick_interval_seconds

    def _update_preview(self, crop) -> None:
        try:
            current = self.hash_service.compute_hash(crop)
            if current and current != self.last_hash:
                self.last_hash = current
                self.preview_service.set_preview(crop)
        except Exception as e:
            self.logger.warning(f"Preview update failed: {e}")

    def _dispatch(self, matches: List[ExtractMatch]) -> List[ExtractMatch]:
        dispatched = []
        for match in matches:
            if not self.cooldown.try_acquire(match.key):
                self.logger.debug("Match suppressed by cooldown", rule=match.rule_name)
                continue
            self.logger.info("Dispatching match", rule=match.rule_name, matches=match.matches)
            self.match_handler.handle_match(match)
            dispatched.append(match)
        return dispatched


class MonitoringService(IMonitoringService):
    """
    Monitoring session: owns the cooldown map, the latest preview hash (via the
    worker) and the tick history, and runs the worker through the task service.
    """

    def __init__(self,
                 screenshot_service: IScreenshotService,
                 hash_service: IImageHashService,
                 preview_service: IPreviewService,
                 pipeline: SignalPipeline,
                 match_handler: IMatchHandler,
                 rule_repository: IRuleRepository,
                 thread_service: IBackgroundTaskService,
                 logger: ILoggerService,
                 settings: Optional[MonitorSettings] = None,
                 cooldown: Optional[NotifyCooldown] = None,
                 notification_queue=None):
        self.screenshot_service = screenshot_service
        self.hash_service = hash_service
        self.preview_service = preview_service
        self.pipeline = pipeline
        self.match_handler = match_handler
        self.rule_repository = rule_repository
        self.thread_service = thread_service
        self.logger = logger
        self.settings = settings or MonitorSettings()
        self.cooldown = cooldown or NotifyCooldown(self.settings.cooldown_seconds)
        self.notification_queue = notification_queue

        # Internal state
        self.monitoring_task_id = "signal_monitoring"
        self._state = MonitoringState.IDLE
        self._history: Deque[TickResult] = deque(maxlen=HISTORY_SIZE)
        self._latest_result: Optional[TickResult] = None
        self._lock = threading.Lock()
        self._worker: Optional[MonitoringWorker] = None
        self._on_tick_callback: Optional[Callable[[TickResult], None]] = None
        self._on_error_callback: Optional[Callable[[str], None]] = None

    @property
    def state(self) -> MonitoringState:
        return self._state

    def start_monitoring(self,
                         region: Region,
                         on_tick: Optional[Callable[[TickResult], None]] = None,
                         on_error: Optional[Callable[[str], None]] = None) -> Result[bool]:
        """Start watching the given region in the background."""
        if self.is_monitoring():
            return Result.fail(ValidationError(
                message="Monitoring already active - stop first",
                details={"region": str(self._worker.region) if self._worker else None}
            ))

        if not isinstance(region, Region):
            return Result.fail(ValidationError(message="Invalid region", details={"region": region}))

        rules = self.rule_repository.load_rules()
        self.logger.info(f"Starting monitoring with {len(rules)} rule(s)", region=str(region.as_tuple()))

        self._on_tick_callback = on_tick
        self._on_error_callback = on_error

        worker = MonitoringWorker(
            region=region,
            rules=rules,
            screenshot_service=self.screenshot_service,
            hash_service=self.hash_service,
            preview_service=self.preview_service,
            pipeline=self.pipeline,
            cooldown=self.cooldown,
            match_handler=self.match_handler,
            logger=self.logger,
            settings=self.settings,
            on_tick=self._record_tick
        )
        worker.set_on_error(self._on_worker_error)

        self._worker = worker
        self._state = MonitoringState.RUNNING
        result = self.thread_service.execute_task(self.monitoring_task_id, worker)
        if result.is_failure:
            self.logger.error(f"Failed to start monitoring: {result.error}")
            self._state = MonitoringState.FAULTED
            self._worker = None
            return result

        return Result.ok(True)

    def stop_monitoring(self) -> Result[bool]:
        """Stop the current session at its next tick boundary."""
        if self._state != MonitoringState.RUNNING:
            return Result.ok(False)

        self.logger.info("Stopping monitoring")
        result = self.thread_service.cancel_task(self.monitoring_task_id,
                                                 timeout=self.settings.shutdown_timeout_seconds)
        # Mark as stopped even if cancellation failed
        self._state = MonitoringState.STOPPED
        self._worker = None
        return result

    def shutdown(self) -> None:
        """Stop monitoring and drain the notification queue."""
        self.stop_monitoring()
        if self.notification_queue is not None:
            self.notification_queue.shutdown(self.settings.shutdown_timeout_seconds)

    def is_monitoring(self) -> bool:
        if self._state == MonitoringState.RUNNING and not self.thread_service.is_task_running(self.monitoring_task_id):
            # Worker ended on its own
            self._state = MonitoringState.STOPPED
        return self._state == MonitoringState.RUNNING

    def get_latest_result(self) -> Optional[TickResult]:
        with self._lock:
            return self._latest_result

    def get_monitoring_history(self) -> Result[List[TickResult]]:
        with self._lock:
            return Result.ok(list(self._history))

    def _record_tick(self, result: TickResult) -> None:
        with self._lock:
            self._latest_result = result
            self._history.append(result)
        if self._on_tick_callback:
            self._on_tick_callback(result)

    def _on_worker_error(self, error: str) -> None:
        self.logger.error(f"Monitoring worker failed: {error}")
        self._state = MonitoringState.FAULTED
        if self._on_error_callback:
            self._on_error_callback(error)
