import threading
from typing import Dict, List, Optional

import cv2
import numpy as np
import pytest

from signalwatch.domain.common.result import Result
from signalwatch.domain.models.captured_frame import CapturedFrame
from signalwatch.domain.models.extract_rule import ExtractMatch, ExtractRule, RuleKind
from signalwatch.domain.models.recognition_result import RecognitionResult, SegmentationMode
from signalwatch.domain.services.i_background_task_service import IBackgroundTaskService, Worker
from signalwatch.domain.services.i_image_hash_service import IImageHashService
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.domain.services.i_match_handler import IMatchHandler
from signalwatch.domain.services.i_preview_service import IPreviewService
from signalwatch.domain.services.i_recognition_engine import IRecognitionEngine
from signalwatch.domain.services.i_rule_repository_service import IRuleRepository
from signalwatch.domain.services.i_screenshot_service import IScreenshotService
from signalwatch.infrastructure.platform.image_hash_service import AverageHashService


class RecordingLogger(ILoggerService):
    """Keeps every log call so tests can assert on them."""

    def __init__(self):
        self.records: List[tuple] = []

    def _record(self, level, message, kwargs):
        self.records.append((level, message, kwargs))

    def debug(self, message: str, **kwargs) -> None:
        self._record("DEBUG", message, kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._record("INFO", message, kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._record("WARNING", message, kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._record("ERROR", message, kwargs)

    def critical(self, message: str, **kwargs) -> None:
        self._record("CRITICAL", message, kwargs)

    def set_level(self, level: int) -> None:
        pass

    def messages(self, level: str) -> List[str]:
        return [m for lvl, m, _ in self.records if lvl == level]


class FakeRecognitionEngine(IRecognitionEngine):
    """Returns canned text per segmentation mode; records every call."""

    def __init__(self, text: str = "", per_mode: Optional[Dict[SegmentationMode, str]] = None,
                 fail_modes=()):
        self.text = text
        self.per_mode = per_mode or {}
        self.fail_modes = set(fail_modes)
        self.calls: List[SegmentationMode] = []

    def recognize(self, image: np.ndarray, mode: SegmentationMode) -> Result[RecognitionResult]:
        self.calls.append(mode)
        if mode in self.fail_modes:
            raise RuntimeError(f"engine broke in {mode.value}")
        return Result.ok(RecognitionResult(text=self.per_mode.get(mode, self.text), mode=mode))


class FakeScreenshotService(IScreenshotService):
    def __init__(self, image: Optional[np.ndarray] = None):
        self.image = image
        self.capture_count = 0

    def capture_frame(self, hint=None) -> Optional[CapturedFrame]:
        self.capture_count += 1
        if self.image is None:
            return None
        origin = (hint.x, hint.y) if hint is not None else (0, 0)
        return CapturedFrame(self.image, origin_x=origin[0], origin_y=origin[1])

    def crop_to_region(self, frame: CapturedFrame, region) -> Optional[np.ndarray]:
        return frame.image.copy()


class FakePreviewService(IPreviewService):
    def __init__(self):
        self.images = []

    def set_preview(self, image: np.ndarray) -> None:
        self.images.append(image)


class RecordingMatchHandler(IMatchHandler):
    def __init__(self):
        self.matches: List[ExtractMatch] = []

    def handle_match(self, match: ExtractMatch) -> None:
        self.matches.append(match)


class InMemoryRuleRepository(IRuleRepository):
    def __init__(self, rules: List[ExtractRule]):
        self.rules = list(rules)

    def load_rules(self) -> List[ExtractRule]:
        return list(self.rules)

    def save_rules(self, rules: List[ExtractRule]) -> Result[bool]:
        self.rules = list(rules)
        return Result.ok(True)


class ThreadTaskService(IBackgroundTaskService):
    """Runs workers on plain threads, without a Qt event loop."""

    def __init__(self):
        self.tasks: Dict[str, tuple] = {}

    def execute_task(self, task_id: str, worker: Worker) -> Result[bool]:
        if self.is_task_running(task_id):
            return Result.fail(f"Task {task_id} already running")
        thread = threading.Thread(target=worker.run, daemon=True)
        self.tasks[task_id] = (thread, worker)
        thread.start()
        return Result.ok(True)

    def cancel_task(self, task_id: str, timeout: Optional[float] = None) -> Result[bool]:
        if task_id not in self.tasks:
            return Result.ok(False)
        thread, worker = self.tasks.pop(task_id)
        worker.cancel()
        thread.join(timeout if timeout is not None else 5.0)
        return Result.ok(not thread.is_alive())

    def is_task_running(self, task_id: str) -> bool:
        return task_id in self.tasks and self.tasks[task_id][0].is_alive()

    def get_running_tasks(self) -> List[str]:
        return [t for t in self.tasks if self.is_task_running(t)]

    def cancel_all_tasks(self) -> None:
        for task_id in list(self.tasks):
            self.cancel_task(task_id)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def draw_text_image(text: str, width: int = 220, height: int = 48, scale: float = 1.0,
                    thickness: int = 2, dark_background: bool = False) -> np.ndarray:
    """Black-on-white (or inverted) text image drawn with OpenCV."""
    background = 20 if dark_background else 255
    foreground = 235 if dark_background else 0
    image = np.full((height, width, 3), background, dtype=np.uint8)
    cv2.putText(image, text, (6, int(height * 0.72)), cv2.FONT_HERSHEY_SIMPLEX, scale,
                (foreground, foreground, foreground), thickness, cv2.LINE_AA)
    return image


def keyword_rule(pattern: str, rule_id: str = None, name: str = None, order: int = 0) -> ExtractRule:
    return ExtractRule(id=rule_id or pattern.lower(), name=name or pattern.title(), pattern=pattern,
                       kind=RuleKind.KEYWORD, enabled=True, order=order)


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def hash_service():
    return AverageHashService()
