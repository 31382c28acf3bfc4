import time

import numpy as np
import pytest
from PySide6.QtCore import QCoreApplication

from signalwatch.domain.services.i_background_task_service import Worker
from signalwatch.infrastructure.platform.preview_service import QtPreviewService
from signalwatch.infrastructure.threading.qt_background_task_service import QtBackgroundTaskService


@pytest.fixture(scope="module")
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class WaitingWorker(Worker[str]):
    def execute(self) -> str:
        while not self.cancellation_token.wait(0.01):
            pass
        return "done"


class QuickWorker(Worker[int]):
    def execute(self) -> int:
        return 42


def pump(app, predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        app.processEvents()
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_running_task_is_cancelled_cooperatively(qt_app, logger):
    service = QtBackgroundTaskService(logger, cancel_timeout=2.0)
    worker = WaitingWorker()

    assert service.execute_task("wait", worker).is_success
    assert service.is_task_running("wait")
    assert service.execute_task("wait", WaitingWorker()).is_failure

    assert service.cancel_task("wait").is_success
    assert worker.cancel_requested
    assert not service.is_task_running("wait")
    assert not any("Forcing termination" in m for m in logger.messages("WARNING"))


def test_completion_callback_reaches_caller_thread(qt_app, logger):
    service = QtBackgroundTaskService(logger)
    results = []
    worker = QuickWorker()
    worker.set_on_completed(results.append)

    service.execute_task("quick", worker)

    assert pump(qt_app, lambda: results == [42])
    service.cancel_all_tasks()


def test_cancelling_unknown_task_fails(qt_app, logger):
    assert QtBackgroundTaskService(logger).cancel_task("missing").is_failure


def test_preview_emits_only_for_real_images():
    service = QtPreviewService()
    received = []
    service.signals.preview_changed.connect(received.append)

    service.set_preview(np.zeros((0, 0), dtype=np.uint8))
    service.set_preview(np.full((12, 30, 3), 200, dtype=np.uint8))

    assert service.update_count == 1
    assert len(received) == 1
    assert (received[0].width(), received[0].height()) == (30, 12)


def test_to_qimage_handles_grayscale():
    image = QtPreviewService.to_qimage(np.zeros((5, 7), dtype=np.uint8))

    assert (image.width(), image.height()) == (7, 5)
