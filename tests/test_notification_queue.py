import threading
import time

import pytest

from signalwatch.domain.models.extract_rule import ExtractMatch
from signalwatch.domain.models.notification import NotificationPayload
from signalwatch.infrastructure.notifications.match_handler import QueueMatchHandler, payload_from_match
from signalwatch.infrastructure.notifications.notification_queue import NotificationQueue


class RecordingDelivery:
    def __init__(self, results=None):
        self.results = list(results or [])
        self.delivered = []
        self.lock = threading.Lock()

    def __call__(self, payload, token):
        with self.lock:
            self.delivered.append(payload)
            return self.results.pop(0) if self.results else True


@pytest.fixture
def make_queue(logger, clock):
    queues = []

    def factory(deliver, **kwargs):
        kwargs.setdefault("retry_delay", 0.01)
        kwargs.setdefault("min_interval", 0.0)
        kwargs.setdefault("idle_poll", 0.01)
        queue = NotificationQueue(deliver, logger, clock=clock, **kwargs)
        queues.append(queue)
        return queue

    yield factory
    for queue in queues:
        queue.shutdown(1.0)


def test_duplicate_within_window_is_delivered_once(make_queue):
    deliver = RecordingDelivery()
    queue = make_queue(deliver, duplicate_window=10.0)
    payload = NotificationPayload("Sell", "SELL")

    assert queue.enqueue(payload)
    assert not queue.enqueue(NotificationPayload("Sell", "SELL"))
    assert queue.wait_until_idle(2.0)

    assert len(deliver.delivered) == 1


def test_duplicate_after_window_is_delivered_again(make_queue, clock):
    deliver = RecordingDelivery()
    queue = make_queue(deliver, duplicate_window=10.0)

    assert queue.enqueue(NotificationPayload("Sell", "SELL"))
    clock.advance(10.5)
    assert queue.enqueue(NotificationPayload("Sell", "SELL"))
    assert queue.wait_until_idle(2.0)

    assert len(deliver.delivered) == 2


def test_different_bodies_are_not_duplicates(make_queue):
    deliver = RecordingDelivery()
    queue = make_queue(deliver)

    queue.enqueue(NotificationPayload("Sell", "SELL"))
    queue.enqueue(NotificationPayload("Sell", "SELL 2"))
    assert queue.wait_until_idle(2.0)

    assert [p.body for p in deliver.delivered] == ["SELL", "SELL 2"]


def test_failed_delivery_is_retried_once(make_queue):
    deliver = RecordingDelivery(results=[False, True])
    queue = make_queue(deliver)

    queue.enqueue(NotificationPayload("Buy", "BUY"))
    assert queue.wait_until_idle(2.0)

    assert len(deliver.delivered) == 2


def test_payload_is_dropped_after_retry(make_queue, logger):
    deliver = RecordingDelivery(results=[False, False, True])
    queue = make_queue(deliver)

    queue.enqueue(NotificationPayload("Buy", "BUY"))
    assert queue.wait_until_idle(2.0)

    assert len(deliver.delivered) == 2
    assert any("dropped" in m for m in logger.messages("ERROR"))


def test_raising_delivery_counts_as_failure(make_queue):
    calls = []

    def deliver(payload, token):
        calls.append(payload)
        raise RuntimeError("boom")

    queue = make_queue(deliver)
    queue.enqueue(NotificationPayload("Buy", "BUY"))

    assert queue.wait_until_idle(2.0)
    assert len(calls) == 2
    assert queue.is_running


def test_shutdown_stops_worker_and_rejects_new_items(make_queue):
    queue = make_queue(RecordingDelivery())

    queue.shutdown(1.0)

    assert not queue.is_running
    assert not queue.enqueue(NotificationPayload("Buy", "BUY"))


def test_deliveries_are_spaced_by_min_interval(make_queue):
    stamps = []

    def deliver(payload, token):
        stamps.append(time.monotonic())
        return True

    queue = make_queue(deliver, min_interval=0.1)
    for body in ("SELL 1", "SELL 2", "SELL 3"):
        queue.enqueue(NotificationPayload("Sell", body))

    assert queue.wait_until_idle(3.0)

    assert len(stamps) == 3
    gaps = [later - earlier for earlier, later in zip(stamps, stamps[1:])]
    assert all(gap >= 0.095 for gap in gaps)


def test_shutdown_closes_delivery_function(make_queue):
    class ClosingDelivery(RecordingDelivery):
        closed = False

        def close(self):
            self.closed = True

    deliver = ClosingDelivery()
    queue = make_queue(deliver)

    queue.shutdown(1.0)

    assert deliver.closed


def test_payload_from_match():
    assert payload_from_match(ExtractMatch("r1", "Sell", ["SELL", "SEIL"])) == NotificationPayload("Sell", "SELL,SEIL")
    assert payload_from_match(ExtractMatch("r1", "Sell", [])).body == "Sell"


def test_match_handler_enqueues_payload(make_queue, logger):
    deliver = RecordingDelivery()
    handler = QueueMatchHandler(make_queue(deliver), logger)

    handler.handle_match(ExtractMatch("r1", "Sell", ["SELL"]))
    handler.notification_queue.wait_until_idle(2.0)

    assert deliver.delivered == [NotificationPayload("Sell", "SELL")]
