#signalwatch/infrastructure/notifications/match_handler.py
from signalwatch.domain.models.extract_rule import ExtractMatch
from signalwatch.domain.models.notification import NotificationPayload
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.domain.services.i_match_handler import IMatchHandler
from signalwatch.infrastructure.notifications.notification_queue import NotificationQueue


def payload_from_match(match: ExtractMatch) -> NotificationPayload:
    """Title is the rule name; body is the matches joined by ",", or the rule name when empty."""
    body = ",".join(m for m in match.matches if m) or match.rule_name
    return NotificationPayload(title=match.rule_name, body=body)


class QueueMatchHandler(IMatchHandler):
    """Turns rule matches into payloads on the notification queue."""

    def __init__(self, notification_queue: NotificationQueue, logger: ILoggerService):
        self.notification_queue = notification_queue
        self.logger = logger

    def handle_match(self, match: ExtractMatch) -> None:
        payload = payload_from_match(match)
        queued = self.notification_queue.enqueue(payload)
        self.logger.info("Match dispatched" if queued else "Match suppressed as duplicate",
                         rule=match.rule_name, body=payload.body)
