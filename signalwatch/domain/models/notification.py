# signalwatch/domain/models/notification.py
from dataclasses import dataclass


@dataclass(frozen=True)
class NotificationPayload:
    """Title/body pair handed to the notification queue."""
    title: str = ""
    body: str = ""

    @property
    def dedup_key(self) -> str:
        return f"{self.title or ''}|{self.body or ''}"
