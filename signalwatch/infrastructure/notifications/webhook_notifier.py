#signalwatch/infrastructure/notifications/webhook_notifier.py
"""
Webhook delivery through httpx.

Posts ``{"content": <text>}`` JSON (the Discord webhook shape). Used as the
delivery function of the notification queue, so it reports failure by
returning False and never raises.
"""
import json
import os
import sys
from typing import Iterable, List, Optional

import httpx

from signalwatch.domain.models.notification import NotificationPayload
from signalwatch.domain.services.i_background_task_service import CancellationToken
from signalwatch.domain.services.i_logger_service import ILoggerService

WEBHOOK_FILE_NAME = "discord_webhooks.json"
ENV_PREFIX = "DISCORD_WEBHOOK_"
FALLBACK_ENV = "DISCORD_WEBHOOK_SIGNALWATCH"
MAX_CONTENT_LENGTH = 2000


def user_config_dir(app_name: str = "signalwatch") -> str:
    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or os.path.expanduser("~")
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, app_name)


def is_valid_webhook_url(url: Optional[str]) -> bool:
    """Only absolute http(s) URLs with a host are accepted."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = httpx.URL(url.strip())
    except (httpx.InvalidURL, TypeError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


def resolve_webhook_url(key: str,
                        logger: ILoggerService,
                        search_dirs: Optional[Iterable[str]] = None) -> Optional[str]:
    """
    Find the webhook URL for ``key``.

    Lookup order: ``discord_webhooks.json`` in each search directory
    (default: working directory, then user config directory), then the
    ``DISCORD_WEBHOOK_<KEY>`` environment variable, then ``DISCORD_WEBHOOK_SIGNALWATCH``.

    Returns:
        The URL, or None when nothing valid is configured
    """
    dirs: List[str] = list(search_dirs) if search_dirs is not None else [os.getcwd(), user_config_dir()]
    wanted = (key or "").strip().lower()

    for directory in dirs:
        path = os.path.join(directory, WEBHOOK_FILE_NAME)
        if not os.path.exists(path):
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read webhook file: {e}", path=path)
            continue
        if not isinstance(data, dict):
            logger.warning("Webhook file must contain an object", path=path)
            continue
        for name, url in data.items():
            if str(name).strip().lower() != wanted:
                continue
            if not isinstance(url, str):
                logger.warning("Webhook URL is not a string", key=key, path=path)
                continue
            if is_valid_webhook_url(url):
                logger.debug("Webhook URL loaded from file", key=key, path=path)
                return url.strip()

    env_names = [f"{ENV_PREFIX}{wanted.upper()}"] if wanted else []
    env_names.append(FALLBACK_ENV)
    for env_name in env_names:
        url = os.environ.get(env_name)
        if is_valid_webhook_url(url):
            logger.debug("Webhook URL loaded from environment", variable=env_name)
            return url.strip()

    logger.warning("No webhook URL configured", key=key)
    return None


class WebhookNotifier:
    """
    Sends notification payloads to a webhook.

    A notifier without a URL logs and reports every delivery as failed.
    """

    def __init__(self, webhook_url: Optional[str], logger: ILoggerService,
                 timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.webhook_url = (webhook_url or "").strip()
        self.logger = logger
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout, connect=4.0))
        self._owns_client = client is None

    @staticmethod
    def build_content(payload: NotificationPayload) -> str:
        content = (payload.body or payload.title or "").strip().upper()
        if len(content) > MAX_CONTENT_LENGTH:
            content = content[:MAX_CONTENT_LENGTH - 3] + "..."
        return content

    def send(self, payload: NotificationPayload, cancellation_token: Optional[CancellationToken] = None) -> bool:
        """
        Post one payload.

        Returns:
            True iff the webhook answered with a 2xx status
        """
        if cancellation_token is not None and cancellation_token.is_cancelled:
            return False
        if not self.webhook_url:
            self.logger.warning("Webhook URL not set, notification not sent", title=payload.title)
            return False

        content = self.build_content(payload)
        if not content:
            self.logger.debug("Empty notification content, nothing sent")
            return False

        try:
            response = self._client.post(self.webhook_url, json={"content": content})
        except httpx.HTTPError as e:
            self.logger.warning(f"Webhook request failed: {e}", title=payload.title)
            return False

        if response.is_success:
            self.logger.info("Notification sent", content=content, status=response.status_code)
            return True

        self.logger.warning("Webhook rejected notification", status=response.status_code,
                            body=response.text[:200])
        return False

    def __call__(self, payload: NotificationPayload, cancellation_token: CancellationToken) -> bool:
        return self.send(payload, cancellation_token)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
