import json

import httpx
import pytest

from signalwatch.domain.models.notification import NotificationPayload
from signalwatch.domain.services.i_background_task_service import CancellationToken
from signalwatch.infrastructure.notifications.webhook_notifier import (
    WebhookNotifier, is_valid_webhook_url, resolve_webhook_url
)

URL = "https://discord.example/api/webhooks/1/abc"


def notifier_with(handler, logger, url=URL):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return WebhookNotifier(url, logger, client=client)


def test_posts_uppercased_body_as_content(logger):
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(204)

    notifier = notifier_with(handler, logger)

    assert notifier.send(NotificationPayload("Sell", "sell,seil"))
    assert seen == [{"content": "SELL,SEIL"}]


def test_title_is_used_when_body_empty(logger):
    assert WebhookNotifier.build_content(NotificationPayload("Buy", "")) == "BUY"


def test_long_content_is_truncated():
    content = WebhookNotifier.build_content(NotificationPayload("t", "x" * 5000))

    assert len(content) == 2000
    assert content.endswith("...")


def test_non_2xx_is_failure(logger):
    notifier = notifier_with(lambda request: httpx.Response(429, text="slow down"), logger)

    assert not notifier.send(NotificationPayload("Sell", "SELL"))
    assert logger.messages("WARNING")


def test_transport_error_is_failure_not_exception(logger):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    notifier = notifier_with(handler, logger)

    assert notifier(NotificationPayload("Sell", "SELL"), CancellationToken()) is False


def test_missing_url_never_posts(logger):
    calls = []
    notifier = notifier_with(lambda request: calls.append(request) or httpx.Response(200), logger, url=None)

    assert not notifier.send(NotificationPayload("Sell", "SELL"))
    assert calls == []


def test_cancelled_token_skips_delivery(logger):
    calls = []
    notifier = notifier_with(lambda request: calls.append(request) or httpx.Response(200), logger)
    token = CancellationToken()
    token.cancel()

    assert not notifier.send(NotificationPayload("Sell", "SELL"), token)
    assert calls == []


@pytest.mark.parametrize("url, valid", [
    (URL, True), ("http://localhost:8080/hook", True), ("ftp://example.com/x", False),
    ("/relative/path", False), ("", False), (None, False), (123, False), (["x"], False),
])
def test_url_validation(url, valid):
    assert is_valid_webhook_url(url) is valid


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.delenv("DISCORD_WEBHOOK_SIGNALWATCH", raising=False)
    monkeypatch.delenv("DISCORD_WEBHOOK_ALERTS", raising=False)
    return monkeypatch


def test_url_from_webhook_file(tmp_path, logger, clean_env):
    (tmp_path / "discord_webhooks.json").write_text(json.dumps({"Alerts": URL}))

    assert resolve_webhook_url("alerts", logger, search_dirs=[str(tmp_path)]) == URL


def test_url_from_keyed_environment_variable(tmp_path, logger, clean_env):
    clean_env.setenv("DISCORD_WEBHOOK_ALERTS", URL)

    assert resolve_webhook_url("alerts", logger, search_dirs=[str(tmp_path)]) == URL


def test_url_from_fallback_environment_variable(tmp_path, logger, clean_env):
    clean_env.setenv("DISCORD_WEBHOOK_SIGNALWATCH", URL)

    assert resolve_webhook_url("alerts", logger, search_dirs=[str(tmp_path)]) == URL


def test_invalid_entries_are_ignored(tmp_path, logger, clean_env):
    (tmp_path / "discord_webhooks.json").write_text(json.dumps({"alerts": "not a url"}))

    assert resolve_webhook_url("alerts", logger, search_dirs=[str(tmp_path)]) is None
    assert logger.messages("WARNING")


def test_non_string_file_entry_falls_through_to_environment(tmp_path, logger, clean_env):
    (tmp_path / "discord_webhooks.json").write_text(json.dumps({"alerts": 123}))
    clean_env.setenv("DISCORD_WEBHOOK_ALERTS", URL)

    assert resolve_webhook_url("alerts", logger, search_dirs=[str(tmp_path)]) == URL
    assert any("not a string" in m for m in logger.messages("WARNING"))


def test_close_releases_owned_client(logger):
    notifier = WebhookNotifier(URL, logger)

    notifier.close()

    assert notifier._client.is_closed
