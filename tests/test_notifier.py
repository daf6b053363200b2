"""
Tests for the fire-and-forget event webhook
"""

import httpx

from app.services.notifier import EventNotifier

WEBHOOK_URL = "https://hooks.example.com/events"


async def test_disabled_without_url(routes, http_client):
    notifier = EventNotifier("", http_client)

    assert notifier.notify("account_connected", platform="twitter") is None
    assert routes.calls == []


async def test_notify_does_not_wait_for_delivery(routes, http_client):
    routes.add("POST", WEBHOOK_URL, json={})
    notifier = EventNotifier(WEBHOOK_URL, http_client)

    task = notifier.notify("post_published", postId="1")

    assert not task.done()
    assert await task is True


async def test_delivery_errors_are_swallowed(routes, http_client, caplog):
    routes.add("POST", WEBHOOK_URL, exc=httpx.ConnectError("refused"))
    notifier = EventNotifier(WEBHOOK_URL, http_client)

    task = notifier.notify("post_published", postId="1")

    assert await task is False
    assert "Webhook error for post_published" in caplog.text


async def test_error_status_is_not_raised(routes, http_client):
    routes.add("POST", WEBHOOK_URL, status=500, json={"error": "boom"})
    notifier = EventNotifier(WEBHOOK_URL, http_client)

    assert await notifier.notify("account_connected") is False
