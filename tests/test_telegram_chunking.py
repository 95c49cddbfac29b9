from __future__ import annotations

import json

import httpx
import pytest

from healthcheck.telegram import (
    TELEGRAM_MAX_MESSAGE_LEN,
    TelegramConfig,
    TelegramNotifier,
    redact_telegram_response,
    split_telegram_message,
)


TOKEN = "123456:SECRET"


def test_split_telegram_message_respects_max_len() -> None:
    text = ("line\n" * 2000).strip()
    parts = split_telegram_message(text, max_len=500)
    assert len(parts) > 1
    assert all(0 < len(p) <= 500 for p in parts)


def test_split_telegram_message_default_limit() -> None:
    text = "a" * (TELEGRAM_MAX_MESSAGE_LEN + 10)
    parts = split_telegram_message(text)
    assert len(parts) == 2
    assert len(parts[0]) <= TELEGRAM_MAX_MESSAGE_LEN
    assert len(parts[1]) <= TELEGRAM_MAX_MESSAGE_LEN


def test_split_short_message_is_unchanged() -> None:
    assert split_telegram_message("https://example.com Recovered") == ["https://example.com Recovered"]


def test_redact_telegram_response_keeps_only_safe_fields() -> None:
    data = {"ok": True, "result": {"message_id": 7, "chat": {"id": 1}, "text": "hi"}}
    assert json.loads(redact_telegram_response(data)) == {"ok": True, "result": {"message_id": 7}}


@pytest.mark.asyncio
async def test_notify_posts_to_bot_api() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True, "result": {"message_id": 1}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        notifier = TelegramNotifier(client, TelegramConfig(bot_token=TOKEN, chat_id=42))
        ok, data = await notifier.notify("https://example.com: status 503 Service Unavailable")

    assert ok is True
    assert data["result"]["message_id"] == 1
    assert len(seen) == 1
    assert seen[0].url.path == f"/bot{TOKEN}/sendMessage"
    body = json.loads(seen[0].content)
    assert body == {"chat_id": 42, "text": "https://example.com: status 503 Service Unavailable"}


@pytest.mark.asyncio
async def test_notify_reports_api_rejection() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"ok": False, "error_code": 400, "description": "Bad Request: chat not found"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        notifier = TelegramNotifier(client, TelegramConfig(bot_token=TOKEN, chat_id=1))
        ok, data = await notifier.notify("hello")

    assert ok is False
    assert data["description"] == "Bad Request: chat not found"


@pytest.mark.asyncio
async def test_notify_transport_error_is_redacted() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(f"cannot reach {request.url}", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        notifier = TelegramNotifier(client, TelegramConfig(bot_token=TOKEN, chat_id=1))
        ok, data = await notifier.notify("hello")

    assert ok is False
    assert data["error"].startswith("ConnectError")
    assert TOKEN not in data["error"]
    assert "<redacted>" in data["error"]


@pytest.mark.asyncio
async def test_notify_long_text_sends_multiple_messages() -> None:
    texts: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        texts.append(json.loads(request.content)["text"])
        return httpx.Response(200, json={"ok": True, "result": {"message_id": len(texts)}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        notifier = TelegramNotifier(client, TelegramConfig(bot_token=TOKEN, chat_id=1))
        ok, _ = await notifier.notify("x" * (TELEGRAM_MAX_MESSAGE_LEN * 2 + 1))

    assert ok is True
    assert len(texts) == 3
