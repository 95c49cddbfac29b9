from __future__ import annotations

import json
from dataclasses import dataclass

import httpx


@dataclass(frozen=True)
class TelegramConfig:
    bot_token: str
    chat_id: int


TELEGRAM_MAX_MESSAGE_LEN = 3900


def split_telegram_message(text: str, *, max_len: int = TELEGRAM_MAX_MESSAGE_LEN) -> list[str]:
    s = (text or "").strip()
    if not s:
        return [""]

    max_len = max(1, int(max_len))
    parts: list[str] = []
    while len(s) > max_len:
        # Prefer breaking at a newline unless that leaves a tiny chunk.
        cut = s.rfind("\n", 0, max_len + 1)
        if cut < max_len * 0.6:
            cut = max_len
        parts.append(s[:cut].rstrip())
        s = s[cut:].lstrip()
    if s:
        parts.append(s)
    return parts


def redact_token(text: str, token: str) -> str:
    if token:
        return text.replace(token, "<redacted>")
    return text


def redact_telegram_response(data: dict) -> str:
    safe = {"ok": data.get("ok")}
    if isinstance(data.get("result"), dict):
        safe["result"] = {"message_id": data["result"].get("message_id")}
    for key in ("error_code", "description", "error"):
        if data.get(key):
            safe[key] = data.get(key)
    return json.dumps(safe, ensure_ascii=False)


class TelegramNotifier:
    """
    Delivers alert text to one Telegram chat through the Bot API.

    ``notify`` never raises: delivery problems come back as ``(False, details)``
    so a caller's loop keeps running.
    """

    def __init__(self, client: httpx.AsyncClient, config: TelegramConfig, *, timeout_seconds: float = 15.0):
        self._client = client
        self._config = config
        self._timeout = timeout_seconds

    async def _send(self, text: str) -> tuple[bool, dict]:
        url = f"https://api.telegram.org/bot{self._config.bot_token}/sendMessage"
        payload = {"chat_id": self._config.chat_id, "text": text}
        try:
            resp = await self._client.post(url, json=payload, timeout=self._timeout)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            msg = redact_token(f"{type(e).__name__}: {e}", self._config.bot_token)
            return False, {"ok": False, "error": msg}
        if not isinstance(data, dict):
            return False, {"ok": False, "error": f"unexpected response (HTTP {resp.status_code})"}
        return bool(data.get("ok")), data

    async def notify(self, text: str) -> tuple[bool, dict]:
        """Send ``text``, split into several messages if it exceeds Telegram's limit."""
        last: dict = {}
        for part in split_telegram_message(text):
            ok, last = await self._send(part)
            if not ok:
                return False, last
        return True, last
