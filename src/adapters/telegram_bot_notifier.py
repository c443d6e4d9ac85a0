"""Telegram Bot API notification adapter.

Uses the Bot API for delivery so notifications can be routed via a bot chat.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from typing import Optional

from core.errors import TransportError


def _parse_retry_after(body: str, header: Optional[str]) -> Optional[float]:
    """Read the wait hint, preferring ``parameters.retry_after`` over the header."""

    try:
        payload = json.loads(body) if body else {}
    except ValueError:
        payload = {}
    if isinstance(payload, dict):
        parameters = payload.get("parameters") or {}
        if isinstance(parameters, dict) and parameters.get("retry_after") is not None:
            try:
                return float(parameters["retry_after"])
            except (TypeError, ValueError):
                pass
    if header:
        try:
            return float(header)
        except ValueError:
            return None
    return None


def error_from_http(error: urllib.error.HTTPError) -> TransportError:
    """Map a Bot API HTTP error to a TransportError carrying status and hint."""

    body = error.read().decode("utf-8", errors="replace") if error.fp is not None else ""
    retry_after = _parse_retry_after(body, error.headers.get("Retry-After") if error.headers else None)
    return TransportError(f"Bot API error {error.code}: {body}", status=error.code, retry_after=retry_after)


class TelegramBotNotifier:
    """Notifier adapter that sends messages via the Telegram Bot API."""

    def __init__(self, bot_token: str, chat_id: str, timeout: float = 10.0) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._timeout = timeout

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def _post(self, text: str) -> None:
        payload = {
            "chat_id": self._chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=self._timeout):
                pass
        except urllib.error.HTTPError as e:
            raise error_from_http(e) from e
        except (urllib.error.URLError, OSError) as e:
            raise TransportError(f"Bot API unreachable: {e}") from e

    async def send_text(self, text: str) -> None:
        """Send one message; the blocking call runs in a worker thread."""

        await asyncio.to_thread(self._post, text)
