"""Telegram notification adapter for Saved Messages.

Sends through the logged-in user account instead of a bot. The caller owns
the client's connection and keeps it open for the whole run.
"""

from __future__ import annotations

from telethon import errors

from core.errors import TransportError


class TelegramSavedMessagesNotifier:
    """Notifier adapter that sends messages to a chat as the user (default: Saved Messages)."""

    def __init__(self, client, chat="me") -> None:
        self._client = client
        self._chat = chat

    async def send_text(self, text: str) -> None:
        try:
            await self._client.send_message(self._chat, text, parse_mode="md", link_preview=False)
        except errors.FloodWaitError as e:
            raise TransportError(f"Flood wait of {e.seconds}s", status=429, retry_after=e.seconds) from e
        except errors.RPCError as e:
            raise TransportError(f"Telegram RPC error: {e}", status=getattr(e, "code", None)) from e
