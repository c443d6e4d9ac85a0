"""Throttle-aware delivery on top of a NotifierPort."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from core.config import RetryConfig
from core.errors import TransportError
from core.ports import NotifierPort

LOGGER = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def _usable_hint(retry_after: Optional[float]) -> Optional[float]:
    if retry_after is None:
        return None
    try:
        value = float(retry_after)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


@dataclass
class RetryState:
    """Progress of one send: attempts made so far and the current delay."""

    attempt: int = 0
    delay: float = 0.0

    def next_delay(self, error: TransportError, base_delay: float) -> float:
        hint = _usable_hint(error.retry_after)
        self.delay = hint if hint is not None else base_delay * (2 ** self.attempt)
        return self.delay


class RateLimitedSender:
    """Retries "429 Too Many Requests" failures and nothing else.

    The server's retry hint wins over the exponential fallback. Once
    ``max_retries`` retries are spent the last throttle error is re-raised.
    """

    def __init__(
        self,
        notifier: NotifierPort,
        config: RetryConfig = RetryConfig(),
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._notifier = notifier
        self._config = config
        self._sleep = sleep

    async def send(self, text: str) -> None:
        state = RetryState()
        while True:
            try:
                await self._notifier.send_text(text)
                return
            except TransportError as exc:
                if not exc.is_throttled or state.attempt >= self._config.max_retries:
                    raise
                delay = state.next_delay(exc, self._config.base_delay)
                LOGGER.warning(
                    "Rate limited (attempt %s/%s), sleeping %.1fs",
                    state.attempt + 1,
                    self._config.max_retries,
                    delay,
                )
                await self._sleep(delay)
                state.attempt += 1
