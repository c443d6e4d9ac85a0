"""Application entry point for the pagewatch poller."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.html_page_source import HtmlPageSource
from adapters.json_state_store import JsonFileStateStore
from adapters.push_flag import PushFlag
from adapters.telegram_bot_notifier import TelegramBotNotifier
from adapters.telegram_notifier import TelegramSavedMessagesNotifier
from client import authorize, build_client
from core.dedup import SeenIdTracker
from core.errors import TopicsFailedError
from core.pagination import PageAggregator
from core.sender import RateLimitedSender
from pipeline import TopicPipeline, run_topics

NAME = "PAGEWATCH"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    # The bot token ends up in request URLs, so it is always masked.
    names = {"API_TOKEN"}
    redact_cfg = config.get("redact", {}) if config else {}
    if redact_cfg.get("enabled", False):
        names.update(redact_cfg.get("patterns", []))
    values = [os.getenv(name) for name in names]
    values.append(settings.TELEGRAM_API_TOKEN)
    return sorted({value for value in values if value}, key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", True):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(config), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/pagewatch.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.CONFIG_DIR, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _build_notifier():
    """Select the notification adapter from configuration.

    Returns ``(notifier, client)``; ``client`` is the Telethon client the
    notifier sends through, or None for the Bot API.
    """

    if settings.NOTIFICATION_METHOD == "bot":
        api_token = os.getenv("API_TOKEN") or settings.TELEGRAM_API_TOKEN
        chat_id = os.getenv("CHAT_ID") or settings.CHAT_ID
        if not api_token:
            raise RuntimeError("API_TOKEN (or telegramApiToken) is required when notification_method=bot")
        if not chat_id:
            raise RuntimeError("CHAT_ID (or chatId) is required when notification_method=bot")
        return TelegramBotNotifier(bot_token=api_token, chat_id=str(chat_id)), None
    if settings.NOTIFICATION_METHOD == "saved_messages":
        chat = str(os.getenv("CHAT_ID") or settings.CHAT_ID or "me")
        # Numeric ids must reach Telethon as ints, not as usernames.
        target = int(chat) if chat.lstrip("-").isdigit() else chat
        client = build_client()
        return TelegramSavedMessagesNotifier(client, chat=target), client
    raise RuntimeError("notification_method must be 'bot' or 'saved_messages'")


def _build_page_source() -> HtmlPageSource:
    kwargs = {"timeout": settings.FETCH_TIMEOUT}
    if settings.FETCH_USER_AGENT:
        kwargs["user_agent"] = settings.FETCH_USER_AGENT
    if settings.FETCH_BASE_ORIGIN:
        kwargs["base_origin"] = settings.FETCH_BASE_ORIGIN
    if settings.FETCH_ITEM_SELECTOR:
        kwargs["item_selector"] = settings.FETCH_ITEM_SELECTOR
    return HtmlPageSource(**kwargs)


async def _poll(pipeline: TopicPipeline, projects, client=None):
    """Run all projects; a Telethon client is connected once around the run."""

    if client is None:
        return await run_topics(pipeline, projects)

    await client.connect()
    try:
        if not await client.is_user_authorized():
            raise RuntimeError("Telegram session is not authorized; run `pagewatch login` first")
        return await run_topics(pipeline, projects)
    finally:
        await client.disconnect()


def _run() -> int:
    load_dotenv()
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting pagewatch with %s project(s)", len(settings.PROJECTS))

    notifier, client = _build_notifier()
    logger.info("Selected notification method - %s", settings.NOTIFICATION_METHOD)

    pipeline = TopicPipeline(
        aggregator=PageAggregator(_build_page_source()),
        tracker=SeenIdTracker(
            JsonFileStateStore(settings.DATA_DIR),
            settings.DEDUP,
            marker=PushFlag(settings.PUSH_FLAG_PATH),
        ),
        sender=RateLimitedSender(notifier, settings.RETRY),
        notification_config=settings.NOTIFICATIONS,
    )

    try:
        asyncio.run(_poll(pipeline, settings.PROJECTS, client))
    except TopicsFailedError as exc:
        logger.error("Fatal error from run: %s", exc)
        return 1
    return 0


def _login() -> int:
    _print_banner()
    client = build_client()

    async def _run_login() -> None:
        await client.connect()
        await authorize(client)
        me = await client.get_me()
        print(f"Logged in as: {me.first_name}")
        await client.disconnect()

    asyncio.run(_run_login())
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="pagewatch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Poll every enabled project once")
    subparsers.add_parser("login", help="Authorize the Telegram user session (saved_messages method)")

    args = parser.parse_args(argv)
    if args.command == "login":
        return _login()
    return _run()


if __name__ == "__main__":
    sys.exit(main())
