"""Static configuration for pagewatch.

All user-editable settings (projects, dedup, notifications, fetching,
logging) live in a single JSON file for quick edits without touching Python.
"""

import json
import os

from core.config import DedupConfig, NotificationConfig, RetryConfig, TopicConfig

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Projects and surface settings are loaded from config.json so users can
# add or disable feeds without editing code. PAGEWATCH_CONFIG overrides the
# lookup; otherwise ./config.json wins over the one next to src/, which only
# exists for a source checkout or an editable install.
def _default_config_path() -> str:
    cwd_config = os.path.join(os.getcwd(), "config.json")
    if os.path.exists(cwd_config):
        return cwd_config
    return os.path.join(PROJECT_ROOT, "config.json")


CONFIG_PATH = os.getenv("PAGEWATCH_CONFIG") or _default_config_path()

# Relative paths in the config (data_dir, log file) resolve against its folder.
CONFIG_DIR = os.path.dirname(os.path.abspath(CONFIG_PATH))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(CONFIG_DIR, path)


def normalize_projects(raw_projects: list[dict], default_pages: int) -> list[TopicConfig]:
    """Build TopicConfig objects, skipping entries without a topic or url."""

    projects: list[TopicConfig] = []
    for entry in raw_projects:
        topic = entry.get("topic")
        url = entry.get("url")
        if not topic or not url:
            continue
        projects.append(
            TopicConfig(
                topic=str(topic),
                url=str(url),
                pages_to_scan=_positive_int(entry.get("pages"), default_pages),
                disabled=bool(entry.get("disabled", False)),
                single_page=bool(entry.get("singlePage", False)),
            )
        )
    return projects


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

DEFAULT_PAGES = _positive_int(_CONFIG.get("defaultPages"), 3)
PROJECTS = normalize_projects(_CONFIG.get("projects", []), DEFAULT_PAGES)

# Transport credentials; API_TOKEN / CHAT_ID in the environment take precedence.
TELEGRAM_API_TOKEN = _CONFIG.get("telegramApiToken")
CHAT_ID = _CONFIG.get("chatId")

# Deduplication controls.
# - bootstrapIfEmpty: first poll of a topic records a baseline without alerting
# - retention_limit: how many recent ids are kept per topic
_dedup = _CONFIG.get("dedup", {})
DEDUP = DedupConfig(
    bootstrap_if_empty=_CONFIG.get("bootstrapIfEmpty", True) is not False,
    retention_limit=_positive_int(_dedup.get("retention_limit"), 10000),
)
DATA_DIR = _resolve_path(_dedup.get("data_dir", "data"))
PUSH_FLAG_PATH = _resolve_path(_dedup.get("push_flag_path", "push_me"))

# Notification method switches adapters without changing core logic.
_notifications = _CONFIG.get("notifications", {})
NOTIFICATION_METHOD = _notifications.get("notification_method", "bot")
NOTIFICATIONS = NotificationConfig(max_chars=_positive_int(_notifications.get("max_chars"), 3900))
RETRY = RetryConfig(
    max_retries=int(_notifications.get("max_retries", 5)),
    base_delay=float(_notifications.get("retry_base_delay", 1.0)),
)

# Page fetching.
_fetch = _CONFIG.get("fetch", {})
FETCH_TIMEOUT = float(_fetch.get("timeout_seconds", 20))
FETCH_USER_AGENT = _fetch.get("user_agent")
FETCH_BASE_ORIGIN = _fetch.get("base_origin")
FETCH_ITEM_SELECTOR = _fetch.get("item_selector")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
