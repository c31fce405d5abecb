"""Static configuration for octobell.

All user-editable settings (storage, delivery, processing, logging) live in a
single JSON file for quick edits without touching Python.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Storage location and retention of tracked item snapshots.
_storage = _CONFIG.get("storage", {})
DB_PATH = _resolve_path(_storage.get("db_path", os.path.join("src", "octobell.db")))
RETENTION_DAYS = int(_storage.get("retention_days", 90))

# Delivery:
# - NOTIFICATION_METHOD: "user_client" (Telethon) or "bot" (Bot API)
# - DEFAULT_CHANNEL: destination used when a batch names none
_notifications = _CONFIG.get("notifications", {})
NOTIFICATION_METHOD = _notifications.get("notification_method", "user_client")
DEFAULT_CHANNEL = str(_notifications.get("channel", "me"))

# Whether a snapshot is stored even when its notification failed to deliver.
_processing = _CONFIG.get("processing", {})
PERSIST_ON_FAILURE = bool(_processing.get("persist_on_failure", True))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
