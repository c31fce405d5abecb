"""Application entry point for octobell."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.admin_channel import StoredAdminChannel
from adapters.github_mapper import load_batches
from adapters.markdown_renderer import render_markdown
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_bot_notifier import TelegramBotNotifier
from adapters.telegram_notifier import TelegramChatNotifier
from client import authorize, build_client
from core.config import ProcessorConfig
from core.formatting import NotificationFormatter
from core.models import BatchReport, NotificationBatch
from core.processor import NotificationProcessor

NAME = "OCTOBELL"
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
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", ["API_HASH", "BOT_API"]):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
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
        path = file_cfg.get("path", "logs/octobell.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
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


def _open_storage() -> SQLiteStorage:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    return storage


async def _process_batches(
    processor: NotificationProcessor,
    storage: SQLiteStorage,
    batches: list[NotificationBatch],
) -> list[BatchReport]:
    reports = []
    for batch in batches:
        admin = StoredAdminChannel(storage, batch.channel, batch.user_id)
        report = await processor.handle_batch(batch, admin)
        print(
            f"{batch.channel}: {report.delivered} delivered, {report.failed} failed"
            + ("" if report.cursor_updated else " (cursor not updated)")
        )
        reports.append(report)
    return reports


def _process(path: str, channel: Optional[str]) -> None:
    logger = logging.getLogger(__name__)
    storage = _open_storage()
    batches = load_batches(path, channel or settings.DEFAULT_CHANNEL)
    logger.info("Loaded %s batches from %s", len(batches), path)

    formatter = NotificationFormatter(render_markdown)
    config = ProcessorConfig(persist_on_failure=settings.PERSIST_ON_FAILURE)

    if settings.NOTIFICATION_METHOD == "bot":
        load_dotenv()
        bot_token = os.getenv("BOT_API")
        if not bot_token:
            raise RuntimeError("BOT_API is required when notification_method=bot")
        processor = NotificationProcessor(storage, TelegramBotNotifier(bot_token), formatter, config)
        asyncio.run(_process_batches(processor, storage, batches))
        return

    if settings.NOTIFICATION_METHOD != "user_client":
        raise RuntimeError("notification_method must be 'user_client' or 'bot'")

    client = build_client()
    client.loop.run_until_complete(client.connect())
    try:
        client.loop.run_until_complete(authorize(client))
        processor = NotificationProcessor(storage, TelegramChatNotifier(client), formatter, config)
        client.loop.run_until_complete(_process_batches(processor, storage, batches))
    finally:
        client.loop.run_until_complete(client.disconnect())


def _login() -> None:
    client = build_client()

    async def _run_login() -> None:
        await client.connect()
        await authorize(client)
        await client.disconnect()

    client.loop.run_until_complete(_run_login())


def _cleanup() -> None:
    storage = _open_storage()
    removed = storage.cleanup_tracked_items(settings.RETENTION_DAYS)
    logging.getLogger(__name__).info("Retention cleanup removed %s rows", removed)
    print(f"Removed {removed} rows older than {settings.RETENTION_DAYS} days")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="octobell")
    subparsers = parser.add_subparsers(dest="command")

    process_parser = subparsers.add_parser("process", help="Deliver notification batches from a JSON file")
    process_parser.add_argument("path", help="Batch JSON file, or - for stdin")
    process_parser.add_argument("--channel", help="Destination channel for batches that name none")
    subparsers.add_parser("login", help="Authorize the Telegram user session")
    subparsers.add_parser("cleanup", help="Prune stored snapshots past the retention window")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return

    _print_banner()
    _configure_logging()
    if args.command == "process":
        _process(args.path, args.channel)
    elif args.command == "login":
        _login()
    elif args.command == "cleanup":
        _cleanup()


if __name__ == "__main__":
    main()
