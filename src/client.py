"""Telegram client factory for octobell.

The client's lifecycle (connect/disconnect) is managed explicitly by the
caller so it is obvious when the session is created and when it ends.
"""

from __future__ import annotations

import logging
import os
from getpass import getpass

import qrcode
from dotenv import load_dotenv
from telethon import TelegramClient, errors


def build_client() -> TelegramClient:
    """Create a Telethon client from environment variables.

    API_ID/API_HASH are read via python-dotenv to keep secrets out of the repo.
    The session name defaults to "octobell" to create a local .session file.
    """

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    session_name = os.getenv("SESSION_NAME", "octobell")

    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    logging.getLogger(__name__).info("Initializing Telegram client")

    return TelegramClient(session_name, int(api_id), api_hash)


def _print_qr(url: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def _resolve_2fa_password() -> str:
    return os.getenv("2FA") or getpass("2FA password: ")


async def authorize(client: TelegramClient) -> None:
    """Log the client in unless its session is already authorized.

    LOGIN_METHOD selects "qr" (default) or "phone"; PHONE and 2FA may be
    provided through the environment to skip the prompts.
    """

    if await client.is_user_authorized():
        return

    method = (os.getenv("LOGIN_METHOD") or "qr").strip().lower()
    if method not in {"qr", "phone"}:
        raise RuntimeError("LOGIN_METHOD must be 'qr' or 'phone'")

    try:
        if method == "phone":
            phone = os.getenv("PHONE") or input("Phone number (international format): ").strip()
            await client.send_code_request(phone)
            await client.sign_in(phone=phone, code=input("Login code: ").strip())
        else:
            qr_login = await client.qr_login()
            _print_qr(qr_login.url)
            await qr_login.wait(timeout=120)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())

    me = await client.get_me()
    logging.getLogger(__name__).info("Logged in as: %s", getattr(me, "first_name", None))
