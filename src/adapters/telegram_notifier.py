"""Telegram user-client delivery adapter.

Sends the rich (HTML) rendering through the logged-in Telethon client, so
notifications can land in Saved Messages or any chat the user can post to.
"""

from __future__ import annotations

from typing import Union

from core.models import MessagePayload


def resolve_peer(channel: str) -> Union[int, str]:
    """Return numeric chat ids as ints; keep ``me`` and ``@username`` as-is."""

    stripped = channel.strip()
    if stripped.lstrip("-").isdigit():
        return int(stripped)
    return stripped


class TelegramChatNotifier:
    """Delivery adapter that sends messages via the Telethon user client."""

    def __init__(self, client) -> None:
        self._client = client

    async def send(self, channel: str, payload: MessagePayload) -> None:
        """Send the HTML rendering to the destination chat."""

        await self._client.send_message(
            resolve_peer(channel),
            payload.formatted_body,
            parse_mode="html",
            link_preview=False,
        )
