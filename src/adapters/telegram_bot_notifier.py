"""Telegram Bot API delivery adapter.

Uses the Bot API for delivery so notifications can be routed via a bot chat.
"""

from __future__ import annotations

import json
import re
import urllib.error
import urllib.request
from typing import Any

from core.models import MessagePayload


# Tags the Bot API accepts in parse_mode=HTML; everything else is flattened.
_INLINE_TAGS = {"b", "strong", "i", "em", "u", "ins", "s", "strike", "del", "code", "pre", "blockquote"}
_BREAK_TAGS = {"p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "li", "hr", "br", "table", "tr"}
_TAG_RE = re.compile(r"<(/?)([a-zA-Z][a-zA-Z0-9]*)([^>]*)>")
_HREF_RE = re.compile(r'href="([^"]*)"')


def _telegram_tag(match: re.Match) -> str:
    closing, name, attrs = match.group(1), match.group(2).lower(), match.group(3)
    if name in _INLINE_TAGS:
        return f"<{closing}{name}>"
    if name == "a":
        if closing:
            return "</a>"
        href = _HREF_RE.search(attrs)
        return f'<a href="{href.group(1)}">' if href else "<a>"
    if name == "li" and not closing:
        return "• "
    if name in _BREAK_TAGS and (closing or name in {"br", "hr"}):
        return "\n"
    return ""


def to_telegram_html(rich: str) -> str:
    """Reduce rendered HTML to the subset the Bot API accepts."""

    text = _TAG_RE.sub(_telegram_tag, rich)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


class TelegramBotNotifier:
    """Delivery adapter that sends messages via the Telegram Bot API."""

    def __init__(self, bot_token: str) -> None:
        self._bot_token = bot_token

    def _endpoint(self) -> str:
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def build_request_body(self, channel: str, payload: MessagePayload) -> dict[str, Any]:
        """Return the sendMessage body for a payload.

        The rich body is reduced to Telegram's HTML subset and the item link
        becomes an inline button.
        """

        body: dict[str, Any] = {
            "chat_id": channel,
            "text": to_telegram_html(payload.formatted_body),
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        external_url = payload.extra.get("external_url")
        if external_url:
            body["reply_markup"] = {
                "inline_keyboard": [[{"text": "Open on GitHub", "url": external_url}]],
            }
        return body

    async def send(self, channel: str, payload: MessagePayload) -> None:
        """Send the notification via the Bot API."""

        data = json.dumps(self.build_request_body(channel, payload)).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        # Blocking call; the adapter boundary allows an async client later.
        try:
            with urllib.request.urlopen(request, timeout=10):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise RuntimeError(f"Bot API error {e.code}: {body}") from e
