from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

PARSE_MODE = "MarkdownV2"

# Every character MarkdownV2 reserves, plus the backslash itself.
_MARKDOWN_V2_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")


def escape_markdown_v2(text: str) -> str:
    """Escape `text` so Telegram renders it literally."""

    return _MARKDOWN_V2_SPECIAL.sub(r"\\\1", text)


def format_timestamp(moment: datetime) -> str:
    """Render a wall-clock time like `3:04:05 PM`."""

    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d}:{moment.second:02d} {suffix}"


def format_code_message(
    account_name: str,
    code: str,
    updated_at: Optional[datetime] = None,
) -> str:
    """Build the MarkdownV2 body of an account's code message."""

    updated_at = updated_at or datetime.now()
    return (
        f"`{escape_markdown_v2(account_name)}`\n"
        "\n"
        f"```{escape_markdown_v2(code)}```\n"
        "\n"
        f"Last updated: {escape_markdown_v2(format_timestamp(updated_at))}"
    )
