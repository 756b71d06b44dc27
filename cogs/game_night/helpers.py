"""Pure utility functions for the game night cog."""

import re
from typing import List, Optional

MESSAGE_URL_RE = re.compile(r"/channels/\d+/\d+/(\d+)")
SNOWFLAKE_RE = re.compile(r"^\d{17,20}$")

TIME_BUTTON_PREFIX = "gamenight_time_"


def extract_message_id(raw: Optional[str]) -> Optional[int]:
    """Message id from a Discord message URL or a bare 17-20 digit id."""
    s = (raw or "").strip()
    m = MESSAGE_URL_RE.search(s)
    if m:
        return int(m.group(1))
    if SNOWFLAKE_RE.match(s):
        return int(s)
    return None


def split_maps(raw: Optional[str]) -> List[str]:
    """Comma-separated map names from the /game create option."""
    return [p.strip() for p in (raw or "").split(",") if p.strip()]


def time_button_id(unix: int, slot: int = 0) -> str:
    # slot keeps ids unique when two options resolve to the same instant
    return f"{TIME_BUTTON_PREFIX}{int(slot)}_{int(unix)}"


def parse_time_button_id(custom_id: Optional[str]) -> Optional[int]:
    """Unix seconds encoded in a quick-time button id, or None."""
    s = custom_id or ""
    if not s.startswith(TIME_BUTTON_PREFIX):
        return None
    tail = s[len(TIME_BUTTON_PREFIX):].rpartition("_")[2]
    return int(tail) if tail.isdigit() else None
