# utils/dates.py
"""
Date/time helpers for the Game Night bot.

Two pure entry points live here:

- ``parse_when``: turns a friendly phrase ("today 7pm", "in 45m",
  "2025-09-18 19:30") into an absolute datetime.
- ``quick_time_options``: the four one-tap choices offered when a lobby
  has no start time yet.

Both take the reference "now" as an argument and never read the clock
themselves, so they behave the same in tests and in the bot.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import List, NamedTuple, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Evening slot used by the quick options
EVENING_HOUR = 19

_IN_MINUTES_RE = re.compile(r"^in\s+(\d+)\s*m(in(ute)?s?)?$")
_IN_HOURS_RE = re.compile(r"^in\s+(\d+)\s*h(ours?)?$")
_TODAY_RE = re.compile(r"^today\s+(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$")
_TOMORROW_RE = re.compile(r"^tomorrow\s+(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$")
_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})\s+(\d{1,2}):(\d{2})$")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*(am|pm)?$")
_HOUR_ONLY_RE = re.compile(r"^(\d{1,2})\s*(am|pm)$")


class QuickTimeOption(NamedTuple):
    label: str
    when: datetime


# ---------------- zones ----------------

def resolve_tz(name: str = "") -> tzinfo:
    """
    Return the zone to interpret phrases in.

    Args:
        name: IANA zone name (e.g. 'Europe/Lisbon'). Blank means the host's
            local zone.

    Returns:
        A tzinfo. Unknown names fall back to the host's local zone.
    """
    name = (name or "").strip()
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return datetime.now().astimezone().tzinfo or timezone.utc


def now_in(tz: tzinfo) -> datetime:
    """Current time as an aware datetime in ``tz``."""
    return datetime.now(tz)


def ts(dt: datetime) -> int:
    """Convert datetime to Unix timestamp (seconds)."""
    return int(dt.timestamp())


def discord_ts(dt: datetime) -> str:
    """Full date plus relative Discord timestamp markup."""
    unix = ts(dt)
    return f"<t:{unix}:F> (<t:{unix}:R>)"


# ---------------- arithmetic ----------------

def _shift(now: datetime, delta: timedelta) -> datetime:
    # Absolute duration: across a DST change "in 2h" is still 2 real hours.
    if now.tzinfo is None:
        return now + delta
    return (now.astimezone(timezone.utc) + delta).astimezone(now.tzinfo)


def _at_clock(base: datetime, hour: int, minute: int) -> datetime:
    # Added to midnight so out-of-range values roll over instead of raising.
    midnight = base.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(hours=hour, minutes=minute)


def _to_24h(hour: int, ampm: Optional[str]) -> int:
    if ampm == "pm" and hour < 12:
        return hour + 12
    if ampm == "am" and hour == 12:
        return 0
    return hour


def _clock_on(base: datetime, m: re.Match) -> datetime:
    hour = int(m.group(1))
    minute = int(m.group(2)) if m.group(2) else 0
    return _at_clock(base, _to_24h(hour, m.group(3)), minute)


# ---------------- public API ----------------

def parse_when(text: Optional[str], now: datetime) -> Optional[datetime]:
    """
    Parse a scheduling phrase relative to ``now``.

    Accepted forms (first match wins):
        in 45m / in 45 minutes, in 2h / in 2 hours,
        today 7pm / today 19:30, tomorrow 8:30pm,
        2025-09-18 19:30, 19:30 / 7:30pm, 7pm

    Args:
        text: The user's phrase (case and surrounding whitespace ignored).
        now: Reference time; the result keeps its tzinfo.

    Returns:
        The resolved datetime, or None when nothing matched or the result
        falls outside what datetime can represent.
    """
    if not text:
        return None
    s = text.strip().lower()
    if not s:
        return None

    try:
        return _match(s, now)
    except (OverflowError, ValueError):
        # e.g. "in 99999999h" or "9999-12-31 99:00"
        return None


def _match(s: str, now: datetime) -> Optional[datetime]:
    m = _IN_MINUTES_RE.match(s)
    if m:
        return _shift(now, timedelta(minutes=int(m.group(1))))

    m = _IN_HOURS_RE.match(s)
    if m:
        return _shift(now, timedelta(hours=int(m.group(1))))

    m = _TODAY_RE.match(s)
    if m:
        return _clock_on(now, m)

    m = _TOMORROW_RE.match(s)
    if m:
        return _clock_on(now + timedelta(days=1), m)

    m = _ISO_RE.match(s)
    if m:
        y, mo, d, hh, mi = (int(g) for g in m.groups())
        # impossible dates (Feb 30) raise ValueError here
        return _at_clock(datetime(y, mo, d, tzinfo=now.tzinfo), hh, mi)

    m = _CLOCK_RE.match(s)
    if m:
        return _clock_on(now, m)

    m = _HOUR_ONLY_RE.match(s)
    if m:
        hour = _to_24h(int(m.group(1)), m.group(2))
        return _at_clock(now, hour, 0)

    return None


def quick_time_options(now: datetime) -> List[QuickTimeOption]:
    """
    Return the four quick-pick start times, in display order.

    'Tonight 7pm' rolls over to tomorrow once 19:00 has passed;
    'Tomorrow 7pm' is always the next calendar day.
    """
    tonight = _at_clock(now, EVENING_HOUR, 0)
    if tonight < now:
        tonight = _at_clock(now + timedelta(days=1), EVENING_HOUR, 0)

    tomorrow = _at_clock(now + timedelta(days=1), EVENING_HOUR, 0)

    return [
        QuickTimeOption("+30m", _shift(now, timedelta(minutes=30))),
        QuickTimeOption("+1h", _shift(now, timedelta(hours=1))),
        QuickTimeOption("Tonight 7pm", tonight),
        QuickTimeOption("Tomorrow 7pm", tomorrow),
    ]
