# utils/logger.py
from __future__ import annotations

import contextlib
from typing import Any, Optional, Tuple

from utils.console import c

# ---- central mapping (shared by all files) ----

PREFIX_COLORS = {
    "boot": "cyan",
    "game": "green",
    "game/time": "blue",
    "game/cancel": "yellow",
}

LEVEL_COLORS = {
    "debug": "grey",
    "info": "white",
    "ok": "green",
    "warn": "yellow",
    "error": "red",
}

LEVEL_EMOJIS = {
    "debug": "🔹",
    "info": "ℹ️",
    "ok": "✅",
    "warn": "⚠️",
    "error": "❌",
}

DISCORD_MAX_CHARS = 1900


def split_prefix(text: str) -> Tuple[Optional[str], str]:
    t = (text or "").strip()
    if not t.startswith("["):
        return None, t
    end = t.find("]")
    if end <= 1:
        return None, t
    prefix = t[1:end].strip()
    rest = t[end + 1 :].lstrip()
    return prefix, rest


def format_console(text: str, *, level: str = "info") -> str:
    prefix, rest = split_prefix(text)
    lvl = (level or "info").lower()
    lvl_color = LEVEL_COLORS.get(lvl, "white")

    if prefix:
        p_color = PREFIX_COLORS.get(prefix.lower(), lvl_color)
        tag = c(f"[{prefix}]", p_color, bold=True)
        return f"{tag} {c(rest, lvl_color)}" if rest else tag

    return c(text, lvl_color)


def format_discord(text: str, *, level: str = "info") -> str:
    emoji = LEVEL_EMOJIS.get((level or "info").lower(), "ℹ️")
    msg = f"{emoji} {str(text or '')}"
    return msg[:DISCORD_MAX_CHARS] + "…" if len(msg) > DISCORD_MAX_CHARS else msg


# ---- sync helpers (console only) ----

def log_sync(text: str, *, level: str = "info") -> None:
    try:
        print(format_console(str(text or ""), level=level))
    except Exception:
        print(text)


def log_ok(text: str) -> None:
    log_sync(text, level="ok")


def log_warn(text: str) -> None:
    log_sync(text, level="warn")


def log_error(text: str) -> None:
    log_sync(text, level="error")


class Logger:
    """
    Shared logger for the game cogs:
      - colored console
      - plain Discord log channel (optional)
    Expects cfg.guild_id and cfg.log_channel_id.
    """

    def __init__(self, bot: Any, cfg: Any):
        self.bot = bot
        self.cfg = cfg

    async def log(self, text: str, *, level: str = "info", send: bool = True, console: bool = True) -> None:
        raw = str(text or "")

        if console:
            log_sync(raw, level=level)

        if not send:
            return

        ch_id = int(getattr(self.cfg, "log_channel_id", 0) or 0)
        if not ch_id:
            return

        guild_id = int(getattr(self.cfg, "guild_id", 0) or 0)
        guild = self.bot.get_guild(guild_id) if guild_id else None
        if not guild:
            return

        ch = guild.get_channel(ch_id)
        if not ch:
            with contextlib.suppress(Exception):
                ch = await guild.fetch_channel(ch_id)
        if not ch:
            return

        with contextlib.suppress(Exception):
            await ch.send(format_discord(raw, level=level))

    # convenience level methods
    async def debug(self, text: str, **kw): return await self.log(text, level="debug", **kw)
    async def info(self, text: str, **kw):  return await self.log(text, level="info", **kw)
    async def ok(self, text: str, **kw):    return await self.log(text, level="ok", **kw)
    async def warn(self, text: str, **kw):  return await self.log(text, level="warn", **kw)
    async def error(self, text: str, **kw): return await self.log(text, level="error", **kw)


def get_logger(bot: Any, cfg: Any) -> Logger:
    return Logger(bot, cfg)
