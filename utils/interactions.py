"""Shared helpers for safely responding to Discord interactions.

These helpers are intentionally conservative:
- Try to respond/edit through the interaction first.
- If the interaction is expired (10062) or already responded, fall back.

This keeps a slow event loop from turning into a crash when Discord expires
an interaction token before we ack it.

Supports:
- discord.ApplicationContext (slash commands)
- discord.Interaction (component interactions, e.g. button clicks)
"""

from __future__ import annotations

import contextlib
from typing import Any, Optional

import discord

from utils.logger import log_error, log_warn


async def safe_ctx_defer(
    ctx: discord.ApplicationContext,
    *,
    ephemeral: bool = False,
    label: str = "",
) -> bool:
    """Try to ack a slash interaction. If it expired (10062), don't crash."""
    try:
        inter = getattr(ctx, "interaction", None)
        created = getattr(inter, "created_at", None)
        if created:
            age = (discord.utils.utcnow() - created).total_seconds()
            if age > 2.7:
                log_warn(f"[{label}] interaction age before defer: {age:.2f}s (event-loop lag)")

        await ctx.defer(ephemeral=ephemeral)
        return True
    except discord.NotFound:
        log_error(f"[{label}] ctx.defer failed: Unknown interaction (10062). Falling back to channel messages.")
        return False
    except Exception as e:
        log_error(f"[{label}] ctx.defer failed: {type(e).__name__}: {e}")
        return False


async def safe_ctx_followup(ctx: discord.ApplicationContext, *args, **kwargs):
    """ctx.followup.send, but if interaction expired, fallback to channel.send."""
    try:
        return await ctx.followup.send(*args, **kwargs)
    except discord.NotFound:
        if ctx.channel:
            kwargs.pop("ephemeral", None)
            kwargs.pop("wait", None)
            content = kwargs.get("content", None)

            if args and isinstance(args[0], str):
                args = (f"{ctx.author.mention} {args[0]}",) + tuple(args[1:])
            elif isinstance(content, str) and content:
                kwargs["content"] = f"{ctx.author.mention} {content}"
            else:
                kwargs["content"] = ctx.author.mention

            return await ctx.channel.send(*args, **kwargs)


async def safe_i_defer(interaction: discord.Interaction) -> None:
    """Ack a component interaction fast; editing happens later."""
    with contextlib.suppress(Exception):
        if not interaction.response.is_done():
            await interaction.response.defer()


async def safe_i_send(
    interaction: discord.Interaction,
    content: Optional[str] = None,
    *,
    ephemeral: bool = False,
    embed: Optional[discord.Embed] = None,
):
    """Send a response to a component interaction; fallback to channel if 10062."""
    try:
        if interaction.response.is_done():
            return await interaction.followup.send(content, ephemeral=ephemeral, embed=embed)
        return await interaction.response.send_message(content, ephemeral=ephemeral, embed=embed)
    except discord.NotFound:
        ch = interaction.channel
        if ch:
            with contextlib.suppress(Exception):
                msg = f"{interaction.user.mention} {content or ''}".strip()
                return await ch.send(msg, embed=embed)
    except Exception as e:
        log_warn(f"[game] could not reply to interaction: {type(e).__name__}: {e}")


async def safe_i_edit(interaction: discord.Interaction, **fields: Any):
    """Edit the interaction's message with only the given fields (embed=, view=, content=).

    Omitted fields are left untouched, so a ping in the message content survives
    embed updates. Falls back to editing the message directly.
    """
    try:
        if interaction.response.is_done():
            return await interaction.edit_original_response(**fields)
        return await interaction.response.edit_message(**fields)
    except discord.InteractionResponded:
        with contextlib.suppress(Exception):
            return await interaction.edit_original_response(**fields)
    except discord.NotFound:
        msg = getattr(interaction, "message", None)
        if msg:
            with contextlib.suppress(Exception):
                return await msg.edit(**fields)
    except Exception as e:
        log_warn(f"[game] could not edit lobby message: {type(e).__name__}: {e}")
