from __future__ import annotations

from datetime import datetime
from typing import List, Optional

import discord

from utils.interactions import safe_i_defer, safe_i_edit, safe_i_send

from .embeds import build_canceled_embed
from .errors import InvalidMapIndex, LobbyError
from .helpers import parse_time_button_id
from .models import LobbyState


def _lobby_id(interaction: discord.Interaction) -> int:
    # 0 never matches a stored lobby, so a missing message reads as "not found"
    msg = getattr(interaction, "message", None)
    return int(msg.id) if msg is not None else 0


async def _refresh(cog, interaction: discord.Interaction, lobby_id: int, lobby: LobbyState) -> None:
    """Re-render the lobby post from a snapshot (outside any lock)."""
    await safe_i_edit(
        interaction,
        embed=cog._build_lobby_embed(lobby),
        view=cog._build_view(lobby, lobby_id),
    )


async def _reject(cog, interaction: discord.Interaction, err: LobbyError) -> None:
    # Reply only. A fresh post can be clicked before /game create registers it,
    # so a miss must leave the components in place.
    await safe_i_send(interaction, err.user_message, ephemeral=True)


async def handle_join(cog, interaction: discord.Interaction) -> None:
    """Join button handler."""
    await safe_i_defer(interaction)

    lobby_id = _lobby_id(interaction)
    try:
        lobby = await cog.engine.join(interaction.user.id, lobby_id)
    except LobbyError as e:
        await _reject(cog, interaction, e)
        return

    await _refresh(cog, interaction, lobby_id, lobby)


async def handle_leave(cog, interaction: discord.Interaction) -> None:
    """Leave button handler; drops the leaver's map vote too."""
    await safe_i_defer(interaction)

    lobby_id = _lobby_id(interaction)
    try:
        lobby = await cog.engine.leave(interaction.user.id, lobby_id)
    except LobbyError as e:
        await _reject(cog, interaction, e)
        return

    await _refresh(cog, interaction, lobby_id, lobby)


async def handle_vote(cog, interaction: discord.Interaction, values: List[str]) -> None:
    """Map select handler (one active vote per player, changeable)."""
    await safe_i_defer(interaction)

    lobby_id = _lobby_id(interaction)
    try:
        if not values or not values[0].isdigit():
            raise InvalidMapIndex(lobby_id)
        lobby = await cog.engine.vote(interaction.user.id, lobby_id, int(values[0]))
    except LobbyError as e:
        await _reject(cog, interaction, e)
        return

    await _refresh(cog, interaction, lobby_id, lobby)


async def handle_set_time(cog, interaction: discord.Interaction, custom_id: Optional[str]) -> None:
    """Quick-time button handler (owner/admin only). The poll row disappears once set."""
    await safe_i_defer(interaction)

    unix = parse_time_button_id(custom_id)
    if unix is None:
        await safe_i_send(interaction, "Invalid time option.", ephemeral=True)
        return

    when = datetime.fromtimestamp(unix, cog.cfg.tz)
    lobby_id = _lobby_id(interaction)
    try:
        lobby = await cog.engine.set_start_time(
            interaction.user.id,
            lobby_id,
            when,
            authorize=cog._authorizer(interaction.user),
        )
    except LobbyError as e:
        await _reject(cog, interaction, e)
        return

    await _refresh(cog, interaction, lobby_id, lobby)
    await cog.log.info(f"[game/time] lobby {lobby_id} set to {when.isoformat()} by {interaction.user.id}", send=False)


async def handle_cancel_button(cog, interaction: discord.Interaction) -> None:
    """Cancel (Owner) button handler."""
    await safe_i_defer(interaction)

    lobby_id = _lobby_id(interaction)
    try:
        await cog.engine.cancel(
            interaction.user.id,
            lobby_id,
            authorize=cog._authorizer(interaction.user),
        )
    except LobbyError as e:
        await _reject(cog, interaction, e)
        return

    cog.views.release(lobby_id)
    await safe_i_edit(interaction, embed=build_canceled_embed(), view=None)
    await cog.log.info(f"[game/cancel] lobby {lobby_id} canceled by {interaction.user.id}")


async def edit_canceled_post(
    cog,
    channel: Optional[discord.abc.Messageable],
    lobby_id: int,
) -> bool:
    """Best-effort: swap a canceled lobby's post for the 'Game Canceled' embed.

    Failure is logged and never undoes the cancel.
    """
    if channel is None:
        return False
    try:
        msg = await channel.fetch_message(int(lobby_id))
        await msg.edit(embed=build_canceled_embed(), view=None)
        return True
    except Exception as e:
        await cog.log.warn(
            f"[game/cancel] couldn't edit post {lobby_id}: {type(e).__name__}: {e}",
        )
        return False

