from __future__ import annotations

from datetime import datetime
from typing import Any

import discord

from utils.dates import quick_time_options, ts
from utils.interactions import safe_i_send

from .helpers import time_button_id
from .models import LobbyState

SELECT_LABEL_MAX = 100


class LobbyView(discord.ui.View):
    """Components for a lobby post: time poll (while unset), Join/Leave/Cancel, map vote.

    Rebuilt from a fresh snapshot on every edit. It delegates all actions
    back to the owning cog; the lobby id is the id of the message the
    interaction came from.
    """

    def __init__(self, cog: Any, lobby: LobbyState, *, now: datetime):
        # Lobbies live in memory only, so the view lives as long as the process.
        super().__init__(timeout=None)
        self.cog = cog

        if lobby.show_time_poll():
            for i, opt in enumerate(quick_time_options(now)):
                btn = discord.ui.Button(
                    label=opt.label,
                    style=discord.ButtonStyle.primary if i < 2 else discord.ButtonStyle.secondary,
                    custom_id=time_button_id(ts(opt.when), i),
                    row=0,
                )
                btn.callback = self._time_callback(btn)
                self.add_item(btn)

        select = discord.ui.Select(
            custom_id="gamenight_map_select",
            placeholder="Vote for a map",
            min_values=1,
            max_values=1,
            options=[
                discord.SelectOption(label=name[:SELECT_LABEL_MAX], value=str(i))
                for i, name in enumerate(lobby.maps)
            ],
            row=2,
        )
        select.callback = self._vote_callback(select)
        self.add_item(select)

    def _time_callback(self, button: discord.ui.Button):
        async def _cb(interaction: discord.Interaction):
            await self.cog._handle_set_time(interaction, button.custom_id)
        return _cb

    def _vote_callback(self, select: discord.ui.Select):
        async def _cb(interaction: discord.Interaction):
            await self.cog._handle_vote(interaction, list(select.values))
        return _cb

    @discord.ui.button(
        label="Join",
        style=discord.ButtonStyle.success,
        custom_id="gamenight_join",
        row=1,
    )
    async def join_button(self, button: discord.ui.Button, interaction: discord.Interaction):
        await self.cog._handle_join(interaction)

    @discord.ui.button(
        label="Leave",
        style=discord.ButtonStyle.secondary,
        custom_id="gamenight_leave",
        row=1,
    )
    async def leave_button(self, button: discord.ui.Button, interaction: discord.Interaction):
        await self.cog._handle_leave(interaction)

    @discord.ui.button(
        label="Cancel (Owner)",
        style=discord.ButtonStyle.danger,
        custom_id="gamenight_cancel",
        row=1,
    )
    async def cancel_button(self, button: discord.ui.Button, interaction: discord.Interaction):
        await self.cog._handle_cancel_button(interaction)

    async def on_error(self, error: Exception, item: discord.ui.Item, interaction: discord.Interaction) -> None:
        await self.cog.log.error(f"[game] component {getattr(item, 'custom_id', '?')} failed: {type(error).__name__}: {error}")
        await safe_i_send(interaction, "Something went wrong.", ephemeral=True)
