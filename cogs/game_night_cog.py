# cogs/game_night_cog.py
from typing import Optional

import discord
from discord.ext import commands
from discord import Option

from cogs.game_night import GameType, LiveViews, LobbyEngine, LobbyError, LobbyNotFound, LobbyState, LobbyStore
from cogs.game_night import service
from cogs.game_night.embeds import build_lobby_embed, format_lobby_list
from cogs.game_night.helpers import extract_message_id, split_maps
from cogs.game_night.views import LobbyView
from utils.dates import discord_ts, now_in
from utils.interactions import safe_ctx_defer, safe_ctx_followup
from utils.logger import get_logger
from utils.mod_check import owner_or_admin_check
from utils.settings import env_int, load_game_night_config

GUILD_ID = env_int("GUILD_ID", 0)

TYPE_CHOICES = [discord.OptionChoice(name=label, value=value) for label, value in GameType.choices().items()]


class GameNightCog(commands.Cog):
    """
    Age of Mythology game nights.

    - /game create → posts a lobby with Join/Leave/Cancel buttons and a map vote.
    - No time given (or unreadable) → the post carries a quick time poll.
    - /game list, /game cancel, /game time for managing posts by message link/id.
    """

    game = discord.SlashCommandGroup(
        "game",
        "Create/list/cancel AoM games.",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.cfg = load_game_night_config()
        self.log = get_logger(bot, self.cfg)
        self.engine = LobbyEngine(
            LobbyStore(),
            default_maps=self.cfg.default_maps,
            vote_requires_join=self.cfg.vote_requires_join,
        )
        self.views = LiveViews()

    # ---------- internal helpers ----------

    def _now(self):
        return now_in(self.cfg.tz)

    def _build_lobby_embed(self, lobby: LobbyState) -> discord.Embed:
        return build_lobby_embed(lobby, color=self.cfg.embed_color)

    def _build_view(self, lobby: LobbyState, lobby_id: Optional[int] = None) -> LobbyView:
        view = LobbyView(self, lobby, now=self._now())
        if lobby_id is not None:
            self.views.track(lobby_id, view)
        return view

    def _authorizer(self, user):
        member = user if isinstance(user, discord.Member) else None
        return owner_or_admin_check(
            member,
            admin_role_ids=self.cfg.admin_role_ids,
            admin_role_name=self.cfg.admin_role_name,
        )

    def _post_channel(self, guild: Optional[discord.Guild], lobby: LobbyState, fallback):
        ch = guild.get_channel(lobby.channel_id) if guild and lobby.channel_id else None
        return ch or fallback

    # ---------- component handlers (called by LobbyView) ----------

    async def _handle_join(self, interaction: discord.Interaction):
        await service.handle_join(self, interaction)

    async def _handle_leave(self, interaction: discord.Interaction):
        await service.handle_leave(self, interaction)

    async def _handle_vote(self, interaction: discord.Interaction, values):
        await service.handle_vote(self, interaction, values)

    async def _handle_set_time(self, interaction: discord.Interaction, custom_id: Optional[str]):
        await service.handle_set_time(self, interaction, custom_id)

    async def _handle_cancel_button(self, interaction: discord.Interaction):
        await service.handle_cancel_button(self, interaction)

    # ---------- slash commands ----------

    @game.command(name="create", description="Create a game post with map voting.")
    async def create(
        self,
        ctx: discord.ApplicationContext,
        type: str = Option(str, "Game type", choices=TYPE_CHOICES),
        when: Optional[str] = Option(
            str,
            'e.g., "today 7pm", "in 45m", "2025-09-18 19:30" (optional)',
            required=False,
            default=None,
        ),
        maps: Optional[str] = Option(
            str,
            "Comma-separated maps (optional; defaults used if blank)",
            required=False,
            default=None,
        ),
        ping_role: Optional[discord.Role] = Option(
            discord.Role,
            "Role to ping (optional)",
            required=False,
            default=None,
        ),
    ):
        if ctx.guild is None:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return

        lobby = self.engine.build_lobby(
            ctx.author.id,
            GameType(type),
            split_maps(maps),
            when,
            now=self._now(),
            channel_id=ctx.channel.id if ctx.channel else 0,
            ping_role_id=ping_role.id if ping_role else None,
        )

        # Public response: this IS the lobby post
        view = self._build_view(lobby)
        response = await ctx.respond(
            content=f"<@&{ping_role.id}>" if ping_role else None,
            embed=self._build_lobby_embed(lobby),
            view=view,
            allowed_mentions=discord.AllowedMentions(roles=True),
        )
        msg = await response.original_response() if isinstance(response, discord.Interaction) else response

        lobby_id, lobby = self.engine.create_lobby(ctx.author.id, lobby.game_type, lobby=lobby, lobby_id=msg.id)
        self.views.track(lobby_id, view)
        await self.log.ok(
            f"[game] lobby {lobby_id} created by {ctx.author.id} "
            f"({lobby.game_type.value}, {len(lobby.maps)} maps, time {'set' if lobby.start_at else 'poll'})",
        )

        if when and lobby.start_at is None:
            await safe_ctx_followup(
                ctx,
                "I couldn't read that time, so the post has a time poll instead.",
                ephemeral=True,
            )

    @game.command(name="list", description="List active game posts.")
    async def list_games(self, ctx: discord.ApplicationContext):
        await ctx.respond(format_lobby_list(self.engine.list_lobbies()), ephemeral=True)

    @game.command(name="cancel", description="Cancel a game post you created.")
    async def cancel(
        self,
        ctx: discord.ApplicationContext,
        message: str = Option(str, "Message URL or message ID of the game post"),
    ):
        await safe_ctx_defer(ctx, ephemeral=True, label="game")

        lobby_id = extract_message_id(message)
        if lobby_id is None:
            await safe_ctx_followup(ctx, "Could not parse message ID/URL.", ephemeral=True)
            return

        try:
            lobby = await self.engine.cancel(ctx.author.id, lobby_id, authorize=self._authorizer(ctx.author))
        except LobbyNotFound:
            await safe_ctx_followup(ctx, "No active game found for that message.", ephemeral=True)
            return
        except LobbyError as e:
            await safe_ctx_followup(ctx, e.user_message, ephemeral=True)
            return

        self.views.release(lobby_id)
        await self.log.info(f"[game/cancel] lobby {lobby_id} canceled by {ctx.author.id}")

        # Store is already updated; the post edit is best-effort.
        await service.edit_canceled_post(self, self._post_channel(ctx.guild, lobby, ctx.channel), lobby_id)
        await safe_ctx_followup(ctx, "Canceled.", ephemeral=True)

    @game.command(name="time", description="Set or change the start time of a game post.")
    async def set_time(
        self,
        ctx: discord.ApplicationContext,
        message: str = Option(str, "Message URL or message ID of the game post"),
        when: str = Option(str, 'e.g., "today 7pm", "in 45m", "2025-09-18 19:30"'),
    ):
        await safe_ctx_defer(ctx, ephemeral=True, label="game")

        lobby_id = extract_message_id(message)
        if lobby_id is None:
            await safe_ctx_followup(ctx, "Could not parse message ID/URL.", ephemeral=True)
            return

        try:
            lobby = await self.engine.set_start_time_text(
                ctx.author.id,
                lobby_id,
                when,
                now=self._now(),
                authorize=self._authorizer(ctx.author),
            )
        except LobbyNotFound:
            await safe_ctx_followup(ctx, "No active game found for that message.", ephemeral=True)
            return
        except LobbyError as e:
            await safe_ctx_followup(ctx, e.user_message, ephemeral=True)
            return

        await self.log.info(f"[game/time] lobby {lobby_id} set to {lobby.start_at.isoformat()} by {ctx.author.id}", send=False)

        channel = self._post_channel(ctx.guild, lobby, ctx.channel)
        try:
            msg = await channel.fetch_message(lobby_id)
            await msg.edit(embed=self._build_lobby_embed(lobby), view=self._build_view(lobby, lobby_id))
        except Exception as e:
            await self.log.warn(f"[game/time] couldn't refresh post {lobby_id}: {type(e).__name__}: {e}", send=False)

        await safe_ctx_followup(ctx, f"Start time set: {discord_ts(lobby.start_at)}", ephemeral=True)

    async def cog_command_error(self, ctx: discord.ApplicationContext, error: Exception):
        await self.log.error(f"[game] /{ctx.command.qualified_name} failed: {type(error).__name__}: {error}")
        try:
            if ctx.response.is_done():
                await ctx.followup.send("Something went wrong.", ephemeral=True)
            else:
                await ctx.respond("Something went wrong.", ephemeral=True)
        except Exception as e:
            await self.log.warn(f"[game] couldn't report command error: {type(e).__name__}: {e}", send=False)


def setup(bot: commands.Bot):
    bot.add_cog(GameNightCog(bot))
