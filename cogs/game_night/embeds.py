from __future__ import annotations

from typing import Iterable, List, Tuple

import discord

from utils.dates import discord_ts
from utils.settings import DEFAULT_EMBED_COLOR

from .models import LobbyState, leaderboard_index

CANCELED_COLOR = 0xB71C1C
MAX_EMBED_FIELDS = 25


def build_lobby_embed(lobby: LobbyState, *, color: int = DEFAULT_EMBED_COLOR) -> discord.Embed:
    """Lobby post: start time, players, leading map and one field per map."""
    if lobby.start_at is not None:
        time_line = f"Start: {discord_ts(lobby.start_at)}"
    else:
        time_line = "Start: *(choose a time below)*"

    embed = discord.Embed(
        title=f"AoM Game • {lobby.game_type.label}",
        description=(
            f"{time_line}\n"
            "Map Voting below (1 vote per player; you can change it)."
        ),
        color=discord.Color(color),
    )

    leader = leaderboard_index(lobby)
    leader_text = f"Leading: **{lobby.maps[leader]}**" if leader is not None else "No votes yet"

    # sorted so the field order doesn't depend on set iteration
    members = "\n".join(f"<@{uid}>" for uid in sorted(lobby.members)) or "—"

    embed.add_field(name="Players", value=str(len(lobby.members)), inline=True)
    embed.add_field(name="Current Map", value=leader_text, inline=True)
    embed.add_field(name="Joined", value=members, inline=False)

    # Embeds hold 25 fields; overflow maps share the last one.
    room = MAX_EMBED_FIELDS - len(embed.fields)
    shown = lobby.maps if len(lobby.maps) <= room else lobby.maps[: room - 1]
    for i, name in enumerate(shown):
        embed.add_field(name=name[:256], value=f"Votes: **{lobby.votes_for(i)}**", inline=True)

    if len(shown) < len(lobby.maps):
        rest = [
            f"{lobby.maps[i]}: **{lobby.votes_for(i)}**"
            for i in range(len(shown), len(lobby.maps))
        ]
        embed.add_field(name="More maps", value="\n".join(rest)[:1024], inline=False)

    return embed


def build_canceled_embed() -> discord.Embed:
    return discord.Embed(title="Game Canceled", color=discord.Color(CANCELED_COLOR))


def format_lobby_list(lobbies: Iterable[Tuple[int, LobbyState]]) -> str:
    lines: List[str] = []
    for lobby_id, lobby in lobbies:
        time_text = discord_ts(lobby.start_at) if lobby.start_at is not None else "*time not set*"
        lines.append(
            f"• **{lobby.game_type.label}** — {time_text} — "
            f"Players {len(lobby.members)} — id: `{lobby_id}`"
        )
    return "\n".join(lines) if lines else "No active games."
