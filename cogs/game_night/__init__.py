# cogs/game_night/__init__.py
"""Game night submodule - lobby engine and Discord pieces for GameNightCog."""

from .engine import Authorizer, LobbyEngine, owner_only
from .errors import (
    AlreadyMember,
    InvalidMapIndex,
    LobbyError,
    LobbyExists,
    LobbyNotFound,
    NotMember,
    Unauthorized,
    Unparseable,
)
from .models import MAX_MAPS, GameType, LobbyState, leaderboard_index
from .state import LiveViews, LobbyStore

__all__ = [
    # Engine
    "Authorizer",
    "LobbyEngine",
    "owner_only",
    "LobbyStore",
    "LiveViews",
    # Model
    "MAX_MAPS",
    "GameType",
    "LobbyState",
    "leaderboard_index",
    # Errors
    "AlreadyMember",
    "InvalidMapIndex",
    "LobbyError",
    "LobbyExists",
    "LobbyNotFound",
    "NotMember",
    "Unauthorized",
    "Unparseable",
]
