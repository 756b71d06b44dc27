"""Shared fixtures for the game night tests."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cogs.game_night import GameType, LobbyEngine, LobbyStore  # noqa: E402

OWNER = 100
MAPS = ["Mediterranean", "Oasis", "Alfheim", "Ghost Lake"]


@pytest.fixture
def morning() -> datetime:
    """Thursday 2025-09-18 09:00 UTC."""
    return datetime(2025, 9, 18, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine() -> LobbyEngine:
    return LobbyEngine(LobbyStore())


@pytest.fixture
def lobby_id(engine: LobbyEngine) -> int:
    """A PvP lobby owned by OWNER with four maps and no start time."""
    lid, _ = engine.create_lobby(OWNER, GameType.PVP, MAPS)
    return lid
