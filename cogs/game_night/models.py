from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence, Set, Tuple

MAX_MAPS = 25  # Discord select menus cap at 25 options


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class GameType(Enum):
    PVP = "pvp"
    SKIRMISH_VS_BOTS = "pve-bots"
    COOP_CAMPAIGN = "coop-campaign"

    @property
    def label(self) -> str:
        return _TYPE_LABELS[self]

    @classmethod
    def choices(cls) -> Dict[str, str]:
        """label -> value, for slash command options."""
        return {t.label: t.value for t in cls}


_TYPE_LABELS = {
    GameType.PVP: "PvP",
    GameType.SKIRMISH_VS_BOTS: "Skirmish vs Bots",
    GameType.COOP_CAMPAIGN: "Co-op Campaign",
}


def normalize_maps(maps: Optional[Iterable[str]], default: Sequence[str]) -> Tuple[str, ...]:
    """Trimmed, non-blank names, at most MAX_MAPS, order kept; default when empty."""
    cleaned = [m.strip() for m in (maps or []) if m and m.strip()]
    if not cleaned:
        cleaned = list(default)
    return tuple(cleaned[:MAX_MAPS])


class LobbyState:
    """In-memory state for a single game lobby.

    Vote bookkeeping goes through ``change_vote`` / ``drop_voter`` only,
    which keeps ``sum(vote_counts) == len(voter_choice)``.
    """

    def __init__(
        self,
        owner_id: int,
        game_type: GameType,
        maps: Sequence[str],
        *,
        start_at: Optional[datetime] = None,
        channel_id: int = 0,
        ping_role_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        if not maps:
            raise ValueError("a lobby needs at least one map")
        if len(maps) > MAX_MAPS:
            raise ValueError(f"a lobby takes at most {MAX_MAPS} maps")

        self.owner_id = int(owner_id)
        self.game_type = GameType(game_type)
        self.maps: Tuple[str, ...] = tuple(maps)
        self.start_at: Optional[datetime] = start_at
        self.channel_id = int(channel_id or 0)
        self.ping_role_id: Optional[int] = int(ping_role_id) if ping_role_id else None
        self.created_at: datetime = created_at or now_utc()

        self.members: Set[int] = {self.owner_id}   # owner always in
        self.vote_counts: Dict[int, int] = {}
        self.voter_choice: Dict[int, int] = {}

    def is_member(self, user_id: int) -> bool:
        return int(user_id) in self.members

    def valid_index(self, index: int) -> bool:
        return 0 <= index < len(self.maps)

    def votes_for(self, index: int) -> int:
        return self.vote_counts.get(index, 0)

    def _bump(self, index: int, delta: int) -> None:
        self.vote_counts[index] = max(self.vote_counts.get(index, 0) + delta, 0)

    def change_vote(self, voter_id: int, index: int) -> None:
        if not self.valid_index(index):
            raise IndexError(index)
        voter_id = int(voter_id)
        prev = self.voter_choice.get(voter_id)
        if prev == index:
            return
        if prev is not None:
            self._bump(prev, -1)
        self.voter_choice[voter_id] = index
        self._bump(index, +1)

    def drop_voter(self, voter_id: int) -> Optional[int]:
        """Remove a voter's choice (if any); returns the index it was on."""
        prev = self.voter_choice.pop(int(voter_id), None)
        if prev is not None:
            self._bump(prev, -1)
        return prev

    def show_time_poll(self) -> bool:
        return self.start_at is None

    def snapshot(self) -> "LobbyState":
        """Detached copy, safe to render after the lobby lock is released."""
        copy = LobbyState.__new__(LobbyState)
        copy.__dict__.update(self.__dict__)
        copy.members = set(self.members)
        copy.vote_counts = dict(self.vote_counts)
        copy.voter_choice = dict(self.voter_choice)
        return copy


def leaderboard_index(lobby: LobbyState) -> Optional[int]:
    """Index of the strictly highest tally; first wins ties. None with no votes."""
    best_idx: Optional[int] = None
    best = 0
    for i in range(len(lobby.maps)):
        count = lobby.votes_for(i)
        if count > best:
            best = count
            best_idx = i
    return best_idx
