from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, Iterable, List, Optional, Sequence, Tuple

from utils.dates import parse_when
from utils.settings import BUILTIN_DEFAULT_MAPS

from .errors import (
    AlreadyMember,
    InvalidMapIndex,
    LobbyNotFound,
    NotMember,
    Unauthorized,
    Unparseable,
)
from .models import GameType, LobbyState, normalize_maps
from .state import LobbyStore

# authorize(actor_id, lobby) -> allowed?
Authorizer = Callable[[int, LobbyState], bool]


def owner_only(actor_id: int, lobby: LobbyState) -> bool:
    return int(actor_id) == lobby.owner_id


class LobbyEngine:
    """State transitions for game lobbies.

    Every action takes the lobby's own lock, re-reads the lobby, mutates it
    and returns a snapshot. Nothing here awaits Discord; callers render and
    edit messages after the action returns.
    """

    def __init__(
        self,
        store: LobbyStore,
        *,
        default_maps: Sequence[str] = BUILTIN_DEFAULT_MAPS,
        vote_requires_join: bool = False,
    ) -> None:
        self.store = store
        self.default_maps: Tuple[str, ...] = tuple(default_maps) or BUILTIN_DEFAULT_MAPS
        self.vote_requires_join = bool(vote_requires_join)

    @asynccontextmanager
    async def _locked(self, lobby_id: int) -> AsyncIterator[LobbyState]:
        if self.store.get(lobby_id) is None:
            # no lock allocated for ids that were never (or are no longer) stored
            raise LobbyNotFound(lobby_id)
        async with self.store.lock_for(lobby_id):
            lobby = self.store.get(lobby_id)
            if lobby is None:
                raise LobbyNotFound(lobby_id)
            yield lobby

    # ---------- create / query ----------

    def build_lobby(
        self,
        owner_id: int,
        game_type: GameType,
        maps: Optional[Iterable[str]] = None,
        when_text: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
        channel_id: int = 0,
        ping_role_id: Optional[int] = None,
    ) -> LobbyState:
        """A new lobby that isn't registered yet (render it, then ``create_lobby``)."""
        # host local time when no reference is given
        now = now or datetime.now().astimezone()
        return LobbyState(
            owner_id,
            game_type,
            normalize_maps(maps, self.default_maps),
            start_at=parse_when(when_text, now),
            channel_id=channel_id,
            ping_role_id=ping_role_id,
        )

    def create_lobby(
        self,
        owner_id: int,
        game_type: GameType,
        maps: Optional[Iterable[str]] = None,
        when_text: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
        lobby_id: Optional[int] = None,
        lobby: Optional[LobbyState] = None,
        channel_id: int = 0,
        ping_role_id: Optional[int] = None,
    ) -> Tuple[int, LobbyState]:
        """Register a lobby; returns its id and a snapshot.

        Pass ``lobby`` to register one already produced by ``build_lobby``.
        Without ``lobby_id`` a local id is allocated.
        """
        if lobby is None:
            lobby = self.build_lobby(
                owner_id,
                game_type,
                maps,
                when_text,
                now=now,
                channel_id=channel_id,
                ping_role_id=ping_role_id,
            )
        lid = int(lobby_id) if lobby_id is not None else self.store.alloc_lobby_id()
        self.store.create(lid, lobby)
        return lid, lobby.snapshot()

    def get_lobby(self, lobby_id: int) -> LobbyState:
        lobby = self.store.get(lobby_id)
        if lobby is None:
            raise LobbyNotFound(lobby_id)
        return lobby.snapshot()

    def list_lobbies(self) -> List[Tuple[int, LobbyState]]:
        return [(lid, lobby.snapshot()) for lid, lobby in self.store.list()]

    # ---------- membership ----------

    async def join(self, actor_id: int, lobby_id: int) -> LobbyState:
        async with self._locked(lobby_id) as lobby:
            if lobby.is_member(actor_id):
                raise AlreadyMember(lobby_id)
            lobby.members.add(int(actor_id))
            return lobby.snapshot()

    async def leave(self, actor_id: int, lobby_id: int) -> LobbyState:
        async with self._locked(lobby_id) as lobby:
            if not lobby.is_member(actor_id):
                raise NotMember(lobby_id)
            lobby.members.discard(int(actor_id))
            lobby.drop_voter(actor_id)
            return lobby.snapshot()

    # ---------- voting ----------

    async def vote(self, actor_id: int, lobby_id: int, map_index: int) -> LobbyState:
        async with self._locked(lobby_id) as lobby:
            try:
                idx = int(map_index)
            except (TypeError, ValueError):
                raise InvalidMapIndex(lobby_id) from None
            if not lobby.valid_index(idx):
                raise InvalidMapIndex(lobby_id)

            if not lobby.is_member(actor_id):
                if self.vote_requires_join:
                    raise NotMember(lobby_id, "Join the game before voting for a map.")
                lobby.members.add(int(actor_id))

            lobby.change_vote(actor_id, idx)
            return lobby.snapshot()

    # ---------- owner / admin ----------

    async def set_start_time(
        self,
        actor_id: int,
        lobby_id: int,
        when: datetime,
        *,
        authorize: Optional[Authorizer] = None,
    ) -> LobbyState:
        check = authorize or owner_only
        async with self._locked(lobby_id) as lobby:
            if not check(actor_id, lobby):
                raise Unauthorized(lobby_id, "Only the creator or an admin can set the time.")
            lobby.start_at = when
            return lobby.snapshot()

    async def set_start_time_text(
        self,
        actor_id: int,
        lobby_id: int,
        when_text: str,
        *,
        now: datetime,
        authorize: Optional[Authorizer] = None,
    ) -> LobbyState:
        when = parse_when(when_text, now)
        if when is None:
            raise Unparseable(lobby_id)
        return await self.set_start_time(actor_id, lobby_id, when, authorize=authorize)

    async def cancel(
        self,
        actor_id: int,
        lobby_id: int,
        *,
        authorize: Optional[Authorizer] = None,
    ) -> LobbyState:
        check = authorize or owner_only
        async with self._locked(lobby_id) as lobby:
            if not check(actor_id, lobby):
                raise Unauthorized(lobby_id, "Only the creator or an admin can cancel.")
            self.store.delete(lobby_id)
            return lobby.snapshot()
