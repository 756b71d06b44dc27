from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from .errors import LobbyExists
from .models import LobbyState


class LobbyStore:
    """In-memory lobby registry keyed by lobby id (the posted message id).

    Kept intentionally small: just storage + per-lobby locks + id allocation.
    All behavioral rules (votes, permissions) live in the engine.
    Contents are lost on restart.
    """

    def __init__(self) -> None:
        self._lobbies: Dict[int, LobbyState] = {}
        self._locks: Dict[int, asyncio.Lock] = {}
        self._next_lobby_id: int = 1

    def alloc_lobby_id(self) -> int:
        """Local id for lobbies that aren't tied to a message (skips taken ids)."""
        while self._next_lobby_id in self._lobbies:
            self._next_lobby_id += 1
        lid = self._next_lobby_id
        self._next_lobby_id += 1
        return lid

    def lock_for(self, lobby_id: int) -> asyncio.Lock:
        """The lock serializing actions on one lobby; unrelated lobbies never share it."""
        return self._locks.setdefault(int(lobby_id), asyncio.Lock())

    def create(self, lobby_id: int, lobby: LobbyState) -> None:
        lid = int(lobby_id)
        if lid in self._lobbies:
            raise LobbyExists(lid)
        self._lobbies[lid] = lobby

    def get(self, lobby_id: int) -> Optional[LobbyState]:
        return self._lobbies.get(int(lobby_id))

    def delete(self, lobby_id: int) -> Optional[LobbyState]:
        lid = int(lobby_id)
        self._locks.pop(lid, None)
        return self._lobbies.pop(lid, None)

    def list(self) -> List[Tuple[int, LobbyState]]:
        return list(self._lobbies.items())

    def __len__(self) -> int:
        return len(self._lobbies)

    def __contains__(self, lobby_id: object) -> bool:
        return lobby_id in self._lobbies


class LiveViews:
    """The current component view of each lobby post.

    Views never time out, so a replaced or canceled one is stopped here;
    py-cord then drops its custom ids from the view store.
    """

    def __init__(self) -> None:
        self._views: Dict[int, Any] = {}

    def track(self, lobby_id: int, view: Any) -> None:
        lid = int(lobby_id)
        old = self._views.get(lid)
        if old is not None and old is not view:
            old.stop()
        self._views[lid] = view

    def release(self, lobby_id: int) -> None:
        view = self._views.pop(int(lobby_id), None)
        if view is not None:
            view.stop()

    def get(self, lobby_id: int) -> Optional[Any]:
        return self._views.get(int(lobby_id))

    def __len__(self) -> int:
        return len(self._views)
