"""Named failures for lobby actions.

Each carries the ephemeral text shown to the user; handlers catch
``LobbyError`` and reply with ``user_message``. None of them are fatal.
"""

from __future__ import annotations


class LobbyError(Exception):
    user_message = "Something went wrong."

    def __init__(self, lobby_id: int = 0, message: str = "") -> None:
        self.lobby_id = int(lobby_id or 0)
        if message:
            self.user_message = message
        super().__init__(self.user_message)


class LobbyNotFound(LobbyError):
    user_message = "This game is no longer active."


class LobbyExists(LobbyError):
    user_message = "A game is already registered for that message."


class AlreadyMember(LobbyError):
    user_message = "You already joined."


class NotMember(LobbyError):
    user_message = "You are not in this lobby."


class InvalidMapIndex(LobbyError):
    user_message = "Invalid map selection."


class Unauthorized(LobbyError):
    user_message = "Only the creator or an admin can do that."


class Unparseable(LobbyError):
    user_message = (
        "I couldn't read that time. Try something like "
        '"today 7pm", "tomorrow 8:30pm", "in 45m" or "2025-09-18 19:30".'
    )
