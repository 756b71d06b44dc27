# utils/mod_check.py
"""Owner/admin permission checks for game lobbies.
"""

from typing import Any, Callable, Optional, Set

import discord


def is_admin(
    member: Optional[discord.Member],
    *,
    admin_role_ids: Optional[Set[int]] = None,
    admin_role_name: str = "",
) -> bool:
    """Check if a member may manage any lobby.

    Args:
        member: The Discord member to check
        admin_role_ids: Extra role ids that count as admin
        admin_role_name: Extra role name that counts as admin

    Returns:
        True for server administrators or holders of a configured role.
    """
    if member is None:
        return False

    perms = getattr(member, "guild_permissions", None)
    if perms and perms.administrator:
        return True

    roles = getattr(member, "roles", None) or []

    if admin_role_ids:
        if any(r.id in admin_role_ids for r in roles):
            return True

    if admin_role_name:
        if any(r.name == admin_role_name for r in roles):
            return True

    return False


def is_owner_or_admin(actor_id: int, lobby: Any, *, admin: bool = False) -> bool:
    """Owner of the lobby, or someone already known to be an admin."""
    return admin or int(actor_id) == int(lobby.owner_id)


def owner_or_admin_check(
    member: Optional[discord.Member],
    *,
    admin_role_ids: Optional[Set[int]] = None,
    admin_role_name: str = "",
) -> Callable[[int, Any], bool]:
    """Build the ``authorize(actor_id, lobby)`` callable the engine consults.

    Admin status is resolved once, up front, so the engine never touches
    Discord while it holds a lobby lock.
    """
    admin = is_admin(member, admin_role_ids=admin_role_ids, admin_role_name=admin_role_name)

    def _check(actor_id: int, lobby: Any) -> bool:
        return is_owner_or_admin(actor_id, lobby, admin=admin)

    return _check
