# utils/settings.py
import os
import re
from dataclasses import dataclass
from datetime import tzinfo
from typing import Set, Tuple

from utils.dates import resolve_tz

# Age of Mythology: Retold ranked pool, used when /game create gets no maps
BUILTIN_DEFAULT_MAPS: Tuple[str, ...] = (
    "Mediterranean",
    "Oasis",
    "Alfheim",
    "Ghost Lake",
    "Savannah",
    "Marsh",
    "Anatolia",
    "Islands",
)

DEFAULT_EMBED_COLOR = 0x00A3FF


def env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def env_int(name: str, default: int = 0) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        return int(raw, 0)
    except Exception:
        return default


def env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if raw in ("1", "true", "yes", "y", "on"):
        return True
    if raw in ("0", "false", "no", "n", "off"):
        return False
    return default


def parse_int_set(csv: str) -> Set[int]:
    out: Set[int] = set()
    for part in re.split(r"[\s,]+", (csv or "").strip()):
        if part.isdigit():
            out.add(int(part))
    return out


def parse_csv(csv: str) -> Tuple[str, ...]:
    """Split a comma-separated list, trimming blanks; order is kept."""
    return tuple(p.strip() for p in (csv or "").split(",") if p.strip())


@dataclass(frozen=True)
class GameNightConfig:
    guild_id: int
    log_channel_id: int

    tz: tzinfo
    default_maps: Tuple[str, ...]

    admin_role_ids: Set[int]
    admin_role_name: str

    vote_requires_join: bool
    embed_color: int


def load_game_night_config() -> GameNightConfig:
    return GameNightConfig(
        guild_id=env_int("GUILD_ID", 0),
        log_channel_id=env_int("GAME_LOG_CHANNEL_ID", 0),

        tz=resolve_tz(env_str("GAME_TZ")),
        default_maps=parse_csv(os.getenv("GAME_DEFAULT_MAPS", "")) or BUILTIN_DEFAULT_MAPS,

        admin_role_ids=parse_int_set(os.getenv("GAME_ADMIN_ROLE_IDS", "")),
        admin_role_name=env_str("GAME_ADMIN_ROLE_NAME"),

        vote_requires_join=env_bool("GAME_VOTE_REQUIRES_JOIN", False),
        embed_color=env_int("GAME_EMBED_COLOR", DEFAULT_EMBED_COLOR),
    )
