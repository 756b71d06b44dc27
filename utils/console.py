# utils/console.py
from __future__ import annotations

from colorama import Fore, Style, just_fix_windows_console

# Idempotent; enables ANSI colors on Windows terminals.
just_fix_windows_console()

RESET = Style.RESET_ALL

PALETTE = {
    "grey": Fore.LIGHTBLACK_EX,
    "red": Fore.LIGHTRED_EX,
    "green": Fore.LIGHTGREEN_EX,
    "yellow": Fore.LIGHTYELLOW_EX,
    "blue": Fore.LIGHTBLUE_EX,
    "cyan": Fore.LIGHTCYAN_EX,
    "white": Fore.WHITE,
}


def c(text: str, color: str | None = None, *, bold: bool = False) -> str:
    """Wrap ``text`` in ANSI codes for ``color``; unknown colors pass through."""
    code = PALETTE.get((color or "").lower(), "")
    if not code:
        return text
    b = Style.BRIGHT if bold else ""
    return f"{b}{code}{text}{RESET}"
