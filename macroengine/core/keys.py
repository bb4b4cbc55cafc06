"""Key-name tables for /send, /hold and /release.

Combos are written ``CONTROL+MENU+A`` or ``ctrl+alt+a``; names are
case-insensitive.  Both the game's virtual-key names (CONTROL, MENU,
NUMPAD0 …) and the usual desktop names resolve to pynput keys.
"""
from __future__ import annotations

from typing import Any, Optional

from pynput import keyboard

# ---------------------------------------------------------------------------
# Key-name → pynput Key
# ---------------------------------------------------------------------------

SPECIAL_KEYS: dict[str, Any] = {
    "CTRL":        keyboard.Key.ctrl,
    "CONTROL":     keyboard.Key.ctrl,
    "CTRL_L":      keyboard.Key.ctrl_l,
    "CTRL_R":      keyboard.Key.ctrl_r,
    "SHIFT":       keyboard.Key.shift,
    "SHIFT_L":     keyboard.Key.shift_l,
    "SHIFT_R":     keyboard.Key.shift_r,
    "ALT":         keyboard.Key.alt,
    "MENU":        keyboard.Key.alt,
    "ALT_L":       keyboard.Key.alt_l,
    "ALT_R":       keyboard.Key.alt_r,
    "WIN":         keyboard.Key.cmd,
    "SUPER":       keyboard.Key.cmd,
    "ENTER":       keyboard.Key.enter,
    "RETURN":      keyboard.Key.enter,
    "SPACE":       keyboard.Key.space,
    "BACKSPACE":   keyboard.Key.backspace,
    "BACK":        keyboard.Key.backspace,
    "TAB":         keyboard.Key.tab,
    "ESC":         keyboard.Key.esc,
    "ESCAPE":      keyboard.Key.esc,
    "DELETE":      keyboard.Key.delete,
    "HOME":        keyboard.Key.home,
    "END":         keyboard.Key.end,
    "PAGEUP":      keyboard.Key.page_up,
    "PRIOR":       keyboard.Key.page_up,
    "PAGEDOWN":    keyboard.Key.page_down,
    "NEXT":        keyboard.Key.page_down,
    "UP":          keyboard.Key.up,
    "DOWN":        keyboard.Key.down,
    "LEFT":        keyboard.Key.left,
    "RIGHT":       keyboard.Key.right,
    "INSERT":      keyboard.Key.insert,
    **{f"F{n}": getattr(keyboard.Key, f"f{n}") for n in range(1, 13)},
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_key(name: str) -> Optional[Any]:
    """Convert a key name to a pynput Key or KeyCode; None if unknown."""
    upper = name.upper()
    if upper in SPECIAL_KEYS:
        return SPECIAL_KEYS[upper]
    if upper.startswith("KEY_") and len(upper) == 5:
        return keyboard.KeyCode.from_char(upper[4].lower())
    if upper.startswith("NUMPAD") and upper[6:].isdigit() and len(upper) == 7:
        return keyboard.KeyCode.from_char(upper[6])
    if len(name) == 1:
        return keyboard.KeyCode.from_char(name.lower())
    return None


def parse_combo(combo_str: str) -> list[Any]:
    """Parse 'ctrl+shift+a' → [Key.ctrl, Key.shift, KeyCode('a')].

    Raises ValueError naming the first key that does not resolve.
    """
    keys = []
    for part in combo_str.split("+"):
        name = part.strip()
        key  = parse_key(name)
        if key is None:
            raise ValueError(f"Unknown key: {name!r}")
        keys.append(key)
    return keys
