"""Desktop environment — keyboard-only Environment backed by pynput.

Used by the headless entry point when no game client is attached.  Key
commands (/send, /hold, /release) go to the focused window through a
pynput keyboard Controller; every game-state command fails with
FailureKind.UNSUPPORTED, which is logged and never stops a macro.
"""
from __future__ import annotations

import time
from typing import Any

from pynput import keyboard

from macroengine.core.environment import Environment
from macroengine.core.errors import FailureKind, MacroFailure
from macroengine.core.keys import parse_combo

KEY_HOLD_S = 0.03   # press → release gap for /send


def _unsupported(what: str) -> MacroFailure:
    return MacroFailure(FailureKind.UNSUPPORTED, f"{what} needs a game client")


class DesktopEnvironment(Environment):
    def __init__(self, controller: Any = None, sleep_fn=None) -> None:
        self._kc       = controller or keyboard.Controller()
        self._sleep_fn = sleep_fn or time.sleep
        self._held: list[Any] = []

    def is_ready(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Game state (not available on the desktop)
    # ------------------------------------------------------------------

    def use_action(self, name: str) -> None:
        raise _unsupported("/action")

    def action_confirmed(self, name: str) -> bool:
        return False

    def target(self, name: str, index: int = 1) -> bool:
        raise _unsupported("/target")

    def has_item(self, name: str) -> bool:
        raise _unsupported("/item")

    def can_use_item(self, name: str) -> bool:
        raise _unsupported("/item")

    def use_item(self, name: str) -> None:
        raise _unsupported("/item")

    def addon_exists(self, name: str) -> bool:
        raise _unsupported("/waitaddon")

    def addon_visible(self, name: str) -> bool:
        raise _unsupported("/waitaddon")

    def click(self, name: str) -> bool:
        raise _unsupported("/click")

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def press_keys(self, combo: str) -> None:
        """Press all keys in order, then release them in reverse."""
        keys = self._combo(combo)
        for k in keys:
            self._kc.press(k)
        self._sleep_fn(KEY_HOLD_S)
        for k in reversed(keys):
            self._kc.release(k)

    def hold_keys(self, combo: str) -> None:
        for k in self._combo(combo):
            self._kc.press(k)
            self._held.append(k)

    def release_keys(self, combo: str) -> None:
        for k in reversed(self._combo(combo)):
            self._kc.release(k)
            if k in self._held:
                self._held.remove(k)

    def release_all(self) -> None:
        """Release anything still held by /hold."""
        while self._held:
            self._kc.release(self._held.pop())

    @staticmethod
    def _combo(combo: str) -> list[Any]:
        try:
            return parse_combo(combo)
        except ValueError as exc:
            raise MacroFailure(FailureKind.UNSUPPORTED, str(exc)) from exc
