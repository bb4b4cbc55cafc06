"""UI addon and status commands for InstructionExecutor.

/waitaddon, /click, /require
"""
from __future__ import annotations

from macroengine.core.constants import DEFAULT_MAXWAIT_S
from macroengine.core.errors import FailureKind, MacroFailure


def cmd_waitaddon(self, instruction) -> None:
    """/waitaddon name [<maxwait.n>] — wait until the addon exists, then until it is visible."""
    name    = instruction.args
    maxwait = instruction.modifiers.get("maxwait", DEFAULT_MAXWAIT_S)
    if not self._wait_until(lambda: self._env.addon_exists(name), maxwait):
        if self._stop_event.is_set():
            return
        raise MacroFailure(FailureKind.ADDON_NOT_FOUND, f"Could not find addon: {name}")
    if not self._wait_until(lambda: self._env.addon_visible(name), maxwait):
        if self._stop_event.is_set():
            return
        raise MacroFailure(FailureKind.ADDON_NOT_VISIBLE, f"Addon not visible: {name}")
    self._echo(instruction, f"Addon ready: {name}")


def cmd_click(self, instruction) -> None:
    """/click name — click a named UI element."""
    name = instruction.args
    if not self._env.click(name):
        raise MacroFailure(FailureKind.ADDON_NOT_FOUND, f"Nothing to click for {name!r}")
    self._echo(instruction, f"Clicked {name}")


def cmd_require(self, instruction) -> None:
    """/require status [<maxwait.n>] — wait until the character has a status effect."""
    name    = instruction.args
    maxwait = instruction.modifiers.get("maxwait", DEFAULT_MAXWAIT_S)
    if not self._wait_until(lambda: self._env.has_status(name), maxwait):
        if self._stop_event.is_set():
            return
        raise MacroFailure(FailureKind.CONDITION_NOT_MET, f"Required status missing: {name}")
