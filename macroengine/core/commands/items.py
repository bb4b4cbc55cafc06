"""Inventory command for InstructionExecutor.

/item name
"""
from __future__ import annotations

from macroengine.core.errors import FailureKind, MacroFailure


def cmd_item(self, instruction) -> None:
    """/item name — use an item; missing and unusable items fail separately."""
    name = instruction.args
    if not self._env.has_item(name):
        raise MacroFailure(FailureKind.ITEM_NOT_FOUND, f"You do not have any {name}")
    if not self._env.can_use_item(name):
        raise MacroFailure(FailureKind.ITEM_NOT_USABLE, f"{name} cannot be used right now")
    self._env.use_item(name)
    self._echo(instruction, f"Used {name}")
