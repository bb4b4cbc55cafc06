"""Targeting command for InstructionExecutor.

/target name [<index.n>]
"""
from __future__ import annotations

from macroengine.core.errors import FailureKind, MacroFailure


def cmd_target(self, instruction) -> None:
    """/target name — target the first (or <index.n>-th) entity with that name."""
    name  = instruction.args
    index = instruction.modifiers.get("index", 1)
    if not self._env.target(name, index):
        raise MacroFailure(FailureKind.TARGET_NOT_FOUND, f"Could not find target: {name}")
    self._echo(instruction, f"Targeted {name}")
