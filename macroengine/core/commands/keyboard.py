"""Keyboard commands for InstructionExecutor.

/send, /hold, /release — the argument is a key or ``KEY+KEY`` combo.
"""
from __future__ import annotations


def cmd_send(self, instruction) -> None:
    """/send combo — press and release."""
    self._env.press_keys(instruction.args)
    self._echo(instruction, f"Sent {instruction.args}")


def cmd_hold(self, instruction) -> None:
    """/hold combo — press and keep pressed."""
    self._env.hold_keys(instruction.args)


def cmd_release(self, instruction) -> None:
    """/release combo — release a held combo."""
    self._env.release_keys(instruction.args)
