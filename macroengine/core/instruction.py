"""Instruction and Outcome dataclasses.

An Instruction is one parsed native line, built by parser.py and consumed
immediately by executor.py.  An Outcome is what the executor reports back
to the scheduler (or, for a yielded line, to the embedded script).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from macroengine.core.errors import FailureKind
from macroengine.core.prefix import COMMAND_PREFIX


@dataclass
class Instruction:
    """A single command with its modifiers."""
    command:   str                              # canonical command name, e.g. "action"
    raw_args:  str             = ""             # argument text, modifiers stripped
    args:      Any             = None           # value from the command's own grammar
    modifiers: dict[str, Any]  = field(default_factory=dict)
    text:      str             = ""             # original source line
    line_num:  int             = 0              # 0-based source line

    def has(self, modifier: str) -> bool:
        return modifier in self.modifiers

    def to_text(self, registry=None) -> str:
        """Re-serialise as ``/command args <mod.value> …``.

        ``registry`` renders modifier values; without one, values are
        rendered with ``str()``.
        """
        parts = [f"{COMMAND_PREFIX}{self.command}"]
        if self.raw_args:
            parts.append(self.raw_args)
        for name in sorted(self.modifiers):
            value = self.modifiers[name]
            if registry is not None:
                parts.append(registry.modifier(name).render(value))
            elif value is True:
                parts.append(f"<{name}>")
            else:
                parts.append(f"<{name}.{value}>")
        return " ".join(parts)


class OutcomeStatus(Enum):
    COMPLETED = "completed"
    FAILED    = "failed"
    TIMED_OUT = "timed out"
    SKIPPED   = "skipped"


@dataclass(frozen=True)
class Outcome:
    status:  OutcomeStatus
    failure: Optional[FailureKind] = None
    reason:  str                   = ""

    @classmethod
    def completed(cls) -> "Outcome":
        return cls(OutcomeStatus.COMPLETED)

    @classmethod
    def skipped(cls, reason: str = "") -> "Outcome":
        return cls(OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, kind: FailureKind, reason: str = "") -> "Outcome":
        return cls(OutcomeStatus.FAILED, kind, reason or kind.value)

    @classmethod
    def timed_out(cls, reason: str = "") -> "Outcome":
        return cls(OutcomeStatus.TIMED_OUT, FailureKind.ACTION_TIMEOUT, reason or "no response in time")

    @property
    def ok(self) -> bool:
        return self.status in (OutcomeStatus.COMPLETED, OutcomeStatus.SKIPPED)
