"""Error taxonomy shared by the parser, executor, scheduler and node model.

ParseError            — a native line could not be turned into an Instruction
MacroFailure          — an instruction ran but the environment refused it
EnvironmentUnavailable— the game client is not usable right now (NOT_READY)
StructuralError       — a node-tree invariant would be violated
MacroLookupError      — run-by-name found zero or several macros
ScriptError           — the embedded interpreter raised
TemplateError         — the craft-loop template is unusable
"""
from __future__ import annotations

from enum import Enum


class ParseErrorKind(Enum):
    UNKNOWN_COMMAND        = "unknown command"
    INVALID_MODIFIER_VALUE = "invalid modifier value"
    MALFORMED_ARGUMENTS    = "malformed arguments"
    DUPLICATE_MODIFIER     = "duplicate modifier"


class FailureKind(Enum):
    TARGET_NOT_FOUND  = "target not found"
    ITEM_NOT_FOUND    = "item not found"
    ITEM_NOT_USABLE   = "item not usable"
    ADDON_NOT_FOUND   = "addon not found"
    ADDON_NOT_VISIBLE = "addon not visible"
    ACTION_TIMEOUT    = "action timeout"
    CONDITION_NOT_MET = "condition not met"
    MACRO_NOT_FOUND   = "macro not found"
    UNSUPPORTED       = "not supported by this environment"


class MacroError(Exception):
    """Base class for every error raised by the engine."""


class ParseError(MacroError):
    def __init__(self, kind: ParseErrorKind, message: str, line_num: int = 0) -> None:
        super().__init__(message)
        self.kind     = kind
        self.line_num = line_num

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.args[0]}"


class MacroFailure(MacroError):
    def __init__(self, kind: FailureKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind


class EnvironmentUnavailable(MacroError):
    """Raised by an environment when no session is active."""


class StructuralError(MacroError):
    """Raised by MacroTree before any mutation that would break the tree."""


class MacroLookupError(MacroError, LookupError):
    pass


class ScriptError(MacroError):
    pass


class TemplateError(MacroError, ValueError):
    pass
