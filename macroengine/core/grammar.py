"""Grammar registry — the catalogue of commands and modifiers.

The registry is an explicit table built once at start-up by
``default_registry()``:

    alias (lower-case)  →  canonical command name  →  CommandSpec
    modifier name       →  ModifierSpec

Each CommandSpec carries its own argument grammar (``parse_args``); each
ModifierSpec knows how to parse and render its value.  The parser raises
ParseError when either of them raises ValueError.  Execution behaviour
lives in executor.py's dispatch table, keyed by the same canonical names.

User aliases from the settings [COMMANDS] section are added on top of the
built-ins (``alias = command``).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

LogFn = Callable[[str, str], None]   # (level, message)


@dataclass(frozen=True)
class CommandSpec:
    name:        str
    aliases:     tuple[str, ...]
    description: str
    parse_args:  Callable[[str], Any]
    examples:    tuple[str, ...] = ()


@dataclass(frozen=True)
class ModifierSpec:
    name:        str
    description: str
    parse_value: Callable[[Optional[str]], Any]
    render:      Callable[[Any], str]
    examples:    tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Argument grammars
# ---------------------------------------------------------------------------

def _unquote(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1].strip()
    return text


def parse_name(raw: str) -> str:
    """A required, optionally quoted name: ``Muscle Memory`` / ``"Muscle Memory"``."""
    name = _unquote(raw)
    if not name:
        raise ValueError("a name is required")
    return name


def parse_text(raw: str) -> str:
    return raw.strip()


def parse_duration(raw: str) -> tuple[float, float]:
    """``N`` or ``N-M`` seconds → (low, high)."""
    text = raw.strip()
    if not text:
        raise ValueError("a duration is required")
    low_text, sep, high_text = text.partition("-")
    try:
        low  = float(low_text)
        high = float(high_text) if sep else low
    except ValueError:
        raise ValueError(f"not a duration: {text!r}") from None
    if low < 0 or high < low:
        raise ValueError(f"invalid duration range: {text!r}")
    return low, high


def parse_optional_count(raw: str) -> Optional[int]:
    text = raw.strip()
    if not text:
        return None
    try:
        count = int(text)
    except ValueError:
        raise ValueError(f"not a loop count: {text!r}") from None
    if count < 0:
        raise ValueError(f"loop count must not be negative: {count}")
    return count


def parse_key(raw: str) -> str:
    text = raw.strip()
    if not text or " " in text:
        raise ValueError(f"expected a single key or key combo, got {raw.strip()!r}")
    return text


# ---------------------------------------------------------------------------
# Modifier value grammars
# ---------------------------------------------------------------------------

def _fmt(value: float) -> str:
    return f"{value:g}"


def _flag(value: Optional[str]) -> bool:
    if value:
        raise ValueError(f"takes no value, got {value!r}")
    return True


def _wait_value(value: Optional[str]) -> tuple[float, float]:
    if value is None:
        raise ValueError("requires a duration")
    return parse_duration(value)


def _render_wait(value: tuple[float, float]) -> str:
    low, high = value
    if low == high:
        return f"<wait.{_fmt(low)}>"
    return f"<wait.{_fmt(low)}-{_fmt(high)}>"


def _maxwait_value(value: Optional[str]) -> float:
    try:
        seconds = float(value or "")
    except ValueError:
        raise ValueError(f"not a number of seconds: {value!r}") from None
    if seconds <= 0:
        raise ValueError("must be greater than zero")
    return seconds


def _condition_value(value: Optional[str]) -> tuple[str, ...]:
    names = tuple(part.strip().lower() for part in (value or "").split(","))
    if not names or any(not n or n == "!" for n in names):
        raise ValueError(f"expected a comma separated list of conditions, got {value!r}")
    return names


def _index_value(value: Optional[str]) -> int:
    try:
        index = int(value or "")
    except ValueError:
        raise ValueError(f"not an index: {value!r}") from None
    if index < 1:
        raise ValueError("index starts at 1")
    return index


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class GrammarRegistry:
    """Alias table for commands plus the modifier catalogue."""

    def __init__(self) -> None:
        self._commands:  dict[str, CommandSpec]  = {}
        self._aliases:   dict[str, str]          = {}
        self._modifiers: dict[str, ModifierSpec] = {}

    # ------------------------------------------------------------------
    def register_command(self, spec: CommandSpec) -> None:
        names = {spec.name.lower(), *(a.lower() for a in spec.aliases)}
        for alias in names:
            owner = self._aliases.get(alias)
            if owner is not None and owner != spec.name:
                raise ValueError(f"Alias {alias!r} already belongs to {owner!r}")
        self._commands[spec.name] = spec
        for alias in names:
            self._aliases[alias] = spec.name

    def register_modifier(self, spec: ModifierSpec) -> None:
        if spec.name.lower() in self._modifiers:
            raise ValueError(f"Modifier {spec.name!r} already registered")
        self._modifiers[spec.name.lower()] = spec

    def add_alias(self, alias: str, command: str) -> bool:
        """Point ``alias`` at an existing command; False if it cannot."""
        target = self._aliases.get(command.lower().lstrip("/"))
        alias  = alias.lower().lstrip("/")
        if target is None or not alias:
            return False
        owner = self._aliases.get(alias)
        if owner is not None and owner != target:
            return False
        self._aliases[alias] = target
        return True

    # ------------------------------------------------------------------
    def resolve(self, token: str) -> Optional[CommandSpec]:
        """Alias (sigil already stripped, any case) → CommandSpec or None."""
        name = self._aliases.get(token.lower())
        return self._commands[name] if name is not None else None

    def command(self, name: str) -> CommandSpec:
        return self._commands[name]

    def modifier(self, name: str) -> ModifierSpec:
        return self._modifiers[name.lower()]

    def find_modifier(self, name: str) -> Optional[ModifierSpec]:
        return self._modifiers.get(name.lower())

    def commands(self) -> list[CommandSpec]:
        return sorted(self._commands.values(), key=lambda s: s.name)

    def modifiers(self) -> list[ModifierSpec]:
        return sorted(self._modifiers.values(), key=lambda s: s.name)

    def aliases_of(self, name: str) -> list[str]:
        return sorted(a for a, n in self._aliases.items() if n == name)


# ---------------------------------------------------------------------------
# Built-in catalogue
# ---------------------------------------------------------------------------

BUILTIN_COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec("action", ("action", "ac"),
                "Execute an action and wait for the server to respond.",
                parse_name,
                ("/ac Groundwork", '/ac "Tricks of the Trade" <wait.2>', "/ac Observe <unsafe>")),
    CommandSpec("wait", ("wait",),
                "Wait a number of seconds, or a random time within a range.",
                parse_duration,
                ("/wait 1", "/wait 1.5-3")),
    CommandSpec("loop", ("loop",),
                "Loop back to the start of the macro, N more times or until stopped.",
                parse_optional_count,
                ("/loop", "/loop 5", "/loop 5 <echo>")),
    CommandSpec("echo", ("echo",),
                "Print a message to the notification channel.",
                parse_text,
                ("/echo Done crafting",)),
    CommandSpec("target", ("target",),
                "Target an entity by name.",
                parse_name,
                ("/target Eirikur", "/target Moyce <index.2>")),
    CommandSpec("item", ("item",),
                "Use an inventory item by name.",
                parse_name,
                ("/item Calamari Ripieni",)),
    CommandSpec("waitaddon", ("waitaddon",),
                "Wait until a UI addon exists and is visible.",
                parse_name,
                ("/waitaddon RecipeNote <maxwait.5>",)),
    CommandSpec("send", ("send",),
                "Press and release a key or key combo.",
                parse_key,
                ("/send NUMPAD0", "/send CONTROL+MENU+SHIFT+NUMPAD0")),
    CommandSpec("hold", ("hold",),
                "Press and keep holding a key or key combo.",
                parse_key,
                ("/hold SHIFT",)),
    CommandSpec("release", ("release",),
                "Release a key or key combo held by /hold.",
                parse_key,
                ("/release SHIFT",)),
    CommandSpec("click", ("click",),
                "Click a named UI element.",
                parse_name,
                ("/click synthesize",)),
    CommandSpec("require", ("require",),
                "Wait until the character has a status effect.",
                parse_name,
                ('/require "Well Fed" <maxwait.10>',)),
    CommandSpec("runmacro", ("runmacro",),
                "Start another macro by name; this one resumes when it ends.",
                parse_name,
                ('/runmacro "Repair gear"',)),
)

BUILTIN_MODIFIERS: tuple[ModifierSpec, ...] = (
    ModifierSpec("wait",
                 "Wait N seconds (or a random time in N-M) after the command.",
                 _wait_value, _render_wait,
                 ("/ac Groundwork <wait.3>", "/ac Observe <wait.1.5-2.5>")),
    ModifierSpec("unsafe",
                 "Do not wait for the server to confirm the action.",
                 _flag, lambda value: "<unsafe>",
                 ("/ac Groundwork <unsafe>",)),
    ModifierSpec("echo",
                 "Echo what the command did.",
                 _flag, lambda value: "<echo>",
                 ("/loop 5 <echo>",)),
    ModifierSpec("maxwait",
                 "Override how long the command may wait for a result.",
                 _maxwait_value, lambda value: f"<maxwait.{_fmt(value)}>",
                 ("/waitaddon RecipeNote <maxwait.10>",)),
    ModifierSpec("condition",
                 "Only run the command while the current condition matches; '!' negates.",
                 _condition_value, lambda value: f"<condition.{','.join(value)}>",
                 ("/ac Intensive Synthesis <condition.good,excellent>", "/ac Observe <condition.!poor>")),
    ModifierSpec("index",
                 "Pick the N-th match when several share a name.",
                 _index_value, lambda value: f"<index.{value}>",
                 ("/target Moyce <index.2>",)),
)


def default_registry(sugar_map: dict[str, str] | None = None, log: LogFn | None = None) -> GrammarRegistry:
    """Build the built-in registry and layer ``sugar_map`` aliases on top."""
    _log = log or (lambda lvl, msg: None)
    registry = GrammarRegistry()
    for spec in BUILTIN_COMMANDS:
        registry.register_command(spec)
    for mod in BUILTIN_MODIFIERS:
        registry.register_modifier(mod)
    for alias, command in (sugar_map or {}).items():
        if not registry.add_alias(alias, command):
            _log("WARNING", f"Ignoring alias {alias!r}: cannot map it to {command!r}")
    return registry
