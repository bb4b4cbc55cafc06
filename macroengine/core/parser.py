"""Native macro parser — one line of text → one Instruction.

Responsibilities
----------------
- Skip blank lines and whole-line comments (# …)
- Resolve the leading /command against the grammar registry (any alias, any case)
- Pull recognised <modifier.value> annotations out of the argument text
- Hand the remaining text to the command's own argument grammar

Unrecognised <annotations> are left in the argument text untouched, so a
typo in a modifier name never stops a macro from parsing.

Text transforms applied before parsing
--------------------------------------
apply_craft_loop_template  — wrap a macro in the configured craft-loop template
override_last_loop         — rewrite the count of the last /loop (``run loop N``)
"""
from __future__ import annotations

import re
from typing import Optional

from macroengine.core.errors import ParseError, ParseErrorKind, TemplateError
from macroengine.core.grammar import GrammarRegistry
from macroengine.core.instruction import Instruction
from macroengine.core.prefix import COMMAND_PREFIX, COMMENT_PREFIX, MODIFIER_PATTERN

MACRO_KEY = "{{macro}}"
COUNT_KEY = "{{count}}"

# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def is_blank_or_comment(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith(COMMENT_PREFIX)


def parse_line(line: str, registry: GrammarRegistry, line_num: int = 0) -> Optional[Instruction]:
    """Parse one native line.

    Returns None for blank/comment lines.  Raises ParseError for an
    unknown command, a bad value on a known modifier, a modifier given
    twice, or arguments the command's grammar rejects.
    """
    if is_blank_or_comment(line):
        return None
    stripped = line.strip()
    parts = stripped.split(None, 1)
    head  = parts[0]
    rest  = parts[1] if len(parts) > 1 else ""

    if not head.startswith(COMMAND_PREFIX):
        raise ParseError(ParseErrorKind.UNKNOWN_COMMAND, f"{head!r} is not a command", line_num)
    spec = registry.resolve(head[len(COMMAND_PREFIX):])
    if spec is None:
        raise ParseError(ParseErrorKind.UNKNOWN_COMMAND, f"{head!r} is not a known command", line_num)

    modifiers: dict[str, object] = {}

    def _take(match: re.Match) -> str:
        mod = registry.find_modifier(match.group("name"))
        if mod is None:
            return match.group(0)           # unknown annotation stays in the arguments
        if mod.name in modifiers:
            raise ParseError(ParseErrorKind.DUPLICATE_MODIFIER,
                             f"<{mod.name}> given more than once", line_num)
        try:
            modifiers[mod.name] = mod.parse_value(match.group("value"))
        except ValueError as exc:
            raise ParseError(ParseErrorKind.INVALID_MODIFIER_VALUE,
                             f"{match.group(0)}: {exc}", line_num) from None
        return " "

    raw_args = " ".join(MODIFIER_PATTERN.sub(_take, rest).split())
    try:
        args = spec.parse_args(raw_args)
    except ValueError as exc:
        raise ParseError(ParseErrorKind.MALFORMED_ARGUMENTS, f"{head}: {exc}", line_num) from None

    return Instruction(
        command   = spec.name,
        raw_args  = raw_args,
        args      = args,
        modifiers = modifiers,
        text      = stripped,
        line_num  = line_num,
    )


def parse_macro(text: str, registry: GrammarRegistry) -> list[Instruction]:
    """Parse every line of a native macro; blank/comment lines are omitted.

    Line numbers refer to the original text.  The first bad line raises.
    """
    result: list[Instruction] = []
    for num, raw in enumerate(text.splitlines()):
        instruction = parse_line(raw, registry, num)
        if instruction is not None:
            result.append(instruction)
    return result


# ---------------------------------------------------------------------------
# Text transforms
# ---------------------------------------------------------------------------

def apply_craft_loop_template(text: str, count: int | None, template: str) -> str:
    """Substitute ``{{macro}}`` and ``{{count}}`` in ``template``.

    A negative or missing count renders as nothing, which turns a
    trailing ``/loop {{count}}`` into an unbounded ``/loop``.
    """
    if MACRO_KEY not in template:
        raise TemplateError(f"Craft loop template must contain {MACRO_KEY!r}")
    count_text = str(count) if count is not None and count >= 0 else ""
    return template.replace(COUNT_KEY, count_text).replace(MACRO_KEY, text)


def override_last_loop(text: str, count: int, registry: GrammarRegistry) -> str:
    """Set the count of the last /loop line to ``count``, or append one."""
    lines = text.splitlines()
    for num in range(len(lines) - 1, -1, -1):
        try:
            instruction = parse_line(lines[num], registry, num)
        except ParseError:
            continue
        if instruction is not None and instruction.command == "loop":
            instruction.raw_args = str(count)
            instruction.args     = count
            lines[num] = instruction.to_text(registry)
            return "\n".join(lines)
    lines.append(f"{COMMAND_PREFIX}loop {count}")
    return "\n".join(lines)
