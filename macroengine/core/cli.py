"""Text run-control commands.

    run <name>            run the macro with that (unique) name
    run loop <N> <name>   same, with the last /loop set to N
    pause / pause loop    pause now / at the next /loop
    resume
    stop  / stop loop     clear the stack now / at the next /loop
    help

``handle_command`` works on anything with the run-control surface
(Scheduler or MacroPlayer) and returns the message to show the user; it
never raises for bad input.
"""
from __future__ import annotations

from macroengine.core.errors import MacroLookupError

CLI_COMMANDS: list[tuple[str, str, str | None]] = [
    ("help",       "Show this list.",                                        None),
    ("run",        "Run a macro, the name must be unique.",                  "run MyMacro"),
    ("run loop #", "Run a macro with its last /loop set to N (appended if missing).",
                                                                             "run loop 5 MyMacro"),
    ("pause",      "Pause the currently executing macro.",                   None),
    ("pause loop", "Pause the currently executing macro at the next /loop.", None),
    ("resume",     "Resume the currently paused macro.",                     None),
    ("stop",       "Clear the currently executing macro list.",              None),
    ("stop loop",  "Clear the currently executing macro list at the next /loop.", None),
]

USAGE = "Usage: " + " | ".join(name for name, _, _ in CLI_COMMANDS)


def help_text() -> str:
    width = max(len(name) for name, _, _ in CLI_COMMANDS)
    lines = []
    for name, description, example in CLI_COMMANDS:
        line = f"{name:<{width}}  {description}"
        if example:
            line += f"  (e.g. {example})"
        lines.append(line)
    return "\n".join(lines)


def handle_command(controller, text: str) -> str:
    parts = text.strip().split(None, 1)
    if not parts:
        return help_text()
    verb = parts[0].lower()
    rest = parts[1].strip() if len(parts) > 1 else ""

    if verb == "help":
        return help_text()
    if verb == "run":
        return _run(controller, rest)
    if verb == "pause" and rest in ("", "loop"):
        controller.pause(at_next_loop=bool(rest))
        return "Pausing at the next loop" if rest else "Paused"
    if verb == "resume" and not rest:
        controller.resume()
        return "Resumed"
    if verb == "stop" and rest in ("", "loop"):
        controller.stop(at_next_loop=bool(rest))
        return "Stopping at the next loop" if rest else "Stopped"
    return f"Unknown command: {text.strip()!r}. {USAGE}"


def _run(controller, rest: str) -> str:
    loop_count = None
    words = rest.split(None, 2)
    if len(words) >= 2 and words[0].lower() == "loop":
        try:
            loop_count = int(words[1])
        except ValueError:
            return f"Loop count must be a number, got {words[1]!r}"
        if loop_count < 0:
            return "Loop count must not be negative"
        rest = words[2].strip() if len(words) > 2 else ""
    if not rest:
        return f"Missing macro name. {USAGE}"

    try:
        started = controller.run_by_name(rest, loop_count)
    except MacroLookupError as exc:
        return str(exc)
    if not started:
        return f"Could not start macro {rest!r}"
    return f"Running {rest!r}" + (f" ({loop_count} loops)" if loop_count is not None else "")
