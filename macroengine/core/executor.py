"""Instruction executor — runs one parsed Instruction against the environment.

Commands
--------
Actions  : /action (/ac) — send, wait for confirmation, retry on silence
Timing   : /wait
Output   : /echo
Game     : /target, /item, /waitaddon, /click, /require   (commands/ sub-modules)
Keyboard : /send, /hold, /release                      (commands/keyboard.py)
Macros   : /runmacro — delegated to the scheduler through ``macro_runner``
Control  : /loop — recognised here, handled by the scheduler

Modifier order
--------------
1. <condition.x>  gates the command (Outcome.skipped when it does not match)
2. the command's own side effect
3. <wait.n>       sleeps after a completed command
<echo> only adds notifications; it never changes control flow.

Design notes
------------
- One InstructionExecutor per scheduler.
- Every wait honours ``stop_event``; it is polled every SLEEP_CHUNK_S.
- Handlers raise MacroFailure; ``execute`` turns it into an Outcome.
  EnvironmentUnavailable is not caught here, the scheduler owns that.
"""
from __future__ import annotations

import random
import threading
import time
from typing import Any, Callable

from macroengine.core.commands.addons import cmd_click, cmd_require, cmd_waitaddon
from macroengine.core.commands.items import cmd_item
from macroengine.core.commands.keyboard import cmd_hold, cmd_release, cmd_send
from macroengine.core.commands.targeting import cmd_target
from macroengine.core.constants import SLEEP_CHUNK_S
from macroengine.core.environment import Environment
from macroengine.core.errors import FailureKind, MacroFailure, MacroLookupError
from macroengine.core.instruction import Instruction, Outcome

LogFn = Callable[[str, str], None]   # (level, message)


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

class InstructionExecutor:
    """Executes individual instructions against an Environment."""

    def __init__(
        self,
        environment:  Environment,
        settings,
        log_callback: LogFn | None = None,
        sleep_fn:     Callable[[float], None] | None = None,
        rng:          random.Random | None = None,
    ) -> None:
        self._env         = environment
        self._settings    = settings
        self._stop_event  = threading.Event()
        self._log         = log_callback or (lambda level, msg: None)
        self._sleep_fn    = sleep_fn or time.sleep
        self._rng         = rng or random.Random()
        # Set by the scheduler: callable(name) that pushes a new frame
        self.macro_runner: Callable[[str], Any] | None = None

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    @property
    def environment(self) -> Environment:
        return self._env

    def execute(self, instruction: Instruction) -> Outcome:
        """Run one instruction and report how it went."""
        handler = _DISPATCH.get(instruction.command)
        if handler is None:
            return Outcome.failed(FailureKind.UNSUPPORTED, f"No handler for /{instruction.command}")

        if not self._condition_met(instruction):
            self._echo(instruction, f"Skipped (condition): {instruction.text}")
            return Outcome.skipped("condition not met")

        try:
            handler(self, instruction)
        except MacroFailure as exc:
            if exc.kind is FailureKind.ACTION_TIMEOUT:
                return Outcome.timed_out(str(exc))
            return Outcome.failed(exc.kind, str(exc))

        wait = instruction.modifiers.get("wait")
        if wait is not None:
            self._sleep(self._pick(wait))
        return Outcome.completed()

    def is_stop_worthy(self, outcome: Outcome) -> bool:
        """True if ``outcome`` should end the current macro under the settings."""
        if outcome.ok or outcome.failure is None:
            return False
        return self._settings.stop_on(outcome.failure)

    # ------------------------------------------------------------------
    # Timing helpers
    # ------------------------------------------------------------------

    def _pick(self, span: tuple[float, float]) -> float:
        low, high = span
        return low if high <= low else self._rng.uniform(low, high)

    def _sleep(self, seconds: float) -> None:
        """Sleep for ``seconds``, polling ``_stop_event`` every chunk."""
        elapsed = 0.0
        while elapsed < seconds:
            if self._stop_event.is_set():
                return
            t = min(SLEEP_CHUNK_S, seconds - elapsed)
            self._sleep_fn(t)
            elapsed += t

    def _wait_until(self, predicate: Callable[[], bool], timeout: float) -> bool:
        """Poll ``predicate`` until it holds, ``timeout`` passes or a stop arrives."""
        elapsed = 0.0
        while True:
            if predicate():
                return True
            if self._stop_event.is_set() or elapsed >= timeout:
                return False
            t = min(SLEEP_CHUNK_S, timeout - elapsed)
            self._sleep_fn(t)
            elapsed += t

    # ------------------------------------------------------------------
    # Modifier helpers
    # ------------------------------------------------------------------

    def _condition_met(self, instruction: Instruction) -> bool:
        names = instruction.modifiers.get("condition")
        if not names:
            return True
        current  = self._env.current_condition().lower()
        wanted   = [n for n in names if not n.startswith("!")]
        excluded = [n[1:] for n in names if n.startswith("!")]
        if current in excluded:
            return False
        return not wanted or current in wanted

    def _echo(self, instruction: Instruction, message: str) -> None:
        if instruction.has("echo"):
            self._log("INFO", message)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _cmd_action(self, instruction: Instruction) -> None:
        """/action name — retried ``max_timeout_retries`` times without a response."""
        name     = instruction.args
        budget   = instruction.modifiers.get("maxwait", self._settings.default_wait_budget)
        attempts = self._settings.max_timeout_retries + 1

        for attempt in range(1, attempts + 1):
            self._env.use_action(name)
            if instruction.has("unsafe"):
                break
            if self._wait_until(lambda: self._env.action_confirmed(name), budget):
                break
            if self._stop_event.is_set():
                return
            if attempt < attempts:
                self._log("WARNING", f"No response to {name!r}, retrying ({attempt}/{attempts - 1})")
        else:
            raise MacroFailure(FailureKind.ACTION_TIMEOUT, f"Did not receive a timely response to {name!r}")
        self._echo(instruction, f"Action: {name}")

    def _cmd_wait(self, instruction: Instruction) -> None:
        seconds = self._pick(instruction.args)
        self._echo(instruction, f"Waiting {seconds:.2f}s")
        self._sleep(seconds)

    def _cmd_echo(self, instruction: Instruction) -> None:
        self._log("INFO", instruction.args)

    def _cmd_runmacro(self, instruction: Instruction) -> None:
        if self.macro_runner is None:
            raise MacroFailure(FailureKind.UNSUPPORTED, "/runmacro needs a scheduler")
        try:
            self.macro_runner(instruction.args)
        except MacroLookupError as exc:
            raise MacroFailure(FailureKind.MACRO_NOT_FOUND, str(exc)) from exc
        self._echo(instruction, f"Running macro {instruction.args!r}")

    # ------------------------------------------------------------------
    # Placeholders (control flow handled by the scheduler)
    # ------------------------------------------------------------------

    def _cmd_noop(self, instruction: Instruction) -> None:
        pass


# ---------------------------------------------------------------------------
# Dispatch table — maps canonical command name → handler(executor, instruction)
# ---------------------------------------------------------------------------

_DISPATCH: dict[str, Any] = {
    "action":    InstructionExecutor._cmd_action,
    "wait":      InstructionExecutor._cmd_wait,
    "echo":      InstructionExecutor._cmd_echo,
    "runmacro":  InstructionExecutor._cmd_runmacro,
    "loop":      InstructionExecutor._cmd_noop,
    # Game state (from sub-modules)
    "target":    cmd_target,
    "item":      cmd_item,
    "waitaddon": cmd_waitaddon,
    "click":     cmd_click,
    "require":   cmd_require,
    # Keyboard
    "send":      cmd_send,
    "hold":      cmd_hold,
    "release":   cmd_release,
}
