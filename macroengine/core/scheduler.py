"""Execution scheduler — run/pause/stop/step/loop over a stack of frames.

States
------
IDLE       no frames
RUNNING    tick() advances the top frame
PAUSED     stack kept, tick() does nothing, step() advances once
NOT_READY  environment unusable; stack kept, prior state restored later

Frames
------
Every run pushes an ExecutionFrame.  Running a macro while another one is
active (``run`` or ``/runmacro``) pushes on top; the outer frame carries on
from its own cursor once the inner frame is popped.  Native frames hold the
parsed instruction list; Lua frames hold a ScriptRun and use the cursor
sentinel STEP_EMBEDDED.

Ticks
-----
One tick = one native instruction, or one resume/yield/execute cycle of a
script.  The lock guards the stack and state only; it is released while
the executor runs so pause()/stop() from another thread return at once.
The stop event is cleared by the first advance of a new run, not by run(),
so a wait still draining from a stopped run sees the stop.

Loops
-----
``/loop N`` keeps its own remaining count per line: N re-entries from the
first instruction, then fall through with the counter reset.  ``/loop``
without a count repeats until stopped.  pause(at_next_loop) and
stop(at_next_loop) are honoured at the next /loop reached, and only there.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from macroengine.core.constants import MAX_FRAME_DEPTH, STEP_EMBEDDED
from macroengine.core.errors import (
    EnvironmentUnavailable, FailureKind, MacroFailure, MacroLookupError,
    ParseError, ScriptError, TemplateError,
)
from macroengine.core.executor import InstructionExecutor
from macroengine.core.grammar import GrammarRegistry
from macroengine.core.instruction import Instruction, Outcome, OutcomeStatus
from macroengine.core.nodes import Language, MacroNode, MacroTree, Node
from macroengine.core.parser import (
    apply_craft_loop_template, override_last_loop, parse_line, parse_macro,
)
from macroengine.core.scripting import ScriptingBridge, ScriptRun

LogFn = Callable[[str, str], None]   # (level, message)


class RunState(Enum):
    IDLE      = "idle"
    RUNNING   = "running"
    PAUSED    = "paused"
    NOT_READY = "not_ready"


class FrameResult(Enum):
    COMPLETED = "completed"
    FAILED    = "failed"
    STOPPED   = "stopped"


@dataclass(eq=False)
class ExecutionFrame:
    """One in-progress macro run."""
    macro:          MacroNode
    text:           str                     = ""     # text actually run (after templates)
    instructions:   list[Instruction]       = field(default_factory=list)
    script:         Optional[ScriptRun]     = None
    cursor:         int                     = 0      # next instruction index
    loop_counters:  dict[int, int]          = field(default_factory=dict)
    loops_done:     int                     = 0      # loop re-entries so far
    pause_at_loop:  bool                    = False
    stop_at_loop:   bool                    = False
    pending_result: Any                     = None   # resumed into the script next tick
    pending_line:   Optional[str]           = None   # yielded line interrupted by NOT_READY
    steps:          int                     = 0      # lines yielded by the script

    @property
    def embedded(self) -> bool:
        return self.script is not None

    @property
    def position(self) -> int:
        """Cursor for native frames, yielded-line count for scripts."""
        return self.steps if self.embedded else self.cursor


_RESULT_LEVEL = {
    FrameResult.COMPLETED: "SUCCESS",
    FrameResult.FAILED:    "ERROR",
    FrameResult.STOPPED:   "INFO",
}


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

class Scheduler:
    """Owns the frame stack and the run state."""

    def __init__(
        self,
        tree:              MacroTree,
        executor:          InstructionExecutor,
        registry:          GrammarRegistry,
        bridge:            ScriptingBridge,
        settings,
        log_fn:            LogFn | None = None,
        on_state:          Callable[[RunState], None] | None = None,
        on_status:         Callable[[list[tuple[str, int]]], None] | None = None,
        on_loop:           Callable[[str, int, Optional[int]], None] | None = None,
        on_frame_finished: Callable[[str, FrameResult], None] | None = None,
    ) -> None:
        self._tree        = tree
        self._executor    = executor
        self._registry    = registry
        self._bridge      = bridge
        self._settings    = settings
        self._log         = log_fn or (lambda lvl, msg: None)
        self._on_state    = on_state or (lambda state: None)
        self._on_status   = on_status or (lambda status: None)
        self._on_loop     = on_loop or (lambda name, done, count: None)
        self._on_finished = on_frame_finished or (lambda name, result: None)

        self._lock        = threading.RLock()
        self._stack:  list[ExecutionFrame] = []
        self._state       = RunState.IDLE
        self._prior_state = RunState.IDLE      # restored when leaving NOT_READY
        self._closed      = False
        self._fresh_run   = False      # stop_event is cleared by the first advance of a new run

        self._executor.macro_runner = self._run_nested

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    def is_running(self) -> bool:
        """True only while RUNNING; paused and not-ready runs report False."""
        return self._state is RunState.RUNNING

    def is_active(self) -> bool:
        """True while any frame is on the stack (running, paused or not ready)."""
        return self._state is not RunState.IDLE

    def macro_status(self) -> list[tuple[str, int]]:
        """(macro name, step) for every frame, bottom to top."""
        with self._lock:
            return [(f.macro.name, f.position) for f in self._stack]

    def current_macro_content(self) -> str:
        with self._lock:
            return self._stack[-1].text if self._stack else ""

    def current_macro_step(self) -> Optional[int]:
        """Index of the next instruction of the top frame (STEP_EMBEDDED for scripts)."""
        with self._lock:
            return self._stack[-1].cursor if self._stack else None

    def frames(self) -> list[ExecutionFrame]:
        with self._lock:
            return list(self._stack)

    # ------------------------------------------------------------------
    # Run control
    # ------------------------------------------------------------------

    def run(self, node: Node, loop_count: int | None = None) -> bool:
        """Push a frame for ``node``.  Returns False if nothing was pushed."""
        if self._closed:
            self._log("WARNING", "Scheduler has been shut down")
            return False
        if not isinstance(node, MacroNode):
            self._log("WARNING", f"{node.name!r} is a folder and cannot be run")
            return False

        frame = self._build_frame(node, loop_count)
        if frame is None:
            return False

        with self._lock:
            if len(self._stack) >= MAX_FRAME_DEPTH:
                self._log("ERROR", f"Cannot run {node.name!r}: more than {MAX_FRAME_DEPTH} nested macros")
                return False
            if not self._stack:
                self._fresh_run = True
            self._stack.append(frame)
            if self._state is RunState.NOT_READY:
                self._prior_state = RunState.RUNNING
            else:
                self._set_state(RunState.RUNNING)
            self._log("INFO", f"Running macro {node.name!r}")
            self._emit_status()
        return True

    def run_by_name(self, name: str, loop_count: int | None = None) -> bool:
        """Run the single macro called ``name``.

        Raises MacroLookupError when no macro, or more than one, has the name.
        """
        matches = self._tree.find_macros(name)
        if not matches:
            raise MacroLookupError(f"No macro named {name!r}")
        if len(matches) > 1:
            raise MacroLookupError(f"{len(matches)} macros are named {name!r}")
        return self.run(matches[0], loop_count)

    def pause(self, at_next_loop: bool = False) -> None:
        with self._lock:
            if at_next_loop:
                if self._stack and self._state is not RunState.PAUSED:
                    self._stack[-1].pause_at_loop = True
                    self._log("INFO", "Pausing at the next loop")
                return
            if self._state is RunState.RUNNING:
                self._set_state(RunState.PAUSED)
                self._log("INFO", "Paused")
            elif self._state is RunState.NOT_READY and self._prior_state is RunState.RUNNING:
                self._prior_state = RunState.PAUSED

    def resume(self) -> None:
        with self._lock:
            if self._state is RunState.PAUSED and self._stack:
                self._set_state(RunState.RUNNING)
                self._log("INFO", "Resumed")
            elif self._state is RunState.NOT_READY and self._prior_state is RunState.PAUSED:
                self._prior_state = RunState.RUNNING

    def stop(self, at_next_loop: bool = False) -> None:
        with self._lock:
            if not self._stack:
                return
            if at_next_loop:
                self._stack[-1].stop_at_loop = True
                self._log("INFO", "Stopping at the next loop")
                return
            self._executor.stop_event.set()
            self._clear(FrameResult.STOPPED)
            self._log("INFO", "Stopped")

    def step(self) -> bool:
        """Advance once while paused, then stay paused."""
        with self._lock:
            if self._state is not RunState.PAUSED or not self._stack:
                return False
            if not self._environment_ready():
                self._enter_not_ready()
                return False
        advanced = self._advance()
        with self._lock:
            # a /runmacro during the step pushes and switches to RUNNING
            if self._state is RunState.RUNNING and self._stack:
                self._set_state(RunState.PAUSED)
        return advanced

    def tick(self) -> bool:
        """Called by the driver.  Returns True if a frame advanced."""
        with self._lock:
            if self._state is RunState.NOT_READY:
                if not self._environment_ready():
                    return False
                self._leave_not_ready()
            if self._state is not RunState.RUNNING:
                return False
            if not self._environment_ready():
                self._enter_not_ready()
                return False
        return self._advance()

    def shutdown(self) -> None:
        self.stop()
        self._closed = True
        self._executor.macro_runner = None

    # ------------------------------------------------------------------
    # Frame construction
    # ------------------------------------------------------------------

    def _build_frame(self, node: MacroNode, loop_count: int | None) -> Optional[ExecutionFrame]:
        if node.language is Language.LUA:
            if loop_count is not None:
                self._log("WARNING", f"{node.name}: loop count {loop_count} ignored, Lua macros have no /loop to rewrite")
            try:
                script = self._bridge.start(node)
            except ScriptError as exc:
                self._log("ERROR", f"Script error: {exc}")
                return None
            return ExecutionFrame(node, text=node.contents, script=script, cursor=STEP_EMBEDDED)

        text = node.contents
        try:
            if node.craft_loop and self._settings.craft_loop_template_enabled:
                text = apply_craft_loop_template(
                    text, node.craft_loop_count, self._settings.craft_loop_template,
                )
            if loop_count is not None:
                text = override_last_loop(text, loop_count, self._registry)
            instructions = parse_macro(text, self._registry)
        except TemplateError as exc:
            self._log("ERROR", f"{node.name}: {exc}")
            return None
        except ParseError as exc:
            self._log("ERROR", f"{node.name} line {exc.line_num + 1}: {exc}")
            return None
        return ExecutionFrame(node, text=text, instructions=instructions)

    def _run_nested(self, name: str) -> None:
        """macro_runner for /runmacro."""
        if not self.run_by_name(name):
            raise MacroFailure(FailureKind.UNSUPPORTED, f"Could not start macro {name!r}")

    # ------------------------------------------------------------------
    # Advancing
    # ------------------------------------------------------------------

    def _advance(self) -> bool:
        with self._lock:
            if self._fresh_run:
                self._fresh_run = False
                self._executor.stop_event.clear()
            if not self._stack:
                self._set_state(RunState.IDLE)
                return False
            frame = self._stack[-1]
        if frame.embedded:
            return self._advance_script(frame)
        return self._advance_native(frame)

    def _advance_native(self, frame: ExecutionFrame) -> bool:
        with self._lock:
            if frame.cursor >= len(frame.instructions):
                self._pop(frame, FrameResult.COMPLETED)
                return True
            index = frame.cursor
            instruction = frame.instructions[index]
            frame.cursor += 1
            self._emit_status()

        outcome = self._execute(frame, instruction)

        with self._lock:
            if outcome is None:
                if self._owns(frame):
                    frame.cursor = index
                    self._enter_not_ready()
                    self._emit_status()
                return False
            if not self._settle(frame, instruction, outcome):
                return True
            if instruction.command == "loop" and outcome.status is OutcomeStatus.COMPLETED:
                self._loop_boundary(frame, index, instruction.args)
            if (
                self._owns(frame) and self._stack[-1] is frame
                and frame.cursor >= len(frame.instructions)
            ):
                self._pop(frame, FrameResult.COMPLETED)
        return True

    def _advance_script(self, frame: ExecutionFrame) -> bool:
        line = frame.pending_line
        frame.pending_line = None
        if line is None:
            try:
                line = frame.script.resume(frame.pending_result)
            except ScriptError as exc:
                with self._lock:
                    self._log("ERROR", f"Script error: {exc}")
                    if self._owns(frame):
                        self._pop(frame, FrameResult.FAILED)
                return True
            if line is None:
                with self._lock:
                    if self._owns(frame):
                        self._pop(frame, FrameResult.COMPLETED)
                return True
            frame.steps += 1

        with self._lock:
            self._emit_status()
        try:
            instruction = parse_line(line, self._registry, frame.steps - 1)
        except ParseError as exc:
            self._log("ERROR", f"{frame.macro.name}: {exc}")
            frame.pending_result = False
            return True
        if instruction is None:
            frame.pending_result = True
            return True

        outcome = self._execute(frame, instruction)

        with self._lock:
            if outcome is None:
                if self._owns(frame):
                    frame.pending_line = line
                    self._enter_not_ready()
                return False
            frame.pending_result = outcome.ok
            if not self._settle(frame, instruction, outcome):
                return True
            if instruction.command == "loop" and outcome.status is OutcomeStatus.COMPLETED:
                self._loop_flags(frame)
        return True

    def _execute(self, frame: ExecutionFrame, instruction: Instruction) -> Optional[Outcome]:
        """Run one instruction with the lock released.  None means NOT_READY."""
        try:
            return self._executor.execute(instruction)
        except EnvironmentUnavailable as exc:
            self._log("WARNING", f"Environment unavailable: {exc}")
            return None
        except Exception as exc:          # noqa: BLE001
            self._log("ERROR", f"{frame.macro.name} line {instruction.line_num + 1}: {exc!r}")
            return Outcome.failed(FailureKind.UNSUPPORTED, repr(exc))

    def _settle(self, frame: ExecutionFrame, instruction: Instruction, outcome: Outcome) -> bool:
        """Apply the failure policy.  False if the frame is gone afterwards."""
        if not self._owns(frame):
            return False
        if outcome.ok:
            return True
        label = f"{frame.macro.name} line {instruction.line_num + 1}"
        if self._executor.is_stop_worthy(outcome):
            self._log("ERROR", f"{label}: {outcome.reason or outcome.status.name}")
            self._pop(frame, FrameResult.FAILED)
            return False
        self._log("WARNING", f"{label}: {outcome.reason or outcome.status.name}")
        return True

    # ------------------------------------------------------------------
    # Loops
    # ------------------------------------------------------------------

    def _loop_boundary(self, frame: ExecutionFrame, index: int, count: Optional[int]) -> None:
        if frame.stop_at_loop:
            self._loop_flags(frame)
            return

        if count is None:
            reenter = True
        else:
            remaining = frame.loop_counters.get(index, count)
            reenter = remaining > 0
            if reenter:
                frame.loop_counters[index] = remaining - 1
            else:
                frame.loop_counters.pop(index, None)

        if reenter:
            frame.cursor = 0
            frame.loops_done += 1
            self._on_loop(frame.macro.name, frame.loops_done, count)
            if self._settings.loop_echo:
                total = "∞" if count is None else str(count)
                self._log("INFO", f"{frame.macro.name}: loop {frame.loops_done}/{total}")
            self._emit_status()

        self._loop_flags(frame)

    def _loop_flags(self, frame: ExecutionFrame) -> None:
        """Honour pause/stop-at-next-loop; also used for /loop yielded by scripts."""
        if frame.stop_at_loop:
            self._log("INFO", f"{frame.macro.name}: stopped at loop")
            self._executor.stop_event.set()
            self._clear(FrameResult.STOPPED)
            return
        if frame.pause_at_loop:
            frame.pause_at_loop = False
            if self._state is RunState.RUNNING:
                self._set_state(RunState.PAUSED)
            self._log("INFO", f"{frame.macro.name}: paused at loop")

    # ------------------------------------------------------------------
    # Stack and state helpers (call with the lock held)
    # ------------------------------------------------------------------

    def _owns(self, frame: ExecutionFrame) -> bool:
        return any(f is frame for f in self._stack)

    def _pop(self, frame: ExecutionFrame, result: FrameResult) -> None:
        self._stack = [f for f in self._stack if f is not frame]
        if frame.script is not None:
            frame.script.close()
        self._log(_RESULT_LEVEL[result], f"Macro {frame.macro.name!r} {result.value}")
        self._on_finished(frame.macro.name, result)
        if not self._stack:
            self._set_state(RunState.IDLE)
        self._emit_status()

    def _clear(self, result: FrameResult) -> None:
        while self._stack:
            self._pop(self._stack[-1], result)

    def _set_state(self, state: RunState) -> None:
        if state is self._state:
            return
        self._state = state
        self._on_state(state)

    def _environment_ready(self) -> bool:
        try:
            return self._executor.environment.is_ready()
        except EnvironmentUnavailable:
            return False

    def _enter_not_ready(self) -> None:
        if self._state is RunState.NOT_READY or not self._stack:
            return
        self._prior_state = self._state
        self._set_state(RunState.NOT_READY)
        self._log("WARNING", "Environment not ready, waiting")

    def _leave_not_ready(self) -> None:
        self._set_state(self._prior_state if self._stack else RunState.IDLE)
        self._log("INFO", "Environment ready again")

    def _emit_status(self) -> None:
        self._on_status([(f.macro.name, f.position) for f in self._stack])
