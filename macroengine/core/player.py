"""Macro player — Qt front for the scheduler.

Architecture
------------
MacroPlayer (QObject, main thread)
  ├─ grammar.default_registry()     — built-ins + [COMMANDS] aliases
  ├─ executor.InstructionExecutor   — one per player
  ├─ scripting.ScriptingBridge      — Lua macros
  ├─ scheduler.Scheduler            — frame stack and run state
  └─ _DriverThread (QThread)        — calls scheduler.tick() every TICK_INTERVAL_MS
                                      while anything is on the stack

Signals forwarded to the UI
---------------------------
log_message(level, msg)
state_changed("idle" | "running" | "paused" | "not_ready")
status_changed(list[(name, step)])   — bottom to top
loop_reported(name, loops_done, count | None)
frame_finished(name, "completed" | "failed" | "stopped")
"""
from __future__ import annotations

import threading
from typing import Optional

from PySide6.QtCore import QObject, QThread, Signal

from macroengine.core.constants import TICK_INTERVAL_MS
from macroengine.core.environment import Environment
from macroengine.core.executor import InstructionExecutor
from macroengine.core.grammar import default_registry
from macroengine.core.host_library import HostLibrary
from macroengine.core.nodes import MacroTree, Node
from macroengine.core.scheduler import FrameResult, RunState, Scheduler
from macroengine.core.scripting import ScriptingBridge


# ---------------------------------------------------------------------------
# Driver thread
# ---------------------------------------------------------------------------

class _DriverThread(QThread):
    """Ticks the scheduler until the stack empties.

    The exit decision and ``alive`` are changed under ``handoff``, the same
    lock MacroPlayer._ensure_driver holds, so a run queued while the driver
    is leaving always gets a new driver.
    """

    def __init__(self, scheduler: Scheduler, handoff: threading.Lock) -> None:
        super().__init__()
        self._scheduler      = scheduler
        self._handoff        = handoff
        self._step_requested = threading.Event()
        self.alive           = True

    def request_step(self) -> None:
        self._step_requested.set()

    def run(self) -> None:
        try:
            while not self.isInterruptionRequested():
                with self._handoff:
                    if not self._scheduler.is_active():
                        self.alive = False
                        return
                if self._step_requested.is_set():
                    self._step_requested.clear()
                    self._scheduler.step()
                else:
                    self._scheduler.tick()
                self.msleep(TICK_INTERVAL_MS)
        finally:
            with self._handoff:
                self.alive = False


# ---------------------------------------------------------------------------
# Public player
# ---------------------------------------------------------------------------

class MacroPlayer(QObject):
    """Runs macros from ``tree`` against ``environment`` on a background QThread.

    Parameters
    ----------
    settings    : SettingsManager
    environment : Environment
    tree        : MacroTree
    libraries   : host libraries exposed to Lua macros
    interpreter : Lua interpreter override (tests)
    """

    log_message    = Signal(str, str)
    state_changed  = Signal(str)
    status_changed = Signal(object)
    loop_reported  = Signal(str, int, object)
    frame_finished = Signal(str, str)

    def __init__(
        self,
        settings,
        environment: Environment,
        tree:        MacroTree,
        libraries:   list[HostLibrary] | None = None,
        interpreter=None,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._registry = default_registry(settings.syntax_sugar, log=self._emit_log)
        self._executor = InstructionExecutor(environment, settings, log_callback=self._emit_log)
        self._bridge   = ScriptingBridge(
            settings, libraries=libraries, interpreter=interpreter, log_fn=self._emit_log,
        )
        self._scheduler = Scheduler(
            tree              = tree,
            executor          = self._executor,
            registry          = self._registry,
            bridge            = self._bridge,
            settings          = settings,
            log_fn            = self._emit_log,
            on_state          = lambda state: self.state_changed.emit(state.value),
            on_status         = lambda status: self.status_changed.emit(status),
            on_loop           = lambda name, done, count: self.loop_reported.emit(name, done, count),
            on_frame_finished = self._on_frame_finished,
        )
        self._thread: Optional[_DriverThread] = None
        self._handoff = threading.Lock()

    # ------------------------------------------------------------------

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def bridge(self) -> ScriptingBridge:
        return self._bridge

    def is_running(self) -> bool:
        return self._scheduler.is_running()

    def is_active(self) -> bool:
        return self._scheduler.is_active()

    def run(self, node: Node, loop_count: int | None = None) -> bool:
        started = self._scheduler.run(node, loop_count)
        if started:
            self._ensure_driver()
        return started

    def run_by_name(self, name: str, loop_count: int | None = None) -> bool:
        started = self._scheduler.run_by_name(name, loop_count)
        if started:
            self._ensure_driver()
        return started

    def pause(self, at_next_loop: bool = False) -> None:
        self._scheduler.pause(at_next_loop)

    def resume(self) -> None:
        self._scheduler.resume()

    def stop(self, at_next_loop: bool = False) -> None:
        self._scheduler.stop(at_next_loop)

    def step(self) -> None:
        if self._scheduler.state is RunState.PAUSED and self._thread is not None:
            self._thread.request_step()

    def shutdown(self) -> None:
        self._scheduler.shutdown()
        if self._thread:
            self._thread.requestInterruption()
            self._thread.wait(3000)

    # ------------------------------------------------------------------

    def _ensure_driver(self) -> None:
        with self._handoff:
            if self._thread is not None and self._thread.alive:
                return
            previous     = self._thread
            self._thread = _DriverThread(self._scheduler, self._handoff)
        if previous is not None:
            previous.wait()
        self._thread.start()

    def _emit_log(self, level: str, msg: str) -> None:
        self.log_message.emit(level, msg)

    def _on_frame_finished(self, name: str, result: FrameResult) -> None:
        self.frame_finished.emit(name, result.value)
