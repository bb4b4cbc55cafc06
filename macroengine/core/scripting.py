"""Scripting bridge — runs Lua macros one yield at a time.

A Lua macro is loaded as a coroutine.  Every ``yield("/ac Groundwork")``
hands one native line back to the scheduler, which executes it through
the normal parser/executor pipeline and resumes the coroutine with
``true`` (completed or skipped) or ``false`` (failed) on its next tick.
Host-library calls made by the script run immediately and never suspend.

    bridge = ScriptingBridge(settings, libraries=[...])
    run    = bridge.start(macro)
    line   = run.resume(None)       # first yielded line, or None when done
    line   = run.resume(True)       # result of the previous line

Interpreters
------------
LuaInterpreter   — lupa-backed, one fresh LuaRuntime per run
Any object with ``load(source, name, libraries, require_paths)`` returning
a generator-like object (``send`` + StopIteration) can stand in for it.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

from macroengine.core.errors import ScriptError
from macroengine.core.host_library import HostLibrary, describe_libraries
from macroengine.core.nodes import MacroNode
from macroengine.utils.optional_deps import HAS_LUPA, lupa

LogFn = Callable[[str, str], None]   # (level, message)

_PRELUDE = "yield = coroutine.yield"
_LOADER  = "function(src, name) return load(src, '=' .. name) end"


# ---------------------------------------------------------------------------
# Lua interpreter (lupa)
# ---------------------------------------------------------------------------

class LuaInterpreter:
    """Creates Lua coroutines for macro bodies."""

    def load(
        self,
        source:        str,
        name:          str,
        libraries:     list[HostLibrary],
        require_paths: list[str],
    ):
        if not HAS_LUPA:
            raise ScriptError("Lua macros require the 'lupa' package")
        runtime = lupa.LuaRuntime(unpack_returned_tuples=True)
        lua_globals = runtime.globals()

        patterns = []
        for path in require_paths:
            base = Path(path)
            patterns += [str(base / "?.lua"), str(base / "?" / "init.lua")]
        if patterns:
            lua_globals.package.path = ";".join(patterns + [lua_globals.package.path])

        for lib in libraries:
            functions = lib.functions()
            lua_globals[lib.name] = runtime.table_from(functions)
            for fname, func in functions.items():
                lua_globals[fname] = func

        runtime.execute(_PRELUDE)
        loaded = runtime.eval(_LOADER)(source, name)
        if isinstance(loaded, tuple):
            raise ScriptError(f"{name}: {loaded[1]}")
        return loaded.coroutine()


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------

class ScriptRun:
    """One running script.  ``resume`` advances it to the next yield."""

    def __init__(self, name: str, coroutine) -> None:
        self.name       = name
        self._coroutine = coroutine
        self._started   = False
        self.finished   = False
        self.yields     = 0

    def resume(self, result: Any = None) -> Optional[str]:
        """Resume with ``result``; return the next yielded line or None at the end.

        Only the end of the script returns None; a yield without a value
        returns "".
        """
        if self.finished:
            return None
        value = None if not self._started else result
        self._started = True
        try:
            line = self._coroutine.send(value)
        except StopIteration:
            self.finished = True
            return None
        except ScriptError:
            self.finished = True
            raise
        except Exception as exc:          # noqa: BLE001
            self.finished = True
            raise ScriptError(f"{self.name}: {exc}") from exc
        self.yields += 1
        # a bare yield() is an empty step, not the end of the script
        return "" if line is None else str(line)

    def close(self) -> None:
        # Only drop the reference: a stop may arrive while another thread is inside send().
        self.finished   = True
        self._coroutine = None


class ScriptingBridge:
    """Starts Lua macros with the configured host libraries and require paths."""

    def __init__(
        self,
        settings,
        libraries:   list[HostLibrary] | None = None,
        interpreter: Any = None,
        log_fn:      LogFn | None = None,
    ) -> None:
        self._settings    = settings
        self._libraries   = list(libraries or [])
        self._interpreter = interpreter or LuaInterpreter()
        self._log         = log_fn or (lambda lvl, msg: None)

    @property
    def libraries(self) -> list[HostLibrary]:
        return list(self._libraries)

    @property
    def require_paths(self) -> list[str]:
        return self._settings.lua_require_paths

    def add_require_path(self, path: str) -> bool:
        added = self._settings.add_lua_require_path(path)
        if added:
            self._log("INFO", f"Added Lua require path: {path.strip()}")
        return added

    def describe(self) -> dict[str, list[str]]:
        return describe_libraries(self._libraries)

    def start(self, macro: MacroNode) -> ScriptRun:
        """Load ``macro`` and return a ScriptRun positioned before its first line."""
        try:
            coroutine = self._interpreter.load(
                macro.contents, macro.name, self._libraries, self.require_paths,
            )
        except ScriptError:
            raise
        except Exception as exc:          # noqa: BLE001
            raise ScriptError(f"{macro.name}: {exc}") from exc
        return ScriptRun(macro.name, coroutine)
