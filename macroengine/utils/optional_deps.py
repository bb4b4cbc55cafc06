"""Centralised optional-dependency imports.

Each library is imported once at module level.  Consumers check the
``HAS_*`` flags before using the corresponding module reference.
"""
from __future__ import annotations

# ---------------------------------------------------------------------------
# lupa  (Lua macros: ScriptingBridge / LuaInterpreter)
# ---------------------------------------------------------------------------
try:
    import lupa as lupa              # type: ignore[import]
    HAS_LUPA = True
except ImportError:
    lupa = None  # type: ignore[assignment]
    HAS_LUPA = False
