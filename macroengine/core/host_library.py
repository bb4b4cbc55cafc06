"""Host-function libraries exposed to Lua macros.

A library is a plain object whose public methods become callable from a
script, both as ``Namespace.Function(...)`` and as a bare global.  The
host supplies the concrete libraries (inventory, quests, world state…);
this module only defines how they are described.
"""
from __future__ import annotations

import inspect
from typing import Any, Callable


def _kind(annotation: Any) -> str:
    if annotation is inspect.Signature.empty:
        return "any"
    if isinstance(annotation, str):
        return annotation
    return getattr(annotation, "__name__", str(annotation))


def describe_function(name: str, func: Callable) -> str:
    """``"<return> name(<kind> param, <kind> param = default)"``."""
    sig = inspect.signature(func)
    params = []
    for p in sig.parameters.values():
        text = f"{_kind(p.annotation)} {p.name}"
        if p.default is not inspect.Parameter.empty:
            text += f" = {p.default!r}"
        params.append(text)
    returns = "void" if sig.return_annotation in (None, "None") else _kind(sig.return_annotation)
    return f"{returns} {name}({', '.join(params)})"


class HostLibrary:
    """Base class for a script namespace."""

    #: Name the library is registered under; defaults to the class name.
    namespace: str = ""

    @property
    def name(self) -> str:
        return self.namespace or type(self).__name__

    def functions(self) -> dict[str, Callable]:
        result = {}
        for attr, member in inspect.getmembers(self, predicate=inspect.ismethod):
            if attr.startswith("_") or attr in _RESERVED:
                continue
            result[attr] = member
        return result

    def list_all_functions(self) -> list[str]:
        return [describe_function(n, f) for n, f in sorted(self.functions().items())]


_RESERVED = frozenset(name for name, _ in inspect.getmembers(HostLibrary, predicate=inspect.isfunction))


def describe_libraries(libraries: list[HostLibrary]) -> dict[str, list[str]]:
    """Namespace name → function signatures, for help pages."""
    return {lib.name: lib.list_all_functions() for lib in libraries}
