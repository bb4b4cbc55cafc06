"""Shared test fixtures."""
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so `macroengine.*` imports work
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from macroengine.core.environment import Environment
from macroengine.core.errors import EnvironmentUnavailable
from macroengine.core.executor import InstructionExecutor
from macroengine.core.grammar import default_registry
from macroengine.core.nodes import Language, MacroTree
from macroengine.core.scheduler import Scheduler
from macroengine.core.scripting import ScriptingBridge
from macroengine.core.settings_manager import SettingsManager


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeEnvironment(Environment):
    """Scriptable game client; records every call in ``calls``."""

    def __init__(self) -> None:
        self.ready        = True
        self.unavailable  = 0           # next N calls raise EnvironmentUnavailable
        self.unconfirmed: set[str] = set()
        self.targets:     set[str] = set()
        self.items:       dict[str, bool] = {}   # name → usable
        self.addons:      dict[str, bool] = {}   # name → visible
        self.clickable:   set[str] = set()
        self.statuses:    set[str] = set()
        self.condition    = "normal"
        self.calls: list[tuple] = []

    def _call(self, *call) -> None:
        if self.unavailable:
            self.unavailable -= 1
            raise EnvironmentUnavailable("not logged in")
        self.calls.append(call)

    def is_ready(self) -> bool:
        return self.ready

    def use_action(self, name):
        self._call("action", name)

    def action_confirmed(self, name):
        return name not in self.unconfirmed

    def target(self, name, index=1):
        self._call("target", name, index)
        return name in self.targets

    def has_item(self, name):
        return name in self.items

    def can_use_item(self, name):
        return self.items.get(name, False)

    def use_item(self, name):
        self._call("item", name)

    def addon_exists(self, name):
        return name in self.addons

    def addon_visible(self, name):
        return self.addons.get(name, False)

    def click(self, name):
        self._call("click", name)
        return name in self.clickable

    def press_keys(self, combo):
        self._call("send", combo)

    def hold_keys(self, combo):
        self._call("hold", combo)

    def release_keys(self, combo):
        self._call("release", combo)

    def current_condition(self):
        return self.condition

    def has_status(self, name):
        return name in self.statuses


class RecordingLog:
    """log_fn that keeps every (level, message)."""

    def __init__(self) -> None:
        self.entries: list[tuple[str, str]] = []

    def __call__(self, level, msg):
        self.entries.append((level, msg))

    def messages(self, level=None):
        return [m for lvl, m in self.entries if level is None or lvl == level]


class InstantSleep:
    """sleep_fn that returns at once and adds up the requested time."""

    def __init__(self) -> None:
        self.total = 0.0

    def __call__(self, seconds):
        self.total += seconds


class FakeInterpreter:
    """Stands in for LuaInterpreter: source text → generator factory."""

    def __init__(self, scripts=None) -> None:
        self.scripts = dict(scripts or {})
        self.loaded: list[tuple[str, list[str]]] = []

    def load(self, source, name, libraries, require_paths):
        self.loaded.append((name, list(require_paths)))
        return self.scripts[source.strip()]()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    return SettingsManager(tmp_path / "settings.ini")


@pytest.fixture
def env():
    return FakeEnvironment()


@pytest.fixture
def log():
    return RecordingLog()


@pytest.fixture
def sleep():
    return InstantSleep()


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def executor(env, settings, log, sleep):
    return InstructionExecutor(env, settings, log_callback=log, sleep_fn=sleep)


@pytest.fixture
def interpreter():
    return FakeInterpreter()


@pytest.fixture
def tree():
    return MacroTree()


@pytest.fixture
def scheduler(tree, executor, registry, settings, log, interpreter):
    bridge = ScriptingBridge(settings, interpreter=interpreter, log_fn=log)
    return Scheduler(tree, executor, registry, bridge, settings, log_fn=log)


@pytest.fixture
def add_macro(tree):
    """add_macro(name, contents, language=NATIVE) → MacroNode in the root folder."""
    def _add(name, contents, language=Language.NATIVE):
        return tree.new_macro(name=name, contents=contents, language=language)
    return _add


def run_to_idle(scheduler, limit=1000):
    """Tick until the stack is empty; return the number of ticks."""
    for n in range(1, limit + 1):
        scheduler.tick()
        if not scheduler.is_active():
            return n
    raise AssertionError("scheduler did not finish")
