"""Tests for macroengine.core.desktop — keyboard-only environment."""
import pytest

pynput = pytest.importorskip("pynput", reason="pynput requires display server", exc_type=ImportError)
from pynput import keyboard

from macroengine.core.desktop import KEY_HOLD_S, DesktopEnvironment
from macroengine.core.errors import FailureKind, MacroFailure


class FakeController:
    def __init__(self):
        self.events = []

    def press(self, key):
        self.events.append(("press", key))

    def release(self, key):
        self.events.append(("release", key))


@pytest.fixture
def kc():
    return FakeController()


@pytest.fixture
def desktop(kc):
    sleeps = []
    env = DesktopEnvironment(controller=kc, sleep_fn=sleeps.append)
    env.sleeps = sleeps
    return env


A = keyboard.KeyCode.from_char("a")


class TestKeyboard:
    def test_press_releases_in_reverse(self, desktop, kc):
        desktop.press_keys("CONTROL+A")
        assert kc.events == [
            ("press", keyboard.Key.ctrl), ("press", A),
            ("release", A), ("release", keyboard.Key.ctrl),
        ]
        assert desktop.sleeps == [KEY_HOLD_S]

    def test_hold_and_release(self, desktop, kc):
        desktop.hold_keys("SHIFT")
        desktop.release_keys("SHIFT")
        assert kc.events == [("press", keyboard.Key.shift), ("release", keyboard.Key.shift)]
        desktop.release_all()
        assert len(kc.events) == 2

    def test_release_all(self, desktop, kc):
        desktop.hold_keys("SHIFT+A")
        kc.events.clear()
        desktop.release_all()
        assert kc.events == [("release", A), ("release", keyboard.Key.shift)]

    def test_unknown_key(self, desktop, kc):
        with pytest.raises(MacroFailure) as info:
            desktop.press_keys("CONTROL+HYPER")
        assert info.value.kind is FailureKind.UNSUPPORTED
        assert kc.events == []


class TestGameCommands:
    def test_always_ready(self, desktop):
        assert desktop.is_ready()

    @pytest.mark.parametrize("call", [
        lambda env: env.use_action("Groundwork"),
        lambda env: env.target("Moyce"),
        lambda env: env.has_item("Potion"),
        lambda env: env.addon_exists("RecipeNote"),
        lambda env: env.click("synthesize"),
    ])
    def test_unsupported(self, desktop, call):
        with pytest.raises(MacroFailure) as info:
            call(desktop)
        assert info.value.kind is FailureKind.UNSUPPORTED

    def test_never_confirms(self, desktop):
        assert not desktop.action_confirmed("Groundwork")

    def test_executor_reports_unsupported(self, desktop, settings):
        from macroengine.core.executor import InstructionExecutor
        from macroengine.core.grammar import default_registry
        from macroengine.core.parser import parse_line

        executor = InstructionExecutor(desktop, settings, sleep_fn=lambda s: None)
        outcome = executor.execute(parse_line("/target Moyce", default_registry()))
        assert outcome.failure is FailureKind.UNSUPPORTED
        assert not executor.is_stop_worthy(outcome)
