"""Tests for macroengine.core.keys — key-name tables and combo parsing."""
import pytest

pynput = pytest.importorskip("pynput", reason="pynput requires display server", exc_type=ImportError)
from pynput import keyboard

from macroengine.core.keys import SPECIAL_KEYS, parse_combo, parse_key


class TestSpecialKeys:
    def test_game_names(self):
        assert SPECIAL_KEYS["CONTROL"] == keyboard.Key.ctrl
        assert SPECIAL_KEYS["MENU"] == keyboard.Key.alt
        assert SPECIAL_KEYS["BACK"] == keyboard.Key.backspace

    def test_page_aliases(self):
        assert SPECIAL_KEYS["PRIOR"] == SPECIAL_KEYS["PAGEUP"]
        assert SPECIAL_KEYS["NEXT"] == SPECIAL_KEYS["PAGEDOWN"]

    def test_function_keys(self):
        for n in range(1, 13):
            assert SPECIAL_KEYS[f"F{n}"] == getattr(keyboard.Key, f"f{n}")


class TestParseKey:
    def test_case_insensitive(self):
        assert parse_key("control") == keyboard.Key.ctrl
        assert parse_key("Enter") == keyboard.Key.enter

    def test_virtual_key_letter(self):
        assert parse_key("KEY_A") == keyboard.KeyCode.from_char("a")

    def test_numpad(self):
        assert parse_key("NUMPAD5") == keyboard.KeyCode.from_char("5")

    def test_single_char(self):
        assert parse_key("Q") == keyboard.KeyCode.from_char("q")

    def test_unknown(self):
        assert parse_key("KEY_AB") is None
        assert parse_key("hyper") is None


class TestParseCombo:
    def test_combo(self):
        assert parse_combo("CONTROL+MENU+A") == [
            keyboard.Key.ctrl, keyboard.Key.alt, keyboard.KeyCode.from_char("a"),
        ]

    def test_spaces_around_plus(self):
        assert parse_combo("ctrl + c") == [keyboard.Key.ctrl, keyboard.KeyCode.from_char("c")]

    def test_unknown_key_raises(self):
        with pytest.raises(ValueError, match="hyper"):
            parse_combo("ctrl+hyper")
