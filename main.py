"""Macro engine — headless entry point.

    python main.py run MyMacro
    python main.py run loop 5 MyMacro

Macros are loaded from [GENERAL] macros_dir (``*.macro`` native, ``*.lua``
Lua).  Keys go to the focused window; game commands report UNSUPPORTED.
"""
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication

from macroengine.core.cli import handle_command
from macroengine.core.desktop import DesktopEnvironment
from macroengine.core.nodes import tree_from_directory
from macroengine.core.notify import Notifier
from macroengine.core.player import MacroPlayer
from macroengine.core.settings_manager import SettingsManager

BASE_DIR = Path(__file__).parent


def _stdout(level: str, msg: str) -> None:
    print(f"[{level}] {msg}")


def _stderr(level: str, msg: str) -> None:
    print(f"[{level}] {msg}", file=sys.stderr)


def main() -> None:
    app = QCoreApplication(sys.argv)
    app.setApplicationName("Macro Engine")
    app.setApplicationVersion("0.1.0")

    settings = SettingsManager(BASE_DIR / "settings.ini")
    notifier = Notifier(settings, sinks={"echo": _stdout, "error": _stderr}, fallback=_stdout)

    macros_dir = settings.macros_dir
    if not macros_dir.is_absolute():
        macros_dir = BASE_DIR / macros_dir
    tree = tree_from_directory(macros_dir)

    environment = DesktopEnvironment()
    player = MacroPlayer(settings, environment, tree)
    player.log_message.connect(notifier)
    player.state_changed.connect(lambda state: state == "idle" and app.quit())

    print(handle_command(player, " ".join(sys.argv[1:])))
    if not player.is_active():
        return
    try:
        app.exec()
    finally:
        player.shutdown()
        environment.release_all()


if __name__ == "__main__":
    main()
