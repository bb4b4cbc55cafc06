"""Settings manager — reads/writes settings.ini via configparser."""
from configparser import ConfigParser
from pathlib import Path

from macroengine.core.constants import DEFAULT_WAIT_BUDGET_S, MAX_TIMEOUT_RETRIES
from macroengine.core.errors import FailureKind
from macroengine.core.prefix import COMMENT_PREFIX

DEFAULT_CRAFT_LOOP_TEMPLATE = "{{macro}}\n/loop {{count}}"

# FailureKind → [STOP_ON] key.  Kinds missing here never stop a macro.
STOP_ON_KEYS: dict[FailureKind, str] = {
    FailureKind.ACTION_TIMEOUT:    "action_timeout",
    FailureKind.ITEM_NOT_FOUND:    "item_not_found",
    FailureKind.ITEM_NOT_USABLE:   "item_not_usable",
    FailureKind.TARGET_NOT_FOUND:  "target_not_found",
    FailureKind.ADDON_NOT_FOUND:   "addon_not_found",
    FailureKind.ADDON_NOT_VISIBLE: "addon_not_visible",
    FailureKind.CONDITION_NOT_MET: "condition_not_met",
}


class SettingsManager:
    def __init__(self, ini_path: Path) -> None:
        self.ini_path = ini_path
        self.config = ConfigParser(
            comment_prefixes=(COMMENT_PREFIX, ";"),
            interpolation=None,
        )
        if ini_path.exists():
            self.config.read(ini_path, encoding="utf-8")

    # ------------------------------------------------------------------
    # Generic getters
    # ------------------------------------------------------------------
    def get(self, section: str, key: str, fallback: str = "") -> str:
        return self.config.get(section, key, fallback=fallback)

    def getint(self, section: str, key: str, fallback: int = 0) -> int:
        return self.config.getint(section, key, fallback=fallback)

    def getfloat(self, section: str, key: str, fallback: float = 0.0) -> float:
        return self.config.getfloat(section, key, fallback=fallback)

    def getbool(self, section: str, key: str, fallback: bool = False) -> bool:
        return self.config.getboolean(section, key, fallback=fallback)

    def set(self, section: str, key: str, value: str) -> None:
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, key, value)
        self.save()

    def save(self) -> None:
        with open(self.ini_path, "w", encoding="utf-8") as f:
            self.config.write(f)

    # ------------------------------------------------------------------
    # Convenience properties
    # ------------------------------------------------------------------
    @property
    def macros_dir(self) -> Path:
        return Path(self.get("GENERAL", "macros_dir", "macros"))

    @property
    def max_timeout_retries(self) -> int:
        return max(0, min(MAX_TIMEOUT_RETRIES, self.getint("TIMING", "max_timeout_retries", 0)))

    @property
    def default_wait_budget(self) -> float:
        return max(0.0, self.getfloat("TIMING", "default_wait_budget", DEFAULT_WAIT_BUDGET_S))

    @property
    def craft_loop_template_enabled(self) -> bool:
        return self.getbool("CRAFT_LOOP", "enabled", False)

    @property
    def craft_loop_template(self) -> str:
        return self.get("CRAFT_LOOP", "template", DEFAULT_CRAFT_LOOP_TEMPLATE)

    def stop_on(self, kind: FailureKind) -> bool:
        """Whether a failure of ``kind`` stops the current macro."""
        key = STOP_ON_KEYS.get(kind)
        if key is None:
            return False
        return self.getbool("STOP_ON", key, True)

    @property
    def lua_require_paths(self) -> list[str]:
        raw = self.get("LUA", "require_paths", "")
        return [line.strip() for line in raw.splitlines() if line.strip()]

    def add_lua_require_path(self, path: str) -> bool:
        """Append ``path`` unless blank or already present."""
        path = path.strip()
        paths = self.lua_require_paths
        if not path or path in paths:
            return False
        self.set("LUA", "require_paths", "\n".join(paths + [path]))
        return True

    @property
    def normal_channel(self) -> str:
        return self.get("NOTIFY", "normal_channel", "echo")

    @property
    def error_channel(self) -> str:
        return self.get("NOTIFY", "error_channel", "error")

    @property
    def loop_echo(self) -> bool:
        return self.getbool("NOTIFY", "loop_echo", False)

    @property
    def syntax_sugar(self) -> dict[str, str]:
        """Return alias→command mapping from [COMMANDS] section."""
        if not self.config.has_section("COMMANDS"):
            return {}
        return {k.lower(): v.strip().lower() for k, v in self.config.items("COMMANDS")}
