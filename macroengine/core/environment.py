"""Environment capability — what the executor needs from the game client.

The executor never talks to the game directly; it calls an Environment.
Implementations decide how each query or action reaches the client.
Methods answer immediately: waiting, polling and retrying are done by the
executor, which is the only place that knows the timeout policy.

A method may raise EnvironmentUnavailable at any time (no active session);
the scheduler then switches to NOT_READY and retries the line later.
"""
from __future__ import annotations

import abc


class Environment(abc.ABC):
    """Abstract game client."""

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    @abc.abstractmethod
    def is_ready(self) -> bool:
        """True while a session is active and commands can be executed."""

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    @abc.abstractmethod
    def use_action(self, name: str) -> None:
        """Send an action request.  Success is reported by ``action_confirmed``."""

    @abc.abstractmethod
    def action_confirmed(self, name: str) -> bool:
        """True once the server has answered the last ``use_action(name)``."""

    # ------------------------------------------------------------------
    # Targets and items
    # ------------------------------------------------------------------
    @abc.abstractmethod
    def target(self, name: str, index: int = 1) -> bool:
        """Target the ``index``-th entity called ``name``; False if none."""

    @abc.abstractmethod
    def has_item(self, name: str) -> bool: ...

    @abc.abstractmethod
    def can_use_item(self, name: str) -> bool: ...

    @abc.abstractmethod
    def use_item(self, name: str) -> None: ...

    # ------------------------------------------------------------------
    # UI addons
    # ------------------------------------------------------------------
    @abc.abstractmethod
    def addon_exists(self, name: str) -> bool: ...

    @abc.abstractmethod
    def addon_visible(self, name: str) -> bool: ...

    @abc.abstractmethod
    def click(self, name: str) -> bool:
        """Click a named UI element; False if there is nothing to click."""

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------
    @abc.abstractmethod
    def press_keys(self, combo: str) -> None: ...

    @abc.abstractmethod
    def hold_keys(self, combo: str) -> None: ...

    @abc.abstractmethod
    def release_keys(self, combo: str) -> None: ...

    # ------------------------------------------------------------------
    # State queries with defaults
    # ------------------------------------------------------------------
    def current_condition(self) -> str:
        """Crafting condition name (lower-case) for <condition.x>."""
        return "normal"

    def has_status(self, name: str) -> bool:
        """True if the character currently has the named status effect."""
        return False
