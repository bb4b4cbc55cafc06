"""Notification routing — one log_fn for the whole engine.

Components call ``log_fn(level, message)``.  A Notifier is such a callable:
it picks the channel configured for the level ([NOTIFY] normal_channel for
INFO/SUCCESS, error_channel for WARNING/ERROR) and hands the message to the
sink registered under that channel name.

    notifier = Notifier(settings, sinks={"echo": print, "error": err_print})
    scheduler = Scheduler(..., log_fn=notifier)
"""
from __future__ import annotations

from typing import Callable

Sink = Callable[[str, str], None]   # (level, message)

ERROR_LEVELS = frozenset({"WARNING", "ERROR"})


class Notifier:
    def __init__(
        self,
        settings,
        sinks:    dict[str, Sink] | None = None,
        fallback: Sink | None = None,
    ) -> None:
        self._settings = settings
        self._sinks    = {k.lower(): v for k, v in (sinks or {}).items()}
        self._fallback = fallback or (lambda level, msg: None)

    def add_sink(self, channel: str, sink: Sink) -> None:
        self._sinks[channel.lower()] = sink

    def channel_for(self, level: str) -> str:
        if level.upper() in ERROR_LEVELS:
            return self._settings.error_channel.lower()
        return self._settings.normal_channel.lower()

    def __call__(self, level: str, message: str) -> None:
        sink = self._sinks.get(self.channel_for(level), self._fallback)
        sink(level.upper(), message)
