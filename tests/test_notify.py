"""Tests for macroengine.core.notify — channel routing."""
from macroengine.core.notify import Notifier


class Sink:
    def __init__(self):
        self.received = []

    def __call__(self, level, msg):
        self.received.append((level, msg))


class TestNotifier:
    def test_levels_route_to_channels(self, settings):
        echo, error = Sink(), Sink()
        notify = Notifier(settings, sinks={"echo": echo, "error": error})
        notify("INFO", "one")
        notify("SUCCESS", "two")
        notify("WARNING", "three")
        notify("error", "four")
        assert echo.received == [("INFO", "one"), ("SUCCESS", "two")]
        assert error.received == [("WARNING", "three"), ("ERROR", "four")]

    def test_configured_channels(self, settings):
        settings.set("NOTIFY", "normal_channel", "Party")
        settings.set("NOTIFY", "error_channel", "party")
        party = Sink()
        notify = Notifier(settings, sinks={"PARTY": party})
        notify("INFO", "a")
        notify("ERROR", "b")
        assert party.received == [("INFO", "a"), ("ERROR", "b")]

    def test_unknown_channel_uses_fallback(self, settings):
        fallback = Sink()
        notify = Notifier(settings, fallback=fallback)
        notify("INFO", "lost")
        assert fallback.received == [("INFO", "lost")]

    def test_unknown_channel_without_fallback(self, settings):
        Notifier(settings)("INFO", "dropped")

    def test_add_sink(self, settings):
        echo = Sink()
        notify = Notifier(settings)
        notify.add_sink("Echo", echo)
        notify("INFO", "hi")
        assert echo.received == [("INFO", "hi")]

    def test_channel_for(self, settings):
        notify = Notifier(settings)
        assert notify.channel_for("info") == "echo"
        assert notify.channel_for("WARNING") == "error"
