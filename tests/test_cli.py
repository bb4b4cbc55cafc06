"""Tests for macroengine.core.cli — text run-control commands."""
from macroengine.core.cli import CLI_COMMANDS, handle_command, help_text
from macroengine.core.nodes import MacroNode
from macroengine.core.scheduler import RunState


class TestHelp:
    def test_help_lists_every_command(self, scheduler):
        text = handle_command(scheduler, "help")
        for name, _, _ in CLI_COMMANDS:
            assert name in text

    def test_empty_input_shows_help(self, scheduler):
        assert handle_command(scheduler, "   ") == help_text()

    def test_unknown_command(self, scheduler):
        message = handle_command(scheduler, "explode")
        assert message.startswith("Unknown command")
        assert "Usage:" in message


class TestRun:
    def test_run(self, scheduler, add_macro):
        add_macro("My Macro", "/echo a")
        assert handle_command(scheduler, "run My Macro") == "Running 'My Macro'"
        assert scheduler.macro_status() == [("My Macro", 0)]

    def test_run_loop(self, scheduler, add_macro):
        add_macro("Craft", "/ac Synthesis\n/loop 1")
        assert "5 loops" in handle_command(scheduler, "run loop 5 Craft")
        assert scheduler.current_macro_content() == "/ac Synthesis\n/loop 5"

    def test_run_loop_bad_count(self, scheduler, add_macro):
        add_macro("Craft", "/ac Synthesis")
        assert "number" in handle_command(scheduler, "run loop many Craft")
        assert not scheduler.is_running()

    def test_run_loop_negative(self, scheduler, add_macro):
        add_macro("Craft", "/ac Synthesis")
        assert "negative" in handle_command(scheduler, "run loop -1 Craft")

    def test_run_missing_name(self, scheduler):
        assert handle_command(scheduler, "run").startswith("Missing macro name")
        assert handle_command(scheduler, "run loop 3").startswith("Missing macro name")

    def test_run_unknown_macro(self, scheduler):
        assert "No macro named" in handle_command(scheduler, "run Nope")

    def test_run_ambiguous_macro(self, scheduler, tree):
        tree.root.children += [MacroNode("X"), MacroNode("X")]
        assert "2 macros" in handle_command(scheduler, "run X")
        assert scheduler.macro_status() == []

    def test_run_unparsable_macro(self, scheduler, add_macro):
        add_macro("Bad", "/teleport")
        assert handle_command(scheduler, "run Bad") == "Could not start macro 'Bad'"


class TestControls:
    def test_pause_resume(self, scheduler, add_macro):
        add_macro("M", "/echo a")
        handle_command(scheduler, "run M")
        assert handle_command(scheduler, "pause") == "Paused"
        assert scheduler.state is RunState.PAUSED
        assert handle_command(scheduler, "resume") == "Resumed"
        assert scheduler.state is RunState.RUNNING

    def test_pause_loop(self, scheduler, add_macro):
        add_macro("M", "/echo a\n/loop 3")
        handle_command(scheduler, "run M")
        handle_command(scheduler, "pause loop")
        assert scheduler.frames()[0].pause_at_loop

    def test_stop(self, scheduler, add_macro):
        add_macro("M", "/echo a")
        handle_command(scheduler, "run M")
        assert handle_command(scheduler, "stop") == "Stopped"
        assert scheduler.state is RunState.IDLE

    def test_stop_loop(self, scheduler, add_macro):
        add_macro("M", "/echo a\n/loop 3")
        handle_command(scheduler, "run M")
        handle_command(scheduler, "STOP loop")
        assert scheduler.frames()[0].stop_at_loop
        assert scheduler.is_running()

    def test_pause_with_junk(self, scheduler):
        assert handle_command(scheduler, "pause now").startswith("Unknown command")
