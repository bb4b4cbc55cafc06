"""Tests for macroengine.core.grammar — registry, aliases, value grammars."""
import pytest

from macroengine.core.grammar import (
    BUILTIN_COMMANDS, BUILTIN_MODIFIERS, CommandSpec, GrammarRegistry,
    default_registry, parse_duration, parse_key, parse_name, parse_optional_count,
)


class TestRegistry:
    def test_builtin_commands_present(self, registry):
        names = {spec.name for spec in registry.commands()}
        assert names == {
            "action", "wait", "loop", "echo", "target", "item", "waitaddon",
            "send", "hold", "release", "click", "require", "runmacro",
        }

    def test_every_command_documented(self):
        for spec in BUILTIN_COMMANDS:
            assert spec.aliases
            assert spec.description
            assert spec.examples

    def test_every_modifier_documented(self):
        for spec in BUILTIN_MODIFIERS:
            assert spec.description
            assert spec.examples

    def test_resolve_alias_any_case(self, registry):
        assert registry.resolve("ac").name == "action"
        assert registry.resolve("AC").name == "action"
        assert registry.resolve("Action").name == "action"

    def test_resolve_unknown(self, registry):
        assert registry.resolve("teleport") is None

    def test_aliases_of(self, registry):
        assert registry.aliases_of("action") == ["ac", "action"]

    def test_conflicting_alias_rejected(self):
        reg = GrammarRegistry()
        reg.register_command(CommandSpec("action", ("ac",), "", parse_name))
        with pytest.raises(ValueError):
            reg.register_command(CommandSpec("accept", ("ac",), "", parse_name))

    def test_duplicate_modifier_rejected(self, registry):
        with pytest.raises(ValueError):
            registry.register_modifier(BUILTIN_MODIFIERS[0])


class TestSyntaxSugar:
    def test_user_alias(self):
        reg = default_registry({"craft": "action"})
        assert reg.resolve("craft").name == "action"

    def test_alias_to_alias(self):
        reg = default_registry({"c": "/ac"})
        assert reg.resolve("c").name == "action"

    def test_unknown_target_ignored_with_warning(self, log):
        reg = default_registry({"tp": "teleport"}, log=log)
        assert reg.resolve("tp") is None
        assert any("tp" in m for m in log.messages("WARNING"))

    def test_cannot_steal_builtin(self, log):
        reg = default_registry({"wait": "action"}, log=log)
        assert reg.resolve("wait").name == "wait"
        assert log.messages("WARNING")


class TestArgumentGrammars:
    def test_name_unquotes(self):
        assert parse_name('"Muscle Memory"') == "Muscle Memory"
        assert parse_name("Muscle Memory") == "Muscle Memory"

    def test_name_required(self):
        with pytest.raises(ValueError):
            parse_name("  ")

    def test_duration_single(self):
        assert parse_duration("1.5") == (1.5, 1.5)

    def test_duration_range(self):
        assert parse_duration("1-3") == (1.0, 3.0)

    @pytest.mark.parametrize("text", ["", "soon", "3-1", "-1"])
    def test_duration_invalid(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)

    def test_optional_count(self):
        assert parse_optional_count("") is None
        assert parse_optional_count("5") == 5

    @pytest.mark.parametrize("text", ["five", "-2"])
    def test_optional_count_invalid(self, text):
        with pytest.raises(ValueError):
            parse_optional_count(text)

    def test_key_single_token(self):
        assert parse_key("CONTROL+MENU+A") == "CONTROL+MENU+A"
        with pytest.raises(ValueError):
            parse_key("CONTROL A")


class TestModifierValues:
    def test_flag_rejects_value(self, registry):
        with pytest.raises(ValueError):
            registry.modifier("unsafe").parse_value("yes")

    def test_wait_range(self, registry):
        assert registry.modifier("wait").parse_value("1.5-2.5") == (1.5, 2.5)

    def test_wait_render(self, registry):
        render = registry.modifier("wait").render
        assert render((2.0, 2.0)) == "<wait.2>"
        assert render((1.5, 2.5)) == "<wait.1.5-2.5>"

    def test_maxwait_positive(self, registry):
        with pytest.raises(ValueError):
            registry.modifier("maxwait").parse_value("0")

    def test_condition_list(self, registry):
        assert registry.modifier("condition").parse_value("Good, !Poor") == ("good", "!poor")

    def test_condition_empty_entry(self, registry):
        with pytest.raises(ValueError):
            registry.modifier("condition").parse_value("good,")

    def test_index_starts_at_one(self, registry):
        with pytest.raises(ValueError):
            registry.modifier("index").parse_value("0")
