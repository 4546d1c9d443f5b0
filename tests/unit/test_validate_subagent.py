#!/usr/bin/env python3
"""Tests for validate_subagent.py - subagent document validation."""

from validate_subagent import validate_subagent

PROCEDURE = "Step 1: read the diff. Then report findings."


class TestIsolation:
    """Tests for the isolatedContext requirement."""

    def test_missing_isolation(self) -> None:
        """Missing isolatedContext is its own error."""
        result = validate_subagent({}, PROCEDURE)
        assert result.codes() == ["SUBAGENT_MISSING_ISOLATION"]

    def test_false_isolation(self) -> None:
        """isolatedContext set to anything but True is a distinct error."""
        assert validate_subagent({"isolatedContext": False}, PROCEDURE).codes() == ["SUBAGENT_FALSE_ISOLATION"]
        assert validate_subagent({"isolatedContext": "yes"}, PROCEDURE).codes() == ["SUBAGENT_FALSE_ISOLATION"]

    def test_always_apply_conflicts(self) -> None:
        """alwaysApply contradicts isolated execution."""
        result = validate_subagent({"isolatedContext": True, "alwaysApply": True}, PROCEDURE)
        assert not result.valid
        assert result.errors[0].code == "SUBAGENT_RULE_CONFLICT"
        assert result.errors[0].field == "alwaysApply"


class TestModelAndTools:
    """Tests for model and tool checks, which only warn."""

    def test_unknown_model_is_warning(self) -> None:
        """Unknown models warn without invalidating."""
        result = validate_subagent({"isolatedContext": True, "model": "gpt-5"}, PROCEDURE)
        assert result.valid
        assert [w.code for w in result.warnings] == ["SUBAGENT_INVALID_MODEL"]

    def test_unknown_tools_are_listed(self) -> None:
        """Unknown tools are named in one warning."""
        result = validate_subagent({"isolatedContext": True, "tools": ["bash", "kubectl", "helm"]}, PROCEDURE)
        assert result.valid
        assert len(result.warnings) == 1
        assert result.warnings[0].code == "SUBAGENT_INVALID_TOOLS"
        assert "kubectl, helm" in result.warnings[0].message

    def test_name_too_long(self) -> None:
        """Names over 64 characters are errors."""
        result = validate_subagent({"isolatedContext": True, "name": "n" * 65}, PROCEDURE)
        assert result.codes() == ["SUBAGENT_NAME_TOO_LONG"]


class TestContentAndSuggestions:
    """Tests for the procedural check and suggestions."""

    def test_missing_procedure_is_warning(self) -> None:
        """Content without procedural phrasing warns."""
        result = validate_subagent({"isolatedContext": True}, "Reviews code.")
        assert result.valid
        assert [w.code for w in result.warnings] == ["SUBAGENT_MISSING_PROCEDURAL"]

    def test_minimal_subagent_suggestions(self) -> None:
        """A subagent with no model or system prompt gets suggestions for both."""
        result = validate_subagent({"isolatedContext": True}, PROCEDURE)
        assert [s.code for s in result.suggestions] == ["SUBAGENT_SPECIFY_MODEL", "SUBAGENT_ADD_SYSTEM_PROMPT"]

    def test_lightweight_model_note_is_not_actionable(self) -> None:
        """A haiku-tier model gets a non-actionable note."""
        result = validate_subagent({"isolatedContext": True, "model": "claude-3-haiku", "systemPrompt": "x"}, PROCEDURE)
        assert [s.code for s in result.suggestions] == ["SUBAGENT_HAIKU_USAGE"]
        assert result.suggestions[0].actionable is False

    def test_too_many_tools(self) -> None:
        """More than five tools suggests narrowing scope."""
        tools = ["bash", "python", "node", "git", "docker", "jest"]
        result = validate_subagent(
            {"isolatedContext": True, "model": "gpt-4", "systemPrompt": "x", "tools": tools}, PROCEDURE
        )
        assert result.warnings == []
        assert [s.code for s in result.suggestions] == ["SUBAGENT_TOO_MANY_TOOLS"]
