#!/usr/bin/env python3
"""Tests for validate_abstraction.py - type dispatch and mismatch detection."""

from collections.abc import Mapping
from typing import Any

import pytest
import validate_abstraction
from validate_abstraction import analyze_document, validate_any_abstraction

COMMAND_CONTENT = """
/deploy [environment]

Execute deployment to specified environment.
Usage: /deploy staging

When user types this command, trigger the deployment pipeline.
"""


class TestMissingInputs:
    """Tests for degenerate inputs, which never raise."""

    def test_missing_metadata(self) -> None:
        """None metadata is reported, not raised."""
        result = validate_any_abstraction(None, "content")
        assert not result.valid
        assert result.codes() == ["MISSING_REQUIRED_FIELD"]

    def test_missing_content(self) -> None:
        """None content is reported, not raised."""
        result = validate_any_abstraction({"id": "x"}, None)
        assert not result.valid
        assert result.codes() == ["MISSING_REQUIRED_FIELD"]

    def test_unknown_type(self) -> None:
        """A type outside the enumeration is a single error."""
        result = validate_any_abstraction({"type": "widget"}, COMMAND_CONTENT)
        assert result.codes() == ["UNKNOWN_TYPE"]
        assert result.errors[0].field == "type"
        assert result.suggestions == []


class TestRouting:
    """Tests for routing to category validators."""

    def test_explicit_type_routes(self) -> None:
        """An explicit skill is validated as a skill."""
        result = validate_any_abstraction({"id": "s", "type": "skill"}, "content")
        assert result.codes()[0] == "SKILL_MISSING_EXPERTISE"

    def test_inferred_type_routes(self) -> None:
        """Without a type, the classified type picks the validator."""
        result = validate_any_abstraction({"id": "x"}, "")
        assert result.codes() == ["RULE_MISSING_CONTENT"]

    def test_inferred_skill_is_valid(self) -> None:
        """Guidance with expertise is inferred as a valid skill."""
        result = validate_any_abstraction(
            {"id": "skill", "expertise": ["testing"]}, "How to write effective tests with best practices and examples."
        )
        assert result.valid
        assert [s.code for s in result.suggestions][0] == "SKILL_CATEGORIZE_EXPERTISE"

    def test_validator_exception_is_folded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A crashing validator becomes one VALIDATION_EXCEPTION error."""

        def broken_validator(metadata: Mapping[str, Any], content: str) -> Any:
            raise KeyError("boom")

        monkeypatch.setitem(validate_abstraction.VALIDATORS, "skill", broken_validator)
        result = validate_any_abstraction({"type": "skill"}, "x")
        assert result.codes() == ["VALIDATION_EXCEPTION"]
        assert "broken_validator" in result.errors[0].message
        assert "KeyError" in result.errors[0].message


class TestTypeMismatch:
    """Tests for declared-vs-inferred mismatch warnings."""

    def test_mismatch_warns(self) -> None:
        """Command-like content declared as a skill is flagged."""
        result = validate_any_abstraction({"type": "skill", "expertise": ["deployment"]}, COMMAND_CONTENT)
        assert "ABSTRACTION_TYPE_MISMATCH" in [w.code for w in result.warnings]
        mismatch = [w for w in result.warnings if w.code == "ABSTRACTION_TYPE_MISMATCH"][0]
        assert mismatch.field == "type"
        assert '"command"' in mismatch.message

    def test_mismatch_never_invalidates(self) -> None:
        """A mismatch on an otherwise valid document keeps it valid."""
        result = validate_any_abstraction({"type": "rule", "priority": "high"}, COMMAND_CONTENT)
        assert result.valid
        assert [w.code for w in result.warnings] == ["ABSTRACTION_TYPE_MISMATCH"]

    def test_matching_type_does_not_warn(self) -> None:
        """Declared and inferred agreeing means no warning."""
        metadata = {"type": "command", "trigger": "/deploy", "userInvoked": True}
        result = validate_any_abstraction(metadata, COMMAND_CONTENT)
        assert "ABSTRACTION_TYPE_MISMATCH" not in result.codes()

    def test_metadata_is_not_mutated(self) -> None:
        """The caller's metadata keeps its type after mismatch detection."""
        metadata = {"type": "rule"}
        validate_any_abstraction(metadata, COMMAND_CONTENT)
        assert metadata == {"type": "rule"}

    def test_validation_is_idempotent(self) -> None:
        """Validating twice yields identical results."""
        metadata = {"type": "skill", "expertise": ["deployment"]}
        first = validate_any_abstraction(metadata, COMMAND_CONTENT)
        second = validate_any_abstraction(metadata, COMMAND_CONTENT)
        assert first.to_dict() == second.to_dict()


class TestAnalyzeDocument:
    """Tests for the combined analysis record."""

    def test_mismatch_record(self) -> None:
        """A mismatching document carries the declared and detected types."""
        analysis = analyze_document({"type": "rule"}, COMMAND_CONTENT, "deploy.md")
        assert analysis.mismatch is not None
        assert analysis.mismatch.declared_type == "rule"
        assert analysis.mismatch.detected_type == "command"
        assert "structural: slashCommand" in analysis.mismatch.reasons
        assert analysis.to_dict()["path"] == "deploy.md"

    def test_no_mismatch_without_declared_type(self) -> None:
        """Undeclared documents cannot mismatch."""
        analysis = analyze_document({}, COMMAND_CONTENT)
        assert analysis.mismatch is None
        assert analysis.classification.type == "command"
