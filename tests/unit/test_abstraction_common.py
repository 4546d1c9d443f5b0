#!/usr/bin/env python3
"""Tests for abstraction_common.py - result model, formatting and document loading."""

import json
from pathlib import Path

import pytest
from abstraction_common import (
    EXIT_ERRORS,
    EXIT_OK,
    EXIT_WARNINGS,
    SKILL_MISSING_EXPERTISE,
    VALIDATION_CODES,
    ConfigurationDocument,
    DocumentLoadError,
    ValidationResult,
    as_document,
    collect_document_paths,
    combine_validation_results,
    format_validation_result,
    load_document,
    parse_frontmatter,
)


class TestValidationResult:
    """Tests for the accumulating result object."""

    def test_empty_result_is_valid(self) -> None:
        """A result with no findings is valid and exits 0."""
        result = ValidationResult()
        assert result.valid
        assert result.exit_code == EXIT_OK

    def test_warnings_and_suggestions_never_invalidate(self) -> None:
        """Only errors flip validity."""
        result = ValidationResult()
        result.warning("SOME_WARNING", "careful")
        result.suggest("SOME_SUGGESTION", "maybe")
        assert result.valid
        assert result.exit_code == EXIT_OK
        assert result.exit_code_strict() == EXIT_WARNINGS

    def test_error_invalidates(self) -> None:
        """Adding an error makes the result invalid."""
        result = ValidationResult()
        result.error(SKILL_MISSING_EXPERTISE, "missing", "expertise")
        assert not result.valid
        assert result.exit_code == EXIT_ERRORS
        assert result.exit_code_strict() == EXIT_ERRORS
        assert result.errors[0].severity == "error"
        assert result.errors[0].field == "expertise"

    def test_to_dict_reports_valid_flag(self) -> None:
        """Serialized results carry the derived valid flag and omit empty fields."""
        result = ValidationResult()
        result.error("E", "bad")
        result.suggest("S", "hint", "examples", actionable=False)
        data = json.loads(result.to_json())
        assert data["valid"] is False
        assert data["errors"] == [{"code": "E", "message": "bad", "severity": "error"}]
        assert data["suggestions"][0]["actionable"] is False
        assert data["suggestions"][0]["field"] == "examples"

    def test_codes_lists_errors_first(self) -> None:
        """codes() returns error codes before warning codes."""
        result = ValidationResult()
        result.warning("W", "w")
        result.error("E", "e")
        assert result.codes() == ["E", "W"]

    def test_codes_are_contractual(self) -> None:
        """The code taxonomy includes the codes callers match on."""
        for code in (
            "SKILL_MISSING_EXPERTISE",
            "SUBAGENT_FALSE_ISOLATION",
            "COMMAND_INVALID_TRIGGER",
            "RULE_INVALID_SCOPE",
            "ABSTRACTION_TYPE_MISMATCH",
            "CIRCULAR_DEPENDENCY",
            "INVALID_DEPENDENCY",
            "COMMAND_TRIGGER_CONFLICT",
            "UNKNOWN_TYPE",
            "MISSING_REQUIRED_FIELD",
        ):
            assert code in VALIDATION_CODES


class TestCombineValidationResults:
    """Tests for combining several results."""

    def test_combined_is_invalid_if_any_part_is(self) -> None:
        """One failing part makes the combination fail."""
        ok = ValidationResult()
        ok.warning("W", "w")
        bad = ValidationResult()
        bad.error("E", "e")
        combined = combine_validation_results([ok, bad])
        assert not combined.valid
        assert combined.codes() == ["E", "W"]

    def test_combining_nothing_is_valid(self) -> None:
        """An empty combination is valid."""
        assert combine_validation_results([]).valid


class TestFormatValidationResult:
    """Tests for the plain-text formatter."""

    def test_passed_header(self) -> None:
        """A valid result starts with the passed marker."""
        assert format_validation_result(ValidationResult()) == "✓ Validation passed"

    def test_sections_and_markers(self) -> None:
        """Errors, warnings and suggestions get their own sections."""
        result = ValidationResult()
        result.error("E", "Skills must have an expertise field", "expertise")
        result.warning("W", "No guidance found")
        result.suggest("S", "Consider adding examples", "examples")
        text = format_validation_result(result)
        lines = text.splitlines()
        assert lines[0] == "✗ Validation failed"
        assert "Errors:" in lines
        assert "  • Skills must have an expertise field (expertise)" in lines
        assert "Warnings:" in lines
        assert "  • No guidance found" in lines
        assert "  • Consider adding examples (examples) [actionable]" in lines


class TestDocuments:
    """Tests for document coercion."""

    def test_as_document_accepts_pairs_and_mappings(self) -> None:
        """Pairs and {metadata, content} mappings become documents."""
        from_pair = as_document(({"id": "a"}, "body"))
        from_mapping = as_document({"metadata": {"id": "a"}, "content": "body"})
        assert from_pair == from_mapping
        assert from_pair.doc_id == "a"

    def test_as_document_passes_documents_through(self) -> None:
        """An existing document is returned unchanged."""
        document = ConfigurationDocument({"type": "rule"}, "x")
        assert as_document(document) is document
        assert document.declared_type == "rule"


class TestParseFrontmatter:
    """Tests for YAML frontmatter parsing."""

    def test_no_frontmatter(self) -> None:
        """Content without frontmatter yields empty metadata and the whole body."""
        assert parse_frontmatter("Just text") == ({}, "Just text")

    def test_valid_frontmatter(self) -> None:
        """Frontmatter keys are parsed and the body follows."""
        metadata, body = parse_frontmatter("---\ntype: rule\nalwaysApply: true\n---\nAlways do it.\n")
        assert metadata == {"type": "rule", "alwaysApply": True}
        assert body == "Always do it.\n"

    def test_unclosed_frontmatter(self) -> None:
        """A missing closing marker is malformed."""
        metadata, _ = parse_frontmatter("---\ntype: rule\n")
        assert metadata is None

    def test_non_mapping_frontmatter(self) -> None:
        """A YAML list is not valid metadata."""
        metadata, _ = parse_frontmatter("---\n- a\n- b\n---\nbody")
        assert metadata is None

    def test_invalid_yaml(self) -> None:
        """Broken YAML is malformed."""
        metadata, _ = parse_frontmatter("---\ntype: [unclosed\n---\nbody")
        assert metadata is None


class TestLoadDocument:
    """Tests for loading documents from disk."""

    def test_id_defaults_to_stem(self, tmp_path: Path) -> None:
        """Documents without an id take the file stem."""
        path = tmp_path / "typescript-style.md"
        path.write_text("---\ntype: rule\n---\nAlways use strict mode.\n", encoding="utf-8")
        document = load_document(path)
        assert document.doc_id == "typescript-style"
        assert document.content == "Always use strict mode.\n"
        assert document.path == str(path)

    def test_explicit_id_wins(self, tmp_path: Path) -> None:
        """A frontmatter id is kept."""
        path = tmp_path / "file.md"
        path.write_text("---\nid: custom\n---\nbody", encoding="utf-8")
        assert load_document(path).doc_id == "custom"

    def test_bom_is_stripped(self, tmp_path: Path) -> None:
        """A UTF-8 BOM does not hide the frontmatter."""
        path = tmp_path / "bom.md"
        path.write_bytes("\ufeff---\ntype: skill\n---\nbody".encode())
        assert load_document(path).declared_type == "skill"

    def test_malformed_frontmatter_raises(self, tmp_path: Path) -> None:
        """Malformed frontmatter is reported with the path."""
        path = tmp_path / "broken.md"
        path.write_text("---\ntype: [oops\n---\nbody", encoding="utf-8")
        with pytest.raises(DocumentLoadError) as excinfo:
            load_document(path)
        assert excinfo.value.path == str(path)

    def test_invalid_utf8_raises(self, tmp_path: Path) -> None:
        """Non-UTF-8 bytes are reported as a load error."""
        path = tmp_path / "latin1.md"
        path.write_bytes(b"caf\xe9")
        with pytest.raises(DocumentLoadError, match="UTF-8"):
            load_document(path)

    def test_collect_document_paths(self, tmp_path: Path) -> None:
        """Directories expand to sorted .md and .mdc files, recursively."""
        (tmp_path / "nested").mkdir()
        (tmp_path / "b.md").write_text("b")
        (tmp_path / "a.mdc").write_text("a")
        (tmp_path / "nested" / "c.md").write_text("c")
        (tmp_path / "notes.txt").write_text("ignored")
        paths = collect_document_paths([tmp_path])
        assert [p.relative_to(tmp_path).as_posix() for p in paths] == ["a.mdc", "b.md", "nested/c.md"]
