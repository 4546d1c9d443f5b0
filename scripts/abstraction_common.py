#!/usr/bin/env python3
"""
Abstraction Validation - Common Module

Shared infrastructure for the abstraction classifier and validators.
This module contains:
- Type definitions (AbstractionType, ValidationIssue, ValidationResult)
- The validation code taxonomy and shared constants (models, tools, limits)
- Result helpers (combining, formatting, exit codes)
- A minimal Markdown + YAML frontmatter loader used by the CLI entry points

Configuration documents are a metadata mapping plus free-form content.
Metadata keys use the camelCase names of the source tools (alwaysApply,
isolatedContext, userInvoked, systemPrompt); unknown keys are carried along
untouched and ignored by every check that does not name them.

All validators and the classifier import from this module to stay consistent.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

# =============================================================================
# Type Definitions
# =============================================================================

# The four semantic categories a configuration document can represent
AbstractionType = Literal["skill", "subagent", "command", "rule"]

# Enumeration order doubles as the classifier tie-break order
ABSTRACTION_TYPES: tuple[str, ...] = ("skill", "subagent", "command", "rule")

# Errors block validation, warnings never do
Severity = Literal["error", "warning"]

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0  # No errors (warnings and suggestions allowed)
EXIT_ERRORS = 1  # Errors found, or input could not be read
EXIT_WARNINGS = 2  # Warnings found (only in --strict mode)

# =============================================================================
# Validation Codes
# =============================================================================

# Skill
SKILL_MISSING_EXPERTISE = "SKILL_MISSING_EXPERTISE"
SKILL_EMPTY_EXPERTISE = "SKILL_EMPTY_EXPERTISE"
SKILL_INVALID_PORTABILITY = "SKILL_INVALID_PORTABILITY"
SKILL_DESCRIPTION_TOO_LONG = "SKILL_DESCRIPTION_TOO_LONG"
SKILL_ISOLATION_PATTERN = "SKILL_ISOLATION_PATTERN"
SKILL_TRIGGER_PATTERN = "SKILL_TRIGGER_PATTERN"
SKILL_MISSING_KNOWLEDGE = "SKILL_MISSING_KNOWLEDGE"

# Subagent
SUBAGENT_MISSING_ISOLATION = "SUBAGENT_MISSING_ISOLATION"
SUBAGENT_FALSE_ISOLATION = "SUBAGENT_FALSE_ISOLATION"
SUBAGENT_INVALID_MODEL = "SUBAGENT_INVALID_MODEL"
SUBAGENT_INVALID_TOOLS = "SUBAGENT_INVALID_TOOLS"
SUBAGENT_RULE_CONFLICT = "SUBAGENT_RULE_CONFLICT"
SUBAGENT_MISSING_PROCEDURAL = "SUBAGENT_MISSING_PROCEDURAL"
SUBAGENT_NAME_TOO_LONG = "SUBAGENT_NAME_TOO_LONG"

# Command
COMMAND_MISSING_TRIGGER = "COMMAND_MISSING_TRIGGER"
COMMAND_INVALID_TRIGGER = "COMMAND_INVALID_TRIGGER"
COMMAND_MISSING_USER_INVOKED = "COMMAND_MISSING_USER_INVOKED"
COMMAND_FALSE_USER_INVOKED = "COMMAND_FALSE_USER_INVOKED"
COMMAND_INVALID_ARGUMENTS = "COMMAND_INVALID_ARGUMENTS"
COMMAND_ALWAYS_APPLY_PATTERN = "COMMAND_ALWAYS_APPLY_PATTERN"
COMMAND_MISSING_INSTRUCTIONS = "COMMAND_MISSING_INSTRUCTIONS"
COMMAND_TRIGGER_CONFLICT = "COMMAND_TRIGGER_CONFLICT"

# Rule
RULE_INVALID_SCOPE = "RULE_INVALID_SCOPE"
RULE_SCOPE_CONFLICT = "RULE_SCOPE_CONFLICT"
RULE_MISSING_CONTENT = "RULE_MISSING_CONTENT"
RULE_INVALID_PRIORITY = "RULE_INVALID_PRIORITY"

# Universal
ABSTRACTION_TYPE_MISMATCH = "ABSTRACTION_TYPE_MISMATCH"
CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"
INVALID_DEPENDENCY = "INVALID_DEPENDENCY"
DUPLICATE_ID = "DUPLICATE_ID"
MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
UNKNOWN_TYPE = "UNKNOWN_TYPE"
VALIDATION_EXCEPTION = "VALIDATION_EXCEPTION"

# Calling code pattern-matches on these; never rename them
VALIDATION_CODES: frozenset[str] = frozenset(
    {
        SKILL_MISSING_EXPERTISE,
        SKILL_EMPTY_EXPERTISE,
        SKILL_INVALID_PORTABILITY,
        SKILL_DESCRIPTION_TOO_LONG,
        SKILL_ISOLATION_PATTERN,
        SKILL_TRIGGER_PATTERN,
        SKILL_MISSING_KNOWLEDGE,
        SUBAGENT_MISSING_ISOLATION,
        SUBAGENT_FALSE_ISOLATION,
        SUBAGENT_INVALID_MODEL,
        SUBAGENT_INVALID_TOOLS,
        SUBAGENT_RULE_CONFLICT,
        SUBAGENT_MISSING_PROCEDURAL,
        SUBAGENT_NAME_TOO_LONG,
        COMMAND_MISSING_TRIGGER,
        COMMAND_INVALID_TRIGGER,
        COMMAND_MISSING_USER_INVOKED,
        COMMAND_FALSE_USER_INVOKED,
        COMMAND_INVALID_ARGUMENTS,
        COMMAND_ALWAYS_APPLY_PATTERN,
        COMMAND_MISSING_INSTRUCTIONS,
        COMMAND_TRIGGER_CONFLICT,
        RULE_INVALID_SCOPE,
        RULE_SCOPE_CONFLICT,
        RULE_MISSING_CONTENT,
        RULE_INVALID_PRIORITY,
        ABSTRACTION_TYPE_MISMATCH,
        CIRCULAR_DEPENDENCY,
        INVALID_DEPENDENCY,
        DUPLICATE_ID,
        MISSING_REQUIRED_FIELD,
        UNKNOWN_TYPE,
        VALIDATION_EXCEPTION,
    }
)

# =============================================================================
# Common Constants
# =============================================================================

# Inferred type must beat this confidence before a declared type is questioned
TYPE_MISMATCH_CONFIDENCE = 0.7

# Maximum recommended values for names and descriptions
MAX_NAME_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 1024

# Valid portability values for skills
VALID_PORTABILITY = ("cross-tool", "claude-only")

# Valid model values for subagents
VALID_MODELS = ("claude-3-5-sonnet", "claude-3-haiku", "gpt-4", "gpt-3.5-turbo")

# Models in the lightweight tier (fast, cheap, shallow reasoning)
LIGHTWEIGHT_MODEL_MARKER = "haiku"

# Known tool names for subagents (unknown names are warnings, not errors)
KNOWN_TOOLS = (
    "bash",
    "python",
    "node",
    "git",
    "docker",
    "typescript",
    "jest",
    "webpack",
    "eslint",
)

# Tools beyond this count dilute a subagent's focus
MAX_FOCUSED_TOOLS = 5

# Valid argument types for commands
VALID_ARGUMENT_TYPES = ("string", "number", "boolean", "file")

# Command trigger: slash followed by an identifier (e.g. /build, /run-tests)
TRIGGER_PATTERN = re.compile(r"^/[a-zA-Z][a-zA-Z0-9_-]*$")

# Valid priority values for rules
VALID_PRIORITIES = ("high", "medium", "low")

# Scope assumed for rules that declare none
DEFAULT_SCOPE = "global"

# Document file extensions picked up when a directory is given
DOCUMENT_EXTENSIONS = (".md", ".mdc")

# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ValidationIssue:
    """Single validation finding.

    Errors and warnings share this shape; only the bucket they land in
    (and their severity label) differs.

    Attributes:
        code: Identifier from the fixed validation code taxonomy
        message: Human-readable description of the finding
        field: Optional metadata field the finding is about
        severity: "error" or "warning"
    """

    code: str
    message: str
    field: str | None = None
    severity: Severity = "error"

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        result = {"code": self.code, "message": self.message, "severity": self.severity}
        if self.field is not None:
            result["field"] = self.field
        return result


@dataclass
class ValidationSuggestion:
    """Non-blocking advisory hint keyed by the absence of a desirable field."""

    code: str
    message: str
    field: str | None = None
    actionable: bool = True

    def to_dict(self) -> dict[str, str | bool]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, str | bool] = {"code": self.code, "message": self.message, "actionable": self.actionable}
        if self.field is not None:
            result["field"] = self.field
        return result


@dataclass
class ValidationResult:
    """Complete validation outcome for one document or one document group.

    Validators accumulate findings through error(), warning() and suggest()
    rather than failing fast, so callers always see every problem at once.
    `valid` is derived from the error list and cannot drift from it.
    """

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    suggestions: list[ValidationSuggestion] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        """True when no errors were recorded."""
        return not self.errors

    def error(self, code: str, message: str, field: str | None = None) -> None:
        """Add a blocking error."""
        self.errors.append(ValidationIssue(code, message, field, "error"))

    def warning(self, code: str, message: str, field: str | None = None) -> None:
        """Add a warning - always reported, never blocks validation."""
        self.warnings.append(ValidationIssue(code, message, field, "warning"))

    def suggest(self, code: str, message: str, field: str | None = None, actionable: bool = True) -> None:
        """Add an advisory suggestion."""
        self.suggestions.append(ValidationSuggestion(code, message, field, actionable))

    def codes(self) -> list[str]:
        """All error and warning codes, errors first."""
        return [issue.code for issue in self.errors] + [issue.code for issue in self.warnings]

    def merge(self, other: ValidationResult) -> None:
        """Merge findings from another result into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.suggestions.extend(other.suggestions)

    @property
    def exit_code(self) -> int:
        """Exit code for this result (warnings never block)."""
        return EXIT_ERRORS if self.errors else EXIT_OK

    def exit_code_strict(self) -> int:
        """Exit code for --strict mode (warnings also block)."""
        code = self.exit_code
        if code != EXIT_OK:
            return code
        if self.warnings:
            return EXIT_WARNINGS
        return EXIT_OK

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "suggestions": [s.to_dict() for s in self.suggestions],
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert result to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


def failed_result(code: str, message: str, field: str | None = None) -> ValidationResult:
    """Build a result holding a single error and nothing else."""
    result = ValidationResult()
    result.error(code, message, field)
    return result


@dataclass(frozen=True)
class ConfigurationDocument:
    """A metadata mapping plus free-form content. Never mutated by the core."""

    metadata: Mapping[str, Any]
    content: str
    path: str | None = None

    @property
    def doc_id(self) -> str | None:
        """The document's declared id, if any."""
        doc_id = self.metadata.get("id")
        return str(doc_id) if doc_id is not None else None

    @property
    def declared_type(self) -> Any:
        """The explicit `type` metadata value, if any (not necessarily valid)."""
        return self.metadata.get("type")


def as_document(item: ConfigurationDocument | tuple[Any, Any] | Mapping[str, Any]) -> ConfigurationDocument:
    """Coerce a document, a (metadata, content) pair, or a {metadata, content} mapping."""
    if isinstance(item, ConfigurationDocument):
        return item
    if isinstance(item, tuple):
        metadata, content = item
    else:
        metadata, content = item.get("metadata"), item.get("content")
    return ConfigurationDocument(metadata or {}, content if content is not None else "")


# =============================================================================
# Utility Functions
# =============================================================================


def is_present(metadata: Mapping[str, Any], key: str) -> bool:
    """Check a metadata key is set to something other than None."""
    return metadata.get(key) is not None


def is_blank(value: Any) -> bool:
    """Check a value is missing, empty, or whitespace-only."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def as_list(value: Any) -> list[Any]:
    """Normalize a scalar-or-list metadata value to a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def find_phrases(text: str, phrases: Iterable[str]) -> list[str]:
    """Return the phrases that occur in the (already lower-cased) text."""
    return [phrase for phrase in phrases if phrase in text]


def combine_validation_results(results: Iterable[ValidationResult]) -> ValidationResult:
    """Concatenate several results; the combination is valid only if all are."""
    combined = ValidationResult()
    for result in results:
        combined.merge(result)
    return combined


# =============================================================================
# Output Formatting
# =============================================================================

# ANSI color codes
COLORS = {
    "error": "\033[91m",  # Red
    "warning": "\033[95m",  # Magenta - never blocks, always reported
    "suggestion": "\033[94m",  # Blue
    "info": "\033[90m",  # Gray
    "passed": "\033[92m",  # Green
    "RESET": "\033[0m",  # Reset
    "BOLD": "\033[1m",  # Bold
}


def colorize(text: str, level: str) -> str:
    """Apply color to text based on level."""
    color = COLORS.get(level, "")
    return f"{color}{text}{COLORS['RESET']}"


def _field_info(item: ValidationIssue | ValidationSuggestion) -> str:
    return f" ({item.field})" if item.field else ""


def format_validation_result(result: ValidationResult) -> str:
    """Format a validation result as plain text for human-readable output."""
    lines = ["✓ Validation passed" if result.valid else "✗ Validation failed"]

    if result.errors:
        lines.append("\nErrors:")
        for error in result.errors:
            lines.append(f"  • {error.message}{_field_info(error)}")

    if result.warnings:
        lines.append("\nWarnings:")
        for warning in result.warnings:
            lines.append(f"  • {warning.message}{_field_info(warning)}")

    if result.suggestions:
        lines.append("\nSuggestions:")
        for suggestion in result.suggestions:
            actionable = " [actionable]" if suggestion.actionable else ""
            lines.append(f"  • {suggestion.message}{_field_info(suggestion)}{actionable}")

    return "\n".join(lines)


def print_validation_result(result: ValidationResult, title: str, verbose: bool = False) -> None:
    """Print a validation result with colors, grouped by bucket.

    Suggestions are only shown in verbose mode.
    """
    print(f"\n{'=' * 60}")
    print(f"{COLORS['BOLD']}{title}{COLORS['RESET']}")
    print(f"{'=' * 60}")

    for error in result.errors:
        print(f"  {colorize('[ERROR]', 'error')} {error.code}: {error.message}{_field_info(error)}")
    for warning in result.warnings:
        print(f"  {colorize('[WARNING]', 'warning')} {warning.code}: {warning.message}{_field_info(warning)}")
    if verbose:
        for suggestion in result.suggestions:
            print(f"  {colorize('[SUGGESTION]', 'suggestion')} {suggestion.message}{_field_info(suggestion)}")

    print("\n" + "-" * 60)
    if result.valid:
        print(colorize("✓ Validation passed", "passed"))
    else:
        print(colorize(f"✗ Validation failed ({len(result.errors)} error(s))", "error"))


# =============================================================================
# Document Loading
# =============================================================================


class DocumentLoadError(Exception):
    """A document file could not be read or its frontmatter could not be parsed."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = str(path)
        self.reason = reason


def parse_frontmatter(content: str) -> tuple[dict[str, Any] | None, str]:
    """Parse YAML frontmatter from document content.

    Returns:
        Tuple of (frontmatter_dict, body_content).
        Content without frontmatter yields ({}, content).
        Malformed or non-mapping frontmatter yields (None, content).
    """
    if not content.startswith("---"):
        return {}, content

    # Find closing ---
    parts = content.split("---", 2)
    if len(parts) < 3:
        return None, content

    try:
        frontmatter = yaml.safe_load(parts[1])
    except yaml.YAMLError:
        return None, content

    if frontmatter is None:
        frontmatter = {}
    if not isinstance(frontmatter, dict):
        return None, content

    return frontmatter, parts[2].lstrip("\n")


def load_document(path: Path) -> ConfigurationDocument:
    """Load one Markdown document with optional YAML frontmatter.

    The `id` defaults to the file stem when the frontmatter does not set one.

    Raises:
        DocumentLoadError: file unreadable, not UTF-8, or frontmatter malformed
    """
    try:
        text = path.read_bytes().decode("utf-8")
    except OSError as e:
        raise DocumentLoadError(path, f"cannot read file: {e}") from e
    except UnicodeDecodeError as e:
        raise DocumentLoadError(path, f"file is not valid UTF-8: {e}") from e

    # Strip UTF-8 BOM so the frontmatter marker is found
    text = text.removeprefix("\ufeff")

    metadata, body = parse_frontmatter(text)
    if metadata is None:
        raise DocumentLoadError(path, "malformed YAML frontmatter (missing closing --- or not a mapping)")

    metadata.setdefault("id", path.stem)
    return ConfigurationDocument(metadata, body, str(path))


def collect_document_paths(paths: Iterable[Path]) -> list[Path]:
    """Expand directories to the document files they contain (sorted, recursive)."""
    collected: list[Path] = []
    for path in paths:
        if path.is_dir():
            collected.extend(sorted(p for p in path.rglob("*") if p.is_file() and p.suffix in DOCUMENT_EXTENSIONS))
        else:
            collected.append(path)
    return collected
