#!/usr/bin/env python3
"""
Abstraction Validation - Rule Validator

A rule is standing guidance that is always (or conditionally) in effect.
Rules are the fallback category and existing rule sets must keep passing,
so only empty content and malformed scopes are errors; everything else is
a warning or a suggestion.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from abstraction_common import (
    RULE_INVALID_PRIORITY,
    RULE_INVALID_SCOPE,
    RULE_MISSING_CONTENT,
    VALID_PRIORITIES,
    ValidationResult,
    find_phrases,
    is_blank,
    is_present,
)

# Phrases that mark directives or constraints
DIRECTIVE_PHRASES = (
    "always",
    "never",
    "should",
    "must",
    "avoid",
    "ensure",
    "you are",
    "your role is",
    "behave as",
    "act as",
    "consistently",
    "require",
    "policy",
    "guideline",
)


def validate_scope_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    """Validate the optional 'scope' field: a string or a list of non-empty strings."""
    if not is_present(metadata, "scope"):
        return

    scope = metadata["scope"]
    scopes = scope if isinstance(scope, list) else [scope]
    if any(not isinstance(s, str) or not s.strip() for s in scopes):
        result.error(RULE_INVALID_SCOPE, "Rule scopes must be non-empty strings", "scope")


def validate_priority_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    priority = metadata.get("priority")
    if is_blank(priority):
        return

    if priority not in VALID_PRIORITIES:
        result.warning(
            RULE_INVALID_PRIORITY,
            f"Unknown priority '{priority}'. Expected one of: {', '.join(VALID_PRIORITIES)}",
            "priority",
        )


def validate_rule_content(content: str, result: ValidationResult) -> None:
    if is_blank(content):
        result.error(RULE_MISSING_CONTENT, "Rules must have content")

    if not find_phrases(content.lower(), DIRECTIVE_PHRASES):
        result.suggest(
            "RULE_ADD_GUIDELINES",
            "Consider adding clear guidelines or constraints for better rule effectiveness",
        )


def suggest_rule_improvements(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    if is_blank(metadata.get("priority")):
        result.suggest("RULE_ADD_PRIORITY", "Consider adding priority level for better rule ordering", "priority")

    if is_blank(metadata.get("description")):
        result.suggest("RULE_ADD_DESCRIPTION", "Consider adding description for better documentation", "description")

    if not is_present(metadata, "alwaysApply"):
        result.suggest(
            "RULE_SPECIFY_ALWAYS_APPLY",
            "Consider explicitly setting alwaysApply to clarify rule application",
            "alwaysApply",
        )


def validate_rule(metadata: Mapping[str, Any], content: str) -> ValidationResult:
    """Validate a rule document (backward compatible: few hard errors).

    Args:
        metadata: Document metadata map
        content: Document body

    Returns:
        ValidationResult with every finding
    """
    result = ValidationResult()

    validate_scope_field(metadata, result)
    validate_priority_field(metadata, result)
    validate_rule_content(content, result)
    suggest_rule_improvements(metadata, result)

    return result
