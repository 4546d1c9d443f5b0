#!/usr/bin/env python3
"""
Abstraction Validation - Skill Validator

A skill is passive expertise: knowledge and guidance the assistant draws on
while working. It must declare what it knows (`expertise`) and must not
behave like a subagent (isolation, delegation) or a command (triggers).

Checks:
- `expertise` present and a non-empty list
- `portability`, if set, is one of cross-tool / claude-only
- `description` within the length limit
- content carries knowledge or guidance phrasing
- content has no isolation/delegation or trigger phrasing
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from abstraction_common import (
    MAX_DESCRIPTION_LENGTH,
    SKILL_DESCRIPTION_TOO_LONG,
    SKILL_EMPTY_EXPERTISE,
    SKILL_INVALID_PORTABILITY,
    SKILL_ISOLATION_PATTERN,
    SKILL_MISSING_EXPERTISE,
    SKILL_MISSING_KNOWLEDGE,
    SKILL_TRIGGER_PATTERN,
    VALID_PORTABILITY,
    ValidationResult,
    find_phrases,
    is_blank,
    is_present,
)

# Phrases that mark knowledge or guidance content
KNOWLEDGE_PHRASES = (
    "how to",
    "best practice",
    "pattern:",
    "example:",
    "technique",
    "approach",
    "method",
    "strategy",
    "remember",
    "consider",
    "tip:",
    "guideline",
    "recommendation",
)

# Phrases that belong to subagents
ISOLATION_PHRASES = (
    "delegate to",
    "hand off",
    "separate context",
    "independent",
    "isolated",
    "spawn",
    "subprocess",
)

# Phrases that belong to commands
TRIGGER_PHRASES = ("when user types", "trigger:", "command:")

# A slash command starting a word, e.g. "run /deploy" (matched on lower-cased content)
SLASH_TRIGGER_PATTERN = re.compile(r"(^|\s)/[a-z]")


def validate_expertise_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    """Validate the required 'expertise' field."""
    if not is_present(metadata, "expertise"):
        result.error(SKILL_MISSING_EXPERTISE, "Skills must have an expertise field", "expertise")
        return

    expertise = metadata["expertise"]
    if not isinstance(expertise, list) or not expertise:
        result.error(SKILL_EMPTY_EXPERTISE, "Skills must have at least one area of expertise", "expertise")


def validate_portability_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    """Validate the optional 'portability' field."""
    if is_blank(metadata.get("portability")):
        return

    portability = metadata["portability"]
    if portability not in VALID_PORTABILITY:
        result.error(
            SKILL_INVALID_PORTABILITY,
            f"Invalid portability value '{portability}'. Must be one of: {', '.join(VALID_PORTABILITY)}",
            "portability",
        )


def validate_description_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    """Validate the optional 'description' field length."""
    description = metadata.get("description")
    if isinstance(description, str) and len(description) > MAX_DESCRIPTION_LENGTH:
        result.error(
            SKILL_DESCRIPTION_TOO_LONG,
            f"Skill description must be at most {MAX_DESCRIPTION_LENGTH} characters (got {len(description)})",
            "description",
        )


def validate_skill_content(content: str, result: ValidationResult) -> None:
    """Check content for guidance phrasing and for subagent/command anti-patterns."""
    lower_content = content.lower()

    if not find_phrases(lower_content, KNOWLEDGE_PHRASES):
        result.warning(
            SKILL_MISSING_KNOWLEDGE,
            'Skills should contain knowledge or guidance patterns (e.g., "how to", "best practice", "example")',
        )

    if find_phrases(lower_content, ISOLATION_PHRASES):
        result.error(
            SKILL_ISOLATION_PATTERN,
            "Skills should not use isolation or delegation patterns. Consider using a SubAgent instead.",
        )

    if find_phrases(lower_content, TRIGGER_PHRASES) or SLASH_TRIGGER_PATTERN.search(lower_content):
        result.error(
            SKILL_TRIGGER_PATTERN,
            "Skills should not define triggers or commands. Consider using a Command instead.",
        )


def suggest_skill_improvements(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    expertise = metadata.get("expertise")
    if isinstance(expertise, list) and len(expertise) == 1:
        result.suggest(
            "SKILL_CATEGORIZE_EXPERTISE",
            "Consider categorizing expertise into more specific areas for better discoverability",
            "expertise",
        )

    if is_blank(metadata.get("examples")):
        result.suggest(
            "SKILL_ADD_EXAMPLES",
            "Consider adding usage examples to help users understand when to apply this skill",
            "examples",
        )

    if is_blank(metadata.get("portability")):
        result.suggest(
            "SKILL_SPECIFY_PORTABILITY",
            "Consider specifying portability to clarify tool compatibility",
            "portability",
        )


def validate_skill(metadata: Mapping[str, Any], content: str) -> ValidationResult:
    """Validate a skill document.

    Args:
        metadata: Document metadata map
        content: Document body

    Returns:
        ValidationResult with every finding
    """
    result = ValidationResult()

    validate_expertise_field(metadata, result)
    validate_portability_field(metadata, result)
    validate_description_field(metadata, result)
    validate_skill_content(content, result)
    suggest_skill_improvements(metadata, result)

    return result
