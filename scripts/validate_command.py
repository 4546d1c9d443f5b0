#!/usr/bin/env python3
"""
Abstraction Validation - Command Validator

A command is an explicitly user-invoked action bound to a slash trigger
(e.g. /build), optionally taking typed arguments. Commands only run when
asked, so always-apply semantics are an error.

Checks:
- `trigger` present and a valid slash command
- `userInvoked` present and exactly True
- every declared argument has a name, a known type and a boolean `required`
- content has no always-apply phrasing and does carry usage instructions
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from abstraction_common import (
    COMMAND_ALWAYS_APPLY_PATTERN,
    COMMAND_FALSE_USER_INVOKED,
    COMMAND_INVALID_ARGUMENTS,
    COMMAND_INVALID_TRIGGER,
    COMMAND_MISSING_INSTRUCTIONS,
    COMMAND_MISSING_TRIGGER,
    COMMAND_MISSING_USER_INVOKED,
    TRIGGER_PATTERN,
    VALID_ARGUMENT_TYPES,
    ValidationResult,
    find_phrases,
    is_blank,
    is_present,
)

# Phrases that mark executable instructions or usage guidance
INSTRUCTION_PHRASES = (
    "run",
    "execute",
    "trigger",
    "invoke",
    "call",
    "usage:",
    "syntax:",
    "when user types",
    "command",
)

# Phrases that mark unconditional, rule-like application
ALWAYS_APPLY_PHRASES = ("always apply", "every time", "consistently", "baseline", "global")

# Content markers for usage documentation (case-sensitive)
USAGE_MARKERS = ("usage:", "example:")
OPTIONAL_MARKER = "optional"


def validate_trigger_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    """Validate the required 'trigger' field."""
    trigger = metadata.get("trigger")
    if is_blank(trigger):
        result.error(COMMAND_MISSING_TRIGGER, "Commands must have a trigger field", "trigger")
        return

    if not isinstance(trigger, str) or not TRIGGER_PATTERN.fullmatch(trigger):
        result.error(
            COMMAND_INVALID_TRIGGER,
            f"Command trigger '{trigger}' must be a valid slash command (e.g., /build, /test)",
            "trigger",
        )


def validate_user_invoked_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    """Validate the required 'userInvoked' field (must be exactly True)."""
    if not is_present(metadata, "userInvoked"):
        result.error(COMMAND_MISSING_USER_INVOKED, "Commands must have userInvoked field", "userInvoked")
    elif metadata["userInvoked"] is not True:
        result.error(COMMAND_FALSE_USER_INVOKED, "Commands must have userInvoked set to true", "userInvoked")


def validate_argument(index: int, argument: Any, result: ValidationResult) -> None:
    """Validate one declared argument; each bad field is its own error."""
    if not isinstance(argument, Mapping):
        result.error(
            COMMAND_INVALID_ARGUMENTS,
            f"Argument at index {index} must be a mapping, got {type(argument).__name__}",
            f"arguments.{index}",
        )
        return

    if is_blank(argument.get("name")):
        result.error(COMMAND_INVALID_ARGUMENTS, f"Argument at index {index} must have a name", f"arguments.{index}.name")

    arg_type = argument.get("type")
    if arg_type not in VALID_ARGUMENT_TYPES:
        result.error(
            COMMAND_INVALID_ARGUMENTS,
            f'Invalid argument type "{arg_type}". Must be one of: {", ".join(VALID_ARGUMENT_TYPES)}',
            f"arguments.{index}.type",
        )

    if not isinstance(argument.get("required"), bool):
        result.error(
            COMMAND_INVALID_ARGUMENTS,
            "Argument required field must be boolean",
            f"arguments.{index}.required",
        )


def validate_arguments_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    """Validate the optional 'arguments' list."""
    if not is_present(metadata, "arguments"):
        return

    arguments = metadata["arguments"]
    if not isinstance(arguments, list):
        result.error(
            COMMAND_INVALID_ARGUMENTS,
            f"'arguments' must be a list, got {type(arguments).__name__}",
            "arguments",
        )
        return

    for index, argument in enumerate(arguments):
        validate_argument(index, argument, result)


def validate_command_content(metadata: Mapping[str, Any], content: str, result: ValidationResult) -> None:
    """Check content for usage instructions and always-apply anti-patterns."""
    lower_content = content.lower()

    if not find_phrases(lower_content, INSTRUCTION_PHRASES):
        result.warning(COMMAND_MISSING_INSTRUCTIONS, "Commands should contain executable instructions or usage guidance")

    if find_phrases(lower_content, ALWAYS_APPLY_PHRASES) or metadata.get("alwaysApply") is True:
        result.error(
            COMMAND_ALWAYS_APPLY_PATTERN,
            "Commands should not use always-apply patterns. They are user-invoked only.",
        )


def suggest_command_improvements(metadata: Mapping[str, Any], content: str, result: ValidationResult) -> None:
    arguments = metadata.get("arguments")
    if not isinstance(arguments, list) or not arguments:
        result.suggest(
            "COMMAND_ADD_ARGUMENTS",
            "Consider defining arguments structure for better usability",
            "arguments",
        )
        arguments = []

    if not any(marker in content for marker in USAGE_MARKERS):
        result.suggest(
            "COMMAND_ADD_USAGE_EXAMPLE",
            "Consider adding usage examples to help users understand how to invoke the command",
        )

    has_optional = any(isinstance(arg, Mapping) and arg.get("required") is False for arg in arguments)
    if has_optional and OPTIONAL_MARKER not in content:
        result.suggest(
            "COMMAND_DOCUMENT_OPTIONAL_ARGS",
            "Consider documenting optional arguments in the command description",
        )


def validate_command(metadata: Mapping[str, Any], content: str) -> ValidationResult:
    """Validate a command document.

    Args:
        metadata: Document metadata map
        content: Document body

    Returns:
        ValidationResult with every finding
    """
    result = ValidationResult()

    validate_trigger_field(metadata, result)
    validate_user_invoked_field(metadata, result)
    validate_arguments_field(metadata, result)
    validate_command_content(metadata, content, result)
    suggest_command_improvements(metadata, content, result)

    return result
