#!/usr/bin/env python3
"""
Abstraction Validation - Subagent Validator

A subagent runs a delegated task in its own isolated context, optionally on
a specific model with a restricted tool set. Isolation is mandatory, and
always-apply semantics contradict it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from abstraction_common import (
    KNOWN_TOOLS,
    LIGHTWEIGHT_MODEL_MARKER,
    MAX_FOCUSED_TOOLS,
    MAX_NAME_LENGTH,
    SUBAGENT_FALSE_ISOLATION,
    SUBAGENT_INVALID_MODEL,
    SUBAGENT_INVALID_TOOLS,
    SUBAGENT_MISSING_ISOLATION,
    SUBAGENT_MISSING_PROCEDURAL,
    SUBAGENT_NAME_TOO_LONG,
    SUBAGENT_RULE_CONFLICT,
    VALID_MODELS,
    ValidationResult,
    as_list,
    find_phrases,
    is_blank,
    is_present,
)

# Phrases that mark a procedural, task-oriented body
PROCEDURAL_PHRASES = (
    "step 1:",
    "step 2:",
    "first",
    "then",
    "next",
    "finally",
    "procedure",
    "workflow",
    "process",
    "pipeline",
    "delegate",
    "hand off",
    "sub-task",
    "subtask",
)


def validate_isolation_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    """Validate the required 'isolatedContext' field (must be exactly True)."""
    if not is_present(metadata, "isolatedContext"):
        result.error(SUBAGENT_MISSING_ISOLATION, "SubAgents must have isolatedContext field", "isolatedContext")
    elif metadata["isolatedContext"] is not True:
        result.error(SUBAGENT_FALSE_ISOLATION, "SubAgents must have isolatedContext set to true", "isolatedContext")


def validate_always_apply_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    if metadata.get("alwaysApply") is True:
        result.error(
            SUBAGENT_RULE_CONFLICT,
            "SubAgents should not use alwaysApply flag. This conflicts with isolated context.",
            "alwaysApply",
        )


def validate_model_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    """Validate the optional 'model' field.

    Unknown models are reported as warnings: new models appear faster than
    this list is updated.
    """
    model = metadata.get("model")
    if is_blank(model):
        return

    if model not in VALID_MODELS:
        result.warning(
            SUBAGENT_INVALID_MODEL,
            f"Unknown model '{model}'. Known models: {', '.join(VALID_MODELS)}",
            "model",
        )


def validate_tools_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    """Validate the optional 'tools' field against the known tool names."""
    tools = as_list(metadata.get("tools"))
    unknown_tools = [str(tool) for tool in tools if tool not in KNOWN_TOOLS]
    if unknown_tools:
        result.warning(
            SUBAGENT_INVALID_TOOLS,
            f"Unknown tools: {', '.join(unknown_tools)}. Verify these are valid tool names.",
            "tools",
        )


def validate_name_field(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    name = metadata.get("name")
    if isinstance(name, str) and len(name) > MAX_NAME_LENGTH:
        result.error(
            SUBAGENT_NAME_TOO_LONG,
            f"SubAgent name must be at most {MAX_NAME_LENGTH} characters (got {len(name)})",
            "name",
        )


def validate_subagent_content(content: str, result: ValidationResult) -> None:
    if not find_phrases(content.lower(), PROCEDURAL_PHRASES):
        result.warning(SUBAGENT_MISSING_PROCEDURAL, "SubAgents should contain procedural or task-oriented patterns")


def suggest_subagent_improvements(metadata: Mapping[str, Any], result: ValidationResult) -> None:
    model = metadata.get("model")
    if is_blank(model):
        result.suggest(
            "SUBAGENT_SPECIFY_MODEL",
            "Consider specifying a model for better performance optimization",
            "model",
        )
    elif isinstance(model, str) and LIGHTWEIGHT_MODEL_MARKER in model.lower():
        result.suggest(
            "SUBAGENT_HAIKU_USAGE",
            "Consider using Haiku for simple, fast tasks and Sonnet for complex reasoning",
            "model",
            actionable=False,
        )

    if is_blank(metadata.get("systemPrompt")):
        result.suggest(
            "SUBAGENT_ADD_SYSTEM_PROMPT",
            "Consider adding a system prompt to better define the subagent's role",
            "systemPrompt",
        )

    if len(as_list(metadata.get("tools"))) > MAX_FOCUSED_TOOLS:
        result.suggest(
            "SUBAGENT_TOO_MANY_TOOLS",
            "Consider reducing tool scope for better focus and performance",
            "tools",
        )


def validate_subagent(metadata: Mapping[str, Any], content: str) -> ValidationResult:
    """Validate a subagent document.

    Args:
        metadata: Document metadata map
        content: Document body

    Returns:
        ValidationResult with every finding
    """
    result = ValidationResult()

    validate_isolation_field(metadata, result)
    validate_always_apply_field(metadata, result)
    validate_model_field(metadata, result)
    validate_tools_field(metadata, result)
    validate_name_field(metadata, result)
    validate_subagent_content(content, result)
    suggest_subagent_improvements(metadata, result)

    return result
