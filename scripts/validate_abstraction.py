#!/usr/bin/env python3
"""
Abstraction Validation - Dispatcher

Validates any configuration document: resolves its effective type (the
declared `type`, or the classified one), routes it to the matching category
validator, and warns when the content reads like a different category than
the one declared.

Usage:
    uv run python scripts/validate_abstraction.py path/to/document.md
    uv run python scripts/validate_abstraction.py path/to/docs/ --verbose
    uv run python scripts/validate_abstraction.py path/to/document.md --type command
    uv run python scripts/validate_abstraction.py path/to/document.md --json

Exit codes:
    0 - No errors (warnings and suggestions allowed)
    1 - Errors found, or a document could not be loaded
    2 - Warnings found (only with --strict)
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from abstraction_common import (
    ABSTRACTION_TYPE_MISMATCH,
    ABSTRACTION_TYPES,
    EXIT_ERRORS,
    EXIT_OK,
    MISSING_REQUIRED_FIELD,
    TYPE_MISMATCH_CONFIDENCE,
    UNKNOWN_TYPE,
    VALIDATION_EXCEPTION,
    DocumentLoadError,
    ValidationResult,
    collect_document_paths,
    failed_result,
    load_document,
    print_validation_result,
)
from detect_type import ClassificationResult, detect_abstraction_type
from validate_command import validate_command
from validate_rule import validate_rule
from validate_skill import validate_skill
from validate_subagent import validate_subagent

Validator = Callable[[Mapping[str, Any], str], ValidationResult]

VALIDATORS: dict[str, Validator] = {
    "skill": validate_skill,
    "subagent": validate_subagent,
    "command": validate_command,
    "rule": validate_rule,
}


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class AbstractionMismatch:
    """A declared type the content does not support."""

    declared_type: str
    detected_type: str
    confidence: float
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "declared_type": self.declared_type,
            "detected_type": self.detected_type,
            "confidence": round(self.confidence, 4),
            "reasons": list(self.reasons),
        }


@dataclass
class DocumentAnalysis:
    """Validation result, content-based classification and mismatch for one document."""

    validation: ValidationResult
    classification: ClassificationResult
    mismatch: AbstractionMismatch | None = None
    path: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "classification": self.classification.to_dict(),
            "mismatch": self.mismatch.to_dict() if self.mismatch else None,
            **self.validation.to_dict(),
        }


# =============================================================================
# Dispatch
# =============================================================================


def _without_type(metadata: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in metadata.items() if k != "type"}


def classify_content(metadata: Mapping[str, Any], content: str) -> ClassificationResult:
    """Classify a document while ignoring any declared type."""
    return detect_abstraction_type((_without_type(metadata), content))


def find_type_mismatch(metadata: Mapping[str, Any], classification: ClassificationResult) -> AbstractionMismatch | None:
    """Compare the declared type with a content-based classification."""
    declared = metadata.get("type")
    if not declared or classification.type == declared:
        return None
    if classification.confidence <= TYPE_MISMATCH_CONFIDENCE:
        return None
    return AbstractionMismatch(
        declared_type=str(declared),
        detected_type=classification.type,
        confidence=classification.confidence,
        reasons=list(classification.indicators),
    )


def validator_for(abstraction_type: Any) -> Validator | None:
    if not isinstance(abstraction_type, str):
        return None
    return VALIDATORS.get(abstraction_type)


def route_to_validator(abstraction_type: Any, metadata: Mapping[str, Any], content: str) -> ValidationResult:
    """Run the category validator for a type.

    Unknown types and validator crashes both come back as a single error.
    """
    validator = validator_for(abstraction_type)
    if validator is None:
        return failed_result(
            UNKNOWN_TYPE,
            f"Unknown abstraction type: {abstraction_type}. Must be one of: {', '.join(ABSTRACTION_TYPES)}",
            "type",
        )

    try:
        return validator(metadata, content)
    except Exception as e:
        return failed_result(
            VALIDATION_EXCEPTION,
            f"{validator.__name__} failed: {type(e).__name__}: {e}",
        )


def validate_any_abstraction(metadata: Mapping[str, Any] | None, content: str | None) -> ValidationResult:
    """Validate a document of any type.

    Never raises: missing inputs, unknown types and validator failures are
    all reported as errors in the returned result.

    Args:
        metadata: Document metadata map
        content: Document body

    Returns:
        ValidationResult from the category validator, plus an
        ABSTRACTION_TYPE_MISMATCH warning when the declared type looks wrong
    """
    if not isinstance(metadata, Mapping):
        return failed_result(MISSING_REQUIRED_FIELD, "Metadata is required for validation")
    if content is None:
        return failed_result(MISSING_REQUIRED_FIELD, "Content is required for validation")

    declared = metadata.get("type")
    if declared:
        effective_type = declared
    else:
        effective_type = detect_abstraction_type((metadata, content)).type

    result = route_to_validator(effective_type, metadata, content)
    if validator_for(effective_type) is None:
        return result

    if declared:
        mismatch = find_type_mismatch(metadata, classify_content(metadata, content))
        if mismatch:
            result.warning(
                ABSTRACTION_TYPE_MISMATCH,
                f'Content suggests "{mismatch.detected_type}" but metadata specifies "{mismatch.declared_type}". '
                "Consider reviewing the type or content.",
                "type",
            )

    return result


def analyze_document(metadata: Mapping[str, Any], content: str, path: str | None = None) -> DocumentAnalysis:
    """Validate a document and explain how its content classifies."""
    validation = validate_any_abstraction(metadata, content)
    if not isinstance(metadata, Mapping):
        metadata = {}
    classification = classify_content(metadata, content or "")
    return DocumentAnalysis(
        validation=validation,
        classification=classification,
        mismatch=find_type_mismatch(metadata, classification),
        path=path,
    )


# =============================================================================
# Main
# =============================================================================


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate skill, subagent, command and rule documents")
    parser.add_argument("paths", nargs="+", help="Document files or directories of .md/.mdc documents")
    parser.add_argument("--type", choices=ABSTRACTION_TYPES, help="Validate as this type, ignoring metadata")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show suggestions and classification")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--strict", action="store_true", help="Strict mode: warnings also fail")
    args = parser.parse_args()

    paths = [Path(p).resolve() for p in args.paths]
    for path in paths:
        if not path.exists():
            print(f"Error: {path} does not exist", file=sys.stderr)
            return EXIT_ERRORS

    exit_code = EXIT_OK
    output: list[dict[str, object]] = []
    for path in collect_document_paths(paths):
        try:
            document = load_document(path)
        except DocumentLoadError as e:
            print(f"Error: {e}", file=sys.stderr)
            exit_code = EXIT_ERRORS
            continue

        metadata = dict(document.metadata)
        if args.type:
            metadata["type"] = args.type

        analysis = analyze_document(metadata, document.content, str(path))
        result = analysis.validation

        if args.json:
            output.append(analysis.to_dict())
        else:
            print_validation_result(result, f"Validating: {path}", args.verbose)
            if args.verbose:
                c = analysis.classification
                print(f"  content reads as: {c.type} ({c.confidence:.2f}) - {', '.join(c.indicators)}")

        code = result.exit_code_strict() if args.strict else result.exit_code
        # Errors outrank warnings
        if code != EXIT_OK and exit_code != EXIT_ERRORS:
            exit_code = code

    if args.json:
        print(json.dumps(output, indent=2))

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
