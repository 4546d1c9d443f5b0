#!/usr/bin/env python3
"""
Abstraction Classification - Type Detector

Classifies a configuration document as a skill, subagent, command or rule
using a deterministic, explainable heuristic:

1. An explicit `type` in the metadata wins outright.
2. Otherwise content keywords, structural markers and metadata hints are
   turned into one raw score per category.
3. Scores are normalized by the maximum, and `rule` is floored at 0.3 so it
   is always a viable fallback.
4. The strict maximum wins; ties go to the first category in the order
   skill, subagent, command, rule.

Usage:
    uv run python scripts/detect_type.py path/to/document.md
    uv run python scripts/detect_type.py path/to/rules/ --json

Exit codes:
    0 - All documents classified
    1 - One or more documents could not be loaded
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from abstraction_common import (
    ABSTRACTION_TYPES,
    COLORS,
    EXIT_ERRORS,
    EXIT_OK,
    ConfigurationDocument,
    DocumentLoadError,
    as_document,
    collect_document_paths,
    load_document,
)
from abstraction_signals import (
    ContentAnalysis,
    MetadataAnalysis,
    analyze_content,
    analyze_metadata,
)

# =============================================================================
# Scoring Constants
# =============================================================================

# Explicit metadata type is trusted above this confidence
EXPLICIT_TYPE_CONFIDENCE = 0.9

# Content score: per-pattern weight and cap, per-occurrence weight and cap
PATTERN_WEIGHT = 0.15
PATTERN_SCORE_CAP = 0.7
DENSITY_WEIGHT = 0.05
DENSITY_SCORE_CAP = 0.3

# Structural boosts: (features, category, boost)
STRUCTURAL_BOOSTS: tuple[tuple[tuple[str, ...], str, float], ...] = (
    (("slashCommand",), "command", 0.4),
    (("stepPattern", "procedurePattern"), "subagent", 0.3),
    (("examplePattern", "notePattern"), "skill", 0.2),
    (("numberedList",), "subagent", 0.2),
)

# Metadata boosts: (hint substring, category, fraction of metadata boost)
METADATA_BOOSTS: tuple[tuple[str, str, float], ...] = (
    ("expertise", "skill", 1.0),
    ("trigger", "command", 1.0),
    ("manual", "command", 0.5),
    ("always apply", "rule", 1.0),
)
METADATA_BOOST_WEIGHT = 0.3

# Rule stays viable as a fallback, and reports at least this confidence when it wins
RULE_SCORE_FLOOR = 0.3
RULE_CONFIDENCE_FLOOR = 0.5

# Structural features that support each category in the indicator list
RELEVANT_STRUCTURAL_FEATURES: dict[str, tuple[str, ...]] = {
    "skill": ("examplePattern", "notePattern"),
    "subagent": ("stepPattern", "procedurePattern", "numberedList"),
    "command": ("slashCommand",),
    "rule": (),
}

MAX_PATTERN_INDICATORS = 3
MAX_METADATA_INDICATORS = 2
MAX_INDICATORS = 5


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ClassificationResult:
    """Outcome of classifying one document.

    Attributes:
        type: Winning abstraction type
        confidence: Float in [0, 1]; not a calibrated probability
        indicators: Up to five signals that led to the decision, most relevant first
        scores: Normalized per-category scores (empty for explicit types)
        conflicts: Contradictory metadata hints, reported but never scored
    """

    type: str
    confidence: float
    indicators: list[str] = field(default_factory=list)
    scores: dict[str, float] = field(default_factory=dict)
    conflicts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.type,
            "confidence": round(self.confidence, 4),
            "indicators": list(self.indicators),
            "scores": {k: round(v, 4) for k, v in self.scores.items()},
            "conflicts": list(self.conflicts),
        }


# =============================================================================
# Scoring
# =============================================================================


def calculate_content_score(patterns: list[str], keyword_density: Mapping[str, int]) -> float:
    """Score a category from its matched patterns and their occurrence counts."""
    if not patterns:
        return 0.0

    score = min(len(patterns) * PATTERN_WEIGHT, PATTERN_SCORE_CAP)
    # Synthetic patterns have no density entry and count once
    total_density = sum(keyword_density.get(pattern) or 1 for pattern in patterns)
    density_boost = min(total_density * DENSITY_WEIGHT, DENSITY_SCORE_CAP)

    return min(score + density_boost, 1.0)


def calculate_type_scores(content_analysis: ContentAnalysis, metadata_analysis: MetadataAnalysis) -> dict[str, float]:
    """Compute normalized per-category scores in enumeration order."""
    scores = {
        abstraction_type: calculate_content_score(
            content_analysis.patterns_for(abstraction_type), content_analysis.keyword_density
        )
        for abstraction_type in ABSTRACTION_TYPES
    }

    for features, abstraction_type, boost in STRUCTURAL_BOOSTS:
        if content_analysis.has_feature(*features):
            scores[abstraction_type] += boost

    metadata_boost = metadata_analysis.confidence * METADATA_BOOST_WEIGHT
    for needle, abstraction_type, fraction in METADATA_BOOSTS:
        if any(needle in hint for hint in metadata_analysis.type_hints):
            scores[abstraction_type] += metadata_boost * fraction

    max_raw_score = max(scores.values())
    if max_raw_score > 0:
        scores = {k: min(v / max_raw_score, 1.0) for k, v in scores.items()}

    scores["rule"] = max(scores["rule"], RULE_SCORE_FLOOR)
    return scores


def gather_indicators(
    detected_type: str,
    content_analysis: ContentAnalysis,
    metadata_analysis: MetadataAnalysis,
) -> list[str]:
    """Collect the signals that support the winning category."""
    indicators = [
        f"{detected_type} pattern: {pattern}"
        for pattern in content_analysis.patterns_for(detected_type)[:MAX_PATTERN_INDICATORS]
    ]

    relevant = RELEVANT_STRUCTURAL_FEATURES[detected_type]
    indicators.extend(f"structural: {f}" for f in content_analysis.structural_features if f in relevant)

    indicators.extend(metadata_analysis.type_hints[:MAX_METADATA_INDICATORS])

    return indicators[:MAX_INDICATORS]


def detect_abstraction_type(
    document: ConfigurationDocument | tuple[Any, Any] | Mapping[str, Any],
) -> ClassificationResult:
    """Classify a document as skill, subagent, command or rule.

    Accepts a ConfigurationDocument, a (metadata, content) pair, or a
    {"metadata": ..., "content": ...} mapping.
    """
    document = as_document(document)
    metadata_analysis = analyze_metadata(document.metadata)

    if metadata_analysis.explicit_type and metadata_analysis.confidence > EXPLICIT_TYPE_CONFIDENCE:
        return ClassificationResult(
            type=metadata_analysis.explicit_type,
            confidence=metadata_analysis.confidence,
            indicators=[f"explicit type: {metadata_analysis.explicit_type}", *metadata_analysis.type_hints],
        )

    content_analysis = analyze_content(document.content)
    scores = calculate_type_scores(content_analysis, metadata_analysis)

    # First strict maximum in enumeration order
    detected_type = max(ABSTRACTION_TYPES, key=lambda t: scores[t])
    confidence = scores[detected_type]
    if detected_type == "rule":
        confidence = max(confidence, RULE_CONFIDENCE_FLOOR)

    return ClassificationResult(
        type=detected_type,
        confidence=confidence,
        indicators=gather_indicators(detected_type, content_analysis, metadata_analysis),
        scores=scores,
        conflicts=list(metadata_analysis.conflicting_signals),
    )


# =============================================================================
# Output Functions
# =============================================================================


def print_classification(path: str, result: ClassificationResult, verbose: bool = False) -> None:
    """Print one classification in human-readable format."""
    color = COLORS["passed"] if result.confidence > 0.7 else COLORS["warning"]
    print(f"{COLORS['BOLD']}{path}{COLORS['RESET']}")
    print(f"  type:       {color}{result.type}{COLORS['RESET']}")
    print(f"  confidence: {result.confidence:.2f}")
    for indicator in result.indicators:
        print(f"  - {indicator}")
    for conflict in result.conflicts:
        print(f"  {COLORS['warning']}! {conflict}{COLORS['RESET']}")
    if verbose and result.scores:
        ranked = ", ".join(f"{t}={result.scores[t]:.2f}" for t in ABSTRACTION_TYPES)
        print(f"  {COLORS['info']}scores: {ranked}{COLORS['RESET']}")


# =============================================================================
# Main
# =============================================================================


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Detect the abstraction type of configuration documents")
    parser.add_argument("paths", nargs="+", help="Document files or directories of .md/.mdc documents")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show per-category scores")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
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

        result = detect_abstraction_type(document)
        if args.json:
            output.append({"path": str(path), **result.to_dict()})
        else:
            print_classification(str(path), result, args.verbose)

    if args.json:
        print(json.dumps(output, indent=2))

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
