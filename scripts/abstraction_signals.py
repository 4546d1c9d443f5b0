#!/usr/bin/env python3
"""
Abstraction Classification - Signal Extraction

Extracts the raw evidence the type classifier scores:

- Content signals: per-category keyword hits with occurrence counts, plus
  structural shape markers (lists, code blocks, slash syntax, step markers).
- Metadata signals: explicit `type`, or implicit hints such as slash
  triggers, `alwaysApply`, `manual`, `expertise` and command-like scopes,
  together with mutually contradictory hints.

The keyword and regex tables are plain data so the lexicon can be tested
on its own; the extraction functions are stateless and pure.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from abstraction_common import as_list

# =============================================================================
# Keyword Tables
# =============================================================================

# Expertise and guidance indicators
SKILL_KEYWORDS = (
    "how to",
    "pattern:",
    "example:",
    "best practice",
    "approach",
    "when working with",
    "technique",
    "method",
    "strategy",
    "remember",
    "consider",
    "note that",
    "keep in mind",
    "tip:",
    "guideline",
    "recommendation",
    "practice",
    "expertise",
    "knowledge",
    "understanding",
    "mastery",
)

# Delegation, model and procedure indicators
SUBAGENT_KEYWORDS = (
    "delegate to",
    "hand off",
    "sub-task",
    "subtask",
    "separate context",
    "independent",
    "isolated",
    "spawn",
    "claude-",
    "gpt-",
    "haiku",
    "sonnet",
    "model",
    "step 1:",
    "first",
    "then",
    "finally",
    "next",
    "procedure",
    "workflow",
    "process",
    "pipeline",
)

# Executable action indicators
COMMAND_KEYWORDS = (
    "run",
    "execute",
    "trigger",
    "invoke",
    "call",
    "command",
    "cli",
    "script",
    "tool",
    "when user types",
    "usage:",
    "syntax:",
    "argument",
    "parameter",
    "flag",
    "option",
)

# Always-apply and behavioral indicators
RULE_KEYWORDS = (
    "always",
    "every time",
    "consistently",
    "never",
    "you are",
    "your role is",
    "behave as",
    "act as",
    "should",
    "must",
    "avoid",
    "ensure",
    "require",
    "global",
    "universal",
    "default",
    "baseline",
)

KEYWORDS_BY_TYPE: dict[str, tuple[str, ...]] = {
    "skill": SKILL_KEYWORDS,
    "subagent": SUBAGENT_KEYWORDS,
    "command": COMMAND_KEYWORDS,
    "rule": RULE_KEYWORDS,
}

# =============================================================================
# Structural Patterns
# =============================================================================

# Matched against the raw (not lower-cased) content
STRUCTURAL_PATTERNS: dict[str, re.Pattern[str]] = {
    "numberedList": re.compile(r"^\s*\d+\.\s+", re.MULTILINE),
    "bulletList": re.compile(r"^\s*[-*]\s+", re.MULTILINE),
    "slashCommand": re.compile(r"/[a-zA-Z][a-zA-Z0-9_-]*"),
    "codeBlock": re.compile(r"```[\s\S]*?```"),
    "stepPattern": re.compile(r"step\s+\d+|first|then|next|finally", re.IGNORECASE),
    "examplePattern": re.compile(r"example|e\.g\.|for instance", re.IGNORECASE),
    "notePattern": re.compile(r"note:|important:|remember:", re.IGNORECASE),
    "procedurePattern": re.compile(r"procedure|process|workflow|pipeline", re.IGNORECASE),
}

# Synthetic command pattern recorded whenever slash syntax is present
SLASH_COMMAND_SYNTAX = "slash command syntax"

# =============================================================================
# Metadata Hints
# =============================================================================

HINT_SLASH_TRIGGER = "slash trigger in metadata"
HINT_MANUAL = "manual invocation flag"
HINT_ALWAYS_APPLY = "always apply flag suggests rule"
HINT_EXPERTISE = "expertise field suggests skill"
HINT_COMMAND_SCOPE = "command-related scope"

CONFLICT_ALWAYS_APPLY_MANUAL = "conflicting alwaysApply and manual flags"

# Confidence each hint contributes on its own (combined with max, not sum)
HINT_CONFIDENCE = {
    HINT_SLASH_TRIGGER: 0.8,
    HINT_MANUAL: 0.6,
    HINT_ALWAYS_APPLY: 0.7,
    HINT_EXPERTISE: 0.8,
    HINT_COMMAND_SCOPE: 0.6,
}


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ContentAnalysis:
    """Keyword and structural evidence found in a document's content."""

    skill_patterns: list[str] = field(default_factory=list)
    subagent_patterns: list[str] = field(default_factory=list)
    command_patterns: list[str] = field(default_factory=list)
    rule_patterns: list[str] = field(default_factory=list)
    structural_features: list[str] = field(default_factory=list)
    keyword_density: dict[str, int] = field(default_factory=dict)

    def patterns_for(self, abstraction_type: str) -> list[str]:
        """Matched content patterns for one category."""
        return {
            "skill": self.skill_patterns,
            "subagent": self.subagent_patterns,
            "command": self.command_patterns,
            "rule": self.rule_patterns,
        }[abstraction_type]

    def has_feature(self, *names: str) -> bool:
        """Check whether any of the named structural features matched."""
        return any(name in self.structural_features for name in names)


@dataclass
class MetadataAnalysis:
    """Type evidence found in a document's metadata map."""

    explicit_type: Any = None
    type_hints: list[str] = field(default_factory=list)
    confidence: float = 0.0
    conflicting_signals: list[str] = field(default_factory=list)


# =============================================================================
# Extraction Functions
# =============================================================================


def analyze_content(content: str) -> ContentAnalysis:
    """Scan content for category keywords and structural markers.

    Every keyword present is recorded as a pattern hit for its category and
    its non-overlapping occurrence count goes into keyword_density.
    """
    analysis = ContentAnalysis()
    lower_content = content.lower()

    for abstraction_type, keywords in KEYWORDS_BY_TYPE.items():
        hits = analysis.patterns_for(abstraction_type)
        for keyword in keywords:
            if keyword in lower_content:
                hits.append(keyword)
                analysis.keyword_density[keyword] = lower_content.count(keyword)

    for name, pattern in STRUCTURAL_PATTERNS.items():
        if pattern.search(content):
            analysis.structural_features.append(name)

    if "slashCommand" in analysis.structural_features:
        analysis.command_patterns.append(SLASH_COMMAND_SYNTAX)

    return analysis


def analyze_metadata(metadata: Mapping[str, Any]) -> MetadataAnalysis:
    """Inspect metadata for explicit or implicit type hints.

    An explicit `type` short-circuits everything else with confidence 1.0.
    """
    declared = metadata.get("type")
    if declared:
        return MetadataAnalysis(explicit_type=declared, type_hints=[f"metadata.type: {declared}"], confidence=1.0)

    analysis = MetadataAnalysis()

    def hint(name: str) -> None:
        analysis.type_hints.append(name)
        analysis.confidence = max(analysis.confidence, HINT_CONFIDENCE[name])

    triggers = as_list(metadata.get("triggers"))
    if any(isinstance(t, str) and t.startswith("/") for t in triggers):
        hint(HINT_SLASH_TRIGGER)

    if metadata.get("manual") is True:
        hint(HINT_MANUAL)

    if metadata.get("alwaysApply") is True:
        hint(HINT_ALWAYS_APPLY)

    expertise = metadata.get("expertise")
    if isinstance(expertise, (list, tuple, str)) and len(expertise) > 0:
        hint(HINT_EXPERTISE)

    scopes = as_list(metadata.get("scope"))
    if any(isinstance(s, str) and ("command" in s or "cli" in s) for s in scopes):
        hint(HINT_COMMAND_SCOPE)

    if metadata.get("alwaysApply") is True and metadata.get("manual") is True:
        analysis.conflicting_signals.append(CONFLICT_ALWAYS_APPLY_MANUAL)

    return analysis
