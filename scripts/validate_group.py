#!/usr/bin/env python3
"""
Abstraction Validation - Group Validator

Validates a set of documents that live side by side (e.g. one project's
rules, skills, subagents and commands) for problems no single document can
show on its own:

1. Duplicate document ids
2. Two commands claiming the same trigger
3. Circular dependencies (reported once, for the first cycle found)
4. Dependencies on ids that are not in the set
5. Several always-apply rules competing for the same scope

Usage:
    uv run python scripts/validate_group.py path/to/project-docs/
    uv run python scripts/validate_group.py a.md b.md c.md --verbose
    uv run python scripts/validate_group.py path/to/project-docs/ --json

Exit codes:
    0 - No errors (warnings and suggestions allowed)
    1 - Errors found, or a document could not be loaded
    2 - Warnings found (only with --strict)
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from abstraction_common import (
    CIRCULAR_DEPENDENCY,
    COLORS,
    COMMAND_TRIGGER_CONFLICT,
    DEFAULT_SCOPE,
    DUPLICATE_ID,
    EXIT_ERRORS,
    INVALID_DEPENDENCY,
    RULE_SCOPE_CONFLICT,
    ConfigurationDocument,
    DocumentLoadError,
    ValidationResult,
    as_document,
    as_list,
    collect_document_paths,
    combine_validation_results,
    load_document,
    print_validation_result,
)
from validate_abstraction import validate_any_abstraction

# id -> ids it depends on
DependencyGraph = dict[str, list[str]]


# =============================================================================
# Index Building
# =============================================================================


def _label(document: ConfigurationDocument, index: int) -> str:
    return document.doc_id or f"document[{index}]"


def check_duplicate_ids(documents: Sequence[ConfigurationDocument], result: ValidationResult) -> None:
    """Report every id claimed by more than one document."""
    seen: set[str] = set()
    reported: set[str] = set()
    for document in documents:
        doc_id = document.doc_id
        if doc_id is None:
            continue
        if doc_id in seen and doc_id not in reported:
            count = sum(1 for d in documents if d.doc_id == doc_id)
            result.warning(DUPLICATE_ID, f'Document id "{doc_id}" is used by {count} documents', "id")
            reported.add(doc_id)
        seen.add(doc_id)


def build_trigger_index(documents: Sequence[ConfigurationDocument], result: ValidationResult) -> dict[str, str]:
    """Map each command trigger to the first command claiming it; report later claimers."""
    triggers: dict[str, str] = {}
    for index, document in enumerate(documents):
        if document.declared_type != "command":
            continue
        trigger = document.metadata.get("trigger")
        if not isinstance(trigger, str) or not trigger:
            continue

        label = _label(document, index)
        existing = triggers.get(trigger)
        if existing is not None:
            result.error(
                COMMAND_TRIGGER_CONFLICT,
                f'Trigger "{trigger}" of command "{label}" conflicts with command "{existing}"',
                "trigger",
            )
        else:
            triggers[trigger] = label
    return triggers


def build_dependency_graph(documents: Sequence[ConfigurationDocument]) -> DependencyGraph:
    """Adjacency map of the documents that declare dependencies (first id wins)."""
    graph: DependencyGraph = {}
    for document in documents:
        doc_id = document.doc_id
        if doc_id is None or "dependencies" not in document.metadata:
            continue
        dependencies = [str(dep) for dep in as_list(document.metadata["dependencies"])]
        graph.setdefault(doc_id, dependencies)
    return graph


# =============================================================================
# Graph Checks
# =============================================================================


def find_cycle(graph: DependencyGraph) -> list[str] | None:
    """Return the first dependency cycle found, as a closed path (a -> b -> a).

    Depth-first search with an explicit stack, so deep chains cannot hit the
    recursion limit.
    """
    visited: set[str] = set()
    recursion_stack: set[str] = set()

    for start in graph:
        if start in visited:
            continue

        path = [start]
        visited.add(start)
        recursion_stack.add(start)
        stack = [(start, iter(graph.get(start, ())))]

        while stack:
            node, dependencies = stack[-1]
            for dep in dependencies:
                if dep in recursion_stack:
                    return path[path.index(dep) :] + [dep]
                if dep not in visited:
                    visited.add(dep)
                    recursion_stack.add(dep)
                    path.append(dep)
                    stack.append((dep, iter(graph.get(dep, ()))))
                    break
            else:
                stack.pop()
                recursion_stack.discard(node)
                path.pop()

    return None


def check_circular_dependencies(graph: DependencyGraph, result: ValidationResult) -> None:
    cycle = find_cycle(graph)
    if cycle:
        result.error(
            CIRCULAR_DEPENDENCY,
            f'Circular dependency detected involving "{cycle[0]}": {" -> ".join(cycle)}',
            "dependencies",
        )


def check_dangling_dependencies(graph: DependencyGraph, known_ids: set[str], result: ValidationResult) -> None:
    """One error per document listing all of its unknown dependency ids."""
    for doc_id, dependencies in graph.items():
        invalid = [dep for dep in dependencies if dep not in known_ids]
        if invalid:
            result.error(
                INVALID_DEPENDENCY,
                f'Invalid dependencies in "{doc_id}": {", ".join(invalid)}',
                "dependencies",
            )


def check_scope_overlap(documents: Sequence[ConfigurationDocument], result: ValidationResult) -> None:
    """Warn when several always-apply rules share a scope."""
    rules_by_scope: dict[str, list[str]] = {}
    for index, document in enumerate(documents):
        if document.declared_type != "rule" or document.metadata.get("alwaysApply") is not True:
            continue
        scopes = as_list(document.metadata.get("scope")) or [DEFAULT_SCOPE]
        for scope in scopes:
            if isinstance(scope, str):
                rules_by_scope.setdefault(scope, []).append(_label(document, index))

    for scope, rule_ids in rules_by_scope.items():
        if len(rule_ids) > 1:
            result.warning(
                RULE_SCOPE_CONFLICT,
                f'Multiple always-apply rules in scope "{scope}": {", ".join(rule_ids)}. Consider setting priorities.',
                "scope",
            )


# =============================================================================
# Main Validation
# =============================================================================


def validate_abstraction_group(documents: Iterable[Any]) -> ValidationResult:
    """Run the cross-document checks over one batch.

    Only metadata is inspected; per-document validation is separate.

    Args:
        documents: ConfigurationDocuments, (metadata, content) pairs, or
            {"metadata": ..., "content": ...} mappings

    Returns:
        ValidationResult for the batch as a whole
    """
    batch = [as_document(d) for d in documents]
    result = ValidationResult()

    check_duplicate_ids(batch, result)
    build_trigger_index(batch, result)

    graph = build_dependency_graph(batch)
    known_ids = {d.doc_id for d in batch if d.doc_id is not None}
    check_circular_dependencies(graph, result)
    check_dangling_dependencies(graph, known_ids, result)

    check_scope_overlap(batch, result)

    return result


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate a set of documents individually and as a group")
    parser.add_argument("paths", nargs="+", help="Document files or directories of .md/.mdc documents")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show suggestions and passing documents")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--strict", action="store_true", help="Strict mode: warnings also fail")
    args = parser.parse_args()

    paths = [Path(p).resolve() for p in args.paths]
    for path in paths:
        if not path.exists():
            print(f"Error: {path} does not exist", file=sys.stderr)
            return EXIT_ERRORS

    load_failed = False
    documents: list[ConfigurationDocument] = []
    for path in collect_document_paths(paths):
        try:
            documents.append(load_document(path))
        except DocumentLoadError as e:
            print(f"Error: {e}", file=sys.stderr)
            load_failed = True

    document_results = [(d, validate_any_abstraction(d.metadata, d.content)) for d in documents]
    group_result = validate_abstraction_group(documents)
    combined = combine_validation_results([r for _, r in document_results] + [group_result])

    if args.json:
        output = {
            "documents": [{"path": d.path, **r.to_dict()} for d, r in document_results],
            "group": group_result.to_dict(),
            "valid": combined.valid and not load_failed,
        }
        print(json.dumps(output, indent=2))
    else:
        for document, result in document_results:
            if args.verbose or result.errors or result.warnings:
                print_validation_result(result, f"Validating: {document.path}", args.verbose)
        print_validation_result(group_result, f"Group: {len(documents)} document(s)", args.verbose)
        print(f"\n{COLORS['BOLD']}Total:{COLORS['RESET']} {len(combined.errors)} error(s), {len(combined.warnings)} warning(s)")

    if load_failed:
        return EXIT_ERRORS
    return combined.exit_code_strict() if args.strict else combined.exit_code


if __name__ == "__main__":
    sys.exit(main())
