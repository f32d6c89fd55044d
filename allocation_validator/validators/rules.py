from __future__ import annotations

from ..models.business_rule import (
    BusinessRule,
    CoRunRule,
    LoadLimitRule,
    PhaseWindowRule,
    SlotRestrictionRule,
    active_rules,
)
from ..models.issue import IssueCategory, ValidationResult
from ..validation.context import ValidationContext
from .base import Validator

"""Business-rule validators: co-run cycles and contradictory rules."""

__all__ = [
    "CircularCoRunValidator",
    "ConflictingRulesValidator",
    "find_corun_cycle",
]


def _corun_graph(rules: list[CoRunRule]) -> dict[str, dict[str, None]]:
    """Undirected adjacency; dict keys keep first-appearance order."""
    graph: dict[str, dict[str, None]] = {}
    for rule in rules:
        for task in rule.tasks:
            graph.setdefault(task, {})
        for i, a in enumerate(rule.tasks):
            for b in rule.tasks[i + 1 :]:
                if a == b:
                    continue
                graph[a][b] = None
                graph[b][a] = None
    return graph


def find_corun_cycle(rules: list[CoRunRule]) -> list[str] | None:
    """First cycle found by DFS as a closed chain (``[A, B, C, A]``), else None."""
    graph = _corun_graph(rules)
    visited: set[str] = set()
    path: list[str] = []
    on_path: set[str] = set()

    def dfs(node: str, parent: str | None) -> list[str] | None:
        visited.add(node)
        path.append(node)
        on_path.add(node)
        for neighbor in graph[node]:
            if neighbor == parent:
                continue
            if neighbor in on_path:
                return path[path.index(neighbor) :] + [neighbor]
            if neighbor not in visited:
                found = dfs(neighbor, node)
                if found:
                    return found
        path.pop()
        on_path.discard(node)
        return None

    for start in graph:
        if start in visited:
            continue
        cycle = dfs(start, None)
        if cycle:
            return cycle
    return None


class CircularCoRunValidator(Validator):
    name = "CircularCoRunValidator"
    category = "business"
    issue_category = IssueCategory.CIRCULAR_CORUN
    priority = 40

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        cycle = find_corun_cycle(active_rules(context.rules, CoRunRule))
        if cycle:
            chain = " -> ".join(cycle)
            builder.add_error(
                f"Circular co-run dependency: {chain}",
                None,
                value=chain,
                suggestion=f"Remove or merge one of the co-run rules linking {', '.join(cycle[:-1])}",
                details={"cycle": tuple(cycle)},
            )
        return builder.build()


def _intersect(phase_sets: list[tuple[str, ...]]) -> list[str]:
    common = list(phase_sets[0])
    for phases in phase_sets[1:]:
        common = [p for p in common if p in phases]
    return common


class ConflictingRulesValidator(Validator):
    """Contradictions between active rules.

    - co-run tasks whose phase windows share no phase (error)
    - co-run group larger than a worker group's load limit (warning)
    - phase window shorter than a slot restriction's minimum (warning)
    - several phase windows for one task with no common phase (error)
    """

    name = "ConflictingRulesValidator"
    category = "business"
    issue_category = IssueCategory.CONFLICTING_RULES
    priority = 41

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        rules: tuple[BusinessRule, ...] = context.rules
        if not rules:
            return builder.build()

        corun: list[CoRunRule] = active_rules(rules, CoRunRule)
        windows: list[PhaseWindowRule] = active_rules(rules, PhaseWindowRule)
        limits: list[LoadLimitRule] = active_rules(rules, LoadLimitRule)
        slots: list[SlotRestrictionRule] = active_rules(rules, SlotRestrictionRule)

        windows_by_task: dict[str, list[PhaseWindowRule]] = {}
        for window in windows:
            windows_by_task.setdefault(window.task_id, []).append(window)

        # Allowed phases per task; tasks whose own windows conflict are left
        # to the per-task check below
        allowed: dict[str, list[str]] = {}
        for task_id, task_windows in windows_by_task.items():
            common = _intersect([w.phase_set() for w in task_windows])
            if common:
                allowed[task_id] = common

        for rule in corun:
            constrained = [t for t in rule.tasks if t in allowed]
            if len(constrained) < 2:
                continue
            if not _intersect([tuple(allowed[t]) for t in constrained]):
                task_list = ", ".join(constrained)
                builder.add_error(
                    f"Co-run rule {rule.id} conflicts with phase windows: tasks {task_list} "
                    "must run together but have no overlapping allowed phases",
                    None,
                    value=rule.id,
                    suggestion=f"Adjust phase windows so tasks {task_list} can share a phase, "
                    "or remove the co-run rule",
                )

        for rule in corun:
            for limit in limits:
                if len(rule.tasks) > limit.max_slots_per_phase:
                    builder.add_warning(
                        f"Co-run rule {rule.id} for {len(rule.tasks)} tasks conflicts with load limit "
                        f'of {limit.max_slots_per_phase} slots per phase for worker group "{limit.worker_group}"',
                        None,
                        value=rule.id,
                        suggestion=f'Increase the load limit for worker group "{limit.worker_group}" '
                        "or reduce the co-run group size",
                    )

        for restriction in slots:
            for window in windows:
                phases = window.phase_set()
                if len(phases) < restriction.min_common_slots:
                    builder.add_warning(
                        f"Phase window for task {window.task_id} ({len(phases)} phases) conflicts with "
                        f"slot restriction {restriction.id} ({restriction.min_common_slots} minimum common slots)",
                        None,
                        value=window.id,
                        suggestion=f"Expand the phase window for task {window.task_id} "
                        "or reduce the common slot requirement",
                    )

        for task_id, task_windows in windows_by_task.items():
            if len(task_windows) > 1 and not _intersect([w.phase_set() for w in task_windows]):
                builder.add_error(
                    f"Task {task_id} has conflicting phase window rules with no overlapping allowed phases",
                    None,
                    value=task_id,
                    suggestion=f"Remove conflicting phase window rules for task {task_id} "
                    "or adjust them to overlap",
                )
        return builder.build()
