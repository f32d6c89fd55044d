from __future__ import annotations

from ..models.issue import FixResult, IssueCategory, ValidationIssue, ValidationResult
from ..models.parsed_data import ParsedData, Sheet
from ..validation.context import ValidationContext
from ..validation.results import FixResultBuilder, ValidationResultBuilder
from .base import Validator
from .parsing import (
    first_preferred_phase,
    format_number,
    is_blank,
    skill_set,
    slot_count,
    split_list,
    to_number,
)

"""Cross-sheet and worker feasibility validators."""

__all__ = [
    "TaskReferenceValidator",
    "SkillCoverageValidator",
    "WorkerCapacityValidator",
    "ConcurrencyFeasibilityValidator",
]


def _label(data: ParsedData, index: int, *columns: str) -> str:
    for column in columns:
        value = data.value(index, column) if data.has_column(column) else None
        if not is_blank(value):
            return str(value)
    return f"row {index + 1}"


def _cell(data: ParsedData, index: int, column: str) -> object:
    return data.value(index, column) if data.has_column(column) else None


class TaskReferenceValidator(Validator):
    name = "TaskReferenceValidator"
    category = "relational"
    issue_category = IssueCategory.REFERENCES
    priority = 20
    can_fix = True

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        clients, tasks = context.clients, context.tasks
        if clients is None or tasks is None:
            return builder.build()
        if not clients.has_column("RequestedTaskIDs") or not tasks.has_column("TaskID"):
            return builder.build()

        known = {str(v).strip() for v in tasks.column_values("TaskID") if not is_blank(v)}
        header = clients.find_header("RequestedTaskIDs")
        for index, value in enumerate(clients.column_values("RequestedTaskIDs")):
            for task_id in split_list(value):
                if task_id in known:
                    continue
                builder.add_error(
                    f"Task ID '{task_id}' in {header} at row {index + 1} does not exist in tasks sheet",
                    Sheet.CLIENTS,
                    row=index,
                    column=header,
                    value=task_id,
                    suggestion=f"Add task '{task_id}' to the tasks sheet or remove it from {header}",
                    fixable=True,
                    details={"task_id": task_id},
                )
        return builder.build()

    def fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        data = context.clients
        if data is None or issue.row is None or issue.row < 0 or issue.row >= len(data) or not issue.column:
            return FixResultBuilder.failure("Cannot fix: missing data or location information")
        task_id = (issue.details or {}).get("task_id") or issue.value
        if not task_id:
            return FixResultBuilder.failure("Cannot fix: unknown task reference not recorded on the issue")

        current = data.value(issue.row, issue.column)
        items = split_list(current)
        if task_id not in items:
            return FixResultBuilder.failure(f"Cannot fix: '{task_id}' no longer referenced at row {issue.row + 1}")
        fixed = ",".join(t for t in items if t != task_id)
        return FixResultBuilder.success(
            f"Removed unknown task reference '{task_id}': \"{current}\" -> \"{fixed}\"",
            data.replace_cell(issue.row, issue.column, fixed),
            Sheet.CLIENTS,
        )


class SkillCoverageValidator(Validator):
    """Every skill a task requires must exist in at least one worker."""

    name = "SkillCoverageValidator"
    category = "relational"
    issue_category = IssueCategory.SKILL_COVERAGE
    priority = 30

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        workers, tasks = context.workers, context.tasks
        if workers is None or tasks is None or not tasks.has_column("RequiredSkills"):
            return builder.build()

        pool: set[str] = set()
        for value in workers.column_values("Skills"):
            pool |= skill_set(value)

        header = tasks.find_header("RequiredSkills")
        for index, value in enumerate(tasks.column_values("RequiredSkills")):
            seen: set[str] = set()
            for skill in split_list(value):
                key = skill.lower()
                if key in pool or key in seen:
                    continue
                seen.add(key)
                builder.add_warning(
                    f"Required skill '{skill}' of task {_label(tasks, index, 'TaskID', 'TaskName')} "
                    "is not available in any worker",
                    Sheet.TASKS,
                    row=index,
                    column=header,
                    value=skill,
                    suggestion=f"Add a worker with '{skill}' skill or remove it from the task",
                )
        return builder.build()


class WorkerCapacityValidator(Validator):
    """Worker load vs slots, plus a first-fit assignment simulation.

    The simulation walks tasks in row order and gives each to the first worker
    (row order) whose skills cover the task, accumulating Duration per worker
    and first preferred phase. It estimates overload only; it is not a
    scheduler.
    """

    name = "WorkerCapacityValidator"
    category = "relational"
    issue_category = IssueCategory.OVERLOADED_WORKERS
    priority = 31
    can_fix = True

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        workers = context.workers
        if workers is None:
            return builder.build()

        max_loads: dict[int, float] = {}
        for index in range(len(workers)):
            slots_raw = _cell(workers, index, "AvailableSlots")
            load_raw = _cell(workers, index, "MaxLoadPerPhase")
            if is_blank(slots_raw) or is_blank(load_raw):
                continue
            who = _label(workers, index, "WorkerName", "WorkerID")
            slots = slot_count(slots_raw)
            load = to_number(load_raw)
            if slots is None:
                builder.add_error(
                    f"Worker '{who}' at row {index + 1} has invalid AvailableSlots value: {slots_raw}",
                    Sheet.WORKERS,
                    row=index,
                    column=workers.find_header("AvailableSlots"),
                    value=slots_raw,
                    suggestion="AvailableSlots must be a number or a list of slot numbers",
                )
                continue
            if load is None:
                builder.add_error(
                    f"Worker '{who}' at row {index + 1} has invalid MaxLoadPerPhase value: {load_raw}",
                    Sheet.WORKERS,
                    row=index,
                    column=workers.find_header("MaxLoadPerPhase"),
                    value=load_raw,
                    suggestion="MaxLoadPerPhase must be a valid number",
                )
                continue
            max_loads[index] = load
            if load > slots:
                builder.add_warning(
                    f"Worker '{who}' at row {index + 1} has MaxLoadPerPhase ({format_number(load)}) "
                    f"greater than available slots ({format_number(slots)})",
                    Sheet.WORKERS,
                    row=index,
                    column=workers.find_header("MaxLoadPerPhase"),
                    value=load_raw,
                    suggestion=f"Reduce MaxLoadPerPhase to {format_number(slots)} or increase AvailableSlots",
                    fixable=True,
                    details={"max_load": slots},
                )

        if context.tasks is not None:
            self._simulate(workers, context.tasks, max_loads, builder)
        return builder.build()

    def _simulate(
        self,
        workers: ParsedData,
        tasks: ParsedData,
        max_loads: dict[int, float],
        builder: ValidationResultBuilder,
    ) -> None:
        worker_skills = [skill_set(_cell(workers, i, "Skills")) for i in range(len(workers))]
        load: dict[tuple[int, int], float] = {}
        assigned: dict[tuple[int, int], list[str]] = {}
        for t in range(len(tasks)):
            duration = to_number(_cell(tasks, t, "Duration"))
            if duration is None or duration <= 0:
                continue
            needed = skill_set(_cell(tasks, t, "RequiredSkills"))
            worker = next((w for w, skills in enumerate(worker_skills) if needed <= skills), None)
            if worker is None:
                continue
            key = (worker, first_preferred_phase(_cell(tasks, t, "PreferredPhases")))
            load[key] = load.get(key, 0.0) + duration
            assigned.setdefault(key, []).append(_label(tasks, t, "TaskID"))

        for (worker, phase), total in load.items():
            limit = max_loads.get(worker)
            if limit is None or total <= limit:
                continue
            who = _label(workers, worker, "WorkerName", "WorkerID")
            builder.add_warning(
                f"Worker '{who}' would carry {format_number(total)} duration units in phase {phase} "
                f"(MaxLoadPerPhase {format_number(limit)}) under first-fit assignment",
                Sheet.WORKERS,
                row=worker,
                column=workers.find_header("MaxLoadPerPhase"),
                value=format_number(total),
                suggestion="Add qualified workers or spread these tasks over other phases: "
                + ", ".join(assigned[(worker, phase)]),
                details={"phase": phase, "load": total, "tasks": tuple(assigned[(worker, phase)])},
            )

    def fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        data = context.workers
        if data is None or issue.row is None or issue.row < 0 or issue.row >= len(data) or not issue.column:
            return FixResultBuilder.failure("Cannot fix: missing data or location information")
        target = (issue.details or {}).get("max_load")
        if target is None:
            return FixResultBuilder.failure("Cannot fix: no target MaxLoadPerPhase on the issue")
        current = data.value(issue.row, issue.column)
        fixed: str | int | float = format_number(target) if isinstance(current, str) else target
        if isinstance(fixed, float) and fixed.is_integer():
            fixed = int(fixed)
        return FixResultBuilder.success(
            f"Reduced MaxLoadPerPhase: {current} -> {format_number(target)}",
            data.replace_cell(issue.row, issue.column, fixed),
            Sheet.WORKERS,
        )


class ConcurrencyFeasibilityValidator(Validator):
    """MaxConcurrent must be positive; non-numbers are left to RangeValidator."""

    name = "ConcurrencyFeasibilityValidator"
    category = "relational"
    issue_category = IssueCategory.CONCURRENCY_FEASIBILITY
    priority = 32
    can_fix = True

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        tasks = context.tasks
        if tasks is None or not tasks.has_column("MaxConcurrent"):
            return builder.build()
        header = tasks.find_header("MaxConcurrent")
        for index, value in enumerate(tasks.column_values("MaxConcurrent")):
            number = to_number(value)
            if number is None or number > 0:
                continue
            builder.add_error(
                f"Task '{_label(tasks, index, 'TaskName', 'TaskID')}' at row {index + 1} "
                f"has invalid MaxConcurrent value: {value}",
                Sheet.TASKS,
                row=index,
                column=header,
                value=value,
                suggestion="MaxConcurrent must be a positive number",
                fixable=True,
            )
        return builder.build()

    def fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        data = context.tasks
        if data is None or issue.row is None or issue.row < 0 or issue.row >= len(data) or not issue.column:
            return FixResultBuilder.failure("Cannot fix: missing data or location information")
        current = data.value(issue.row, issue.column)
        fixed: str | int = "1" if isinstance(current, str) else 1
        return FixResultBuilder.success(
            f"Set MaxConcurrent: {current} -> 1",
            data.replace_cell(issue.row, issue.column, fixed),
            Sheet.TASKS,
        )
