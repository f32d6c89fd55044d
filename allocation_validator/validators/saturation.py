from __future__ import annotations

from dataclasses import dataclass, field

from ..models.issue import HEADER_ROW, FixResult, IssueCategory, ValidationIssue, ValidationResult
from ..models.parsed_data import ParsedData, Sheet
from ..validation.context import ValidationContext
from ..validation.results import FixResultBuilder
from .base import Validator
from .parsing import format_number, is_blank, preferred_phases, skill_set, slot_count, to_number

"""Phase saturation: per-phase capacity vs demand, with a greedy redistribution plan.

Capacity of a phase is the sum of MaxLoadPerPhase over workers with positive
slots and load (every such worker is assumed available in every configured
phase). Demand of a phase is the sum of Duration over tasks whose first
preferred phase it is (phase 1 when none is given) and that at least one
worker is qualified for.
"""

__all__ = [
    "Move",
    "PhaseLoad",
    "RedistributionPlan",
    "PhaseSaturationValidator",
    "compute_phase_load",
    "plan_redistribution",
]


@dataclass(frozen=True)
class Move:
    task_id: str
    row: int
    from_phase: int
    to_phase: int
    duration: float


@dataclass
class PhaseLoad:
    capacity: dict[int, float] = field(default_factory=dict)
    demand: dict[int, float] = field(default_factory=dict)
    # phase -> [(row, task_id, duration)] in row order
    tasks: dict[int, list[tuple[int, str, float]]] = field(default_factory=dict)

    def phases(self) -> list[int]:
        return sorted(set(self.capacity) | set(self.demand))

    def spare(self, phase: int) -> float:
        return self.capacity.get(phase, 0.0) - self.demand.get(phase, 0.0)


@dataclass(frozen=True)
class RedistributionPlan:
    moves: tuple[Move, ...]
    remaining: float
    suggestion: str

    @property
    def feasible(self) -> bool:
        return bool(self.moves)


def compute_phase_load(workers: ParsedData, tasks: ParsedData, phases: tuple[int, ...]) -> PhaseLoad:
    load = PhaseLoad(capacity={p: 0.0 for p in phases})

    worker_skills: list[set[str]] = []
    for index in range(len(workers)):
        worker_skills.append(skill_set(workers.value(index, "Skills")))
        slots = slot_count(workers.value(index, "AvailableSlots"))
        max_load = to_number(workers.value(index, "MaxLoadPerPhase"))
        if slots is None or max_load is None or slots <= 0 or max_load <= 0:
            continue
        for phase in phases:
            load.capacity[phase] += max_load

    for index in range(len(tasks)):
        task_id = tasks.value(index, "TaskID")
        if is_blank(task_id):
            continue
        raw_duration = tasks.value(index, "Duration")
        duration = 1.0 if is_blank(raw_duration) else to_number(raw_duration)
        if duration is None or duration <= 0:
            continue
        needed = skill_set(tasks.value(index, "RequiredSkills"))
        if needed and not any(needed <= skills for skills in worker_skills):
            continue
        prefs = preferred_phases(tasks.value(index, "PreferredPhases"))
        phase = prefs[0] if prefs else 1
        load.demand[phase] = load.demand.get(phase, 0.0) + duration
        load.tasks.setdefault(phase, []).append((index, str(task_id).strip(), duration))
    return load


def plan_redistribution(load: PhaseLoad, phase: int) -> RedistributionPlan:
    """Greedy plan moving tasks out of an oversaturated ``phase``.

    Tasks are taken by ascending duration, targets by descending spare
    capacity (both stable); each task goes to the first target that can hold
    it whole. Stops once the overload is covered. A target is never filled
    beyond its capacity.
    """
    overload = load.demand.get(phase, 0.0) - load.capacity.get(phase, 0.0)
    targets = [[p, load.spare(p)] for p in load.phases() if p != phase and load.spare(p) > 0]
    targets.sort(key=lambda t: -t[1])
    candidates = sorted(load.tasks.get(phase, []), key=lambda t: t[2])

    moves: list[Move] = []
    remaining = overload
    for row, task_id, duration in candidates:
        if remaining <= 0:
            break
        for target in targets:
            if target[1] >= duration:
                moves.append(Move(task_id, row, phase, target[0], duration))
                target[1] -= duration
                remaining -= duration
                break

    if moves:
        shown = ", ".join(m.task_id for m in moves[:3])
        more = f" and {len(moves) - 3} more" if len(moves) > 3 else ""
        to_phases = ", ".join(str(p) for p in dict.fromkeys(m.to_phase for m in moves))
        saved = format_number(sum(m.duration for m in moves))
        suggestion = f"Move tasks {shown}{more} from Phase {phase} to Phase(s) {to_phases} (saves {saved} duration units)"
        if remaining > 0:
            suggestion += f"; {format_number(remaining)} units remain over capacity"
        return RedistributionPlan(tuple(moves), max(remaining, 0.0), suggestion)

    total_spare = sum(t[1] for t in targets)
    if total_spare <= 0:
        suggestion = (
            "No other phases have available capacity. Consider adding more workers "
            f"or reducing task durations in Phase {phase}"
        )
    else:
        suggestion = (
            f"Available capacity in other phases ({format_number(total_spare)} units) is insufficient "
            "for the remaining task sizes. Consider splitting tasks or adding workers"
        )
    return RedistributionPlan((), overload, suggestion)


class PhaseSaturationValidator(Validator):
    name = "PhaseSaturationValidator"
    category = "business"
    issue_category = IssueCategory.PHASE_SATURATION
    priority = 50
    dependencies = ("SkillCoverageValidator",)
    can_fix = True

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        workers, tasks = context.workers, context.tasks
        if workers is None or tasks is None:
            return builder.build()

        load = compute_phase_load(workers, tasks, context.config.phases)
        ratio = context.config.high_utilization_ratio
        for phase in load.phases():
            capacity = load.capacity.get(phase, 0.0)
            demand = load.demand.get(phase, 0.0)
            if demand > 0 and capacity == 0:
                builder.add_error(
                    f"Phase {phase} has task demand ({format_number(demand)}) but zero worker capacity",
                    Sheet.WORKERS,
                    row=HEADER_ROW,
                    column="AvailableSlots",
                    value=phase,
                    suggestion=f"Assign workers to Phase {phase} or move tasks to phases with available capacity",
                )
            elif demand > capacity:
                plan = plan_redistribution(load, phase)
                pct = round(demand / capacity * 100)
                builder.add_error(
                    f"Phase {phase} is oversaturated: {format_number(demand)} duration units demanded "
                    f"vs {format_number(capacity)} capacity ({pct}%)",
                    Sheet.TASKS,
                    row=HEADER_ROW,
                    column="PreferredPhases",
                    value=phase,
                    suggestion=plan.suggestion,
                    fixable=plan.feasible,
                    details={"phase": phase, "moves": plan.moves, "remaining": plan.remaining},
                )
            elif capacity > 0 and demand > ratio * capacity:
                pct = round(demand / capacity * 100)
                builder.add_warning(
                    f"Phase {phase} has high utilization: {format_number(demand)} duration units "
                    f"vs {format_number(capacity)} capacity ({pct}%)",
                    Sheet.TASKS,
                    row=HEADER_ROW,
                    column="PreferredPhases",
                    value=phase,
                    suggestion=f"Consider redistributing some tasks from Phase {phase} to avoid bottlenecks",
                )
            elif capacity > 0 and demand == 0:
                builder.add_info(
                    f"Phase {phase} has worker capacity ({format_number(capacity)}) but no task demand",
                    Sheet.TASKS,
                    row=HEADER_ROW,
                    column="PreferredPhases",
                    value=phase,
                    suggestion=f"Consider moving tasks to Phase {phase} to balance workload",
                )
        return builder.build()

    def fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        data = context.tasks
        moves: tuple[Move, ...] = tuple((issue.details or {}).get("moves", ()))
        if data is None or not moves:
            return FixResultBuilder.failure("Cannot fix: no redistribution plan for this phase")
        header = data.find_header("PreferredPhases")
        if header is None:
            return FixResultBuilder.failure("Cannot fix: PreferredPhases column not found")

        updated = data
        for move in moves:
            if move.row >= len(updated) or str(updated.value(move.row, "TaskID")).strip() != move.task_id:
                return FixResultBuilder.failure(f"Cannot fix: task {move.task_id} is no longer at row {move.row + 1}")
            current = preferred_phases(updated.value(move.row, header))
            reordered = [move.to_phase, *(p for p in current if p != move.to_phase)]
            updated = updated.replace_cell(move.row, header, ",".join(str(p) for p in reordered))

        summary = ", ".join(f"{m.task_id} -> Phase {m.to_phase}" for m in moves)
        return FixResultBuilder.success(f"Redistributed tasks: {summary}", updated, Sheet.TASKS)
