from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from ..errors import RuleDefinitionError

"""Business rule model.

Rules are a tagged union: each variant is its own frozen dataclass carrying only
the fields that variant needs, plus the common id / description / active /
priority fields. Changing a rule's type goes through ``convert_rule`` which
builds a fresh variant, so fields of the previous variant never linger.
"""

__all__ = [
    "RULE_TYPES",
    "CoRunRule",
    "SlotRestrictionRule",
    "LoadLimitRule",
    "PhaseRange",
    "PhaseWindowRule",
    "PatternMatchRule",
    "PrecedenceOverrideRule",
    "BusinessRule",
    "rule_from_dict",
    "convert_rule",
    "active_rules",
]


@dataclass(frozen=True)
class _RuleBase:
    id: str
    description: str = ""
    active: bool = True
    priority: int = 1


@dataclass(frozen=True)
class CoRunRule(_RuleBase):
    """Tasks that must be scheduled together."""
    tasks: tuple[str, ...] = ()
    type: Literal["coRun"] = field(default="coRun", init=False)


@dataclass(frozen=True)
class SlotRestrictionRule(_RuleBase):
    """Minimum number of common slots for a client or worker group."""
    target_group: str = ""
    group_type: Literal["client", "worker"] = "client"
    min_common_slots: int = 1
    type: Literal["slotRestriction"] = field(default="slotRestriction", init=False)


@dataclass(frozen=True)
class LoadLimitRule(_RuleBase):
    """Maximum slots per phase for a worker group."""
    worker_group: str = ""
    max_slots_per_phase: int = 1
    type: Literal["loadLimit"] = field(default="loadLimit", init=False)


@dataclass(frozen=True)
class PhaseRange:
    start: int
    end: int

    def phases(self) -> tuple[str, ...]:
        return tuple(str(p) for p in range(self.start, self.end + 1))


@dataclass(frozen=True)
class PhaseWindowRule(_RuleBase):
    """Allowed phases for one task, either listed or as an inclusive range."""
    task_id: str = ""
    allowed_phases: tuple[str, ...] = ()
    phase_range: PhaseRange | None = None
    type: Literal["phaseWindow"] = field(default="phaseWindow", init=False)

    def phase_set(self) -> tuple[str, ...]:
        if self.allowed_phases:
            return tuple(_normalize_phase(p) for p in self.allowed_phases)
        if self.phase_range is not None:
            return self.phase_range.phases()
        return ()


@dataclass(frozen=True)
class PatternMatchRule(_RuleBase):
    """Regex-driven custom rule applied through a named template."""
    pattern: str = ""
    template: str = "custom"
    parameters: Mapping[str, str] = field(default_factory=dict)
    type: Literal["patternMatch"] = field(default="patternMatch", init=False)


@dataclass(frozen=True)
class PrecedenceOverrideRule(_RuleBase):
    """Priority override for conflicting rules."""
    scope: Literal["global", "specific"] = "global"
    overrides: tuple[str, ...] = ()
    type: Literal["precedenceOverride"] = field(default="precedenceOverride", init=False)


BusinessRule = (
    CoRunRule
    | SlotRestrictionRule
    | LoadLimitRule
    | PhaseWindowRule
    | PatternMatchRule
    | PrecedenceOverrideRule
)

_RULE_CLASSES: dict[str, type] = {
    "coRun": CoRunRule,
    "slotRestriction": SlotRestrictionRule,
    "loadLimit": LoadLimitRule,
    "phaseWindow": PhaseWindowRule,
    "patternMatch": PatternMatchRule,
    "precedenceOverride": PrecedenceOverrideRule,
}

RULE_TYPES = tuple(_RULE_CLASSES)

_PHASE_LABEL = re.compile(r"^\s*phase\s*", re.IGNORECASE)


def _normalize_phase(phase: Any) -> str:
    """'Phase 2' / 2 / ' 2 ' -> '2'."""
    return _PHASE_LABEL.sub("", str(phase)).strip()


def _common_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    rule_id = data.get("id")
    if not rule_id:
        raise RuleDefinitionError("rule must have an id")
    active = data.get("active", True)
    if not isinstance(active, bool):
        raise RuleDefinitionError(f"rule {rule_id}: active must be true or false, got {active!r}")
    priority = data.get("priority", 1)
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise RuleDefinitionError(f"rule {rule_id}: priority must be an integer, got {priority!r}")
    return {
        "id": str(rule_id),
        "description": str(data.get("description") or ""),
        "active": active,
        "priority": priority,
    }


def _variant_fields(rule_type: str, data: Mapping[str, Any]) -> dict[str, Any]:
    """Extract and check the fields for one rule variant."""
    rid = data.get("id", "?")
    if rule_type == "coRun":
        raw_tasks = data.get("tasks") or ()
        if isinstance(raw_tasks, str):
            raw_tasks = raw_tasks.split(",")
        tasks = tuple(str(t).strip() for t in raw_tasks if str(t).strip())
        if len(tasks) < 2:
            raise RuleDefinitionError(f"rule {rid}: co-run rules require at least 2 tasks")
        return {"tasks": tasks}
    if rule_type == "slotRestriction":
        group = data.get("target_group") or data.get("targetGroup") or data.get("group")
        if not group:
            raise RuleDefinitionError(f"rule {rid}: slot restriction needs a target group")
        min_slots = int(data.get("min_common_slots", data.get("minCommonSlots", 1)))
        if min_slots < 1:
            raise RuleDefinitionError(f"rule {rid}: min_common_slots must be at least 1")
        group_type = data.get("group_type") or data.get("groupType") or "client"
        if group_type not in ("client", "worker"):
            raise RuleDefinitionError(f"rule {rid}: group_type must be 'client' or 'worker'")
        return {"target_group": str(group), "group_type": group_type, "min_common_slots": min_slots}
    if rule_type == "loadLimit":
        group = data.get("worker_group") or data.get("workerGroup") or data.get("group")
        if not group:
            raise RuleDefinitionError(f"rule {rid}: load limit needs a worker group")
        max_slots = int(data.get("max_slots_per_phase", data.get("maxSlotsPerPhase", 1)))
        if max_slots < 1:
            raise RuleDefinitionError(f"rule {rid}: max_slots_per_phase must be at least 1")
        return {"worker_group": str(group), "max_slots_per_phase": max_slots}
    if rule_type == "phaseWindow":
        task_id = data.get("task_id") or data.get("taskId") or data.get("task")
        if not task_id:
            raise RuleDefinitionError(f"rule {rid}: phase window needs a task")
        phases = data.get("allowed_phases") or data.get("allowedPhases") or data.get("phases")
        raw_range = data.get("phase_range") or data.get("phaseRange")
        if phases:
            return {
                "task_id": str(task_id),
                "allowed_phases": tuple(_normalize_phase(p) for p in phases),
            }
        if raw_range:
            start, end = int(raw_range["start"]), int(raw_range["end"])
            if start > end:
                raise RuleDefinitionError(f"rule {rid}: phase range start must not exceed end")
            return {"task_id": str(task_id), "phase_range": PhaseRange(start, end)}
        raise RuleDefinitionError(f"rule {rid}: phase window needs allowed phases or a phase range")
    if rule_type == "patternMatch":
        pattern = str(data.get("pattern") or "")
        if not pattern:
            raise RuleDefinitionError(f"rule {rid}: pattern match needs a regex pattern")
        try:
            re.compile(pattern)
        except re.error as e:
            raise RuleDefinitionError(f"rule {rid}: invalid regex pattern: {e}") from e
        template = str(data.get("template") or data.get("ruleTemplate") or "custom")
        params = data.get("parameters") or {}
        return {
            "pattern": pattern,
            "template": template,
            "parameters": {str(k): str(v) for k, v in params.items()},
        }
    if rule_type == "precedenceOverride":
        scope = data.get("scope") or "global"
        if scope not in ("global", "specific"):
            raise RuleDefinitionError(f"rule {rid}: scope must be 'global' or 'specific'")
        overrides = tuple(str(o) for o in data.get("overrides") or ())
        if scope == "specific" and not overrides:
            raise RuleDefinitionError(f"rule {rid}: specific precedence override needs rule ids")
        return {"scope": scope, "overrides": overrides}
    raise RuleDefinitionError(f"rule {rid}: unknown rule type '{rule_type}'")


def rule_from_dict(data: Mapping[str, Any]) -> BusinessRule:
    """Build a rule variant from its JSON / YAML mapping.

    Both snake_case and the camelCase keys used by rule exports are accepted.

    Raises:
        RuleDefinitionError: If the mapping does not describe a valid rule
    """
    if not isinstance(data, Mapping):
        raise RuleDefinitionError("rule must be a mapping")
    rule_type = data.get("type")
    if rule_type not in _RULE_CLASSES:
        raise RuleDefinitionError(f"unknown rule type: {rule_type!r}")
    fields_ = _common_fields(data)
    try:
        fields_.update(_variant_fields(rule_type, data))
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        raise RuleDefinitionError(f"rule {fields_['id']}: invalid {rule_type} fields: {e}") from e
    return _RULE_CLASSES[rule_type](**fields_)


def convert_rule(rule: BusinessRule, new_type: str, **variant: Any) -> BusinessRule:
    """Switch a rule to another variant, keeping only the common fields."""
    if new_type not in _RULE_CLASSES:
        raise RuleDefinitionError(f"unknown rule type: {new_type!r}")
    data: dict[str, Any] = {
        "id": rule.id,
        "description": rule.description,
        "active": rule.active,
        "priority": rule.priority,
        "type": new_type,
    }
    data.update(variant)
    return rule_from_dict(data)


def active_rules(rules: tuple[BusinessRule, ...], rule_type: type) -> list[Any]:
    return [r for r in rules if r.active and isinstance(r, rule_type)]
