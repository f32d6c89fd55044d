from __future__ import annotations

import re

from ..models.config_models import NumericRange, SheetRequirements
from ..models.parsed_data import Sheet

"""Sheet requirements and header recognition patterns.

These tables drive the schema and data-type validators. Header patterns are
tried in order when a required header is not present verbatim.
"""

__all__ = [
    "DATA_REQUIREMENTS",
    "HEADER_PATTERNS",
    "SHEET_ORDER",
]

SHEET_ORDER: tuple[Sheet, ...] = (Sheet.CLIENTS, Sheet.WORKERS, Sheet.TASKS)

DATA_REQUIREMENTS: dict[Sheet, SheetRequirements] = {
    Sheet.CLIENTS: SheetRequirements(
        sheet=Sheet.CLIENTS,
        required=("ClientID", "ClientName", "PriorityLevel", "RequestedTaskIDs", "GroupTag", "AttributesJSON"),
        id_column="ClientID",
        json_columns=("AttributesJSON",),
        list_columns=("RequestedTaskIDs",),
        ranges={"PriorityLevel": NumericRange(min=1, max=5)},
    ),
    Sheet.WORKERS: SheetRequirements(
        sheet=Sheet.WORKERS,
        required=(
            "WorkerID",
            "WorkerName",
            "Skills",
            "AvailableSlots",
            "MaxLoadPerPhase",
            "WorkerGroup",
            "QualificationLevel",
        ),
        id_column="WorkerID",
        list_columns=("Skills",),
        numeric_list_columns=("AvailableSlots",),
        ranges={"MaxLoadPerPhase": NumericRange(min=1)},
    ),
    Sheet.TASKS: SheetRequirements(
        sheet=Sheet.TASKS,
        required=("TaskID", "TaskName", "Category", "Duration", "RequiredSkills", "PreferredPhases", "MaxConcurrent"),
        id_column="TaskID",
        list_columns=("RequiredSkills",),
        numeric_list_columns=("PreferredPhases",),
        ranges={"Duration": NumericRange(min=1), "MaxConcurrent": NumericRange(min=1)},
    ),
}


def _p(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


HEADER_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    # clients
    "ClientID": _p(r"client.*id", r"id.*client", r"client.*identifier", r"customer.*id"),
    "ClientName": _p(r"client.*name", r"name.*client", r"customer.*name", r"company.*name"),
    "PriorityLevel": _p(r"priority", r"importance", r"urgency", r"level"),
    "RequestedTaskIDs": _p(r"task.*id", r"requested.*task", r"task.*list", r"tasks"),
    "GroupTag": _p(r"group", r"tag", r"category", r"type", r"department"),
    "AttributesJSON": _p(r"attributes", r"metadata", r"properties", r"custom", r"json"),
    # workers
    "WorkerID": _p(r"worker.*id", r"employee.*id", r"staff.*id", r"user.*id"),
    "WorkerName": _p(r"worker.*name", r"employee.*name", r"staff.*name", r"name"),
    "Skills": _p(r"skill", r"expertise", r"capability", r"competenc"),
    "AvailableSlots": _p(r"slot", r"available", r"schedule", r"time", r"hours"),
    "MaxLoadPerPhase": _p(r"load", r"capacity", r"max.*load", r"workload"),
    "WorkerGroup": _p(r"group", r"team", r"department", r"division"),
    "QualificationLevel": _p(r"qualification", r"level", r"grade", r"rank", r"experience"),
    # tasks
    "TaskID": _p(r"task.*id", r"job.*id", r"work.*id", r"id"),
    "TaskName": _p(r"task.*name", r"job.*name", r"title", r"description"),
    "Category": _p(r"category", r"type", r"kind", r"classification"),
    "Duration": _p(r"duration", r"time", r"hours", r"length"),
    "RequiredSkills": _p(r"skill", r"requirement", r"needed", r"required"),
    "PreferredPhases": _p(r"phase", r"stage", r"period", r"when"),
    "MaxConcurrent": _p(r"concurrent", r"parallel", r"simultaneous", r"max.*concurrent"),
}
