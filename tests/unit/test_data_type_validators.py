from __future__ import annotations

import json

import pytest

from allocation_validator.models.issue import IssueCategory, IssueType
from allocation_validator.models.parsed_data import Sheet
from allocation_validator.validators.data_type import JSONValidator, ListFormatValidator, RangeValidator


# ----------------------------------------------------------------------
# JSONValidator
# ----------------------------------------------------------------------
def _json_issue(make_context, clients_data, raw):
    context = make_context(clients=clients_data.replace_cell(0, "AttributesJSON", raw))
    issues = JSONValidator().validate(context).issues
    return context, issues


def test_valid_and_empty_json_pass(make_context):
    assert JSONValidator().validate(make_context()).issues == ()


@pytest.mark.parametrize(
    "raw, fragment",
    [("{budget: 100}", "Invalid JSON"), ("[1, 2]", "array"), ("null", "null"), ("42", "not a JSON object")],
)
def test_invalid_json_reported(make_context, clients_data, raw, fragment):
    _, issues = _json_issue(make_context, clients_data, raw)
    assert len(issues) == 1
    assert issues[0].category is IssueCategory.JSON_FIELDS
    assert issues[0].row == 0
    assert issues[0].column == "AttributesJSON"
    assert fragment in issues[0].message


@pytest.mark.parametrize(
    "raw, fixable",
    [("{'tier': 'gold',}", True), ("{budget: 100}", True), ("tier=gold", False), ("[1, 2]", False)],
)
def test_json_fixable_only_when_repairable(make_context, clients_data, raw, fixable):
    _, issues = _json_issue(make_context, clients_data, raw)
    assert issues[0].fixable is fixable


def test_json_fix_mechanical_repair(make_context, clients_data):
    context, issues = _json_issue(make_context, clients_data, "{'tier': 'gold',}")
    result = JSONValidator().fix(issues[0], context)
    assert result.success is True
    assert json.loads(result.modified_data.value(0, "AttributesJSON")) == {"tier": "gold"}


def test_json_fix_from_external_suggestion(make_context, clients_data):
    context, issues = _json_issue(make_context, clients_data, "tier=gold")
    issue = issues[0].with_suggested_fix('Try this instead: {"tier": "gold", "level": 2}')
    result = JSONValidator().fix(issue, context)
    assert result.success is True
    assert json.loads(result.modified_data.value(0, "AttributesJSON")) == {"tier": "gold", "level": 2}


def test_json_fix_without_usable_json_fails(make_context, clients_data):
    context, issues = _json_issue(make_context, clients_data, "tier=gold")
    result = JSONValidator().fix(issues[0], context)
    assert result.success is False
    assert "no usable JSON" in result.message

    result = JSONValidator().fix(issues[0].with_suggested_fix("just make it valid"), context)
    assert result.success is False


# ----------------------------------------------------------------------
# ListFormatValidator
# ----------------------------------------------------------------------
def test_bad_numeric_list_is_error(make_context, tasks_data):
    context = make_context(tasks=tasks_data.replace_cell(0, "PreferredPhases", "1,x"))
    issues = ListFormatValidator().validate(context).issues
    assert len(issues) == 1
    assert issues[0].type is IssueType.ERROR
    assert issues[0].category is IssueCategory.MALFORMED_LISTS
    assert "Invalid number: x" in issues[0].message

    result = ListFormatValidator().fix(issues[0], context)
    assert result.modified_data.value(0, "PreferredPhases") == "1"


def test_inverted_range_is_error(make_context, workers_data):
    context = make_context(workers=workers_data.replace_cell(0, "AvailableSlots", "3-1"))
    issues = ListFormatValidator().validate(context).issues
    assert len(issues) == 1
    assert "Invalid range" in issues[0].message


def test_empty_text_list_is_warning(make_context, workers_data):
    context = make_context(workers=workers_data.replace_cell(1, "Skills", " , "))
    issues = ListFormatValidator().validate(context).issues
    assert len(issues) == 1
    assert issues[0].type is IssueType.WARNING
    assert issues[0].sheet is Sheet.WORKERS
    assert issues[0].row == 1


def test_list_fix_normalizes_text_list(make_context, clients_data):
    context = make_context(clients=clients_data.replace_cell(0, "RequestedTaskIDs", "[]"))
    issue = ListFormatValidator().validate(context).issues[0]
    result = ListFormatValidator().fix(issue, context)
    assert result.success is True
    assert result.modified_data.value(0, "RequestedTaskIDs") == ""


def test_accepted_list_forms(make_context, workers_data, tasks_data):
    context = make_context(
        workers=workers_data.replace_cell(0, "AvailableSlots", "[1, 2]"),
        tasks=tasks_data.replace_cell(0, "PreferredPhases", "1 - 3"),
    )
    assert ListFormatValidator().validate(context).issues == ()


# ----------------------------------------------------------------------
# RangeValidator
# ----------------------------------------------------------------------
def test_out_of_range_is_fixable_error(make_context, clients_data):
    context = make_context(clients=clients_data.replace_cell(0, "PriorityLevel", "9"))
    issues = RangeValidator().validate(context).issues
    assert len(issues) == 1
    issue = issues[0]
    assert issue.category is IssueCategory.OUT_OF_RANGE
    assert issue.fixable is True
    assert "between 1 and 5" in issue.message

    result = RangeValidator().fix(issue, context)
    assert result.modified_data.value(0, "PriorityLevel") == "5"


def test_clamp_keeps_numeric_cell_type(make_context, clients_data):
    context = make_context(clients=clients_data.replace_cell(1, "PriorityLevel", 0))
    issue = RangeValidator().validate(context).issues[0]
    result = RangeValidator().fix(issue, context)
    assert result.modified_data.value(1, "PriorityLevel") == 1
    assert isinstance(result.modified_data.value(1, "PriorityLevel"), int)


def test_lower_bound_only(make_context, tasks_data):
    context = make_context(tasks=tasks_data.replace_cell(2, "Duration", "0"))
    issue = RangeValidator().validate(context).issues[0]
    assert ">= 1" in issue.message
    result = RangeValidator().fix(issue, context)
    assert result.modified_data.value(2, "Duration") == "1"


def test_non_number_is_unfixable(make_context, workers_data):
    context = make_context(workers=workers_data.replace_cell(0, "MaxLoadPerPhase", "lots"))
    issues = RangeValidator().validate(context).issues
    assert len(issues) == 1
    assert issues[0].fixable is False
    assert "not a number" in issues[0].message
