from __future__ import annotations

import json

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from allocation_validator.config.loader import SCHEMA_PATH
from allocation_validator.models.business_rule import RULE_TYPES

"""Config schema contract tests."""


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_schema_is_valid_draft7(schema):
    jsonschema.Draft7Validator.check_schema(schema)


def test_rule_type_enum_matches_rule_variants(schema):
    rule_types = schema["properties"]["rules"]["items"]["properties"]["type"]["enum"]
    assert tuple(rule_types) == RULE_TYPES


def test_config_schema_valid_example(schema, sample_config_yaml):
    config = yaml.safe_load(sample_config_yaml)
    config["validation"]["enabled_validators"] = ["RequiredColumnsValidator", "RangeValidator"]
    config["rules"] = [
        {"id": "R1", "type": "coRun", "tasks": ["T1", "T2"]},
        {"id": "R2", "type": "phaseWindow", "task_id": "T1", "allowed_phases": [1, 2], "active": False},
    ]
    jsonschema.validate(config, schema)


def test_empty_config_is_valid(schema):
    jsonschema.validate({}, schema)


@pytest.mark.parametrize(
    "config",
    [
        {"database": {"host": "localhost"}},
        {"sources": {"projects": "data/projects.csv"}},
        {"validation": {"phases": []}},
        {"validation": {"phases": [0, 1]}},
        {"validation": {"high_utilization_ratio": 1.5}},
        {"validation": {"strict_mode": "yes"}},
        {"rules": [{"id": "R1", "type": "unknown"}]},
        {"rules": [{"type": "coRun"}]},
    ],
)
def test_config_schema_rejects(schema, config):
    with pytest.raises(ValidationError):
        jsonschema.validate(config, schema)
