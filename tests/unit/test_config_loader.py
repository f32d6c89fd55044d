from __future__ import annotations

import json
from pathlib import Path

import pytest

from allocation_validator.config.loader import ConfigError, default_config, load_config, load_rules
from allocation_validator.models.business_rule import CoRunRule, PhaseWindowRule
from allocation_validator.models.config_models import DEFAULT_ENABLED_VALIDATORS
from allocation_validator.models.parsed_data import Sheet


def test_load_config_success(write_config: Path, temp_workdir: Path):
    cfg = load_config(write_config)
    assert set(cfg.sources) == {Sheet.CLIENTS, Sheet.WORKERS, Sheet.TASKS}
    # relative to the config file's directory
    assert cfg.sources[Sheet.CLIENTS].resolve() == (temp_workdir / "data" / "clients.csv").resolve()
    assert cfg.validation.phases == (1, 2, 3, 4, 5)
    assert cfg.validation.strict_mode is False
    assert cfg.issue_log_dir == Path("logs")


def test_load_config_defaults(temp_workdir: Path):
    path = temp_workdir / "config" / "validator.yml"
    path.write_text("sources: {}\n", encoding="utf-8")
    cfg = load_config(path)
    assert cfg.sources == {}
    assert cfg.rules == ()
    assert cfg.validation.enabled_validators == DEFAULT_ENABLED_VALIDATORS
    assert cfg.validation.high_utilization_ratio == 0.8


def test_empty_file_is_default_config(temp_workdir: Path):
    path = temp_workdir / "config" / "validator.yml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == default_config()


def test_phases_are_sorted(temp_workdir: Path):
    path = temp_workdir / "config" / "validator.yml"
    path.write_text("validation:\n  phases: [3, 1]\n", encoding="utf-8")
    assert load_config(path).validation.phases == (1, 3)


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError) as e:
        load_config(temp_workdir / "config" / "not_exists.yml")
    assert "config file not found" in str(e.value)


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("sources: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "invalid yaml" in str(e.value)


def test_load_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_config_bad_ratio(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("high_utilization_ratio: 0.8", "high_utilization_ratio: 1.5")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_config_with_rules(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + (
        "rules:\n"
        "  - id: R1\n    type: coRun\n    tasks: [T1, T2]\n"
        "  - id: P1\n    type: phaseWindow\n    task_id: T1\n    allowed_phases: [1, 2]\n"
    )
    write_config.write_text(text, encoding="utf-8")
    cfg = load_config(write_config)
    assert isinstance(cfg.rules[0], CoRunRule)
    assert isinstance(cfg.rules[1], PhaseWindowRule)


def test_load_config_bad_rule(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "rules:\n  - id: R1\n    type: coRun\n    tasks: [T1]\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)
    assert "at least 2 tasks" in str(e.value)


def test_load_config_unknown_rule_type(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "rules:\n  - id: R1\n    type: teleport\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_rules_json_list(temp_workdir: Path):
    path = temp_workdir / "rules.json"
    path.write_text(json.dumps([{"id": "R1", "type": "coRun", "tasks": ["A", "B"]}]), encoding="utf-8")
    rules = load_rules(path)
    assert [r.id for r in rules] == ["R1"]


def test_load_rules_yaml_export_format(temp_workdir: Path):
    path = temp_workdir / "rules.yml"
    path.write_text("rules:\n  - id: L1\n    type: loadLimit\n    workerGroup: GA\n    maxSlotsPerPhase: 2\n", encoding="utf-8")
    rules = load_rules(path)
    assert rules[0].id == "L1"


def test_load_rules_errors(temp_workdir: Path):
    with pytest.raises(ConfigError):
        load_rules(temp_workdir / "missing.json")

    bad = temp_workdir / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_rules(bad)
    assert "invalid rules file" in str(e.value)

    scalar = temp_workdir / "scalar.yml"
    scalar.write_text("42\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_rules(scalar)


@pytest.mark.parametrize(
    "text, fragment",
    [
        ("- {id: R1, type: coRun, tasks: [T1, T2], active: 'false'}\n", "active must be true or false"),
        ("- {id: L1, type: loadLimit, workerGroup: GA, maxSlotsPerPhase: two}\n", "invalid loadLimit fields"),
    ],
)
def test_load_rules_bad_field_values(temp_workdir: Path, text, fragment):
    path = temp_workdir / "rules.yml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_rules(path)
    assert "config validation failed" in str(e.value)
    assert fragment in str(e.value)
