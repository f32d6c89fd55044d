from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..errors import RuleDefinitionError
from ..models.business_rule import BusinessRule, rule_from_dict
from ..models.config_models import DEFAULT_ENABLED_VALIDATORS, DEFAULT_PHASES, ValidationConfig
from ..models.parsed_data import Sheet

"""Config loader.

Responsibilities:
- Load the YAML config (sources, validation options, rules, issue log dir)
- Validate it against the bundled JSON schema
- Apply defaults for every optional key
- Load standalone rule files (JSON list or YAML list)
"""

__all__ = [
    "SCHEMA_PATH",
    "ConfigError",
    "AppConfig",
    "load_config",
    "load_rules",
    "default_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_ISSUE_LOG_DIR = "logs"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class AppConfig:
    sources: dict[Sheet, Path] = field(default_factory=dict)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    rules: tuple[BusinessRule, ...] = ()
    issue_log_dir: Path = Path(DEFAULT_ISSUE_LOG_DIR)


def default_config() -> AppConfig:
    return AppConfig()


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: If the schema file is missing / not valid JSON, or the
            config data violates the schema
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_rules(raw: list[Any]) -> tuple[BusinessRule, ...]:
    rules = []
    for item in raw:
        try:
            rules.append(rule_from_dict(item))
        except RuleDefinitionError as e:
            raise ConfigError(f"config validation failed: {e}") from e
    return tuple(rules)


def _build_validation(raw: dict[str, Any]) -> ValidationConfig:
    return ValidationConfig(
        enabled_validators=tuple(raw.get("enabled_validators", DEFAULT_ENABLED_VALIDATORS)),
        strict_mode=bool(raw.get("strict_mode", False)),
        auto_fix=bool(raw.get("auto_fix", False)),
        skip_dependent_validators=bool(raw.get("skip_dependent_validators", False)),
        phases=tuple(sorted(raw.get("phases", DEFAULT_PHASES))),
        high_utilization_ratio=float(raw.get("high_utilization_ratio", 0.8)),
    )


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    # Relative source paths resolve against the config file's directory
    base = path.parent
    sources = {
        Sheet(name): (base / value) for name, value in (data.get("sources") or {}).items()
    }
    return AppConfig(
        sources=sources,
        validation=_build_validation(data.get("validation") or {}),
        rules=_build_rules(data.get("rules") or []),
        issue_log_dir=Path(data.get("issue_log_dir", DEFAULT_ISSUE_LOG_DIR)),
    )


def load_rules(path: Path) -> tuple[BusinessRule, ...]:
    """Load a rule list from a JSON or YAML file.

    A mapping with a ``rules`` key (the rule export format) is accepted as well
    as a bare list.
    """
    if not path.exists():
        raise ConfigError(f"rules file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"invalid rules file: {e}") from e
    if isinstance(data, dict):
        data = data.get("rules", [])
    if not isinstance(data, list):
        raise ConfigError("invalid rules file: expected a list of rules")
    return _build_rules(data)
