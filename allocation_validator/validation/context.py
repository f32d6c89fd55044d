from __future__ import annotations

from dataclasses import dataclass, field, replace

from ..config.requirements import DATA_REQUIREMENTS
from ..models.business_rule import BusinessRule
from ..models.config_models import ValidationConfig
from ..models.parsed_data import ParsedData, Sheet

"""Read-only bundle of everything a validator needs for one pass."""

__all__ = [
    "ValidationContext",
    "ValidationContextBuilder",
    "ContextHelper",
]


def _default_required_headers() -> dict[Sheet, tuple[str, ...]]:
    return {sheet: req.required for sheet, req in DATA_REQUIREMENTS.items()}


@dataclass(frozen=True)
class ValidationContext:
    clients: ParsedData | None = None
    workers: ParsedData | None = None
    tasks: ParsedData | None = None
    config: ValidationConfig = field(default_factory=ValidationConfig)
    required_headers: dict[Sheet, tuple[str, ...]] = field(default_factory=_default_required_headers)
    rules: tuple[BusinessRule, ...] = ()

    def data(self, sheet: Sheet) -> ParsedData | None:
        return getattr(self, sheet.value)

    def with_data(self, sheet: Sheet, data: ParsedData) -> ValidationContext:
        """Return a new context with one sheet replaced wholesale."""
        return replace(self, **{sheet.value: data})


class ValidationContextBuilder:
    """Fluent builder: ``ValidationContextBuilder().with_clients(c).build()``."""

    def __init__(self) -> None:
        self._sheets: dict[Sheet, ParsedData | None] = {}
        self._config = ValidationConfig()
        self._rules: tuple[BusinessRule, ...] = ()

    def with_clients(self, data: ParsedData | None) -> ValidationContextBuilder:
        self._sheets[Sheet.CLIENTS] = data
        return self

    def with_workers(self, data: ParsedData | None) -> ValidationContextBuilder:
        self._sheets[Sheet.WORKERS] = data
        return self

    def with_tasks(self, data: ParsedData | None) -> ValidationContextBuilder:
        self._sheets[Sheet.TASKS] = data
        return self

    def with_config(self, config: ValidationConfig) -> ValidationContextBuilder:
        self._config = config
        return self

    def with_rules(self, rules: tuple[BusinessRule, ...] | list[BusinessRule]) -> ValidationContextBuilder:
        self._rules = tuple(rules)
        return self

    def build(self) -> ValidationContext:
        return ValidationContext(
            clients=self._sheets.get(Sheet.CLIENTS),
            workers=self._sheets.get(Sheet.WORKERS),
            tasks=self._sheets.get(Sheet.TASKS),
            config=self._config,
            rules=self._rules,
        )


class ContextHelper:
    @staticmethod
    def has_data(context: ValidationContext, sheet: Sheet) -> bool:
        data = context.data(sheet)
        return data is not None and not data.is_empty

    @staticmethod
    def get_data(context: ValidationContext, sheet: Sheet) -> ParsedData | None:
        return context.data(sheet)

    @staticmethod
    def required_headers(context: ValidationContext, sheet: Sheet) -> tuple[str, ...]:
        return context.required_headers.get(sheet, ())

    @staticmethod
    def is_validator_enabled(context: ValidationContext, name: str) -> bool:
        return name in context.config.enabled_validators

    @staticmethod
    def should_auto_fix(context: ValidationContext) -> bool:
        return context.config.auto_fix

    @staticmethod
    def is_strict_mode(context: ValidationContext) -> bool:
        return context.config.strict_mode
