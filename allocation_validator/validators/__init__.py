"""Built-in validators and the default registry.

``build_default_registry()`` returns a fresh registry holding one instance of
every built-in validator; callers own it and may register, replace or
unregister validators without affecting other engines.
"""

from ..validation.registry import ValidatorRegistry
from .base import Validator, ValidatorCategory
from .data_type import JSONValidator, ListFormatValidator, RangeValidator
from .relational import (
    ConcurrencyFeasibilityValidator,
    SkillCoverageValidator,
    TaskReferenceValidator,
    WorkerCapacityValidator,
)
from .rules import CircularCoRunValidator, ConflictingRulesValidator
from .saturation import PhaseSaturationValidator
from .schema import DuplicateIDValidator, HeaderMappingValidator, RequiredColumnsValidator

__all__ = [
    # Base
    "Validator",
    "ValidatorCategory",
    # Schema
    "RequiredColumnsValidator",
    "HeaderMappingValidator",
    "DuplicateIDValidator",
    # Data type
    "JSONValidator",
    "ListFormatValidator",
    "RangeValidator",
    # Relational
    "TaskReferenceValidator",
    "SkillCoverageValidator",
    "WorkerCapacityValidator",
    "ConcurrencyFeasibilityValidator",
    # Business
    "CircularCoRunValidator",
    "ConflictingRulesValidator",
    "PhaseSaturationValidator",
    "BUILTIN_VALIDATORS",
    "build_default_registry",
]

BUILTIN_VALIDATORS: tuple[type[Validator], ...] = (
    RequiredColumnsValidator,
    HeaderMappingValidator,
    DuplicateIDValidator,
    JSONValidator,
    ListFormatValidator,
    RangeValidator,
    TaskReferenceValidator,
    SkillCoverageValidator,
    WorkerCapacityValidator,
    ConcurrencyFeasibilityValidator,
    CircularCoRunValidator,
    ConflictingRulesValidator,
    PhaseSaturationValidator,
)


def build_default_registry() -> ValidatorRegistry:
    registry = ValidatorRegistry()
    for cls in BUILTIN_VALIDATORS:
        registry.register(cls())
    return registry
