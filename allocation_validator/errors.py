from __future__ import annotations

"""Exception types raised by the allocation validator.

Data problems are never raised: validators report them as issues. The
exceptions here cover configuration mistakes (bad validator wiring, bad rule
definitions) where continuing would give meaningless results.
"""

__all__ = [
    "ValidationEngineError",
    "DependencyCycleError",
    "RuleDefinitionError",
]


class ValidationEngineError(Exception):
    """Base class for engine configuration errors."""


class DependencyCycleError(ValidationEngineError):
    """Raised when validator dependencies form a cycle."""

    def __init__(self, validator_name: str) -> None:
        super().__init__(f"Circular dependency detected involving {validator_name}")
        self.validator_name = validator_name


class RuleDefinitionError(ValidationEngineError):
    """Raised when a business rule mapping cannot be turned into a rule."""
