from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from ..errors import DependencyCycleError
from .context import ContextHelper, ValidationContext

if TYPE_CHECKING:
    from ..validators.base import Validator, ValidatorCategory

"""Validator registry: named validators, enable filtering and run ordering.

Run order is: enabled validators -> stable ascending priority sort ->
dependency resolution (depth-first, dependencies before dependents). Only
dependencies present in the list being resolved are followed.
"""

__all__ = ["ValidatorRegistry"]

logger = logging.getLogger(__name__)


class ValidatorRegistry:
    def __init__(self) -> None:
        self._validators: dict[str, Validator] = {}

    def register(self, validator: Validator) -> None:
        if validator.name in self._validators:
            logger.warning("Validator %s is already registered. Overwriting.", validator.name)
        self._validators[validator.name] = validator

    def unregister(self, name: str) -> bool:
        return self._validators.pop(name, None) is not None

    def get(self, name: str) -> Validator | None:
        return self._validators.get(name)

    def all(self) -> list[Validator]:
        return list(self._validators.values())

    def by_category(self, category: ValidatorCategory) -> list[Validator]:
        return [v for v in self._validators.values() if v.category == category]

    def names(self) -> list[str]:
        return list(self._validators)

    def clear(self) -> None:
        self._validators.clear()

    def __len__(self) -> int:
        return len(self._validators)

    def __contains__(self, name: object) -> bool:
        return name in self._validators

    def category_counts(self) -> dict[str, int]:
        return dict(Counter(v.category for v in self._validators.values()))

    def get_enabled(self, context: ValidationContext) -> list[Validator]:
        return [
            v
            for v in self._validators.values()
            if v.enabled and ContextHelper.is_validator_enabled(context, v.name)
        ]

    @staticmethod
    def get_sorted_by_priority(validators: list[Validator]) -> list[Validator]:
        # sorted() is stable: equal priorities keep registration order
        return sorted(validators, key=lambda v: v.priority)

    def resolve_dependencies(self, validators: list[Validator]) -> list[Validator]:
        """Order ``validators`` so every dependency runs before its dependent.

        Raises:
            DependencyCycleError: If a dependency chain loops back on itself
        """
        present = {v.name for v in validators}
        resolved: list[Validator] = []
        visiting: set[str] = set()
        visited: set[str] = set()

        def visit(validator: Validator) -> None:
            if validator.name in visited:
                return
            if validator.name in visiting:
                raise DependencyCycleError(validator.name)
            visiting.add(validator.name)
            for dep_name in validator.dependencies:
                dependency = self._validators.get(dep_name)
                if dependency is not None and dep_name in present:
                    visit(dependency)
            visiting.discard(validator.name)
            visited.add(validator.name)
            resolved.append(validator)

        for v in validators:
            visit(v)
        return resolved

    def get_execution_order(self, context: ValidationContext) -> list[Validator]:
        enabled = self.get_enabled(context)
        return self.resolve_dependencies(self.get_sorted_by_priority(enabled))

    def dependents_of(self, name: str, candidates: list[Validator]) -> set[str]:
        """Names in ``candidates`` depending on ``name`` directly or transitively."""
        found: set[str] = set()
        frontier = {name}
        while frontier:
            nxt = {
                v.name
                for v in candidates
                if v.name not in found and frontier.intersection(v.dependencies)
            }
            found |= nxt
            frontier = nxt
        return found
