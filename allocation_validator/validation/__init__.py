"""Validation engine core: context, registry, result builders, fix routing."""
