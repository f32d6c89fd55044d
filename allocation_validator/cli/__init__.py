"""Command line entrypoint (``python -m allocation_validator.cli``)."""
