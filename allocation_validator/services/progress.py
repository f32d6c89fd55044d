from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display over validators with tqdm (TTY only).

A single tqdm instance per validation pass. In non-TTY environments (CI,
pipes) the bar is disabled to avoid ANSI control sequence spam.
"""

__all__ = [
    "ValidationProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ValidationProgress:
    """Progress bar over the validators of one pass.

    Args:
        total: Number of validators that will run
        enabled: Caller opt-in; the bar is still suppressed without a TTY
        description: Base description for the bar
    """

    def __init__(self, total: int, *, enabled: bool = True, description: str = "Validating") -> None:
        self.total = total
        self.description = description
        self.current = 0
        self.enabled = enabled and is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total,
                desc=description,
                unit="validator",
                leave=False,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start(self, validator_name: str) -> None:
        self.current += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({validator_name})")

    def finish(self, issues: int = 0) -> None:
        if self.pbar is not None:
            self.pbar.update(1)
            if issues:
                self.pbar.set_postfix(issues=issues)
            self.pbar.set_description(self.description)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ValidationProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
