"""Fixed-delay retry policy used for calls to the URL shortener."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class RetryPolicy:
    """Up to ``max_attempts`` attempts with a fixed pause between them."""

    max_attempts: int = 3
    delay_seconds: float = 2.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds cannot be negative")

    def attempts(self) -> range:
        return range(1, self.max_attempts + 1)

    def has_more(self, attempt: int) -> bool:
        return attempt < self.max_attempts

    def wait(self) -> None:
        if self.delay_seconds > 0:
            self.sleep(self.delay_seconds)
