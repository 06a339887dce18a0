from __future__ import annotations

"""Per-question countdown driven by externally delivered ticks."""

from typing import Optional


class QuestionTimer:
    def __init__(self, duration_ms: int) -> None:
        if duration_ms <= 0:
            raise ValueError("timer duration must be positive")
        self.duration_ms = int(duration_ms)
        self.remaining_ms = int(duration_ms)
        self.running = False
        self.frozen = False
        self.expired = False

    def start(self) -> None:
        self.remaining_ms = self.duration_ms
        self.running = True
        self.frozen = False
        self.expired = False

    def cancel(self) -> None:
        self.running = False

    def freeze(self) -> None:
        self.frozen = True

    def thaw(self) -> None:
        self.frozen = False

    @property
    def remaining_seconds(self) -> int:
        # Ceil, so "1" is shown until the countdown actually hits zero
        return -(-self.remaining_ms // 1000)

    def tick(self, elapsed_ms: int) -> bool:
        """Consume elapsed time; True exactly once, when the countdown reaches zero."""
        if not self.running or self.frozen or elapsed_ms <= 0:
            return False
        self.remaining_ms = max(0, self.remaining_ms - int(elapsed_ms))
        if self.remaining_ms == 0:
            self.running = False
            self.expired = True
            return True
        return False


def make_timer(timer_enabled: bool, timer_duration_s: Optional[int]) -> Optional[QuestionTimer]:
    if not timer_enabled or not timer_duration_s:
        return None
    return QuestionTimer(int(timer_duration_s) * 1000)
