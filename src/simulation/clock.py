from __future__ import annotations


class SimulationClock:
    """Integer millisecond clock advanced one fixed tick at a time."""

    def __init__(self, tick_ms: int = 20) -> None:
        if tick_ms <= 0:
            raise ValueError("tick_ms must be positive")
        self.tick_ms = tick_ms
        self.now_ms = 0

    def advance(self) -> int:
        self.now_ms += self.tick_ms
        return self.now_ms

    @property
    def seconds(self) -> float:
        return self.now_ms / 1000.0

