from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional


@dataclass
class ElevatorTimings:
    """Durations (milliseconds of simulated time) driving the elevator state machine."""

    loading_ms: int = 1000
    repair_ms: int = 5000
    stuck_check_interval_ms: int = 1000
    state_change_grace_ms: int = 1000
    idle_threshold_ms: int = 20000
    moving_threshold_ms: int = 5000
    loading_threshold_ms: int = 3000
    warning_multiplier: int = 3
    loading_repair_multiplier: int = 4
    movement_threshold: float = 0.5
    history_size: int = 5


@dataclass
class SimulationSettings:
    """Scenario configuration handed to the core at construction or reset."""

    number_of_lanes: int = 4
    number_of_floors: int = 10
    people_flow_rate: float = 1.0
    elevator_speed: int = 5
    elevator_capacity: int = 8
    seed: Optional[int] = 12345
    tick_ms: int = 20
    warmup_s: float = 30.0
    floor_height: int = 40
    edge_floor_probability: float = 0.2
    stats_update_interval: int = 50
    give_up_min_s: float = 30.0
    give_up_max_s: float = 90.0
    timings: ElevatorTimings = field(default_factory=ElevatorTimings)

    def __post_init__(self) -> None:
        if isinstance(self.timings, dict):
            self.timings = ElevatorTimings(**self.timings)
        self.validate()

    def validate(self) -> None:
        if self.number_of_lanes < 1:
            raise ValueError("number_of_lanes must be at least 1")
        if self.number_of_floors < 2:
            raise ValueError("number_of_floors must be at least 2")
        if self.elevator_capacity < 1:
            raise ValueError("elevator_capacity must be at least 1")
        if self.elevator_speed <= 0:
            raise ValueError("elevator_speed must be positive")
        if self.people_flow_rate < 0:
            raise ValueError("people_flow_rate cannot be negative")
        if self.tick_ms <= 0:
            raise ValueError("tick_ms must be positive")
        if self.floor_height <= 0:
            raise ValueError("floor_height must be positive")
        if not 0.0 <= self.edge_floor_probability <= 1.0:
            raise ValueError("edge_floor_probability must be within [0, 1]")
        if self.give_up_min_s > self.give_up_max_s:
            raise ValueError("give_up_min_s cannot exceed give_up_max_s")

    @property
    def top_floor(self) -> int:
        return self.number_of_floors - 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationSettings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
