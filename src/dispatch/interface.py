from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

# Operating states as they appear in snapshots.
IDLE = "idle"
MOVING_UP = "moving_up"
MOVING_DOWN = "moving_down"
LOADING = "loading"
REPAIR = "repair"


@dataclass(frozen=True)
class PersonData:
    """Read-only view of a waiting passenger."""

    start_floor: int
    destination_floor: int
    wait_time: float

    @property
    def direction(self) -> int:
        return 1 if self.destination_floor > self.start_floor else -1


@dataclass(frozen=True)
class ElevatorFloorStats:
    """Waiting figures on one floor for passengers assigned to one elevator."""

    elevator_id: int
    waiting_count: int
    max_wait_time: float
    avg_wait_time: float


@dataclass(frozen=True)
class FloorStats:
    floor: int
    waiting_count: int
    max_wait_time: float
    avg_wait_time: float
    waiting_people: Tuple[PersonData, ...] = ()
    per_elevator: Tuple[ElevatorFloorStats, ...] = ()

    def for_elevator(self, elevator_id: int) -> Optional[ElevatorFloorStats]:
        for stats in self.per_elevator:
            if stats.elevator_id == elevator_id:
                return stats
        return None


@dataclass(frozen=True)
class ElevatorData:
    """Lightweight view of an elevator for dispatch decisions."""

    id: int
    current_floor: int
    target_floor: Optional[int]
    state: str
    direction: int
    passengers: int
    capacity: int
    floors_to_visit: Tuple[int, ...]
    passenger_destinations: Tuple[int, ...]
    is_in_repair: bool
    last_direction: int = 0

    @property
    def available_capacity(self) -> int:
        return max(0, self.capacity - self.passengers)

    @property
    def is_full(self) -> bool:
        return self.passengers >= self.capacity

    @property
    def is_idle(self) -> bool:
        return self.state == IDLE

    @property
    def heading(self) -> int:
        """Current direction, or the direction of the last trip when stopped."""
        return self.direction or self.last_direction


@dataclass(frozen=True)
class BuildingData:
    total_floors: int
    total_elevators: int
    elevators: Tuple[ElevatorData, ...]
    floor_stats: Tuple[FloorStats, ...] = ()

    def floor_stat(self, floor: int) -> Optional[FloorStats]:
        for stats in self.floor_stats:
            if stats.floor == floor:
                return stats
        return None


class ElevatorAlgorithm(Protocol):
    """Strategy interface for elevator dispatch.

    Implementations answer two questions: which elevator serves a new hall
    call, and which floor an idle elevator visits next. Both must be free of
    side effects and deterministic for a given snapshot. ``initialize`` and
    ``cleanup`` are optional lifecycle hooks.
    """

    name: str
    description: str

    def assign_elevator_to_person(
        self, person: PersonData, start_floor: int, building: BuildingData
    ) -> int:
        """Return the index of the elevator that should serve ``person``."""
        ...

    def decide_next_floor(self, elevator: ElevatorData, building: BuildingData) -> int:
        """Return the floor ``elevator`` should travel to next.

        The conventional answer for an elevator with nothing to do is its
        current floor.
        """
        ...
