from __future__ import annotations

import logging
import math
from numbers import Integral, Real
from typing import Optional, Sequence

from dispatch.interface import BuildingData, ElevatorData, FloorStats, PersonData
from dispatch.manager import AlgorithmManager

from .elevator import Elevator
from .passenger import Passenger

logger = logging.getLogger(__name__)


def _as_int(value: object) -> Optional[int]:
    """Coerce a strategy answer to an int, or None when it is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, Integral):
        return int(value)
    if isinstance(value, Real):
        number = float(value)
        if math.isfinite(number) and number.is_integer():
            return int(number)
    return None


class ElevatorSystem:
    """Dispatcher between the building and the active algorithm.

    Every call hands the algorithm immutable snapshots and validates what
    comes back, substituting a safe answer for anything unusable.
    """

    def __init__(self, elevators: Sequence[Elevator], total_floors: int, manager: AlgorithmManager) -> None:
        self.elevators = list(elevators)
        self.total_floors = total_floors
        self.manager = manager

    @property
    def algorithm(self):
        return self.manager.current

    def set_algorithm(self, algorithm_id: str) -> bool:
        return self.manager.set_current(algorithm_id, self.building_data())

    # Snapshots ----------------------------------------------------------

    @staticmethod
    def elevator_data(elevator: Elevator) -> ElevatorData:
        return ElevatorData(
            id=elevator.elevator_id,
            current_floor=elevator.current_floor,
            target_floor=elevator.target_floor,
            state=elevator.state.value,
            direction=elevator.direction,
            passengers=len(elevator.passengers),
            capacity=elevator.capacity,
            floors_to_visit=tuple(sorted(elevator.floors_to_visit)),
            passenger_destinations=tuple(elevator.passenger_destinations),
            is_in_repair=elevator.in_repair,
            last_direction=elevator.last_direction,
        )

    def building_data(self, floor_stats: Sequence[FloorStats] = ()) -> BuildingData:
        return BuildingData(
            total_floors=self.total_floors,
            total_elevators=len(self.elevators),
            elevators=tuple(self.elevator_data(e) for e in self.elevators),
            floor_stats=tuple(floor_stats),
        )

    @staticmethod
    def person_data(passenger: Passenger) -> PersonData:
        return PersonData(
            start_floor=passenger.origin,
            destination_floor=passenger.destination,
            wait_time=passenger.wait_time,
        )

    # Decisions ----------------------------------------------------------

    def assign_elevator_to_person(
        self, passenger: Passenger, floor: int, floor_stats: Sequence[FloorStats] = ()
    ) -> int:
        building = self.building_data(floor_stats)
        try:
            answer = self.algorithm.assign_elevator_to_person(self.person_data(passenger), floor, building)
        except Exception:
            logger.exception("%s failed to assign an elevator", self._algorithm_name())
            return 0
        index = _as_int(answer)
        if index is None or not 0 <= index < len(self.elevators):
            logger.warning(
                "%s returned invalid elevator index %r; using elevator 0",
                self._algorithm_name(),
                answer,
            )
            return 0
        return index

    def decide_next_floor(self, elevator: Elevator, floor_stats: Sequence[FloorStats] = ()) -> int:
        building = self.building_data(floor_stats)
        try:
            answer = self.algorithm.decide_next_floor(self.elevator_data(elevator), building)
        except Exception:
            logger.exception(
                "%s failed to route elevator %s", self._algorithm_name(), elevator.elevator_id
            )
            return elevator.current_floor
        floor = _as_int(answer)
        if floor is None or not 0 <= floor < self.total_floors:
            logger.warning(
                "%s returned invalid floor %r for elevator %s; staying at %s",
                self._algorithm_name(),
                answer,
                elevator.elevator_id,
                elevator.current_floor,
            )
            return elevator.current_floor
        return floor

    def _algorithm_name(self) -> str:
        return getattr(self.algorithm, "name", type(self.algorithm).__name__)
