from __future__ import annotations

from .base import BaseElevatorAlgorithm
from .interface import BuildingData, ElevatorData, PersonData
from .utils import scan_next_floor


class ScanAlgorithm(BaseElevatorAlgorithm):
    """Implements the SCAN (elevator) algorithm."""

    name = "SCAN"
    description = (
        "Keeps serving floors in the current direction of travel until none "
        "remain, then reverses. Calls go to the car that reaches them soonest, "
        "preferring cars already heading the caller's way."
    )

    def assign_elevator_to_person(
        self, person: PersonData, start_floor: int, building: BuildingData
    ) -> int:
        feasible = self.candidates(building)
        if not feasible:
            return self.pick_best(building, {})
        feasible.sort(
            key=lambda e: (
                self.distance_to_floor(e, start_floor),
                abs(e.heading - person.direction),
                e.id,
            )
        )
        return self._index_of(building, feasible[0].id)

    def decide_next_floor(self, elevator: ElevatorData, building: BuildingData) -> int:
        floors = list(elevator.floors_to_visit)
        if elevator.is_full:
            # No room to pick anyone up: only drop-offs are worth a stop.
            floors = [f for f in floors if f in elevator.passenger_destinations] or list(
                elevator.passenger_destinations
            )
        return scan_next_floor(elevator.current_floor, floors, elevator.heading)
