from __future__ import annotations

from .base import BaseElevatorAlgorithm
from .interface import BuildingData, ElevatorData, PersonData


class NearestElevatorAlgorithm(BaseElevatorAlgorithm):
    """Baseline: nearest car answers the call, stops are served in ascending order."""

    name = "Nearest Elevator"
    description = (
        "Assigns the closest elevator with room and visits pending floors in "
        "ascending numeric order. Useful as a trivial baseline."
    )

    def assign_elevator_to_person(
        self, person: PersonData, start_floor: int, building: BuildingData
    ) -> int:
        scores = {
            elevator.id: -float(self.distance_to_floor(elevator, start_floor))
            for elevator in self.candidates(building)
        }
        return self.pick_best(building, scores)

    def decide_next_floor(self, elevator: ElevatorData, building: BuildingData) -> int:
        pending = self.pending_floors(elevator)
        if not pending:
            return elevator.current_floor
        return pending[0]
