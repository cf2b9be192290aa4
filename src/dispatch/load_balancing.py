from __future__ import annotations

from .base import BaseElevatorAlgorithm
from .interface import BuildingData, ElevatorData, PersonData


class LoadBalancingAlgorithm(BaseElevatorAlgorithm):
    """Spreads passengers over the least occupied cars and drops riders off first."""

    name = "Load Balancing"
    description = (
        "Assigns each call to the least occupied elevator (fewest pending stops "
        "and shortest distance break ties) and routes drop-offs before new pickups."
    )

    def assign_elevator_to_person(
        self, person: PersonData, start_floor: int, building: BuildingData
    ) -> int:
        candidates = self.candidates(building)
        if not candidates:
            return self.pick_best(building, {})
        best = min(
            candidates,
            key=lambda e: (
                e.passengers,
                len(e.floors_to_visit),
                self.distance_to_floor(e, start_floor),
                e.id,
            ),
        )
        return self._index_of(building, best.id)

    def decide_next_floor(self, elevator: ElevatorData, building: BuildingData) -> int:
        pending = self.pending_floors(elevator)
        if not pending:
            return elevator.current_floor
        dropoffs = [f for f in elevator.passenger_destinations if f != elevator.current_floor]
        if dropoffs:
            return self.find_closest_floor(elevator.current_floor, dropoffs)
        return self.find_closest_floor(elevator.current_floor, pending)
