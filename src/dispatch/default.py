from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .base import BaseElevatorAlgorithm
from .interface import BuildingData, ElevatorData, PersonData
from .utils import floors_in_direction, pickup_wait

logger = logging.getLogger(__name__)


class DefaultElevatorAlgorithm(BaseElevatorAlgorithm):
    """Balanced strategy used when nothing else has been selected.

    Floors whose passengers have waited longer than ``LONG_WAIT_THRESHOLD``
    seconds jump the queue; otherwise the car keeps sweeping in its current
    direction and prefers drop-offs when it has no heading.
    """

    name = "Default Algorithm"
    description = (
        "An optimized elevator algorithm that prioritizes reducing wait times, "
        "especially for passengers waiting longer than 20 seconds."
    )

    LONG_WAIT_THRESHOLD = 20.0

    def assign_elevator_to_person(
        self, person: PersonData, start_floor: int, building: BuildingData
    ) -> int:
        scores: Dict[int, float] = {}
        for elevator in self.candidates(building):
            scores[elevator.id] = self._elevator_score(
                elevator, start_floor, person.destination_floor, building
            )
        return self.pick_best(building, scores)

    def decide_next_floor(self, elevator: ElevatorData, building: BuildingData) -> int:
        pending = self.pending_floors(elevator)
        if not pending:
            return elevator.current_floor

        urgent = self._urgent_floor(elevator, pending, building)
        if urgent is not None:
            logger.debug("elevator %s prioritising floor %s for long wait", elevator.id, urgent)
            return urgent

        destinations = set(elevator.passenger_destinations)
        if elevator.is_full:
            dropoffs = [f for f in pending if f in destinations]
            if not dropoffs:
                dropoffs = sorted(f for f in destinations if f != elevator.current_floor)
            if dropoffs:
                pending = dropoffs
        return self._route(elevator, pending, destinations)

    def _urgent_floor(
        self, elevator: ElevatorData, floors: List[int], building: BuildingData
    ) -> Optional[int]:
        urgent: Optional[int] = None
        longest = self.LONG_WAIT_THRESHOLD
        for floor in floors:
            waiting, max_wait = pickup_wait(elevator, building.floor_stat(floor))
            if waiting > 0 and max_wait > longest:
                urgent, longest = floor, max_wait
        return urgent

    def _route(self, elevator: ElevatorData, floors: List[int], destinations) -> int:
        current = elevator.current_floor
        heading = elevator.heading
        if heading != 0:
            ahead = floors_in_direction(current, floors, heading)
            if ahead:
                return ahead[0]
            behind = floors_in_direction(current, floors, -heading)
            if behind:
                return self.find_closest_floor(current, behind)
        dropoffs = [f for f in floors if f in destinations]
        if dropoffs:
            return self.find_closest_floor(current, dropoffs)
        return self.find_closest_floor(current, floors)

    def _elevator_score(
        self, elevator: ElevatorData, pickup: int, destination: int, building: BuildingData
    ) -> float:
        score = 1000.0 - self.distance_to_floor(elevator, pickup) * 100.0
        score += (1.0 - elevator.passengers / elevator.capacity) * 500.0

        if not elevator.is_idle:
            score += 400.0 if self.is_floor_in_same_direction(elevator, pickup) else -200.0
        if elevator.passengers > 0:
            on_way = [
                self.is_floor_in_same_direction(elevator, pickup),
                self.is_floor_in_same_direction(elevator, destination),
            ]
            if all(on_way):
                score += 500.0
            elif any(on_way):
                score += 250.0
            else:
                score -= 100.0
        if self.is_floor_in_same_direction(elevator, pickup):
            score += 800.0
        if elevator.is_idle:
            score += 300.0
        score -= len(elevator.floors_to_visit) * 50.0

        stats = building.floor_stat(pickup)
        if stats is not None and stats.waiting_count > 0:
            wait_score = min(stats.max_wait_time * 50.0, 500.0)
            if stats.max_wait_time > self.LONG_WAIT_THRESHOLD:
                excess = stats.max_wait_time - self.LONG_WAIT_THRESHOLD
                wait_score += min(1000.0, excess ** 1.5 * 20.0)
            score += wait_score + stats.waiting_count * 30.0
        return score
