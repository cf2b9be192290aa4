from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .base import BaseElevatorAlgorithm
from .interface import BuildingData, ElevatorData, PersonData
from .utils import pickup_wait


@dataclass(frozen=True)
class RoutingWeights:
    waiting_time: float = 2.0
    passenger_count: float = 1.5
    dropoff_priority: float = 3.0
    direction_match: float = 1.0
    distance_penalty: float = 0.5
    capacity_penalty: float = 5.0
    full_pickup_penalty: float = 100.0


class WaitTimeWeightedAlgorithm(BaseElevatorAlgorithm):
    """Scores every pending floor on wait time, crowding, direction and drop-off urgency."""

    name = "Wait-Time Weighted"
    description = (
        "Routes to the pending floor with the best composite score of waiting "
        "time, waiting passengers, directional continuity and drop-off urgency. "
        "Calls go to the elevator with the best mix of distance, spare "
        "capacity, idleness and direction."
    )

    def __init__(self, weights: RoutingWeights | None = None) -> None:
        self.weights = weights or RoutingWeights()

    def assign_elevator_to_person(
        self, person: PersonData, start_floor: int, building: BuildingData
    ) -> int:
        scores: Dict[int, float] = {}
        for elevator in self.candidates(building):
            distance = self.distance_to_floor(elevator, start_floor)
            load = elevator.passengers / elevator.capacity
            score = 1000.0 - distance * 100.0
            score += (1.0 - load) * 500.0
            if elevator.direction != 0 and self.is_floor_in_same_direction(elevator, start_floor):
                score += 800.0
            if elevator.is_idle:
                score += 300.0
            scores[elevator.id] = score
        return self.pick_best(building, scores)

    def decide_next_floor(self, elevator: ElevatorData, building: BuildingData) -> int:
        pending = self.pending_floors(elevator)
        if not pending:
            return elevator.current_floor
        scored = [(self.score_floor(elevator, floor, building), floor) for floor in pending]
        # Highest score wins; the nearer floor, then the lower one, breaks ties.
        _, best_floor = max(
            scored,
            key=lambda item: (item[0], -abs(item[1] - elevator.current_floor), -item[1]),
        )
        return best_floor

    def score_floor(self, elevator: ElevatorData, floor: int, building: BuildingData) -> float:
        w = self.weights
        waiting_count, max_wait = pickup_wait(elevator, building.floor_stat(floor))
        is_dropoff = floor in elevator.passenger_destinations
        fill = elevator.passengers / elevator.capacity
        score = 0.0

        if waiting_count > 0 and not is_dropoff:
            if elevator.is_full:
                score -= w.full_pickup_penalty
            elif fill > 0.8:
                score -= w.capacity_penalty * fill
        if waiting_count > 0:
            score += max_wait * w.waiting_time
            score += waiting_count * w.passenger_count
        if is_dropoff:
            score += w.dropoff_priority * fill
        heading = elevator.heading
        if (heading > 0 and floor > elevator.current_floor) or (
            heading < 0 and floor < elevator.current_floor
        ):
            score += w.direction_match
        score -= abs(floor - elevator.current_floor) * w.distance_penalty
        return score
