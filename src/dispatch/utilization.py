from __future__ import annotations

from typing import Dict

from .base import BaseElevatorAlgorithm
from .interface import BuildingData, ElevatorData, PersonData
from .utils import pickup_wait, scan_next_floor


class UtilizationTargetAlgorithm(BaseElevatorAlgorithm):
    """Steers every car toward a target occupancy instead of simply min or max load.

    Neither an empty car nor a packed one moves people efficiently, so the
    assignment score peaks at ``target_utilization`` and urgent waits or
    near-full cars override the normal floor scoring.
    """

    name = "Utilization Target"
    description = (
        "Capacity-aware dispatch that aims for roughly 70% occupancy per car, "
        "serves floors whose passengers are close to giving up first and "
        "sweeps drop-offs when a car is nearly full."
    )

    URGENT_WAIT_THRESHOLD = 20.0
    MAX_JOURNEY_LENGTH = 10
    WEIGHTS = {
        "distance": 15.0,
        "direction": 40.0,
        "utilization": 30.0,
        "journey": 25.0,
    }

    def __init__(self, target_utilization: float = 0.7, full_threshold: float = 0.9) -> None:
        self.target_utilization = target_utilization
        self.full_threshold = full_threshold

    def assign_elevator_to_person(
        self, person: PersonData, start_floor: int, building: BuildingData
    ) -> int:
        w = self.WEIGHTS
        scores: Dict[int, float] = {}
        for elevator in self.candidates(building):
            distance = self.distance_to_floor(elevator, start_floor)
            score = 1000.0 - distance * w["distance"]

            if elevator.direction != 0:
                if self.is_floor_in_same_direction(elevator, start_floor):
                    score += w["direction"] * 10
                else:
                    score -= w["direction"] * 5

            utilization = elevator.passengers / elevator.capacity
            score += w["utilization"] * (
                1.0 - abs(utilization - self.target_utilization) * 5
            )

            if elevator.passengers > 0:
                if start_floor in elevator.floors_to_visit:
                    score += w["journey"] * 5
                journeys = len(elevator.passenger_destinations)
                if journeys > self.MAX_JOURNEY_LENGTH:
                    score -= w["journey"] * journeys
            else:
                score += w["utilization"] * 3

            if elevator.is_idle:
                score += 200.0
            scores[elevator.id] = score
        return self.pick_best(building, scores)

    def decide_next_floor(self, elevator: ElevatorData, building: BuildingData) -> int:
        pending = self.pending_floors(elevator)
        if not pending:
            return elevator.current_floor

        if not elevator.is_full:
            urgent = []
            for floor in pending:
                waiting, max_wait = pickup_wait(elevator, building.floor_stat(floor))
                if waiting > 0 and max_wait > self.URGENT_WAIT_THRESHOLD * 0.8:
                    urgent.append((max_wait, -floor, floor))
            if urgent:
                return max(urgent)[2]

        dropoffs = [f for f in elevator.passenger_destinations if f != elevator.current_floor]
        if dropoffs and elevator.passengers >= elevator.capacity * self.full_threshold:
            return scan_next_floor(elevator.current_floor, dropoffs, elevator.heading)

        scored = [(self._floor_score(elevator, floor, building), -floor, floor) for floor in pending]
        return max(scored)[2]

    def _floor_score(self, elevator: ElevatorData, floor: int, building: BuildingData) -> float:
        score = 1000.0 - abs(elevator.current_floor - floor) * 20.0
        heading = elevator.heading
        if (heading > 0 and floor > elevator.current_floor) or (
            heading < 0 and floor < elevator.current_floor
        ):
            score += 300.0
        waiting, max_wait = pickup_wait(elevator, building.floor_stat(floor))
        if waiting > 0:
            score += min(max_wait * 40.0, 600.0)
            score += waiting * 15.0
        if floor in elevator.passenger_destinations:
            score += 400.0
        return score
