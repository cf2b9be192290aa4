from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List

from . import utils
from .interface import BuildingData, ElevatorData, PersonData


class BaseElevatorAlgorithm(ABC):
    """Shared plumbing for dispatch strategies.

    Subclasses provide ``name``, ``description`` and the two decision
    methods; the helpers below cover the distance and direction arithmetic
    most strategies need.
    """

    name: str = ""
    description: str = ""

    @abstractmethod
    def assign_elevator_to_person(
        self, person: PersonData, start_floor: int, building: BuildingData
    ) -> int:
        """Choose the elevator that answers a new hall call."""

    @abstractmethod
    def decide_next_floor(self, elevator: ElevatorData, building: BuildingData) -> int:
        """Choose the next floor for an idle elevator."""

    def initialize(self, building: BuildingData) -> None:
        """Optional hook executed when the algorithm becomes active."""
        return None

    def cleanup(self) -> None:
        """Optional hook executed when the algorithm is switched out."""
        return None

    # Helper methods -----------------------------------------------------

    def find_closest_floor(self, current_floor: int, floors: Iterable[int]) -> int:
        return utils.find_closest_floor(current_floor, floors)

    def distance_to_floor(self, elevator: ElevatorData, floor: int) -> int:
        return utils.distance_to_floor(elevator, floor)

    def is_floor_in_same_direction(self, elevator: ElevatorData, floor: int) -> bool:
        return utils.is_floor_in_same_direction(elevator, floor)

    def candidates(self, building: BuildingData) -> List[ElevatorData]:
        return utils.candidate_elevators(building)

    def pending_floors(self, elevator: ElevatorData) -> List[int]:
        """Floors still to visit, excluding the one the elevator is standing on."""
        return sorted(f for f in elevator.floors_to_visit if f != elevator.current_floor)

    def pick_best(self, building: BuildingData, scores: Dict[int, float]) -> int:
        """Index of the highest scoring elevator, lowest index on ties.

        Falls back to the least loaded elevator in service when nothing was
        scored.
        """

        if not scores:
            return utils.fallback_elevator(building)
        best_id = max(sorted(scores), key=lambda elevator_id: scores[elevator_id])
        return self._index_of(building, best_id)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"{type(self).__name__}(name={self.name!r})"

    @staticmethod
    def _index_of(building: BuildingData, elevator_id: int) -> int:
        for index, elevator in enumerate(building.elevators):
            if elevator.id == elevator_id:
                return index
        return 0
