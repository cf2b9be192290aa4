from __future__ import annotations

import logging
from typing import Dict, List, Optional

from . import ALGORITHM_REGISTRY, DEFAULT_ALGORITHM, get_algorithm
from .interface import BuildingData, ElevatorAlgorithm

logger = logging.getLogger(__name__)


class AlgorithmManager:
    """Registry of algorithm instances with exactly one active at a time.

    The shipped strategies are registered on construction. Switching calls
    the outgoing strategy's ``cleanup`` hook and the incoming one's
    ``initialize`` hook when they exist; the new strategy answers the very
    next decision request.
    """

    def __init__(self, default: str = DEFAULT_ALGORITHM) -> None:
        self._algorithms: Dict[str, ElevatorAlgorithm] = {}
        for key in ALGORITHM_REGISTRY:
            self._algorithms[key] = get_algorithm(key)
        if default not in self._algorithms:
            raise ValueError(f"Unknown algorithm '{default}'")
        self._current_id = default

    @property
    def current(self) -> ElevatorAlgorithm:
        return self._algorithms[self._current_id]

    @property
    def current_id(self) -> str:
        return self._current_id

    def get(self, algorithm_id: str) -> Optional[ElevatorAlgorithm]:
        return self._algorithms.get(algorithm_id)

    def register(
        self, algorithm_id: str, algorithm: ElevatorAlgorithm, building: BuildingData | None = None
    ) -> None:
        """Add or replace a strategy. Replacing the active one swaps it in place."""
        for method in ("assign_elevator_to_person", "decide_next_floor"):
            if not callable(getattr(algorithm, method, None)):
                raise TypeError(f"Algorithm '{algorithm_id}' does not implement {method}()")
        replacing_current = algorithm_id == self._current_id
        if replacing_current:
            self._cleanup(self.current)
        self._algorithms[algorithm_id] = algorithm
        logger.info("registered algorithm %s (%s)", algorithm_id, getattr(algorithm, "name", ""))
        if replacing_current:
            self._initialize(algorithm, building)

    def set_current(self, algorithm_id: str, building: BuildingData | None = None) -> bool:
        incoming = self._algorithms.get(algorithm_id)
        if incoming is None:
            logger.warning("cannot switch to unknown algorithm %s", algorithm_id)
            return False
        if algorithm_id != self._current_id:
            self._cleanup(self.current)
        self._current_id = algorithm_id
        self._initialize(incoming, building)
        logger.info("active algorithm is now %s", algorithm_id)
        return True

    def algorithms(self) -> List[Dict[str, str]]:
        return [
            {
                "id": key,
                "name": getattr(algorithm, "name", key),
                "description": getattr(algorithm, "description", ""),
            }
            for key, algorithm in self._algorithms.items()
        ]

    @staticmethod
    def _initialize(algorithm: ElevatorAlgorithm, building: BuildingData | None) -> None:
        initialize = getattr(algorithm, "initialize", None)
        if building is not None and callable(initialize):
            initialize(building)

    @staticmethod
    def _cleanup(algorithm: ElevatorAlgorithm) -> None:
        cleanup = getattr(algorithm, "cleanup", None)
        if callable(cleanup):
            cleanup()
