from __future__ import annotations

from typing import Dict, List, Type

from .base import BaseElevatorAlgorithm
from .default import DefaultElevatorAlgorithm
from .interface import (
    BuildingData,
    ElevatorAlgorithm,
    ElevatorData,
    ElevatorFloorStats,
    FloorStats,
    PersonData,
)
from .load_balancing import LoadBalancingAlgorithm
from .nearest import NearestElevatorAlgorithm
from .scan import ScanAlgorithm
from .utilization import UtilizationTargetAlgorithm
from .wait_time import WaitTimeWeightedAlgorithm

__all__ = [
    "ALGORITHM_REGISTRY",
    "AlgorithmLoadError",
    "BaseElevatorAlgorithm",
    "BuildingData",
    "DefaultElevatorAlgorithm",
    "ElevatorAlgorithm",
    "ElevatorData",
    "ElevatorFloorStats",
    "FloorStats",
    "LoadBalancingAlgorithm",
    "NearestElevatorAlgorithm",
    "PersonData",
    "ScanAlgorithm",
    "UtilizationTargetAlgorithm",
    "WaitTimeWeightedAlgorithm",
    "get_algorithm",
    "list_algorithms",
]


class AlgorithmLoadError(Exception):
    """Raised when a plugin algorithm cannot be imported or does not honour the contract."""


DEFAULT_ALGORITHM = "default"

ALGORITHM_REGISTRY: Dict[str, Type[BaseElevatorAlgorithm]] = {
    "default": DefaultElevatorAlgorithm,
    "nearest": NearestElevatorAlgorithm,
    "load_balancing": LoadBalancingAlgorithm,
    "wait_time": WaitTimeWeightedAlgorithm,
    "scan": ScanAlgorithm,
    "utilization": UtilizationTargetAlgorithm,
}


def get_algorithm(name: str, **kwargs) -> ElevatorAlgorithm:
    cls = ALGORITHM_REGISTRY.get(name.lower())
    if cls is None:
        raise ValueError(f"Unknown algorithm '{name}'. Available: {', '.join(ALGORITHM_REGISTRY)}")
    return cls(**kwargs)


def list_algorithms() -> List[Dict[str, str]]:
    return [
        {"id": key, "name": cls.name, "description": cls.description}
        for key, cls in ALGORITHM_REGISTRY.items()
    ]
