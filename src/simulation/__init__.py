"""Tick-driven elevator building simulation."""

from .building import Building
from .clock import SimulationClock
from .config import ElevatorTimings, SimulationSettings
from .elevator import BreakdownReport, Elevator, ElevatorState
from .elevator_system import ElevatorSystem
from .floor import Floor
from .metrics import SimulationStatistics, compute_efficiency_score
from .passenger import Passenger, PassengerStatus
from .simulation import RunResult, Simulation

__all__ = [
    "BreakdownReport",
    "Building",
    "Elevator",
    "ElevatorState",
    "ElevatorSystem",
    "ElevatorTimings",
    "Floor",
    "Passenger",
    "PassengerStatus",
    "RunResult",
    "Simulation",
    "SimulationClock",
    "SimulationSettings",
    "SimulationStatistics",
    "compute_efficiency_score",
]
