from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from dispatch.interface import ElevatorAlgorithm
from dispatch.manager import AlgorithmManager

from .building import Building
from .clock import SimulationClock
from .config import SimulationSettings
from .metrics import SimulationStatistics

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """One finished (or in-progress) run as handed to result storage."""

    timestamp: str
    algorithm_id: str
    algorithm_name: str
    settings: dict
    statistics: dict

    def to_dict(self) -> dict:
        return asdict(self)


class Simulation:
    """Tick-driven driver around a :class:`Building`.

    Owns the clock, the seeded random generator and the algorithm manager.
    The manager survives resets so the selected algorithm stays active;
    everything else is rebuilt.
    """

    def __init__(
        self,
        settings: Optional[SimulationSettings] = None,
        algorithm: Optional[str] = None,
        manager: Optional[AlgorithmManager] = None,
    ) -> None:
        self.manager = manager or AlgorithmManager()
        self.event_hooks: Dict[str, List[Callable[[object], None]]] = {}
        self.paused = False
        self._single_step = False
        self._build(settings or SimulationSettings())
        if algorithm is not None and not self.switch_algorithm(algorithm):
            raise ValueError(f"Unknown algorithm '{algorithm}'")

    def _build(self, settings: SimulationSettings) -> None:
        self.settings = settings
        self.random = random.Random(settings.seed)
        self.clock = SimulationClock(settings.tick_ms)
        self.building = Building(settings, self.manager, rng=self.random)
        self.building.on_stats_updated(self._on_stats)

    @property
    def current_time(self) -> int:
        return self.clock.now_ms

    # Frame control ------------------------------------------------------

    def step(self) -> bool:
        """Advance one tick unless paused; returns whether time moved."""
        if self.paused and not self._single_step:
            return False
        self._single_step = False
        now = self.clock.advance()
        self.building.update(now)
        return True

    def run(self, duration_s: float) -> None:
        ticks = int(round(duration_s * 1000 / self.clock.tick_ms))
        for _ in range(ticks):
            self.step()

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False
        self._single_step = False

    def request_single_step(self) -> None:
        self._single_step = True

    def reset(self, settings: Optional[SimulationSettings] = None) -> None:
        self._build(settings or self.settings)
        self._single_step = False
        self._emit("reset", {"settings": self.settings.to_dict()})
        logger.info("simulation reset with %s lanes, %s floors", self.settings.number_of_lanes, self.settings.number_of_floors)

    def update_settings(self, people_flow_rate: float) -> None:
        """Apply a new arrival rate without rebuilding the building."""
        self.settings = replace(self.settings, people_flow_rate=people_flow_rate)
        self.building.settings = self.settings
        self.building.invalidate_statistics()

    # Algorithms ---------------------------------------------------------

    def available_algorithms(self) -> List[Dict[str, str]]:
        return self.manager.algorithms()

    def register_algorithm(self, algorithm_id: str, algorithm: ElevatorAlgorithm) -> None:
        self.manager.register(algorithm_id, algorithm, self.building.system.building_data())

    def switch_algorithm(self, algorithm_id: str) -> bool:
        switched = self.building.system.set_algorithm(algorithm_id)
        if switched:
            self._emit("algorithm", {"algorithm": algorithm_id, "time": self.current_time})
        return switched

    # Faults -------------------------------------------------------------

    def trigger_elevator_fault(self, elevator_id: int, reason: Optional[str] = None) -> bool:
        reason = reason or "Manual fault injection"
        if not self.building.trigger_fault(elevator_id, reason):
            return False
        self._emit("fault", {"elevator_id": elevator_id, "reason": reason, "time": self.current_time})
        return True

    # Reporting ----------------------------------------------------------

    def get_statistics(self, force: bool = False) -> SimulationStatistics:
        return self.building.get_statistics(force=force)

    def elevator_states(self) -> List[dict]:
        return self.building.snapshot()["elevators"]

    def current_state(self) -> dict:
        state = self.building.snapshot()
        state["paused"] = self.paused
        state["algorithm"] = self.manager.current_id
        return state

    def run_result(self) -> dict:
        return RunResult(
            timestamp=datetime.now(timezone.utc).isoformat(),
            algorithm_id=self.manager.current_id,
            algorithm_name=getattr(self.manager.current, "name", self.manager.current_id),
            settings=self.settings.to_dict(),
            statistics=self.get_statistics(force=True).to_dict(),
        ).to_dict()

    def on_event(self, event: str, callback: Callable[[object], None]) -> None:
        self.event_hooks.setdefault(event, []).append(callback)

    def _on_stats(self, stats: SimulationStatistics) -> None:
        self._emit("stats", stats)
        if self.event_hooks.get("result"):
            self._emit("result", self.run_result())

    def _emit(self, event: str, payload: object) -> None:
        for callback in self.event_hooks.get(event, []):
            callback(payload)
